"""Match Redmine assignees to Slack users.

A Redmine user is considered the same person as a Slack user when the
Redmine login equals the Slack username, or when the Slack real name equals
one of the four orderings of the Redmine first and last name. Names that
cannot be matched that way are fixed by hand in a JSON mapping file which
rewrites a Slack real name before a single retry.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Sequence

from bot.models import ChatUser, IdName, TrackerUser, UserDirectory, UserNotFoundError

logger = logging.getLogger("bot.identity")

FULLWIDTH_SPACE = "　"

EMPTY_MAPPING: Mapping[str, str] = MappingProxyType({})


def load_user_mapping(path: str | Path) -> Mapping[str, str]:
    """Load the Slack name override table.

    Args:
        path: Location of a JSON object mapping Slack names to override values.

    Returns:
        A read-only mapping. A missing or malformed file yields an empty one.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return EMPTY_MAPPING
    except OSError as exc:
        logger.warning("Could not read user mapping %s: %s", path, exc)
        return EMPTY_MAPPING

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring malformed user mapping %s: %s", path, exc)
        return EMPTY_MAPPING

    if not isinstance(data, dict):
        logger.warning("Ignoring user mapping %s: expected a JSON object", path)
        return EMPTY_MAPPING

    mapping = {k: v for k, v in data.items() if isinstance(v, str)}
    if len(mapping) != len(data):
        logger.warning("Dropped %d non-string entries from %s", len(data) - len(mapping), path)
    logger.info("Loaded %d user mapping entries from %s", len(mapping), path)
    return MappingProxyType(mapping)


def _full_names(user: TrackerUser) -> set[str]:
    last, first = user.lastname, user.firstname
    return {
        last + first,
        last + " " + first,
        first + last,
        first + " " + last,
    }


def _direct_match(tracker_user: TrackerUser, chat_user: ChatUser) -> bool:
    if tracker_user.login and tracker_user.login == chat_user.name:
        return True
    real_name = chat_user.real_name.replace(FULLWIDTH_SPACE, " ")
    return bool(real_name) and real_name in _full_names(tracker_user)


def _mapped_name(chat_user: ChatUser, mapping: Mapping[str, str]) -> str | None:
    return mapping.get(chat_user.real_name)


def is_same_user(
    tracker_user: TrackerUser,
    chat_user: ChatUser,
    mapping: Mapping[str, str] = EMPTY_MAPPING,
) -> bool:
    """Return whether *tracker_user* and *chat_user* are the same person.

    The mapping table is consulted once: a substituted copy of the Slack user
    is matched again, and the mapped value may also equal the Redmine login.
    """
    if _direct_match(tracker_user, chat_user):
        return True

    mapped = _mapped_name(chat_user, mapping)
    if mapped is None:
        return False

    substituted = replace(chat_user, real_name=mapped)
    if _direct_match(tracker_user, substituted):
        return True
    return bool(tracker_user.login) and mapped == tracker_user.login


def mention(chat_user: ChatUser) -> str:
    return f"<@{chat_user.id}>"


def resolve(
    tracker_user: TrackerUser,
    chat_users: Sequence[ChatUser],
    mapping: Mapping[str, str] = EMPTY_MAPPING,
) -> str | None:
    """Find the Slack mention for a Redmine user.

    Args:
        tracker_user: The Redmine user to look for.
        chat_users: All Slack users, tried in order; the first match wins.
        mapping: Slack name override table.

    Returns:
        The ``<@ID>`` mention, or ``None`` when no Slack user matches.
    """
    for chat_user in chat_users:
        if is_same_user(tracker_user, chat_user, mapping):
            return mention(chat_user)
    return None


def assignee_mention(
    assigned_to: IdName | None,
    directory: UserDirectory,
    chat_users: Sequence[ChatUser],
    mapping: Mapping[str, str] = EMPTY_MAPPING,
) -> str:
    """Render a ticket's assignee for Slack.

    Returns an empty string for unassigned tickets and the Redmine display
    name whenever the assignee cannot be matched to a Slack user.
    """
    if assigned_to is None:
        return ""

    try:
        tracker_user = directory.get(assigned_to.id, assigned_to.name)
    except UserNotFoundError as exc:
        logger.warning("%s, showing raw name", exc)
        return assigned_to.name

    handle = resolve(tracker_user, chat_users, mapping)
    if handle is None:
        logger.info("No Slack user matches %s (%s)", tracker_user.login, assigned_to.name)
        return assigned_to.name
    return handle
