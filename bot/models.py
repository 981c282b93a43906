"""Immutable records for Redmine tickets, Redmine users, and Slack users."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from types import MappingProxyType
from typing import Iterable, Mapping

logger = logging.getLogger("bot.models")

DATE_FORMAT = "%Y-%m-%d"
# Redmine clients render an unset date as the zero date.
UNSET_DATE = date(1, 1, 1)


class UserNotFoundError(LookupError):
    """Raised when a Redmine user id is missing from the directory snapshot."""

    def __init__(self, user_id: int, name: str = "") -> None:
        self.user_id = user_id
        self.name = name
        super().__init__(f"Redmine user {user_id} ({name}) not found")


def parse_due_date(raw: object) -> date | None:
    """Parse a Redmine ``YYYY-MM-DD`` due date.

    Missing, malformed, and sentinel dates all come back as ``None``.
    """
    if not raw or not isinstance(raw, str):
        return None
    try:
        parsed = datetime.strptime(raw.strip(), DATE_FORMAT).date()
    except ValueError:
        logger.debug("Unparseable due date %r, treating as unset", raw)
        return None
    if parsed == UNSET_DATE:
        return None
    return parsed


@dataclass(frozen=True)
class IdName:
    """A Redmine ``{"id": ..., "name": ...}`` reference."""

    id: int
    name: str

    @classmethod
    def from_api(cls, data: Mapping | None) -> IdName | None:
        if not data or data.get("id") is None:
            return None
        return cls(id=int(data["id"]), name=data.get("name") or "")


@dataclass(frozen=True)
class Ticket:
    id: int
    subject: str
    due_date: date | None = None
    assigned_to: IdName | None = None
    project_id: int | None = None
    status_id: int | None = None

    @classmethod
    def from_api(cls, data: Mapping) -> Ticket:
        """Build a ticket from one entry of Redmine's ``issues`` array."""
        project = IdName.from_api(data.get("project"))
        status = IdName.from_api(data.get("status"))
        return cls(
            id=int(data["id"]),
            subject=data.get("subject") or "",
            due_date=parse_due_date(data.get("due_date")),
            assigned_to=IdName.from_api(data.get("assigned_to")),
            project_id=project.id if project else None,
            status_id=status.id if status else None,
        )


@dataclass(frozen=True)
class TrackerUser:
    id: int
    login: str
    firstname: str = ""
    lastname: str = ""

    @classmethod
    def from_api(cls, data: Mapping) -> TrackerUser:
        return cls(
            id=int(data["id"]),
            login=data.get("login") or "",
            firstname=data.get("firstname") or "",
            lastname=data.get("lastname") or "",
        )


@dataclass(frozen=True)
class ChatUser:
    """A Slack workspace member.

    ``id`` is the handle used in ``<@ID>`` mentions, ``name`` the short
    login-like username, ``real_name`` the display name as typed by the user.
    """

    id: str
    name: str
    real_name: str = ""

    @classmethod
    def from_api(cls, member: Mapping) -> ChatUser:
        profile = member.get("profile") or {}
        return cls(
            id=member["id"],
            name=member.get("name") or "",
            real_name=member.get("real_name") or profile.get("real_name") or "",
        )


class UserDirectory:
    """Read-only snapshot of Redmine users keyed by id."""

    def __init__(self, users: Iterable[TrackerUser]) -> None:
        self._users = MappingProxyType({u.id: u for u in users})

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._users

    def get(self, user_id: int, name: str = "") -> TrackerUser:
        """Return the user with *user_id*.

        Raises:
            UserNotFoundError: If the id was not part of the snapshot.
        """
        try:
            return self._users[user_id]
        except KeyError:
            raise UserNotFoundError(user_id, name) from None
