"""Build and post the weekly due-date digest for one Redmine project."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from django.core.exceptions import ImproperlyConfigured
from slack_sdk import WebClient

from bot.classifier import classify, filter_tickets, week_boundary
from bot.identity import assignee_mention, load_user_mapping
from bot.models import Ticket, TrackerUser, UserDirectory
from integrations.redmine import RedmineClient
from integrations.slack_directory import fetch_chat_users, post_digest, verify_token
from integrations.slack_format import LANGUAGES, build_report

logger = logging.getLogger("bot.digest")

_REQUIRED = {
    "redmine_endpoint": "REDMINE_ENDPOINT",
    "redmine_api_key": "REDMINE_APIKEY",
    "redmine_project": "REDMINE_PROJECT",
    "slack_token": "SLACK_TOKEN",
}


@dataclass(frozen=True)
class DigestConfig:
    redmine_endpoint: str
    redmine_api_key: str
    redmine_project: str
    slack_token: str
    slack_channel: str = "#general"
    finished_statuses: frozenset[int] = field(default_factory=frozenset)
    server_side_filter: bool = False
    mapping_path: str = "usermapping.json"
    language: str = "ja"
    include_unscheduled: bool = False
    dry_run: bool = False

    @classmethod
    def from_settings(cls, settings, **overrides) -> DigestConfig:
        """Build a config from Django settings; ``None`` overrides are ignored."""
        values = {
            "redmine_endpoint": settings.REDMINE_ENDPOINT,
            "redmine_api_key": settings.REDMINE_APIKEY,
            "redmine_project": settings.REDMINE_PROJECT,
            "slack_token": settings.SLACK_BOT_TOKEN,
            "slack_channel": settings.SLACK_CHANNEL,
            "finished_statuses": settings.REDMINE_FINISHED_STATUS,
            "server_side_filter": settings.REDMINE_SERVER_SIDE_FILTER,
            "mapping_path": settings.USER_MAPPING_PATH,
            "language": settings.DIGEST_LANGUAGE,
            "include_unscheduled": settings.DIGEST_INCLUDE_UNSCHEDULED,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        values["finished_statuses"] = frozenset(int(s) for s in values["finished_statuses"])
        return cls(**values)

    def validate(self) -> None:
        """Raise ``ImproperlyConfigured`` listing every missing required setting."""
        missing = [env for attr, env in _REQUIRED.items() if not getattr(self, attr)]
        if missing:
            raise ImproperlyConfigured(f"Missing required settings: {', '.join(missing)}")
        if not self.slack_channel:
            raise ImproperlyConfigured("SLACK_CHANNEL must not be empty")
        if self.language not in LANGUAGES:
            raise ImproperlyConfigured(
                f"DIGEST_LANGUAGE must be one of {', '.join(LANGUAGES)}, got {self.language!r}"
            )


def run_digest(
    config: DigestConfig,
    *,
    redmine: RedmineClient | None = None,
    slack: WebClient | None = None,
    today: date | None = None,
) -> str:
    """Fetch, classify, render, and post the digest.

    Args:
        config: Validated run configuration.
        redmine: Redmine client; built from *config* when omitted.
        slack: Slack client; built from *config* when omitted.
        today: Reference date; defaults to the local date.

    Returns:
        The message text that was posted (or would be, on a dry run).

    Raises:
        ImproperlyConfigured: If required settings are missing.
        RedmineError: If a Redmine call fails or the project is unknown.
        httpx.HTTPError: If Redmine is unreachable.
        slack_sdk.errors.SlackApiError: If a Slack call fails.
    """
    config.validate()
    today = today or date.today()
    boundary = week_boundary(today)

    slack = slack or WebClient(token=config.slack_token)
    owns_redmine = redmine is None
    redmine = redmine or RedmineClient(config.redmine_endpoint, config.redmine_api_key)

    try:
        logger.info("Initializing clients")
        verify_token(slack)
        chat_users = fetch_chat_users(slack)
        mapping = load_user_mapping(config.mapping_path)

        project = redmine.find_project(config.redmine_project)
        project_id = int(project["id"])
        project_name = project.get("name") or config.redmine_project
        directory = UserDirectory(TrackerUser.from_api(u) for u in redmine.users())
        logger.info("Loaded %d Redmine users", len(directory))

        params = {"project_id": project_id} if config.server_side_filter else {}
        tickets = [Ticket.from_api(raw) for raw in redmine.issues(**params)]
    finally:
        if owns_redmine:
            redmine.close()

    tickets = filter_tickets(tickets, project_id, config.finished_statuses)
    classification = classify(tickets, today, boundary)
    if classification.unscheduled and not config.include_unscheduled:
        logger.info("Skipping %d tickets without a due date", len(classification.unscheduled))

    text = build_report(
        classification,
        project_name,
        config.redmine_endpoint,
        lambda t: assignee_mention(t.assigned_to, directory, chat_users, mapping),
        language=config.language,
        include_unscheduled=config.include_unscheduled,
    )

    if config.dry_run:
        logger.info("Dry run, not posting:\n%s", text)
        return text

    logger.info("Posting to Slack")
    post_digest(slack, config.slack_channel, text)
    return text
