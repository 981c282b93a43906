"""Slack mrkdwn formatting for the due-date digest."""

from __future__ import annotations

import re
from datetime import date
from typing import Callable, Iterable

from bot.classifier import Classification
from bot.models import DATE_FORMAT, UNSET_DATE, Ticket

EXPIRED = "expired"
DUE_SOON = "due_soon"
UNSCHEDULED = "unscheduled"

LANGUAGES = ("ja", "en")

MESSAGES = {
    "ja": {
        "due_label": "期日",
        "assignee_label": "担当",
        "unset": "{label}未設定",
        EXPIRED: "{project} の期限切れのチケットは *{count}件* です",
        DUE_SOON: "{project} の期限切れが近いチケットは *{count}件* です",
        UNSCHEDULED: "{project} の期日未設定のチケットは *{count}件* です",
    },
    "en": {
        "due_label": "Due date",
        "assignee_label": "Assignee",
        "unset": "{label} not set",
        EXPIRED: "Overdue tickets in {project}: *{count}*",
        DUE_SOON: "Tickets due soon in {project}: *{count}*",
        UNSCHEDULED: "Tickets without a due date in {project}: *{count}*",
    },
}

_COUNT_RE = re.compile(r"\*(\d+)件?\*")


def format_due_date(due: date | None) -> str:
    """Return ``YYYY-MM-DD``, or an empty string for unset dates."""
    if due is None or due == UNSET_DATE:
        return ""
    return due.strftime(DATE_FORMAT)


def unassignable(value: str, label: str, language: str = "ja") -> str:
    """Replace an empty value with a "<label> not set" placeholder."""
    if not value:
        return MESSAGES[language]["unset"].format(label=label)
    return value


def format_ticket_line(ticket: Ticket, endpoint: str, assignee: str, language: str = "ja") -> str:
    """Render one bullet line linking to the ticket in Redmine.

    Args:
        ticket: The ticket to render.
        endpoint: Redmine base URL.
        assignee: Slack mention or display name; empty when unassigned.
        language: Message language, ``"ja"`` or ``"en"``.
    """
    messages = MESSAGES[language]
    due = unassignable(format_due_date(ticket.due_date), messages["due_label"], language)
    who = unassignable(assignee, messages["assignee_label"], language)
    base = endpoint.rstrip("/")
    return f"- {due} <{base}/issues/{ticket.id}|#{ticket.id}>: {ticket.subject}({who})"


def format_count_summary(kind: str, project_name: str, count: int, language: str = "ja") -> str:
    return MESSAGES[language][kind].format(project=project_name, count=count)


def parse_count_summary(line: str) -> int | None:
    """Read the ticket count back out of a summary line."""
    # The count comes last; the project name may contain a look-alike.
    counts = _COUNT_RE.findall(line)
    if not counts:
        return None
    return int(counts[-1])


def render_bucket(
    tickets: Iterable[Ticket],
    summary: Callable[[int], str],
    line_formatter: Callable[[Ticket], str],
) -> str:
    """Render one bucket: its count summary followed by one line per ticket."""
    lines = [line_formatter(t) for t in tickets]
    return "\n".join([summary(len(lines)), *lines]) + "\n"


def build_report(
    classification: Classification,
    project_name: str,
    endpoint: str,
    mention_for: Callable[[Ticket], str],
    language: str = "ja",
    include_unscheduled: bool = False,
) -> str:
    """Assemble the whole digest as a single Slack message.

    Args:
        classification: Bucketed tickets.
        project_name: Shown in each summary line.
        endpoint: Redmine base URL for ticket links.
        mention_for: Returns the assignee text for a ticket.
        language: Message language.
        include_unscheduled: Also list tickets that have no due date.

    Returns:
        The message text, expired section first.
    """

    def line(ticket: Ticket) -> str:
        return format_ticket_line(ticket, endpoint, mention_for(ticket), language)

    sections = [(EXPIRED, classification.expired), (DUE_SOON, classification.due_soon)]
    if include_unscheduled:
        sections.append((UNSCHEDULED, classification.unscheduled))

    return "".join(
        render_bucket(
            tickets,
            lambda n, kind=kind: format_count_summary(kind, project_name, n, language),
            line,
        )
        for kind, tickets in sections
    )
