"""Slack Web API helpers for listing users and posting the digest."""

from __future__ import annotations

import logging

from slack_sdk import WebClient

from bot.models import ChatUser

logger = logging.getLogger("integrations.slack_directory")


def verify_token(client: WebClient) -> dict:
    """Call ``auth.test`` so a bad token fails before any other work.

    Raises:
        slack_sdk.errors.SlackApiError: If Slack rejects the token.
    """
    response = client.auth_test()
    logger.info("Authenticated to Slack as %s (%s)", response.get("user"), response.get("team"))
    return response.data


def fetch_chat_users(client: WebClient) -> tuple[ChatUser, ...]:
    """Fetch every active human member of the workspace.

    Follows ``users.list`` cursor pagination; deleted users and bots are skipped.
    """
    users: list[ChatUser] = []
    for page in client.users_list(limit=200):
        for member in page.get("members", []):
            if member.get("deleted") or member.get("is_bot"):
                continue
            users.append(ChatUser.from_api(member))
    logger.info("Fetched %d Slack users", len(users))
    return tuple(users)


def post_digest(client: WebClient, channel: str, text: str) -> dict:
    """Post *text* to *channel* with ``@name`` auto-linking enabled."""
    response = client.chat_postMessage(channel=channel, text=text, link_names=True)
    logger.info("Posted digest to %s (ts=%s)", channel, response.get("ts"))
    return response.data
