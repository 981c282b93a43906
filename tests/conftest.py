from __future__ import annotations

import os
import sys
from pathlib import Path

import django
import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
django.setup()


class FakeResponse(dict):
    """Dict-backed stand-in for ``slack_sdk.web.SlackResponse``."""

    @property
    def data(self) -> dict:
        return dict(self)


class FakeSlackClient:
    """Records Slack calls instead of sending them."""

    def __init__(self, pages: list[list[dict]] | None = None, auth_error: Exception | None = None) -> None:
        self.pages = pages if pages is not None else []
        self.auth_error = auth_error
        self.calls: list[str] = []
        self.posted: list[dict] = []

    def auth_test(self):
        self.calls.append("auth_test")
        if self.auth_error:
            raise self.auth_error
        return FakeResponse(ok=True, user="duebot", team="Example")

    def users_list(self, **kwargs):
        self.calls.append("users_list")
        return [FakeResponse(ok=True, members=members) for members in self.pages]

    def chat_postMessage(self, **kwargs):
        self.calls.append("chat_postMessage")
        self.posted.append(kwargs)
        return FakeResponse(ok=True, ts="1700000000.000100", channel=kwargs.get("channel"))


@pytest.fixture
def fake_slack():
    return FakeSlackClient
