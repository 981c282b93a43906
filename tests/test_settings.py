from __future__ import annotations

import importlib

import pytest

import config.settings


@pytest.fixture
def reload_settings(monkeypatch):
    yield lambda: importlib.reload(config.settings)
    monkeypatch.undo()
    importlib.reload(config.settings)


def test_finished_statuses_are_parsed_as_ints(monkeypatch, reload_settings) -> None:
    monkeypatch.setenv("REDMINE_FINISHED_STATUS", "3,5,6")
    assert reload_settings().REDMINE_FINISHED_STATUS == [3, 5, 6]


def test_finished_statuses_default_to_empty(monkeypatch, reload_settings) -> None:
    monkeypatch.delenv("REDMINE_FINISHED_STATUS", raising=False)
    assert reload_settings().REDMINE_FINISHED_STATUS == []
