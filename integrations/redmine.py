"""Redmine REST API client for projects, users, and issues."""

from __future__ import annotations

import logging
from typing import Iterator

import httpx

logger = logging.getLogger("integrations.redmine")

# Maximum ``limit`` accepted by Redmine's list endpoints.
MAX_LIMIT = 100


class RedmineError(Exception):
    """Base class for Redmine failures that abort a run."""


class RedmineAPIError(RedmineError):
    """Raised when the Redmine API returns a non-2xx response."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Redmine API error {status_code}: {detail}")


class ProjectNotFoundError(RedmineError):
    """Raised when no project matches the configured target."""

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"Redmine project {target!r} not found")


class RedmineClient:
    """Interact with the Redmine REST API.

    Args:
        endpoint: Base URL of the Redmine instance.
        api_key: API key sent in the ``X-Redmine-API-Key`` header.
        limit: Page size for list endpoints, capped at ``MAX_LIMIT``.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        limit: int = MAX_LIMIT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.limit = min(limit, MAX_LIMIT)
        self._client = httpx.Client(
            base_url=self.endpoint,
            headers={"X-Redmine-API-Key": api_key, "Accept": "application/json"},
            timeout=10,
            transport=transport,
        )

    def __enter__(self) -> RedmineClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str, params: dict | None = None) -> dict:
        response = self._client.get(path, params=params)
        if response.status_code != 200:
            raise RedmineAPIError(response.status_code, response.text)
        return response.json()

    def _paginate(self, path: str, key: str, params: dict | None = None) -> Iterator[dict]:
        """Yield every record of a list endpoint, one page at a time.

        Stops on an empty or short page, or once ``total_count`` is reached.
        """
        offset = 0
        while True:
            page_params = {**(params or {}), "offset": offset, "limit": self.limit}
            data = self._get(path, page_params)
            records = data.get(key, [])
            logger.debug("%s offset=%d: %d records", path, offset, len(records))
            yield from records

            offset += self.limit
            total = data.get("total_count")
            if len(records) < self.limit or (total is not None and offset >= total):
                return

    def projects(self) -> list[dict]:
        """Fetch all projects visible to the API key."""
        return list(self._paginate("/projects.json", "projects"))

    def users(self) -> list[dict]:
        """Fetch all users. Requires an administrator API key."""
        return list(self._paginate("/users.json", "users"))

    def issues(self, **params: str | int) -> list[dict]:
        """Fetch all issues matching the given query parameters.

        Args:
            **params: Extra Redmine filters such as ``project_id`` or ``status_id``.
        """
        issues = list(self._paginate("/issues.json", "issues", params))
        logger.info("Fetched %d issues", len(issues))
        return issues

    def find_project(self, target: str) -> dict:
        """Resolve a project by numeric id, identifier, or name.

        Raises:
            ProjectNotFoundError: If no visible project matches.
        """
        for project in self.projects():
            if target in (str(project.get("id")), project.get("identifier"), project.get("name")):
                return project
        raise ProjectNotFoundError(target)
