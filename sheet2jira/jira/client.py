from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Protocol

import requests

from ..models.config_models import JiraConfig

"""Jira issue creation client.

One synchronous ``POST {domain}/rest/api/3/issue`` per row, authenticated
with basic auth (account email + API token). Only HTTP 201 counts as
success; anything else raises JiraSubmissionError carrying the status and
raw body, which the orchestrator writes verbatim into the error column.
There are no retries.
"""

__all__ = [
    "CreatedIssue",
    "IssueCreator",
    "JiraClient",
    "JiraSubmissionError",
    "SimulatedIssueClient",
]

logger = logging.getLogger(__name__)

ISSUE_ENDPOINT = "/rest/api/3/issue"


class JiraSubmissionError(Exception):
    """Raised when the issue could not be created."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class CreatedIssue:
    key: str
    id: str | None = None
    self_url: str | None = None


class IssueCreator(Protocol):
    def create_issue(self, payload: dict[str, Any]) -> CreatedIssue: ...


class JiraClient:
    """Thin requests-based client for the issue create endpoint."""

    def __init__(self, config: JiraConfig, session: requests.Session | None = None) -> None:
        if not config.email or not config.api_token:
            raise ValueError("Jira email and API token are required (set JIRA_EMAIL / JIRA_API_TOKEN)")
        self.config = config
        self.session = session or requests.Session()
        self.session.auth = (config.email, config.api_token)
        self.session.headers.update(
            {"Accept": "application/json", "Content-Type": "application/json"}
        )

    @property
    def issue_url(self) -> str:
        return f"{self.config.domain}{ISSUE_ENDPOINT}"

    def create_issue(self, payload: dict[str, Any]) -> CreatedIssue:
        try:
            response = self.session.post(self.issue_url, data=json.dumps(payload))
        except requests.RequestException as e:
            raise JiraSubmissionError(f"Failed to create Jira issue: {e}") from e

        body = response.text
        if response.status_code != 201:
            raise JiraSubmissionError(
                f"Failed to create Jira issue (Status {response.status_code}). Response: {body}",
                status_code=response.status_code,
                body=body,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise JiraSubmissionError(
                f"Malformed Jira response (Status 201). Response: {body}",
                status_code=response.status_code,
                body=body,
            ) from e
        key = data.get("key") if isinstance(data, dict) else None
        if not key:
            raise JiraSubmissionError(
                f"Jira response has no issue key (Status 201). Response: {body}",
                status_code=response.status_code,
                body=body,
            )
        logger.debug("created %s via %s", key, self.issue_url)
        return CreatedIssue(key=key, id=data.get("id"), self_url=data.get("self"))


class SimulatedIssueClient:
    """Dry-run stand-in: hands out simulated-PROJECT-N keys, no network."""

    def __init__(self) -> None:
        self.counters: dict[str, int] = defaultdict(int)
        self.payloads: list[dict[str, Any]] = []

    def create_issue(self, payload: dict[str, Any]) -> CreatedIssue:
        project = payload.get("fields", {}).get("project", {}).get("key", "UNKNOWN")
        self.counters[project] += 1
        self.payloads.append(payload)
        return CreatedIssue(key=f"simulated-{project}-{self.counters[project]}")
