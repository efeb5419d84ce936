"""Jira REST client for single-issue lookups."""
from __future__ import annotations

from typing import Protocol

import requests
from requests.auth import HTTPBasicAuth

from pr_reporter.errors import (
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
    TicketNotFoundError,
    TrackerError,
)
from pr_reporter.payloads import (
    HTTP_ERROR_THRESHOLD,
    JSONDict,
    ensure_dict,
    ensure_list,
    ensure_str,
)

JIRA_API_VERSION = "2"
ISSUE_FIELDS = "status,summary,labels"
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429


class TicketTracker(Protocol):
    """Jira operations the pipeline depends on."""

    def get_issue(self, ticket_id: str) -> JSONDict:
        """Return {status, summary, labels} for one issue."""
        ...


class JiraClient:
    """Jira client using Basic auth (email + API token) or a personal access token."""

    def __init__(
        self,
        base_url: str,
        token: str,
        username: str | None = None,
        *,
        use_pat: bool = False,
        timeout: float = 30,
    ) -> None:
        """Create a Jira client."""
        self.base_url = base_url.rstrip("/")
        self.headers = {"Accept": "application/json"}
        self.auth: HTTPBasicAuth | None = None
        if use_pat:
            self.headers["Authorization"] = f"Bearer {token}"
        else:
            self.auth = HTTPBasicAuth(username or "", token)
        self.timeout = timeout

    def get_issue(self, ticket_id: str) -> JSONDict:
        """Fetch one issue and flatten the fields the report uses."""
        response = requests.get(
            f"{self.base_url}/rest/api/{JIRA_API_VERSION}/issue/{ticket_id}",
            headers=self.headers,
            auth=self.auth,
            params={"fields": ISSUE_FIELDS},
            timeout=self.timeout,
        )
        if response.status_code == HTTP_NOT_FOUND:
            raise TicketNotFoundError(ticket_id)
        if response.status_code == HTTP_UNAUTHORIZED:
            raise AuthenticationError("Jira", response.text)
        if response.status_code == HTTP_FORBIDDEN:
            raise PermissionDeniedError("Jira", f"reading {ticket_id}", response.text)
        if response.status_code == HTTP_TOO_MANY_REQUESTS:
            raise RateLimitError("Jira", ticket_id)
        if response.status_code >= HTTP_ERROR_THRESHOLD:
            raise TrackerError(response.status_code, response.text)
        issue = ensure_dict(response.json(), "issue")
        fields = ensure_dict(issue.get("fields") or {}, "issue.fields")
        status = ensure_dict(fields.get("status") or {}, "fields.status")
        labels = ensure_list(fields.get("labels") or [], "fields.labels")
        return {
            "status": ensure_str(status.get("name"), "status.name"),
            "summary": ensure_str(fields.get("summary"), "fields.summary"),
            "labels": [ensure_str(label, "label") for label in labels],
        }
