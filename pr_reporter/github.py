"""GitHub GraphQL client for listing open pull requests."""
from __future__ import annotations

import textwrap
from typing import Protocol

import requests
from loguru import logger

from pr_reporter.errors import (
    AuthenticationError,
    CodeHostError,
    PermissionDeniedError,
    RateLimitError,
    ReporterError,
    RepositoryNotFoundError,
)
from pr_reporter.payloads import (
    HTTP_ERROR_THRESHOLD,
    JSONDict,
    ensure_dict,
    ensure_int,
    ensure_list,
    ensure_str,
)

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
GITHUB_PAGE_SIZE = 100
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_TOO_MANY_REQUESTS = 429

OPEN_PULL_REQUESTS_QUERY = textwrap.dedent(
    """
    query($owner: String!, $name: String!, $cursor: String) {
      repository(owner: $owner, name: $name) {
        pullRequests(
          states: OPEN,
          first: 100,
          after: $cursor,
          orderBy: { field: CREATED_AT, direction: DESC }
        ) {
          pageInfo { hasNextPage endCursor }
          nodes {
            number
            title
            url
            isDraft
            author { login }
            assignees(first: 1) { nodes { login } }
            labels(first: 50) { nodes { name } }
          }
        }
      }
    }
    """,
).strip()

VIEWER_QUERY = "query { viewer { login } }"


class GraphQLErrorsError(ReporterError):
    """Raised when GraphQL response includes errors."""

    def __init__(self, errors: list[object]) -> None:
        """Create a GraphQL errors exception."""
        super().__init__(f"GraphQL errors: {errors}")
        self.errors = errors

    def has_type(self, error_type: str) -> bool:
        """Return True when any error carries the given type."""
        return any(
            isinstance(error, dict) and error.get("type") == error_type
            for error in self.errors
        )


class CodeHost(Protocol):
    """GitHub operations the pipeline depends on."""

    def viewer_login(self) -> str:
        """Return the authenticated login."""
        ...

    def list_open_pull_requests(self, owner: str, repo: str) -> list[JSONDict]:
        """Return every open pull request in listing order."""
        ...


def is_rate_limited(response: requests.Response) -> bool:
    """Return True when a 403/429 response is a throttling signal."""
    if response.status_code == HTTP_TOO_MANY_REQUESTS:
        return True
    if response.headers.get("X-RateLimit-Remaining") == "0":
        return True
    return "rate limit" in response.text.lower()


def parse_pull_request_node(node_dict: JSONDict) -> JSONDict:
    """Flatten a GraphQL pull request node into plain fields."""
    author = ensure_dict(node_dict.get("author") or {}, "author")
    assignees = ensure_dict(node_dict.get("assignees") or {}, "assignees")
    assignee_nodes = ensure_list(assignees.get("nodes") or [], "assignees.nodes")
    assignee: str | None = None
    if assignee_nodes:
        first = ensure_dict(assignee_nodes[0], "assignee")
        assignee = ensure_str(first.get("login"), "assignee.login") or None
    labels_container = ensure_dict(node_dict.get("labels") or {}, "labels")
    labels: list[str] = []
    for label in ensure_list(labels_container.get("nodes") or [], "labels.nodes"):
        label_name = ensure_str(ensure_dict(label, "label").get("name"), "label.name")
        if label_name:
            labels.append(label_name)
    return {
        "number": ensure_int(node_dict.get("number"), "number"),
        "title": ensure_str(node_dict.get("title"), "title"),
        "url": ensure_str(node_dict.get("url"), "url"),
        "draft": bool(node_dict.get("isDraft")),
        "author": ensure_str(author.get("login"), "author.login") or None,
        "assignee": assignee,
        "labels": labels,
    }


class GitHubClient:
    """Token-authenticated GitHub GraphQL client."""

    def __init__(self, token: str, timeout: float = 30) -> None:
        """Create a GitHub client."""
        self.headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        self.timeout = timeout

    def call_graphql(self, query: str, variables: JSONDict) -> JSONDict:
        """Call the GraphQL endpoint and return the data payload."""
        response = requests.post(
            GITHUB_GRAPHQL_URL,
            headers=self.headers,
            json={"query": query, "variables": variables},
            timeout=self.timeout,
        )
        if response.status_code == HTTP_UNAUTHORIZED:
            raise AuthenticationError("GitHub", response.text)
        if response.status_code in (HTTP_FORBIDDEN, HTTP_TOO_MANY_REQUESTS):
            if is_rate_limited(response):
                reset = response.headers.get("X-RateLimit-Reset", "unknown")
                raise RateLimitError("GitHub", f"resets at {reset}")
            raise PermissionDeniedError("GitHub", "GraphQL query", response.text)
        if response.status_code >= HTTP_ERROR_THRESHOLD:
            raise CodeHostError(response.status_code, response.text)
        payload = ensure_dict(response.json(), "GraphQL response")
        errors = payload.get("errors")
        if errors:
            raise GraphQLErrorsError(ensure_list(errors, "GraphQL errors"))
        return ensure_dict(payload.get("data"), "GraphQL data")

    def viewer_login(self) -> str:
        """Return the login the token belongs to."""
        data = self.call_graphql(VIEWER_QUERY, {})
        viewer = ensure_dict(data.get("viewer"), "viewer")
        return ensure_str(viewer.get("login"), "viewer.login")

    def list_open_pull_requests(self, owner: str, repo: str) -> list[JSONDict]:
        """Fetch all pages of open pull requests for one repository."""
        pull_requests: list[JSONDict] = []
        cursor: str | None = None
        while True:
            try:
                data = self.call_graphql(
                    OPEN_PULL_REQUESTS_QUERY,
                    {"owner": owner, "name": repo, "cursor": cursor},
                )
            except GraphQLErrorsError as exc:
                if exc.has_type("NOT_FOUND"):
                    raise RepositoryNotFoundError(owner, repo) from exc
                if exc.has_type("RATE_LIMITED"):
                    raise RateLimitError("GitHub", str(exc)) from exc
                raise
            if data.get("repository") is None:
                raise RepositoryNotFoundError(owner, repo)
            repository = ensure_dict(data.get("repository"), "repository")
            connection = ensure_dict(repository.get("pullRequests"), "pullRequests")
            nodes = ensure_list(connection.get("nodes") or [], "pullRequests.nodes")
            logger.debug("Retrieved PR page: {count}", count=len(nodes))
            for node in nodes:
                pull_requests.append(parse_pull_request_node(ensure_dict(node, "node")))
            page_info = ensure_dict(connection.get("pageInfo"), "pageInfo")
            if not bool(page_info.get("hasNextPage")):
                break
            end_cursor = page_info.get("endCursor")
            cursor = ensure_str(end_cursor, "pageInfo.endCursor", "") or None
            if cursor is None:
                break
        return pull_requests
