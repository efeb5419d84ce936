"""Shared fakes for the Slack, GitHub and Jira capability protocols."""
from __future__ import annotations

import pytest
from loguru import logger

from pr_reporter.errors import TicketNotFoundError
from pr_reporter.settings import Settings


def raw_pr(
    number: int,
    title: str,
    author: str | None = "alice-gh",
    *,
    labels: list[str] | None = None,
    assignee: str | None = None,
    draft: bool = False,
) -> dict[str, object]:
    """Build a pull request listing entry as GitHubClient returns it."""
    return {
        "number": number,
        "title": title,
        "url": f"https://github.com/acme/web/pull/{number}",
        "draft": draft,
        "author": author,
        "assignee": assignee,
        "labels": labels if labels is not None else ["poker"],
    }


class FakeChat:
    """In-memory Slack workspace."""

    def __init__(self) -> None:
        self.channels: dict[str | None, list[dict[str, object]]] = {
            "public_channel": [{"id": "C100", "name": "team-web"}],
            "private_channel": [{"id": "G200", "name": "team-secret"}],
        }
        self.members: dict[str, list[str]] = {"C100": ["U111", "U222", "UBOT", "UOLD"]}
        self.users: dict[str, dict[str, object]] = {
            "U111": {"id": "U111", "name": "alice", "is_bot": False, "deleted": False},
            "U222": {"id": "U222", "name": "bob", "is_bot": False, "deleted": False},
            "UBOT": {"id": "UBOT", "name": "reporter-bot", "is_bot": True, "deleted": False},
            "UOLD": {"id": "UOLD", "name": "carol", "is_bot": False, "deleted": True},
        }
        self.auth_error: Exception | None = None
        self.list_errors: dict[str | None, Exception] = {}
        self.user_errors: dict[str, Exception] = {}
        self.post_error: Exception | None = None
        self.posted: list[tuple[str, str]] = []
        self.listed_types: list[str | None] = []

    def auth_test(self) -> dict[str, object]:
        if self.auth_error:
            raise self.auth_error
        return {"ok": True, "user": "reporter-bot", "team": "Acme"}

    def list_channels(self, types: str | None = None) -> list[dict[str, object]]:
        self.listed_types.append(types)
        if types in self.list_errors:
            raise self.list_errors[types]
        if types is None and None not in self.channels:
            return [channel for group in self.channels.values() for channel in group]
        return self.channels.get(types, [])

    def channel_members(self, channel_id: str) -> list[str]:
        return self.members.get(channel_id, [])

    def user_info(self, user_id: str) -> dict[str, object]:
        if user_id in self.user_errors:
            raise self.user_errors[user_id]
        return self.users[user_id]

    def post_message(self, channel: str, text: str) -> None:
        if self.post_error:
            raise self.post_error
        self.posted.append((channel, text))


class FakeCodeHost:
    """In-memory GitHub repository listing."""

    def __init__(self) -> None:
        self.pull_requests: list[dict[str, object]] = []
        self.error: Exception | None = None
        self.calls: list[tuple[str, str]] = []

    def viewer_login(self) -> str:
        return "reporter-bot"

    def list_open_pull_requests(self, owner: str, repo: str) -> list[dict[str, object]]:
        self.calls.append((owner, repo))
        if self.error:
            raise self.error
        return list(self.pull_requests)


class FakeTracker:
    """In-memory Jira with optional per-ticket failures."""

    def __init__(self) -> None:
        self.issues: dict[str, dict[str, object]] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[str] = []

    def get_issue(self, ticket_id: str) -> dict[str, object]:
        self.calls.append(ticket_id)
        if ticket_id in self.errors:
            raise self.errors[ticket_id]
        if ticket_id not in self.issues:
            raise TicketNotFoundError(ticket_id)
        return self.issues[ticket_id]


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def code_host() -> FakeCodeHost:
    return FakeCodeHost()


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def make_settings():
    """Return a factory for Settings that ignores the local .env file."""

    def factory(**overrides: object) -> Settings:
        values: dict[str, object] = {
            "GITHUB_TOKEN": "gh-token",
            "GH_TOKEN": None,
            "GITHUB_OWNER": "acme",
            "GITHUB_REPO": "web",
            "SLACK_TOKEN": "xoxb-token",
            "SLACK_CHANNEL": "#team-web",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return factory


@pytest.fixture
def log_messages():
    """Capture loguru output as "LEVEL message" strings."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.rstrip("\n")),
        format="{level} {message}",
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)
