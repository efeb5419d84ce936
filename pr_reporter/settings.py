"""Environment-backed configuration for a reporter run."""
from __future__ import annotations

import re
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TICKET_PATTERN = r"POKER-\d+"
DEFAULT_HTTP_TIMEOUT = 30
MAPPING_PARTS = 2
MISSING_GITHUB_AUTH_MESSAGE = "Missing GitHub API credentials."


class Settings(BaseSettings):
    """Environment-backed settings for the reporter."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_token: str | None = Field(default=None, alias="GITHUB_TOKEN")
    gh_token: str | None = Field(default=None, alias="GH_TOKEN")
    github_owner: str = Field(alias="GITHUB_OWNER")
    github_repo: str = Field(alias="GITHUB_REPO")
    labels: str | None = Field(default=None, alias="LABELS")
    label_match: Literal["substring", "exact"] = Field(
        default="substring",
        alias="LABEL_MATCH",
    )
    ticket_pattern: str = Field(default=DEFAULT_TICKET_PATTERN, alias="TICKET_PATTERN")

    slack_token: str = Field(alias="SLACK_TOKEN")
    slack_channel: str = Field(alias="SLACK_CHANNEL")
    membership_source: Literal["channel", "allowlist", "everyone"] = Field(
        default="channel",
        alias="MEMBERSHIP_SOURCE",
    )
    membership_channel: str | None = Field(default=None, alias="MEMBERSHIP_CHANNEL")
    allowed_users: str | None = Field(default=None, alias="ALLOWED_USERS")
    user_mapping: str | None = Field(default=None, alias="USER_MAPPING")
    team_group: str | None = Field(default=None, alias="TEAM_GROUP")
    mention_users: str | None = Field(default=None, alias="MENTION_USERS")
    report_title: str | None = Field(default=None, alias="REPORT_TITLE")

    jira_url: str | None = Field(default=None, alias="JIRA_URL")
    jira_username: str | None = Field(default=None, alias="JIRA_USERNAME")
    jira_api_token: str | None = Field(default=None, alias="JIRA_API_TOKEN")
    jira_use_pat: bool = Field(default=False, alias="JIRA_USE_PAT")

    debug: bool = Field(default=False, alias="DEBUG")
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, alias="HTTP_TIMEOUT")

    def resolved_github_token(self) -> str:
        """Return the GitHub token or exit when none is configured."""
        token = self.github_token or self.gh_token
        if not token:
            raise SystemExit(MISSING_GITHUB_AUTH_MESSAGE)
        return token

    def resolved_membership_channel(self) -> str:
        """Return the channel whose members define the team."""
        return self.membership_channel or self.slack_channel

    def jira_configured(self) -> bool:
        """Return True when enough Jira settings exist to authenticate."""
        if not self.jira_url or not self.jira_api_token:
            return False
        return self.jira_use_pat or bool(self.jira_username)

    def redacted(self) -> dict[str, object]:
        """Return the effective configuration with secrets hidden."""
        payload = self.model_dump()
        for secret in ("github_token", "gh_token", "slack_token", "jira_api_token"):
            payload[secret] = "***" if payload.get(secret) else None
        return payload


def get_settings() -> Settings:
    """Load settings from environment variables."""
    return Settings.model_validate({})


def parse_csv(raw: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty values."""
    if not raw:
        return []
    return [value.strip() for value in raw.split(",") if value.strip()]


def parse_user_mapping(raw: str | None) -> list[tuple[str, str]]:
    """Parse "slack:github" pairs, skipping malformed entries."""
    pairs: list[tuple[str, str]] = []
    for entry in parse_csv(raw):
        parts = entry.split(":")
        if len(parts) != MAPPING_PARTS:
            continue
        chat_name, login = parts[0].strip(), parts[1].strip()
        if chat_name and login:
            pairs.append((chat_name, login))
    return pairs


def build_ticket_regex(settings: Settings) -> re.Pattern[str]:
    """Build the ticket regex."""
    return re.compile(settings.ticket_pattern)
