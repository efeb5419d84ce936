"""Slack Web API client used for membership lookup and report posting."""
from __future__ import annotations

from typing import Protocol

import requests
from loguru import logger

from pr_reporter.errors import (
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
    SlackAPIError,
)
from pr_reporter.payloads import (
    HTTP_ERROR_THRESHOLD,
    JSONDict,
    ensure_dict,
    ensure_list,
    ensure_str,
)

SLACK_API_URL = "https://slack.com/api"
SLACK_PAGE_LIMIT = 1000
HTTP_TOO_MANY_REQUESTS = 429
AUTH_ERRORS = frozenset(
    {"invalid_auth", "not_authed", "account_inactive", "token_revoked", "token_expired"},
)
SCOPE_ERRORS = frozenset(
    {"missing_scope", "not_allowed_token_type", "no_permission", "access_denied"},
)


class ChatService(Protocol):
    """Slack operations the pipeline depends on."""

    def auth_test(self) -> JSONDict:
        """Verify the token and return the identity payload."""
        ...

    def list_channels(self, types: str | None = None) -> list[JSONDict]:
        """Return every channel visible to the token."""
        ...

    def channel_members(self, channel_id: str) -> list[str]:
        """Return member IDs of a channel."""
        ...

    def user_info(self, user_id: str) -> JSONDict:
        """Return a user profile."""
        ...

    def post_message(self, channel: str, text: str) -> None:
        """Post a plain mrkdwn message."""
        ...


class SlackClient:
    """Blocking Slack Web API client authenticated with a bot token."""

    def __init__(self, token: str, timeout: float = 30) -> None:
        """Create a Slack client."""
        self.headers = {"Authorization": f"Bearer {token}"}
        self.timeout = timeout

    def call(
        self,
        method: str,
        params: JSONDict | None = None,
        *,
        as_json: bool = False,
    ) -> JSONDict:
        """Call a Web API method and return the payload, raising on ok=false."""
        url = f"{SLACK_API_URL}/{method}"
        if as_json:
            response = requests.post(
                url,
                headers=self.headers,
                json=params or {},
                timeout=self.timeout,
            )
        else:
            response = requests.post(
                url,
                headers=self.headers,
                data=params or {},
                timeout=self.timeout,
            )
        if response.status_code == HTTP_TOO_MANY_REQUESTS:
            retry_after = response.headers.get("Retry-After", "unknown")
            raise RateLimitError("Slack", f"{method}, retry after {retry_after}s")
        if response.status_code >= HTTP_ERROR_THRESHOLD:
            raise SlackAPIError(method, f"HTTP {response.status_code}")
        payload = ensure_dict(response.json(), f"Slack {method} response")
        if payload.get("ok"):
            return payload
        error = ensure_str(payload.get("error"), "error", "unknown_error")
        if error in AUTH_ERRORS:
            raise AuthenticationError("Slack", error)
        if error in SCOPE_ERRORS:
            needed = ensure_str(payload.get("needed"), "needed")
            detail = f"{error} (needs {needed})" if needed else error
            raise PermissionDeniedError("Slack", method, detail)
        if error == "ratelimited":
            raise RateLimitError("Slack", method)
        raise SlackAPIError(method, error)

    def call_paginated(self, method: str, params: JSONDict, key: str) -> list[object]:
        """Collect a list field across every cursor page."""
        results: list[object] = []
        cursor = ""
        while True:
            page_params: JSONDict = {**params, "limit": SLACK_PAGE_LIMIT}
            if cursor:
                page_params["cursor"] = cursor
            payload = self.call(method, page_params)
            page = ensure_list(payload.get(key) or [], f"{method}.{key}")
            results.extend(page)
            logger.debug("Slack page: {method} {count}", method=method, count=len(page))
            metadata = ensure_dict(payload.get("response_metadata") or {}, "metadata")
            cursor = ensure_str(metadata.get("next_cursor"), "next_cursor")
            if not cursor:
                break
        return results

    def auth_test(self) -> JSONDict:
        """Verify the token."""
        return self.call("auth.test")

    def list_channels(self, types: str | None = None) -> list[JSONDict]:
        """Return channels, optionally limited to a conversation type."""
        params: JSONDict = {"exclude_archived": "true"}
        if types:
            params["types"] = types
        channels = self.call_paginated("conversations.list", params, "channels")
        return [ensure_dict(channel, "channel") for channel in channels]

    def channel_members(self, channel_id: str) -> list[str]:
        """Return member IDs for a channel."""
        members = self.call_paginated(
            "conversations.members",
            {"channel": channel_id},
            "members",
        )
        return [ensure_str(member, "member") for member in members]

    def user_info(self, user_id: str) -> JSONDict:
        """Return the profile for one user."""
        payload = self.call("users.info", {"user": user_id})
        return ensure_dict(payload.get("user"), "users.info.user")

    def post_message(self, channel: str, text: str) -> None:
        """Post a message to a channel name or ID."""
        self.call(
            "chat.postMessage",
            {"channel": channel, "text": text, "mrkdwn": True},
            as_json=True,
        )
