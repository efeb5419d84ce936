"""Exceptions raised by the reporter pipeline."""
from __future__ import annotations


class ReporterError(RuntimeError):
    """Base class for reporter failures."""


class AuthenticationError(ReporterError):
    """Raised when a remote service rejects the configured credentials."""

    def __init__(self, service: str, detail: str) -> None:
        """Create an authentication error."""
        super().__init__(f"{service} authentication failed: {detail}")


class PermissionDeniedError(ReporterError):
    """Raised when the credentials lack a required scope."""

    def __init__(self, service: str, operation: str, detail: str) -> None:
        """Create a permission error."""
        super().__init__(f"{service} denied {operation}: {detail}")


class RateLimitError(ReporterError):
    """Raised when a remote service throttles the run."""

    def __init__(self, service: str, detail: str) -> None:
        """Create a rate limit error."""
        super().__init__(f"{service} rate limit exceeded: {detail}")


class NotFoundError(ReporterError):
    """Raised when a channel, repository or ticket does not exist."""


class ChannelNotFoundError(NotFoundError):
    """Raised when no Slack channel matches the configured name."""

    def __init__(self, channel: str) -> None:
        """Create a channel lookup error."""
        super().__init__(
            f"Slack channel #{channel} not found. Make sure the bot is added to "
            "the channel and has channels:read and groups:read scopes.",
        )


class RepositoryNotFoundError(NotFoundError):
    """Raised when the owner/repo pair is unknown to GitHub."""

    def __init__(self, owner: str, repo: str) -> None:
        """Create a repository lookup error."""
        super().__init__(f"GitHub repository {owner}/{repo} not found")


class TicketNotFoundError(NotFoundError):
    """Raised when Jira has no issue for an identifier."""

    def __init__(self, ticket_id: str) -> None:
        """Create a ticket lookup error."""
        super().__init__(f"Jira ticket {ticket_id} not found")


class PublishError(ReporterError):
    """Raised when Slack rejects the report message."""

    def __init__(self, channel: str, detail: str) -> None:
        """Create a publish error."""
        super().__init__(f"Posting report to {channel} failed: {detail}")


class SlackAPIError(ReporterError):
    """Raised when a Slack Web API call returns ok=false."""

    def __init__(self, method: str, error: str) -> None:
        """Create a Slack API error."""
        super().__init__(f"Slack {method} failed: {error}")
        self.method = method
        self.error = error


class CodeHostError(ReporterError):
    """Raised when a GitHub request fails for an unclassified reason."""

    def __init__(self, status_code: int, text: str) -> None:
        """Create a GitHub request error."""
        super().__init__(f"GitHub request failed ({status_code}): {text}")


class TrackerError(ReporterError):
    """Raised when a Jira request fails for an unclassified reason."""

    def __init__(self, status_code: int, text: str) -> None:
        """Create a Jira request error."""
        super().__init__(f"Jira request failed ({status_code}): {text}")
