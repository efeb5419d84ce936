"""Data models shared by the pipeline stages."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

STATUS_NOT_FOUND = "Not Found"
STATUS_ERROR = "Error"
STATUS_NO_STATUS = "No Status"
SUMMARY_NOT_FOUND = "Ticket not found"
SUMMARY_MISSING = "No Description"


class IdentityMapping(BaseModel):
    """Slack identity to GitHub login, stored once per direction."""

    chat_to_code_host: dict[str, str] = Field(default_factory=dict)
    code_host_to_chat: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_pairs(cls, pairs: list[tuple[str, str]]) -> IdentityMapping:
        """Build both directions from (chat, github) pairs."""
        forward: dict[str, str] = {}
        reverse: dict[str, str] = {}
        for chat_name, login in pairs:
            forward[chat_name] = login
            reverse[login] = chat_name
        return cls(chat_to_code_host=forward, code_host_to_chat=reverse)

    def code_host_login(self, chat_name: str) -> str:
        """Return the GitHub login for a Slack user, defaulting to the same name."""
        return self.chat_to_code_host.get(chat_name, chat_name)

    def chat_name(self, login: str) -> str | None:
        """Return the Slack identity mapped to a GitHub login, if any."""
        return self.code_host_to_chat.get(login)


class Membership(BaseModel):
    """Users whose pull requests are eligible for a report."""

    allowed_users: list[str] = Field(default_factory=list)
    chat_ids: dict[str, str] = Field(default_factory=dict)
    identity: IdentityMapping = Field(default_factory=IdentityMapping)
    restricted: bool = True

    @property
    def is_empty(self) -> bool:
        """Return True when author filtering is on but nobody qualifies."""
        return self.restricted and not self.allowed_users


class PullRequest(BaseModel):
    """Open pull request that survived filtering."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    url: str
    author: str
    assignee: str | None = None
    draft: bool = False
    labels: list[str] = Field(default_factory=list)
    state: str = "open"
    ticket_id: str | None = None


class TicketInfo(BaseModel):
    """Jira status resolved for one ticket identifier."""

    ticket_id: str
    status: str
    summary: str
    blocked: bool = False


class ReportItem(BaseModel):
    """A pull request paired with its ticket, when one was resolved."""

    pull_request: PullRequest
    ticket: TicketInfo | None = None

    @property
    def blocked(self) -> bool:
        """Return whether the linked ticket is blocked."""
        return self.ticket is not None and self.ticket.blocked


class Report(BaseModel):
    """Ordered report items plus blocked and draft summaries."""

    items: list[ReportItem]
    blocked: list[ReportItem] = Field(default_factory=list)
    drafts: list[ReportItem] = Field(default_factory=list)

    @classmethod
    def build(
        cls,
        pull_requests: list[PullRequest],
        tickets: dict[str, TicketInfo],
    ) -> Report:
        """Pair pull requests with tickets and derive the summary lists."""
        items = [
            ReportItem(
                pull_request=pr,
                ticket=tickets.get(pr.ticket_id) if pr.ticket_id else None,
            )
            for pr in pull_requests
        ]
        blocked = [item for item in items if item.blocked]
        drafts = [
            item for item in items if item.pull_request.draft and not item.blocked
        ]
        return cls(items=items, blocked=blocked, drafts=drafts)
