"""Render the PR report as Slack mrkdwn and post it."""
from __future__ import annotations

from datetime import UTC, date, datetime

import requests
from loguru import logger

from pr_reporter.errors import PublishError, ReporterError
from pr_reporter.models import Membership, PullRequest, Report, ReportItem
from pr_reporter.slack import ChatService

UNASSIGNED = "unassigned"
NO_TICKET = "N/A"
NO_DESCRIPTION = "No description"
UNKNOWN_STATUS = "Unknown"
REVIEW_REMINDER = "Please make sure to review these pull requests!"


def format_assignee(login: str | None, membership: Membership) -> str:
    """Render an assignee as a Slack mention, an @name, or unassigned."""
    if not login:
        return UNASSIGNED
    chat_name = membership.identity.chat_name(login) or login
    user_id = membership.chat_ids.get(chat_name)
    if user_id:
        return f"<@{user_id}>"
    return f"@{chat_name}"


def format_ticket_link(ticket_id: str | None, jira_url: str | None) -> str:
    """Render a Jira link, the bare identifier, or N/A."""
    if not ticket_id:
        return NO_TICKET
    if jira_url:
        return f"<{jira_url.rstrip('/')}/browse/{ticket_id}|{ticket_id}>"
    return ticket_id


def format_pr_reference(pr: PullRequest) -> str:
    """Render a PR as a Slack link."""
    return f"<{pr.url}|PR-{pr.number}>"


def describe(item: ReportItem) -> str:
    """Return the ticket summary, the PR title, or a placeholder."""
    if item.ticket is not None and item.ticket.summary:
        return item.ticket.summary
    return item.pull_request.title or NO_DESCRIPTION


def format_item_line(
    index: int,
    item: ReportItem,
    membership: Membership,
    jira_url: str | None,
) -> str:
    """Render one numbered report line."""
    pr = item.pull_request
    status = UNKNOWN_STATUS
    if item.ticket is not None and item.ticket.status:
        status = item.ticket.status
    return (
        f"{index}. *{format_pr_reference(pr)}* "
        f"assigned to {format_assignee(pr.assignee, membership)} | "
        f"Jira: {format_ticket_link(pr.ticket_id, jira_url)} | "
        f"{describe(item)} | *{status}*"
    )


def format_mentions(mention_users: list[str], team_group: str | None) -> str | None:
    """Render the footer mention, preferring explicit users over the team group."""
    mentions = [f"<@{user_id}>" for user_id in mention_users if user_id]
    if mentions:
        return f"{' '.join(mentions)} {REVIEW_REMINDER}"
    if team_group:
        return f"<!subteam^{team_group}> {REVIEW_REMINDER}"
    return None


def render_report(
    report: Report,
    membership: Membership,
    *,
    jira_url: str | None = None,
    mention_users: list[str] | None = None,
    team_group: str | None = None,
    title: str | None = None,
    today: date | None = None,
) -> str:
    """Render the full report message."""
    current_date = today or datetime.now(UTC).date()
    lines: list[str] = []
    if title:
        lines.extend([f"📋 *{title}*", ""])
    lines.extend(
        [
            f":date: *{current_date.isoformat()}*",
            "",
            f":bar_chart: *Total Open PRs: {len(report.items)}*",
            "",
        ],
    )
    for index, item in enumerate(report.items, start=1):
        lines.append(format_item_line(index, item, membership, jira_url))

    lines.append("")
    if report.blocked or report.drafts:
        if report.blocked:
            blocked_refs = [
                format_pr_reference(item.pull_request)
                + (" (Blocked & Draft)" if item.pull_request.draft else "")
                for item in report.blocked
            ]
            lines.append(f"🚫 *Blocked:* {', '.join(blocked_refs)}")
        if report.drafts:
            draft_refs = [format_pr_reference(item.pull_request) for item in report.drafts]
            lines.append(f"📝 *Draft:* {', '.join(draft_refs)}")
    else:
        lines.append("✅ *Blocked/Draft:* N/A")

    mention_line = format_mentions(mention_users or [], team_group)
    if mention_line:
        lines.extend(["", mention_line])
    return "\n".join(lines)


def publish_report(chat: ChatService, channel: str, message: str) -> None:
    """Post the rendered report, raising PublishError on any rejection."""
    logger.debug(
        "Sending message to {channel} ({length} characters)",
        channel=channel,
        length=len(message),
    )
    try:
        chat.post_message(channel, message)
    except (ReporterError, requests.RequestException) as exc:
        raise PublishError(channel, str(exc)) from exc
