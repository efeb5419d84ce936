"""Run the membership → collect → enrich → publish pipeline once."""
from __future__ import annotations

import time
from datetime import date

from loguru import logger

from pr_reporter.collector import collect_pull_requests
from pr_reporter.enricher import enrich_pull_requests
from pr_reporter.github import CodeHost, GitHubClient
from pr_reporter.jira import JiraClient, TicketTracker
from pr_reporter.membership import resolve_membership
from pr_reporter.models import IdentityMapping, Report
from pr_reporter.report import publish_report, render_report
from pr_reporter.settings import (
    Settings,
    build_ticket_regex,
    parse_csv,
    parse_user_mapping,
)
from pr_reporter.slack import ChatService, SlackClient


def log_elapsed(message: str, start: float, **fields: object) -> None:
    """Log elapsed time with additional fields."""
    elapsed = f"{time.perf_counter() - start:.2f}s"
    logger.info(
        "{message} (elapsed {elapsed})",
        message=message,
        elapsed=elapsed,
        **fields,
    )


def build_tracker(settings: Settings) -> JiraClient | None:
    """Return a Jira client, or None when credentials are incomplete."""
    if not settings.jira_configured():
        return None
    return JiraClient(
        settings.jira_url or "",
        settings.jira_api_token or "",
        settings.jira_username,
        use_pat=settings.jira_use_pat,
        timeout=settings.http_timeout,
    )


def build_clients(settings: Settings) -> tuple[SlackClient, GitHubClient, JiraClient | None]:
    """Create the three service clients from settings."""
    return (
        SlackClient(settings.slack_token, timeout=settings.http_timeout),
        GitHubClient(settings.resolved_github_token(), timeout=settings.http_timeout),
        build_tracker(settings),
    )


def run_report(
    settings: Settings,
    *,
    chat: ChatService,
    code_host: CodeHost,
    tracker: TicketTracker | None,
    dry_run: bool = False,
    today: date | None = None,
) -> str | None:
    """Execute one report run and return the rendered message.

    Returns None when membership resolves to nobody, in which case nothing
    is published. Resolver, collector and publish failures propagate.
    """
    identity = IdentityMapping.from_pairs(parse_user_mapping(settings.user_mapping))
    start = time.perf_counter()
    membership = resolve_membership(
        chat,
        source=settings.membership_source,
        channel=settings.resolved_membership_channel(),
        allowed_users=parse_csv(settings.allowed_users),
        identity=identity,
    )
    log_elapsed(
        "Resolved membership",
        start,
        source=settings.membership_source,
        count=len(membership.allowed_users),
    )
    if membership.is_empty:
        logger.info(
            "No team members resolved from {source}, no PRs collected and nothing published",
            source=settings.membership_source,
        )
        return None

    if settings.debug:
        logger.debug("Authenticated as GitHub user: {login}", login=code_host.viewer_login())
    start = time.perf_counter()
    pull_requests = collect_pull_requests(
        code_host,
        owner=settings.github_owner,
        repo=settings.github_repo,
        ticket_regex=build_ticket_regex(settings),
        labels=parse_csv(settings.labels),
        allowed_users=membership.allowed_users if membership.restricted else [],
        label_match=settings.label_match,
    )
    log_elapsed("Collected PRs", start, count=len(pull_requests))

    start = time.perf_counter()
    tickets = enrich_pull_requests(tracker, pull_requests)
    log_elapsed("Fetched Jira tickets", start, count=len(tickets))

    report = Report.build(pull_requests, tickets)
    message = render_report(
        report,
        membership,
        jira_url=settings.jira_url,
        mention_users=parse_csv(settings.mention_users),
        team_group=settings.team_group,
        title=settings.report_title,
        today=today,
    )
    if dry_run:
        logger.info("--- DRY RUN OUTPUT ---")
        logger.opt(raw=True).info("{message}\n", message=message)
        return message
    publish_report(chat, settings.slack_channel, message)
    logger.info(
        "Posted report with {count} PRs to {channel}",
        count=len(report.items),
        channel=settings.slack_channel,
    )
    return message
