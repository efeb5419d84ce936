"""Resolve Jira ticket status for the collected pull requests."""
from __future__ import annotations

import requests
from loguru import logger

from pr_reporter.errors import ReporterError, TicketNotFoundError
from pr_reporter.jira import TicketTracker
from pr_reporter.models import (
    STATUS_ERROR,
    STATUS_NO_STATUS,
    STATUS_NOT_FOUND,
    SUMMARY_MISSING,
    SUMMARY_NOT_FOUND,
    PullRequest,
    TicketInfo,
)
from pr_reporter.payloads import JSONDict, ensure_list, ensure_str

BLOCKED_MARKERS = ("block", "impediment", "pause")


def has_blocked_marker(text: str) -> bool:
    """Return True when text mentions a blocking keyword."""
    lowered = text.lower()
    return any(marker in lowered for marker in BLOCKED_MARKERS)


def derive_blocked(ticket_id: str, status: str, labels: list[str]) -> bool:
    """Derive the blocked flag from the status name and every label."""
    blocked = False
    if status and has_blocked_marker(status):
        blocked = True
        logger.debug("{ticket} blocked by status: {status}", ticket=ticket_id, status=status)
    for label in labels:
        if has_blocked_marker(label):
            blocked = True
            logger.debug("{ticket} blocked by label: {label}", ticket=ticket_id, label=label)
    return blocked


def build_ticket_info(ticket_id: str, issue: JSONDict) -> TicketInfo:
    """Build TicketInfo from a flattened Jira issue payload."""
    status = ensure_str(issue.get("status"), "status")
    summary = ensure_str(issue.get("summary"), "summary")
    labels = [
        ensure_str(label, "label")
        for label in ensure_list(issue.get("labels") or [], "labels")
    ]
    return TicketInfo(
        ticket_id=ticket_id,
        status=status or STATUS_NO_STATUS,
        summary=summary or SUMMARY_MISSING,
        blocked=derive_blocked(ticket_id, status, labels),
    )


def fetch_ticket_info(tracker: TicketTracker, ticket_id: str) -> TicketInfo:
    """Look up one ticket, treating a missing ticket as a normal outcome."""
    try:
        issue = tracker.get_issue(ticket_id)
    except TicketNotFoundError:
        logger.warning("Jira ticket {ticket} not found", ticket=ticket_id)
        return TicketInfo(
            ticket_id=ticket_id,
            status=STATUS_NOT_FOUND,
            summary=SUMMARY_NOT_FOUND,
        )
    ticket = build_ticket_info(ticket_id, issue)
    logger.debug(
        "Jira {ticket}: {status} (blocked: {blocked})",
        ticket=ticket_id,
        status=ticket.status,
        blocked=ticket.blocked,
    )
    return ticket


def enrich_tickets(tracker: TicketTracker, ticket_ids: list[str]) -> dict[str, TicketInfo]:
    """Look up every ticket; a failed lookup becomes an Error entry."""
    results: dict[str, TicketInfo] = {}
    for ticket_id in ticket_ids:
        if not ticket_id or ticket_id in results:
            continue
        try:
            results[ticket_id] = fetch_ticket_info(tracker, ticket_id)
        except (ReporterError, requests.RequestException, TypeError, ValueError) as exc:
            logger.warning(
                "Error fetching Jira ticket {ticket}: {error}",
                ticket=ticket_id,
                error=str(exc),
            )
            results[ticket_id] = TicketInfo(
                ticket_id=ticket_id,
                status=STATUS_ERROR,
                summary=f"Error: {exc}",
            )
    return results


def distinct_ticket_ids(pull_requests: list[PullRequest]) -> list[str]:
    """Return ticket identifiers in first-seen order without duplicates."""
    seen: dict[str, None] = {}
    for pr in pull_requests:
        if pr.ticket_id:
            seen.setdefault(pr.ticket_id, None)
    return list(seen)


def enrich_pull_requests(
    tracker: TicketTracker | None,
    pull_requests: list[PullRequest],
) -> dict[str, TicketInfo]:
    """Resolve tickets for the collected PRs, or skip when Jira is not configured."""
    if tracker is None:
        logger.warning(
            "Jira credentials not fully configured, ticket status will show as 'Unknown'",
        )
        return {}
    ticket_ids = distinct_ticket_ids(pull_requests)
    if not ticket_ids:
        logger.debug("No Jira tickets referenced by any PR, skipping Jira lookup")
        return {}
    logger.info("Fetching Jira info for {count} tickets", count=len(ticket_ids))
    return enrich_tickets(tracker, ticket_ids)
