"""Collect open pull requests and filter them by author and label."""
from __future__ import annotations

import re

from loguru import logger

from pr_reporter.github import CodeHost
from pr_reporter.models import PullRequest
from pr_reporter.payloads import JSONDict, ensure_int, ensure_list, ensure_str


def extract_ticket_id(title: str, regex: re.Pattern[str]) -> str | None:
    """Return the first ticket identifier in a title, or None."""
    match = regex.search(title)
    return match.group(0) if match else None


def matches_author(author: str | None, allowed_users: list[str]) -> bool:
    """Return True when the author passes the allow-list; an empty list allows everyone."""
    if not author:
        return False
    entries = [user.strip().casefold() for user in allowed_users if user.strip()]
    if not entries:
        return True
    return author.casefold() in entries


def matches_labels(labels: list[str], terms: list[str], match: str = "substring") -> bool:
    """Return True when any label matches any filter term, or no terms are set."""
    if not terms:
        return True
    folded_terms = [term.casefold() for term in terms]
    for label in labels:
        folded = label.casefold()
        if match == "exact":
            if folded in folded_terms:
                return True
        elif any(term in folded for term in folded_terms):
            return True
    return False


def collect_pull_requests(
    code_host: CodeHost,
    *,
    owner: str,
    repo: str,
    ticket_regex: re.Pattern[str],
    labels: list[str] | None = None,
    allowed_users: list[str] | None = None,
    label_match: str = "substring",
) -> list[PullRequest]:
    """List open PRs and keep those passing the author and label filters."""
    raw_prs = code_host.list_open_pull_requests(owner, repo)
    logger.info(
        "Found {count} open PRs in {owner}/{repo}",
        count=len(raw_prs),
        owner=owner,
        repo=repo,
    )
    terms = labels or []
    users = allowed_users or []
    collected: list[PullRequest] = []
    for raw in raw_prs:
        pull_request = filter_pull_request(
            raw,
            ticket_regex=ticket_regex,
            terms=terms,
            allowed_users=users,
            label_match=label_match,
        )
        if pull_request is not None:
            collected.append(pull_request)
    logger.info("Filtered to {count} PRs matching criteria", count=len(collected))
    return collected


def filter_pull_request(
    raw: JSONDict,
    *,
    ticket_regex: re.Pattern[str],
    terms: list[str],
    allowed_users: list[str],
    label_match: str,
) -> PullRequest | None:
    """Build a PullRequest from a listing entry, or None if it is filtered out."""
    number = ensure_int(raw.get("number"), "number")
    title = ensure_str(raw.get("title"), "title")
    author = ensure_str(raw.get("author"), "author") or None
    labels = [
        ensure_str(label, "label")
        for label in ensure_list(raw.get("labels") or [], "labels")
    ]
    logger.debug(
        "Examining PR #{number}: {title} (author {author}, labels {labels})",
        number=number,
        title=title,
        author=author,
        labels=", ".join(labels),
    )
    if not matches_author(author, allowed_users):
        logger.debug(
            "PR #{number} skipped - author {author} not allowed",
            number=number,
            author=author,
        )
        return None
    if not matches_labels(labels, terms, label_match):
        logger.debug(
            "PR #{number} skipped - no label matches {terms}",
            number=number,
            terms=terms,
        )
        return None
    ticket_id = extract_ticket_id(title, ticket_regex)
    if ticket_id:
        logger.debug("PR #{number} ticket extracted: {ticket}", number=number, ticket=ticket_id)
    return PullRequest(
        number=number,
        title=title,
        url=ensure_str(raw.get("url"), "url"),
        author=author or "",
        assignee=ensure_str(raw.get("assignee"), "assignee") or None,
        draft=bool(raw.get("draft")),
        labels=labels,
        ticket_id=ticket_id,
    )
