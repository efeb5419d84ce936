"""Tests for pull request filtering and ticket extraction."""
from __future__ import annotations

import re

import pytest
from conftest import raw_pr

from pr_reporter.collector import (
    collect_pull_requests,
    extract_ticket_id,
    matches_author,
    matches_labels,
)
from pr_reporter.errors import RateLimitError, RepositoryNotFoundError

TICKET_REGEX = re.compile(r"PREFIX-\d+")


class TestMatchesLabels:
    @pytest.mark.parametrize(
        ("labels", "terms", "expected"),
        [
            ([], [], True),
            (["bug"], [], True),
            ([], ["poker"], False),
            (["bug"], ["poker"], False),
            (["Poker"], ["poker"], True),
            (["bug", "POKER-team"], ["poker"], True),
            (["pokerface"], ["poker"], True),
            (["bug", "urgent"], ["poker", "URG"], True),
            (["bug", "urgent"], ["poker", "feature"], False),
        ],
    )
    def test_substring_match(self, labels, terms, expected):
        assert matches_labels(labels, terms) is expected

    def test_exact_match_rejects_partial_labels(self):
        assert matches_labels(["pokerface"], ["poker"], "exact") is False
        assert matches_labels(["Poker"], ["poker"], "exact") is True


class TestMatchesAuthor:
    def test_case_insensitive_membership(self):
        assert matches_author("Alice-GH", ["alice-gh"])

    def test_not_in_allow_list(self):
        assert not matches_author("mallory", ["alice-gh", "bob"])

    def test_blank_entries_are_ignored(self):
        assert not matches_author("mallory", ["", "  ", "alice-gh"])
        assert matches_author("mallory", ["", "  "])
        assert matches_author("bob", [" bob "])

    def test_unrestricted_lets_everyone_through(self):
        assert matches_author("anyone", [])

    def test_missing_author_never_matches(self):
        assert not matches_author(None, [])
        assert not matches_author("", ["alice"])


class TestExtractTicketId:
    def test_first_match_wins(self):
        assert extract_ticket_id("PREFIX-1 and PREFIX-2", TICKET_REGEX) == "PREFIX-1"

    def test_no_match_is_none(self):
        assert extract_ticket_id("Update README", TICKET_REGEX) is None

    def test_idempotent(self):
        title = "Fix login bug PREFIX-42"
        first = extract_ticket_id(title, TICKET_REGEX)
        assert first == extract_ticket_id(title, TICKET_REGEX) == "PREFIX-42"


class TestCollectPullRequests:
    def test_label_and_ticket_scenario(self, code_host):
        code_host.pull_requests = [
            raw_pr(42, "Fix login bug PREFIX-42", labels=["poker", "bug"]),
        ]
        prs = collect_pull_requests(
            code_host,
            owner="acme",
            repo="web",
            ticket_regex=TICKET_REGEX,
            labels=["poker"],
            allowed_users=["alice-gh"],
        )
        assert len(prs) == 1
        assert prs[0].ticket_id == "PREFIX-42"
        assert prs[0].state == "open"
        assert code_host.calls == [("acme", "web")]

    def test_filters_keep_listing_order(self, code_host):
        code_host.pull_requests = [
            raw_pr(9, "Newest", author="bob"),
            raw_pr(8, "Outsider", author="mallory"),
            raw_pr(7, "Unlabeled", author="bob", labels=["docs"]),
            raw_pr(6, "No author", author=None),
            raw_pr(5, "Oldest", author="ALICE-GH", assignee="bob", draft=True),
        ]
        prs = collect_pull_requests(
            code_host,
            owner="acme",
            repo="web",
            ticket_regex=TICKET_REGEX,
            labels=["poker"],
            allowed_users=["alice-gh", "bob"],
        )
        assert [pr.number for pr in prs] == [9, 5]
        assert prs[1].assignee == "bob"
        assert prs[1].draft is True

    def test_no_filters_returns_every_authored_pr(self, code_host):
        code_host.pull_requests = [
            raw_pr(1, "One", labels=[]),
            raw_pr(2, "Two", author="mallory", labels=["docs"]),
            raw_pr(3, "Ghost", author=None),
        ]
        prs = collect_pull_requests(
            code_host,
            owner="acme",
            repo="web",
            ticket_regex=TICKET_REGEX,
        )
        assert [pr.number for pr in prs] == [1, 2]

    @pytest.mark.parametrize(
        "error",
        [RepositoryNotFoundError("acme", "missing"), RateLimitError("GitHub", "resets soon")],
    )
    def test_listing_errors_propagate(self, code_host, error):
        code_host.error = error
        with pytest.raises(type(error)):
            collect_pull_requests(
                code_host,
                owner="acme",
                repo="missing",
                ticket_regex=TICKET_REGEX,
            )
