"""Tests for Jira enrichment and blocked-flag derivation."""
from __future__ import annotations

import requests

from pr_reporter.enricher import (
    derive_blocked,
    distinct_ticket_ids,
    enrich_pull_requests,
    enrich_tickets,
)
from pr_reporter.errors import AuthenticationError, TrackerError
from pr_reporter.models import PullRequest


def _pr(number: int, ticket_id: str | None) -> PullRequest:
    return PullRequest(
        number=number,
        title=f"PR {number}",
        url=f"https://github.com/acme/web/pull/{number}",
        author="alice-gh",
        ticket_id=ticket_id,
    )


class TestDeriveBlocked:
    def test_status_match(self):
        assert derive_blocked("PREFIX-42", "Blocked - Waiting", []) is True

    def test_label_match(self):
        assert derive_blocked("PREFIX-1", "In Progress", ["team", "On-Pause"]) is True

    def test_impediment_is_case_insensitive(self):
        assert derive_blocked("PREFIX-1", "IMPEDIMENT", []) is True

    def test_no_match(self):
        assert derive_blocked("PREFIX-1", "In Review", ["frontend"]) is False

    def test_later_non_matching_label_does_not_reset(self, log_messages):
        assert derive_blocked("PREFIX-1", "Blocked", ["paused", "frontend"]) is True
        debug_lines = [line for line in log_messages if "PREFIX-1 blocked by" in line]
        assert len(debug_lines) == 2


class TestEnrichTickets:
    def test_blocked_scenario(self, tracker):
        tracker.issues["PREFIX-42"] = {
            "status": "Blocked - Waiting",
            "summary": "Login fails on Safari",
            "labels": [],
        }
        tickets = enrich_tickets(tracker, ["PREFIX-42"])
        ticket = tickets["PREFIX-42"]
        assert ticket.blocked is True
        assert ticket.status == "Blocked - Waiting"
        assert ticket.summary == "Login fails on Safari"

    def test_not_found_is_not_an_error(self, tracker):
        tickets = enrich_tickets(tracker, ["PREFIX-404"])
        assert tickets["PREFIX-404"].status == "Not Found"
        assert tickets["PREFIX-404"].summary == "Ticket not found"
        assert tickets["PREFIX-404"].blocked is False

    def test_failure_is_isolated(self, tracker):
        tracker.issues["PREFIX-1"] = {"status": "Done", "summary": "One", "labels": []}
        tracker.issues["PREFIX-3"] = {"status": "To Do", "summary": "Three", "labels": []}
        tracker.errors["PREFIX-2"] = requests.ConnectionError("connection reset")
        tickets = enrich_tickets(tracker, ["PREFIX-1", "PREFIX-2", "PREFIX-3"])
        assert tickets["PREFIX-1"].status == "Done"
        assert tickets["PREFIX-3"].summary == "Three"
        assert tickets["PREFIX-2"].status == "Error"
        assert "connection reset" in tickets["PREFIX-2"].summary
        assert tracker.calls == ["PREFIX-1", "PREFIX-2", "PREFIX-3"]

    def test_auth_and_server_errors_degrade(self, tracker):
        tracker.errors["PREFIX-1"] = AuthenticationError("Jira", "bad token")
        tracker.errors["PREFIX-2"] = TrackerError(500, "boom")
        tickets = enrich_tickets(tracker, ["PREFIX-1", "PREFIX-2"])
        assert tickets["PREFIX-1"].status == "Error"
        assert tickets["PREFIX-1"].summary.startswith("Error: Jira authentication failed")
        assert tickets["PREFIX-2"].status == "Error"

    def test_missing_fields_use_placeholders(self, tracker):
        tracker.issues["PREFIX-5"] = {"status": "", "summary": "", "labels": []}
        ticket = enrich_tickets(tracker, ["PREFIX-5"])["PREFIX-5"]
        assert ticket.status == "No Status"
        assert ticket.summary == "No Description"

    def test_duplicates_are_looked_up_once(self, tracker):
        tracker.issues["PREFIX-1"] = {"status": "Done", "summary": "One", "labels": []}
        enrich_tickets(tracker, ["PREFIX-1", "PREFIX-1", ""])
        assert tracker.calls == ["PREFIX-1"]


class TestEnrichPullRequests:
    def test_skipped_without_credentials(self, log_messages):
        prs = [_pr(1, "PREFIX-1")]
        assert enrich_pull_requests(None, prs) == {}
        assert any(
            line.startswith("WARNING") and "Jira credentials not fully configured" in line
            for line in log_messages
        )

    def test_no_tickets_skips_lookup(self, tracker):
        assert enrich_pull_requests(tracker, [_pr(1, None)]) == {}
        assert tracker.calls == []

    def test_distinct_ids_keep_first_seen_order(self):
        prs = [_pr(1, "PREFIX-2"), _pr(2, None), _pr(3, "PREFIX-1"), _pr(4, "PREFIX-2")]
        assert distinct_ticket_ids(prs) == ["PREFIX-2", "PREFIX-1"]
