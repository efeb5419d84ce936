"""Daily Slack report of open pull requests enriched with Jira status."""
