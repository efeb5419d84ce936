"""Command line entry point for the PR reporter."""
from __future__ import annotations

import argparse
import json
import sys

import requests
from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError

from pr_reporter.errors import ReporterError
from pr_reporter.pipeline import build_clients, run_report
from pr_reporter.settings import Settings, get_settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(description="Open pull request report for Slack")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the report instead of posting to Slack",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Log the effective configuration (tokens hidden) and exit",
    )
    parser.add_argument(
        "--run-now",
        action="store_true",
        help="Run the report immediately (the default; kept for schedulers)",
    )
    return parser.parse_args(argv)


def configure_logging(settings: Settings) -> None:
    """Send logs to stderr at DEBUG or INFO level."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if settings.debug else "INFO")


def main(argv: list[str] | None = None) -> int:
    """Run the reporter CLI."""
    load_dotenv()
    args = parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as exc:
        logger.error("Invalid configuration: {error}", error=str(exc))
        return 1
    configure_logging(settings)
    if args.print_config:
        logger.info(
            "Configuration: {config}",
            config=json.dumps(settings.redacted(), indent=2),
        )
        return 0

    logger.info("Starting PR report generation")
    chat, code_host, tracker = build_clients(settings)
    try:
        run_report(
            settings,
            chat=chat,
            code_host=code_host,
            tracker=tracker,
            dry_run=args.dry_run,
        )
    except (ReporterError, requests.RequestException) as exc:
        logger.error(
            "PR report for {owner}/{repo} failed: {error}",
            owner=settings.github_owner,
            repo=settings.github_repo,
            error=str(exc),
        )
        return 1
    logger.info("PR report run complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
