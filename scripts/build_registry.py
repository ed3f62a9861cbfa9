#!/usr/bin/env python3
"""Build the Brackets extension registry from npm.

Discovers packages tagged ``brackets-extension``, keeps one release per
distinct Brackets engine, adds download statistics and GitHub issue/pull
counts, and prints the registry as JSON.

Usage:
    python build_registry.py                    # Print the registry
    python build_registry.py dist/registry.json # Also write it to a file
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

import requests
from tabulate import tabulate

# Add scripts directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from models import ExtensionRecord
from stages.base import BaseStage, get_session, progress
from stages.details import DetailFetcher
from stages.discovery import KeywordDiscovery
from stages.downloads import DownloadEnricher
from stages.github import GithubEnricher
from stages.versions import filter_all
from stages.writer import write_registry

KEYWORD = "brackets-extension"


def build_registry(
    target: Optional[str] = None,
    keyword: str = KEYWORD,
    session: Optional[requests.Session] = None,
    stages: Optional[list[BaseStage]] = None,
) -> list[ExtensionRecord]:
    """Run every stage in order and write the registry.

    Args:
        target: Optional file path to also write the registry to.
        keyword: Registry keyword used for discovery.
        session: Shared HTTP session; one with retries is created if omitted.
        stages: Optional list that receives the stage instances, so callers
            can inspect their errors afterwards.

    Returns:
        The records written to the registry.
    """
    session = session or get_session()
    discovery = KeywordDiscovery(session)
    details = DetailFetcher(session)
    downloads = DownloadEnricher(session)
    github = GithubEnricher(session)
    if stages is not None:
        stages.extend([discovery, details, downloads, github])

    names = discovery.run(keyword)
    documents = details.run(names)
    records = filter_all(documents)
    records = downloads.run(records)
    records = github.run(records)
    write_registry(records, target)
    return records


def print_summary(records: list[ExtensionRecord], stages: list[BaseStage]) -> None:
    """Print a per-extension table and any stage errors to stderr."""
    rows = []
    for record in records:
        github = record.github
        rows.append(
            [
                record.name,
                len(record.versions),
                record.downloads_last_week if record.downloads is not None else "",
                record.downloads_total if record.downloads is not None else "",
                github.issue_count if github else "",
                github.pull_count if github else "",
            ]
        )
    headers = ["Extension", "Engines", "Last week", "Total", "Issues", "Pulls"]
    progress(tabulate(rows, headers=headers, tablefmt="simple"))

    progress(f"\n{'='*60}")
    progress("SUMMARY")
    progress(f"{'='*60}")
    progress(f"Total: {len(records)} extensions")
    for stage in stages:
        if stage.errors:
            progress(f"  {stage.stage_name}: {len(stage.errors)} errors")
            for error in stage.errors:
                progress(f"    - {error}")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Build the Brackets extension registry from npm",
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="File to write the registry to (stdout is always written)",
    )
    args = parser.parse_args(argv)

    stages: list[BaseStage] = []
    try:
        records = build_registry(args.target, stages=stages)
    except (requests.RequestException, ValueError) as e:
        progress(f"error: {e}")
        return 1

    print_summary(records, stages)
    return 0


if __name__ == "__main__":
    sys.exit(main())
