"""GitHub issue and pull request counts scraped from repository pages."""

import re
from typing import Optional

import requests
from bs4 import BeautifulSoup

from models import ExtensionRecord, GithubInfo
from stages.base import BaseStage, get_session, join_settled, progress

# May start mid-string (git+https://...); repository root only
GITHUB_REPO_RE = re.compile(r"https?://[^/]*github\.com/([^/]+)/([^/]+)$")


class ScrapeError(Exception):
    """The issues page could not be fetched."""

    def __init__(self, url: str, reason):
        super().__init__(f"GET {url} ERR {reason}")
        self.url = url
        self.reason = reason


def repository_candidates(record: ExtensionRecord) -> list[str]:
    """URLs that may point at the source repository, in priority order."""
    repository = record.get("repository")
    candidates = [
        repository.get("url") if isinstance(repository, dict) else None,
        repository,
        record.get("homepage"),
    ]
    return [c for c in candidates if isinstance(c, str) and c]


def parse_github_repo(record: ExtensionRecord) -> Optional[tuple[str, str]]:
    """Derive ``(owner, repo)`` from the first GitHub URL of a record."""
    for candidate in repository_candidates(record):
        match = GITHUB_REPO_RE.search(candidate)
        if not match:
            continue
        owner, repo = match.groups()
        if repo.endswith(".git"):
            repo = repo[:-4]
        return owner, repo
    return None


def parse_counter(soup: BeautifulSoup, href: str) -> int:
    """Read the counter badge of the tab link pointing at ``href``.

    Thousands separators are removed before parsing, so "1,204" reads as
    1204 rather than stopping at the comma. Returns -1 when the link or its
    counter is missing or the text is not a whole integer (e.g. "5k").
    """
    for anchor in soup.find_all("a", href=href):
        counter = anchor.select_one(".counter")
        if counter is None:
            continue
        text = counter.get_text(strip=True).replace(",", "")
        try:
            return int(text, 10)
        except ValueError:
            return -1
    return -1


class IssuePullScraper:
    """Scrape issue and pull request counters from a repository's issues page."""

    ISSUES_URL = "https://github.com/{owner}/{repo}/issues"
    USER_AGENT = "brackets-npm-registry"
    REQUEST_TIMEOUT = 30

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or get_session()

    def fetch_issue_pull_counts(self, owner: str, repo: str) -> tuple[int, int]:
        """Return ``(issue_count, pull_count)`` for a repository.

        Raises:
            ScrapeError: On transport errors or any status other than 200.
        """
        url = self.ISSUES_URL.format(owner=owner, repo=repo)
        try:
            response = self.session.get(
                url,
                headers={"User-Agent": self.USER_AGENT},
                timeout=self.REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise ScrapeError(url, e) from e

        if response.status_code != 200:
            raise ScrapeError(url, response.status_code)

        soup = BeautifulSoup(response.text, "html.parser")
        return (
            parse_counter(soup, f"/{owner}/{repo}/issues"),
            parse_counter(soup, f"/{owner}/{repo}/pulls"),
        )


class GithubEnricher(BaseStage):
    """Attach GitHub repository info and issue/pull counts to records."""

    stage_name = "github"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        scraper: Optional[IssuePullScraper] = None,
    ):
        super().__init__(session)
        self.scraper = scraper or IssuePullScraper(self.session)

    def run(self, records: list[ExtensionRecord]) -> list[ExtensionRecord]:
        return self.enrich(records)

    def enrich_one(self, record: ExtensionRecord) -> None:
        repo = parse_github_repo(record)
        if repo is None:
            return

        owner, name = repo
        # Sentinels stay in place if scraping fails
        record.github = GithubInfo(username=owner, repository=name)
        issues, pulls = self.scraper.fetch_issue_pull_counts(owner, name)
        record.github.issue_count = issues
        record.github.pull_count = pulls

    def enrich(self, records: list[ExtensionRecord]) -> list[ExtensionRecord]:
        """Scrape every record concurrently; failures only affect their record."""
        progress("getting issue/pr counts for the extensions")
        for outcome in join_settled(self.enrich_one, records):
            if outcome.error is None:
                continue
            self.errors.append(f"{outcome.item.name}: {outcome.error}")
            progress(str(outcome.error))
        return records
