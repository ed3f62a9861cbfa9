"""Download statistics from the npm downloads range API."""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

import requests

from models import (
    DownloadDay,
    DownloadsPayload,
    ExtensionRecord,
    MultiDownloads,
    SingleDownloads,
)
from stages.base import BaseStage, progress


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def decode_downloads_payload(payload: Any) -> DownloadsPayload:
    """Decode a range response by its shape.

    The API drops the per-package keying when exactly one id is requested,
    returning ``{package, start, end, downloads}``; otherwise the body maps
    each package name to its own ``{downloads: [...]}`` (or null).

    Raises:
        ValueError: If the payload matches neither shape.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"unexpected downloads payload: {type(payload).__name__}")
    if isinstance(payload.get("downloads"), list):
        return SingleDownloads.model_validate(payload)
    return MultiDownloads.model_validate({"packages": payload})


def series_for(payload: DownloadsPayload, name: str) -> Optional[list[DownloadDay]]:
    """Return the download series of ``name`` in ``payload``, if any."""
    if isinstance(payload, SingleDownloads):
        if payload.package and payload.package != name:
            return None
        return payload.downloads
    entry = payload.packages.get(name)
    if entry is None:
        return None
    return entry.downloads


def compute_download_metrics(series: list[DownloadDay], today: date) -> tuple[int, int]:
    """Return ``(downloads_last_week, downloads_total)`` for a series.

    The week covers every day on or after ``today - 7 days``.
    """
    week_ago = (today - timedelta(days=7)).isoformat()
    last_week = sum(d.downloads for d in series if d.day >= week_ago)
    total = sum(d.downloads for d in series)
    return last_week, total


class DownloadEnricher(BaseStage):
    """Attach download series and totals to every record in one request."""

    stage_name = "downloads"

    RANGE_URL = "https://api.npmjs.org/downloads/range/{start}:{end}/{names}"
    START_DATE = "2015-01-01"

    def __init__(self, session: Optional[requests.Session] = None, today: Optional[date] = None):
        super().__init__(session)
        self.today = today

    def run(self, records: list[ExtensionRecord]) -> list[ExtensionRecord]:
        return self.enrich(records)

    def fetch_payload(self, names: list[str], today: date) -> DownloadsPayload:
        url = self.RANGE_URL.format(
            start=self.START_DATE, end=today.isoformat(), names=",".join(names)
        )
        return decode_downloads_payload(self.get_json(url))

    def enrich(self, records: list[ExtensionRecord]) -> list[ExtensionRecord]:
        """Enrich records with download data.

        A failed request leaves every record untouched; the error is recorded
        and narrated instead of raised.
        """
        progress(f"getting download info counts for the extensions ({len(records)})")
        if not records:
            return records

        today = self.today or utc_today()
        try:
            payload = self.fetch_payload([r.name for r in records], today)
        except (requests.RequestException, ValueError) as e:
            self.errors.append(f"Failed to fetch download counts: {e}")
            progress(f"getDownloadCounts-error: {e}")
            return records

        for record in records:
            series = series_for(payload, record.name)
            if not series:
                continue
            record.downloads = series
            record.downloads_last_week, record.downloads_total = compute_download_metrics(
                series, today
            )

        return records
