"""Tests for download statistics enrichment."""

from datetime import date
from unittest.mock import Mock, patch

import pytest
import requests

from models import DownloadDay, ExtensionRecord, MultiDownloads, SingleDownloads
from stages.downloads import (
    DownloadEnricher,
    compute_download_metrics,
    decode_downloads_payload,
)

TODAY = date(2024, 1, 15)
RANGE_PREFIX = "https://api.npmjs.org/downloads/range/"


def series(*pairs):
    return [{"day": day, "downloads": count} for day, count in pairs]


def records(*names):
    return [ExtensionRecord(name=name) for name in names]


class TestComputeDownloadMetrics:
    def test_week_window_is_inclusive(self):
        days = [
            DownloadDay(day="2024-01-06", downloads=100),
            DownloadDay(day="2024-01-07", downloads=50),
            DownloadDay(day="2024-01-08", downloads=5),
            DownloadDay(day="2024-01-10", downloads=3),
            DownloadDay(day="2024-01-15", downloads=2),
        ]
        last_week, total = compute_download_metrics(days, TODAY)
        assert last_week == 10
        assert total == 160

    def test_empty_series(self):
        assert compute_download_metrics([], TODAY) == (0, 0)


class TestDecodePayload:
    def test_single_package_shape(self):
        payload = decode_downloads_payload(
            {
                "start": "2015-01-01",
                "end": "2024-01-15",
                "package": "ext-a",
                "downloads": series(("2024-01-15", 1)),
            }
        )
        assert isinstance(payload, SingleDownloads)
        assert payload.downloads[0].downloads == 1

    def test_multi_package_shape(self):
        payload = decode_downloads_payload(
            {"ext-a": {"downloads": series(("2024-01-15", 1))}, "ext-b": None}
        )
        assert isinstance(payload, MultiDownloads)
        assert payload.packages["ext-b"] is None

    def test_unexpected_shape(self):
        with pytest.raises(ValueError):
            decode_downloads_payload(["not", "a", "mapping"])


class TestDownloadEnricher:
    def test_multi_package_response(self, make_response, route_session):
        body = {
            "ext-a": {"package": "ext-a", "downloads": series(("2024-01-01", 7), ("2024-01-14", 3))},
            "ext-b": {"package": "ext-b", "downloads": []},
            "ext-c": None,
        }
        session = route_session({RANGE_PREFIX: make_response(json_data=body)})
        enricher = DownloadEnricher(session, today=TODAY)

        a, b, c, d = enricher.enrich(records("ext-a", "ext-b", "ext-c", "ext-d"))

        assert a.downloads_total == 10
        assert a.downloads_last_week == 3
        assert [day.day for day in a.downloads] == ["2024-01-01", "2024-01-14"]
        for record in (b, c, d):
            assert record.downloads is None
            assert "downloadsTotal" not in record.to_registry_entry()
        assert enricher.errors == []

    def test_single_package_response(self, make_response, route_session):
        body = {
            "start": "2015-01-01",
            "end": "2024-01-15",
            "package": "ext-a",
            "downloads": series(("2024-01-09", 4), ("2024-01-15", 6)),
        }
        session = route_session({RANGE_PREFIX: make_response(json_data=body)})

        (record,) = DownloadEnricher(session, today=TODAY).enrich(records("ext-a"))

        assert record.downloads_last_week == 10
        assert record.downloads_total == 10
        entry = record.to_registry_entry()
        assert entry["downloads"][0] == {"day": "2024-01-09", "downloads": 4}

    def test_single_request_for_all_names(self, make_response, route_session):
        session = route_session({RANGE_PREFIX: make_response(json_data={})})
        DownloadEnricher(session, today=TODAY).enrich(records("ext-a", "ext-b"))

        assert session.get.call_count == 1
        url = session.get.call_args[0][0]
        assert url == RANGE_PREFIX + "2015-01-01:2024-01-15/ext-a,ext-b"

    @pytest.mark.parametrize(
        "answer",
        [
            requests.ConnectionError("boom"),
            "server-error",
            "bad-json",
        ],
    )
    def test_failure_passes_records_through(self, answer, make_response, route_session):
        if answer == "server-error":
            answer = make_response(status_code=500)
        elif answer == "bad-json":
            answer = make_response(text="<html>")
        session = route_session({RANGE_PREFIX: answer})
        enricher = DownloadEnricher(session, today=TODAY)
        original = records("ext-a", "ext-b")

        result = enricher.enrich(original)

        assert result == original
        assert all(r.downloads is None for r in result)
        assert len(enricher.errors) == 1

    def test_no_records_makes_no_request(self):
        session = Mock()
        assert DownloadEnricher(session, today=TODAY).enrich([]) == []
        session.get.assert_not_called()

    def test_today_resolved_once_per_run(self, make_response, route_session):
        body = {
            "package": "ext-a",
            "downloads": series(("2024-01-08", 5), ("2024-01-15", 1)),
        }
        session = route_session({RANGE_PREFIX: make_response(json_data=body)})
        days = [date(2024, 1, 15), date(2024, 1, 16)]

        with patch("stages.downloads.utc_today", side_effect=days) as today:
            (record,) = DownloadEnricher(session).enrich(records("ext-a"))

        assert today.call_count == 1
        assert session.get.call_args[0][0].endswith(":2024-01-15/ext-a")
        assert record.downloads_last_week == 6
