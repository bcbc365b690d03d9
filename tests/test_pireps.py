"""Tests for the pilot report ingester."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
import requests
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from artcc_sync.ingestion.pireps import ReportIngester, derive_fields
from artcc_sync.ingestion.weather_client import PirepClient
from artcc_sync.models import Pirep
from tests.conftest import INSIDE_LAT, INSIDE_LON, NOW, OUTSIDE_LAT, OUTSIDE_LON, json_response


def make_feature(
    raw: str = "MEM UA /OV MEM/TM 1130/FL080/TP C172/TB LGT",
    minutes_ago: int = 30,
    lat: float = INSIDE_LAT,
    lon: float = INSIDE_LON,
    kind: str = "PIREP",
    **props,
) -> dict:
    obs = NOW - timedelta(minutes=minutes_ago)
    properties = {
        "airepType": kind,
        "rawOb": raw,
        "obsTime": obs.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "acType": "C172",
        "fltlvl": "080",
    }
    properties.update(props)
    return {
        "type": "Feature",
        "properties": properties,
        # Report feed order: (lat, lon)
        "geometry": {"type": "Point", "coordinates": [lat, lon]},
    }


class StubPirepClient:
    def __init__(self, features=None, error=None):
        self.features = features or []
        self.error = error

    def get_features(self):
        if self.error:
            raise self.error
        return self.features


@pytest.fixture
def client():
    return StubPirepClient()


@pytest.fixture
def ingester(client, session_factory):
    return ReportIngester(client=client, session_factory=session_factory, clock=lambda: NOW)


def _reports(session_factory):
    with session_factory() as session:
        return list(session.execute(select(Pirep).order_by(Pirep.id)).scalars())


def _add(session_factory, **fields):
    with session_factory() as session:
        session.add(Pirep(**fields))
        session.commit()


class TestDeriveFields:
    def test_full_report(self):
        fields = derive_fields({
            "wdir": 270, "wspd": 35,
            "icgInt1": "LGT", "icgType1": "RIME",
            "cloudCvg1": "BKN", "Bas1": 45, "Top1": 80,
            "tbInt1": "MOD", "tbFreq1": "OCNL", "tbType1": "CHOP",
            "temp": -5,
            "visibility_statute_mi": {"_text": "10"},
        })
        assert fields == {
            "wind": "270@35",
            "icing": "LGT RIME",
            "sky_cond": "BKN 045-080",
            "turbulence": "MOD OCNL CHOP",
            "vis": "10",
            "temp": "-5",
        }

    def test_sparse_report(self):
        fields = derive_fields({"tbInt1": "LGT", "cloudCvg1": "OVC", "wspd": 10})
        assert fields["turbulence"] == "LGT"
        assert fields["sky_cond"] == "OVC"
        assert fields["icing"] == ""
        assert fields["wind"] == "@10"
        assert fields["temp"] == ""

    def test_tops_only(self):
        assert derive_fields({"Top1": 120})["sky_cond"] == "-120"

    def test_zero_temperature_kept(self):
        assert derive_fields({"temp": 0})["temp"] == "0"


class TestFiltering:
    def test_stores_in_scope_report(self, client, ingester, session_factory):
        client.features = [make_feature(icgInt1="LGT", icgType1="RIME")]
        assert ingester.poll() == 1

        report = _reports(session_factory)[0]
        assert report.location == "MEM"
        assert report.aircraft == "C172"
        assert report.flight_level == "080"
        assert report.icing == "LGT RIME"
        assert report.manual is False
        assert report.urgent is False
        assert report.report_time == NOW - timedelta(minutes=30)

    def test_urgent_flag(self, client, ingester, session_factory):
        client.features = [make_feature(kind="Urgent PIREP")]
        ingester.poll()
        assert _reports(session_factory)[0].urgent is True

    def test_other_categories_ignored(self, client, ingester, session_factory):
        client.features = [make_feature(kind="AIREP")]
        assert ingester.poll() == 0
        assert _reports(session_factory) == []

    def test_outside_boundary_ignored(self, client, ingester):
        client.features = [make_feature(lat=OUTSIDE_LAT, lon=OUTSIDE_LON)]
        assert ingester.poll() == 0

    def test_coordinates_read_as_lat_lon(self, client, ingester):
        # Same point given in (lon, lat) order lands outside
        client.features = [make_feature(lat=INSIDE_LON, lon=INSIDE_LAT)]
        assert ingester.poll() == 0

    def test_duplicate_not_stored_twice(self, client, ingester, session_factory):
        client.features = [make_feature()]
        ingester.poll()
        assert ingester.poll() == 0
        assert len(_reports(session_factory)) == 1

    def test_stale_report_discarded(self, client, ingester):
        client.features = [make_feature(minutes_ago=180)]
        assert ingester.poll() == 0

    def test_malformed_features_skipped(self, client, ingester):
        no_time = make_feature(raw="MEM UA /OV MEM")
        no_time["properties"]["obsTime"] = None
        bad_coords = make_feature(raw="BNA UA /OV BNA")
        bad_coords["geometry"]["coordinates"] = ["north", "west"]
        client.features = [no_time, bad_coords, "junk", make_feature(raw="LIT UA /OV LIT")]

        assert ingester.poll() == 1

    def test_out_of_range_time_does_not_sink_batch(self, client, ingester, session_factory):
        millis = make_feature(raw="MEM UA /OV MEM 2")
        millis["properties"]["obsTime"] = 1760788800000
        client.features = [
            make_feature(raw="MEM UA /OV MEM 1"),
            millis,
            make_feature(raw="BNA UA /OV BNA"),
            make_feature(raw="LIT UA /OV LIT"),
        ]

        assert ingester.poll() == 3
        assert len(_reports(session_factory)) == 3


class TestRetention:
    def test_old_automatic_purged_manual_kept(self, client, ingester, session_factory):
        old = NOW - timedelta(hours=3)
        _add(session_factory, report_time=old, raw="OLD AUTO", manual=False)
        _add(session_factory, report_time=old, raw="OLD MANUAL", manual=True)
        _add(session_factory, report_time=NOW - timedelta(minutes=10), raw="NEW AUTO", manual=False)

        ingester.poll()

        assert [r.raw for r in _reports(session_factory)] == ["OLD MANUAL", "NEW AUTO"]

    def test_fetch_failure_deletes_nothing(self, client, ingester, session_factory):
        _add(session_factory, report_time=NOW - timedelta(hours=3), raw="OLD AUTO", manual=False)
        client.error = requests.ConnectionError("down")

        assert ingester.poll() is None
        assert len(_reports(session_factory)) == 1
        assert ingester.stats["error_count"] == 1


class TestInsertFailures:
    def test_one_bad_report_does_not_block_batch(self, client, ingester):
        client.features = [make_feature(raw="MEM UA 1"), make_feature(raw="MEM UA 2")]

        with patch.object(ingester, "_store", side_effect=[SQLAlchemyError("rejected"), True]):
            assert ingester.poll() == 1

        assert ingester.stats["insert_failures"] == 1


class TestPirepClient:
    def test_returns_features(self):
        http = MagicMock()
        http.get.return_value = json_response({"features": [make_feature()]})
        client = PirepClient(url="https://awc.test/pireps", timeout=2, session=http)

        assert len(client.get_features()) == 1
        http.get.assert_called_once_with("https://awc.test/pireps", timeout=2)

    def test_http_error_propagates(self):
        http = MagicMock()
        response = json_response({})
        response.raise_for_status.side_effect = requests.HTTPError("503")
        http.get.return_value = response

        with pytest.raises(requests.RequestException):
            PirepClient(session=http).get_features()
