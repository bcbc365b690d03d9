"""Shared fixtures: in-memory database, fake cache, feed builders."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from unittest.mock import MagicMock

import pytest
from sqlalchemy.pool import StaticPool

from artcc_sync.cache import ActiveSetCache
from artcc_sync.ingestion.vatsim_client import VatsimClient
from artcc_sync.models import Base, build_engine, build_session_factory
from tests.fake_redis import FakeRedis

NOW = datetime(2026, 10, 18, 12, 0, 0)

# Memphis, inside the boundary; Denver, well outside
INSIDE_LAT, INSIDE_LON = 35.04, -89.98
OUTSIDE_LAT, OUTSIDE_LON = 39.74, -104.99


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return ActiveSetCache(fake_redis)


def json_response(payload: Any = None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    response.text = text
    response.raise_for_status.return_value = None
    return response


class FeedStub:
    """Stands in for requests.Session behind a real VatsimClient."""

    def __init__(self, payload: dict | None = None, metars: str = ""):
        self.payload = payload or {"pilots": [], "controllers": [], "atis": []}
        self.metars = metars
        self.error: Exception | None = None
        self.session = MagicMock()
        self.session.get.side_effect = self._get

    def _get(self, url: str, timeout: float | None = None):
        if self.error is not None:
            raise self.error
        if url.endswith(".json"):
            return json_response(self.payload)
        return json_response(text=self.metars)

    def client(self) -> VatsimClient:
        return VatsimClient(
            data_url="https://feed.test/vatsim-data.json",
            metar_url="https://metar.test",
            timeout=1,
            session=self.session,
        )


@pytest.fixture
def feed():
    return FeedStub()


def make_pilot(
    callsign: str,
    lat: float = INSIDE_LAT,
    lon: float = INSIDE_LON,
    dep: str = "KDFW",
    arr: str = "KATL",
    cruise: str = "FL350",
    cid: int = 1000,
) -> dict:
    return {
        "cid": cid,
        "name": f"Pilot {callsign}",
        "callsign": callsign,
        "latitude": lat,
        "longitude": lon,
        "altitude": 34000,
        "groundspeed": 450,
        "heading": 90,
        "flight_plan": {
            "aircraft_faa": "B738/L",
            "departure": dep,
            "arrival": arr,
            "altitude": cruise,
            "route": "DCT",
            "remarks": "/v/",
        },
    }


def make_controller(
    callsign: str,
    cid: int = 1234567,
    logon: str = "2026-10-18T10:00:00.1234567Z",
    facility: int = 6,
) -> dict:
    return {
        "cid": cid,
        "name": f"Controller {cid}",
        "callsign": callsign,
        "frequency": "125.875",
        "facility": facility,
        "rating": 5,
        "logon_time": logon,
        "text_atis": ["Memphis Center", "Feedback at zmeartcc.com"],
    }


def make_atis(callsign: str, code: str = "A") -> dict:
    return {
        "cid": 42,
        "callsign": callsign,
        "frequency": "119.450",
        "atis_code": code,
        "text_atis": ["MEMPHIS INFO A", "WIND 180 AT 10"],
    }
