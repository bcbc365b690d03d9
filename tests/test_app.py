"""Tests for the Flask app factory and read-only status API."""

from __future__ import annotations

import pytest

from artcc_sync.app import create_app
from artcc_sync.cache import ActiveSetCache, CacheUnavailableError
from artcc_sync.ingestion.pireps import ReportIngester
from artcc_sync.ingestion.reconciler import Reconciler
from tests.conftest import NOW, make_controller, make_pilot


class _NoReports:
    def get_features(self):
        return []


@pytest.fixture
def reconciler(feed, cache, session_factory):
    return Reconciler(client=feed.client(), cache=cache, session_factory=session_factory, clock=lambda: NOW)


@pytest.fixture
def app(cache, session_factory, reconciler):
    ingester = ReportIngester(client=_NoReports(), session_factory=session_factory, clock=lambda: NOW)
    return create_app(
        start_polling=False,
        cache=cache,
        session_factory=session_factory,
        reconciler=reconciler,
        ingester=ingester,
    )


class TestCreateApp:
    def test_writes_airport_list(self, app, fake_redis):
        assert fake_redis.store["airports"].startswith("KBNA|KFSM|")

    def test_refuses_to_start_without_cache(self, fake_redis, session_factory, reconciler):
        fake_redis.fail = True
        with pytest.raises(CacheUnavailableError):
            create_app(
                start_polling=False,
                cache=ActiveSetCache(fake_redis),
                session_factory=session_factory,
                reconciler=reconciler,
            )


class TestEndpoints:
    def test_health(self, app):
        response = app.test_client().get("/health")
        assert response.status_code == 200
        assert response.get_json() == {"status": "ok"}

    def test_online_reflects_last_poll(self, app, feed, reconciler):
        feed.payload["pilots"] = [make_pilot("AAL1", cruise="FL350")]
        feed.payload["controllers"] = [make_controller("MEM_CTR")]
        reconciler.poll()

        body = app.test_client().get("/api/online").get_json()

        assert [p["callsign"] for p in body["pilots"]] == ["AAL1"]
        assert body["pilots"][0]["planned_cruise"] == 35000
        assert [c["pos"] for c in body["atc"]] == ["MEM_CTR"]
        assert body["atis"] == []

    def test_status(self, app, reconciler):
        reconciler.poll()
        body = app.test_client().get("/api/status").get_json()

        assert body["status"] == "healthy"
        assert body["database"]["connected"] is True
        assert body["database"]["type"] == "sqlite"
        assert body["cache"]["connected"] is True
        assert body["reconciler"]["poll_count"] == 1
        assert body["scheduler"] is None

    def test_pireps_empty(self, app):
        body = app.test_client().get("/api/pireps").get_json()
        assert body == {"pireps": [], "count": 0}

    def test_unknown_route(self, app):
        assert app.test_client().get("/nope").status_code == 404
