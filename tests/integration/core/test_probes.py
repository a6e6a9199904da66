"""Health probes and request correlation."""

from __future__ import annotations

import logging
import uuid

import pytest

from modules.core import views as core_views

pytestmark = pytest.mark.integration


class TestHealthProbes:
    def test_readiness_checks_database_and_cache(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert set(body["services"]) == {"database", "cache"}
        assert all(s["status"] == "up" for s in body["services"].values())
        assert "response_time_ms" in body["services"]["database"]

    def test_readiness_reports_failed_probe_as_503(self, client, monkeypatch):
        def broken_cache():
            raise ConnectionError("redis unavailable")

        monkeypatch.setitem(core_views._PROBES, "cache", broken_cache)
        response = client.get("/health")
        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["services"]["cache"] == {"status": "down"}

    def test_liveness_is_always_ok(self, client):
        response = client.get("/health/live")
        assert response.status_code == 200
        assert response.json() == {"status": "alive"}


class TestCorrelationId:
    def test_echoes_caller_request_id(self, client):
        response = client.get("/health/live", HTTP_X_REQUEST_ID="storefront-req-7")
        assert response["X-Request-ID"] == "storefront-req-7"

    def test_mints_uuid4_when_header_missing(self, client):
        request_id = client.get("/health/live")["X-Request-ID"]
        assert str(uuid.UUID(request_id, version=4)) == request_id

    def test_request_id_is_bound_to_log_lines(self, client, caplog):
        with caplog.at_level(logging.INFO):
            client.get("/health/live", HTTP_X_REQUEST_ID="trace-me-456")
        assert any("trace-me-456" in record.getMessage() for record in caplog.records)
