"""Tests for the /test-results endpoints."""

from unittest.mock import AsyncMock, patch

import pytest

from testlab_insights.db.connection import get_session

WINDOW = {"startDate": "2024-01-01T00:00:00Z", "endDate": "2024-01-31T23:59:59Z"}


def _mock_session_override():
    session = AsyncMock()
    yield session


@pytest.fixture()
def client():
    from testlab_insights.action.api import app

    original_startup = list(app.router.on_startup)
    app.router.on_startup.clear()
    app.dependency_overrides[get_session] = _mock_session_override

    from fastapi.testclient import TestClient

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    app.router.on_startup = original_startup


DOCS = [
    {"id": "m", "name": "test_mcb_trip_time[B16_5x]", "start": 1704103200, "duration": 1},
    {"id": "v", "name": "test_rcd_trip_value_smooth", "start": 1704103300, "duration": 1},
    {"id": "t", "name": "test_rcd_trip_time_sinusoidal", "start": 1704103400, "duration": 1},
]


class TestListResults:
    def test_dates_required(self, client):
        resp = client.get("/test-results", params={"startDate": WINDOW["startDate"]})
        assert resp.status_code == 400
        assert "required" in resp.json()["detail"]

    def test_bad_date(self, client):
        resp = client.get("/test-results", params={**WINDOW, "endDate": "yesterday"})
        assert resp.status_code == 400

    def test_unknown_type(self, client):
        resp = client.get("/test-results", params={**WINDOW, "testType": "Insulation"})
        assert resp.status_code == 400

    @patch("testlab_insights.action.routers.results.record_store.query_documents", new_callable=AsyncMock)
    def test_returns_documents(self, mock_query, client):
        mock_query.return_value = DOCS
        resp = client.get("/test-results", params=WINDOW)
        assert resp.status_code == 200
        assert len(resp.json()) == 3

        _, date_from, date_to, type_filter = mock_query.call_args.args
        assert date_from == 1704067200.0
        assert type_filter is None

    @patch("testlab_insights.action.routers.results.record_store.query_documents", new_callable=AsyncMock)
    def test_exact_type_filter(self, mock_query, client):
        # the trip-value row shares the "rcd" fragment but must still be dropped
        mock_query.return_value = DOCS[1:]
        resp = client.get("/test-results", params={**WINDOW, "testType": "RCD Trip Time"})
        assert resp.status_code == 200
        assert [d["id"] for d in resp.json()] == ["t"]

    @patch("testlab_insights.action.routers.results.record_store.query_documents", new_callable=AsyncMock)
    def test_default_and_declared_categories(self, mock_query, client):
        mock_query.return_value = DOCS + [
            {"id": "d", "name": "test_decabit[CMD1]", "start": 1704103500, "duration": 1},
            {"id": "b", "name": "breaker_overcurrent", "category": "MCB Trip Time",
             "start": 1704103600, "duration": 1},
        ]
        rcd = client.get("/test-results", params={**WINDOW, "testType": "RCD Trip Time"})
        assert [d["id"] for d in rcd.json()] == ["t", "d"]

        mcb = client.get("/test-results", params={**WINDOW, "testType": "MCB Trip Time"})
        assert [d["id"] for d in mcb.json()] == ["m", "b"]

    @patch("testlab_insights.action.routers.results.record_store.query_documents", new_callable=AsyncMock)
    def test_store_failure(self, mock_query, client):
        mock_query.side_effect = RuntimeError("db down")
        resp = client.get("/test-results", params=WINDOW)
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Failed to fetch test results"


class TestCreateResult:
    @patch("testlab_insights.action.routers.results.record_store.insert_document", new_callable=AsyncMock)
    def test_created(self, mock_insert, client):
        mock_insert.return_value = "new-id"
        resp = client.post("/test-results", json={"name": "test_mcb", "start": 1704103200, "duration": 2})
        assert resp.status_code == 201
        assert resp.json() == {"id": "new-id", "message": "Test result created successfully"}

    @patch("testlab_insights.action.routers.results.record_store.insert_document", new_callable=AsyncMock)
    def test_missing_required_fields(self, mock_insert, client):
        resp = client.post("/test-results", json={"name": "test_mcb"})
        assert resp.status_code == 422
        assert len(resp.json()["issues"]) == 2
        mock_insert.assert_not_awaited()

    def test_non_object_body(self, client):
        resp = client.post("/test-results", json=[1, 2, 3])
        assert resp.status_code == 422

    @patch("testlab_insights.action.routers.results.record_store.insert_document", new_callable=AsyncMock)
    def test_insert_failure(self, mock_insert, client):
        mock_insert.side_effect = RuntimeError("constraint")
        resp = client.post("/test-results", json={"name": "x", "start": 1, "duration": 1})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to insert test result"}
