"""Tests for the records API endpoints."""

import pytest
from fastapi.testclient import TestClient

from reelshelf.api.app import (
    EDIT_CONFLICT_MESSAGE,
    NOT_FOUND_MESSAGE,
    SERVER_ERROR_MESSAGE,
    create_app,
)
from reelshelf.config import Settings
from reelshelf.core.errors import StoreError, StoreTimeout
from reelshelf.store.base import RecordStore


class FailingStore(RecordStore):
    """Store double whose every call raises the given error."""

    def __init__(self, error: Exception):
        self.error = error

    def insert(self, record, *, timeout=None):
        raise self.error

    def get(self, record_id, *, timeout=None):
        raise self.error

    def update(self, record, *, timeout=None):
        raise self.error

    def delete(self, record_id, *, timeout=None):
        raise self.error

    def search(self, title, tags, spec, *, timeout=None):
        raise self.error


@pytest.fixture
def client(store):
    """API client serving the in-memory store."""
    app = create_app(settings=Settings(), store=store)
    return TestClient(app)


def _create(client, **overrides) -> dict:
    body = {
        "title": "Spirited Away",
        "release_year": 2001,
        "duration_minutes": 125,
        "tags": ["fantasy", "adventure"],
    }
    body.update(overrides)
    response = client.post("/v1/records", json=body)
    assert response.status_code == 201, response.text
    return response.json()["record"]


class TestHealthcheck:
    """Test GET /v1/healthcheck."""

    def test_reports_available(self, client):
        response = client.get("/v1/healthcheck")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "available"
        assert data["system_info"]["environment"] == "development"
        assert data["system_info"]["version"]


class TestCreateRecord:
    """Test POST /v1/records."""

    def test_returns_201_with_location(self, client):
        response = client.post(
            "/v1/records",
            json={"title": "Akira", "release_year": 1988, "duration_minutes": 124, "tags": ["sci-fi"]},
        )
        assert response.status_code == 201
        record = response.json()["record"]
        assert response.headers["location"] == f"/v1/records/{record['id']}"
        assert record["version"] == 1
        assert record["tags"] == ["sci-fi"]

    def test_hides_created_at(self, client):
        record = _create(client)
        assert "created_at" not in record

    def test_reports_every_missing_field(self, client):
        response = client.post("/v1/records", json={})
        assert response.status_code == 422
        assert response.json()["error"] == {
            "title": "must be provided",
            "release_year": "must be provided",
            "duration_minutes": "must be provided",
            "tags": "must be provided",
        }

    def test_rejects_wrong_types(self, client):
        response = client.post(
            "/v1/records",
            json={"title": "X", "release_year": "nineteen", "duration_minutes": 90, "tags": ["a"]},
        )
        assert response.status_code == 422
        assert "release_year" in response.json()["error"]


class TestGetRecord:
    """Test GET /v1/records/{id}."""

    def test_returns_record(self, client):
        created = _create(client)
        response = client.get(f"/v1/records/{created['id']}")
        assert response.status_code == 200
        assert response.json()["record"] == created

    @pytest.mark.parametrize("record_id", ["999", "0", "-3", "abc"])
    def test_missing_or_malformed_id_is_404(self, client, record_id):
        response = client.get(f"/v1/records/{record_id}")
        assert response.status_code == 404
        assert response.json() == {"error": NOT_FOUND_MESSAGE}


class TestUpdateRecord:
    """Test PATCH /v1/records/{id}."""

    def test_partial_update(self, client):
        created = _create(client)
        response = client.patch(f"/v1/records/{created['id']}", json={"title": "Sen to Chihiro"})
        assert response.status_code == 200
        record = response.json()["record"]
        assert record["title"] == "Sen to Chihiro"
        assert record["release_year"] == 2001
        assert record["tags"] == ["fantasy", "adventure"]
        assert record["version"] == 2

    def test_expected_version_match(self, client):
        created = _create(client)
        response = client.patch(
            f"/v1/records/{created['id']}",
            json={"duration_minutes": 126},
            headers={"X-Expected-Version": "1"},
        )
        assert response.status_code == 200
        assert response.json()["record"]["version"] == 2

    def test_expected_version_mismatch_is_409(self, client):
        created = _create(client)
        client.patch(f"/v1/records/{created['id']}", json={"duration_minutes": 126})

        response = client.patch(
            f"/v1/records/{created['id']}",
            json={"duration_minutes": 127},
            headers={"X-Expected-Version": "1"},
        )
        assert response.status_code == 409
        assert response.json() == {"error": EDIT_CONFLICT_MESSAGE}

    def test_invalid_patch_is_422(self, client):
        created = _create(client)
        response = client.patch(f"/v1/records/{created['id']}", json={"tags": []})
        assert response.status_code == 422
        assert response.json()["error"] == {"tags": "must contain at least 1 tag"}

    def test_missing_record_is_404(self, client):
        response = client.patch("/v1/records/42", json={"title": "Nope"})
        assert response.status_code == 404


class TestDeleteRecord:
    """Test DELETE /v1/records/{id}."""

    def test_delete_then_404(self, client):
        created = _create(client)
        response = client.delete(f"/v1/records/{created['id']}")
        assert response.status_code == 200
        assert response.json() == {"message": "record successfully deleted"}

        assert client.get(f"/v1/records/{created['id']}").status_code == 404
        assert client.delete(f"/v1/records/{created['id']}").status_code == 404


class TestListRecords:
    """Test GET /v1/records."""

    def test_paginates_with_metadata(self, client):
        for title in ("Akira", "Paprika", "Redline"):
            _create(client, title=title)

        response = client.get("/v1/records", params={"page_size": 2})
        assert response.status_code == 200
        data = response.json()
        assert len(data["records"]) == 2
        assert data["metadata"] == {
            "current_page": 1,
            "page_size": 2,
            "last_page": 2,
            "total_records": 3,
        }

    def test_filters_and_sorts(self, client):
        _create(client, title="Akira", release_year=1988, tags=["sci-fi", "action"])
        _create(client, title="Paprika", release_year=2006, tags=["sci-fi", "thriller"])
        _create(client, title="Perfect Blue", release_year=1997, tags=["thriller"])

        response = client.get("/v1/records", params={"tags": "sci-fi", "sort": "-release_year"})
        titles = [r["title"] for r in response.json()["records"]]
        assert titles == ["Paprika", "Akira"]

        response = client.get("/v1/records", params={"title": "perfect"})
        assert [r["title"] for r in response.json()["records"]] == ["Perfect Blue"]

    def test_empty_result(self, client):
        response = client.get("/v1/records", params={"title": "nothing here"})
        assert response.status_code == 200
        assert response.json() == {
            "records": [],
            "metadata": {"current_page": 0, "page_size": 0, "last_page": 0, "total_records": 0},
        }

    def test_invalid_parameters_reported_together(self, client):
        response = client.get("/v1/records", params={"page": "0", "page_size": "500", "sort": "bogus"})
        assert response.status_code == 422
        assert response.json()["error"] == {
            "page": "must be greater than zero",
            "page_size": "must be a maximum of 100",
            "sort": "invalid sort value",
        }


class TestErrorMapping:
    """Storage failures and unknown routes."""

    def test_timeout_is_503(self):
        client = TestClient(create_app(settings=Settings(), store=FailingStore(StoreTimeout("get", 3))))
        response = client.get("/v1/records/1")
        assert response.status_code == 503

    def test_store_error_is_500(self):
        client = TestClient(create_app(settings=Settings(), store=FailingStore(StoreError("disk on fire"))))
        response = client.get("/v1/records")
        assert response.status_code == 500
        assert response.json() == {"error": SERVER_ERROR_MESSAGE}

    def test_unknown_route(self, client):
        response = client.get("/v1/nowhere")
        assert response.status_code == 404
        assert response.json() == {"error": NOT_FOUND_MESSAGE}

    def test_method_not_allowed(self, client):
        response = client.put("/v1/records/1", json={})
        assert response.status_code == 405
        assert "PUT" in response.json()["error"]
