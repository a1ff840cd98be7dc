"""Tests for the metrics HTTP API."""

import pytest
from fastapi.testclient import TestClient

from facetmetrics.api.app import create_app
from facetmetrics.config import Settings
from facetmetrics.providers.mock import MockScorer


def _dataset_payload(examples, feature_kinds) -> dict:
    return {
        "name": "reviews",
        "examples": [example.model_dump() for example in examples],
        "feature_kinds": feature_kinds,
        "models": ["m1"],
    }


def _rows_from(table: dict, selection: str) -> list[list]:
    column = table["header"].index("From")
    return [row for row in table["data"] if row[column] == selection]


def _cell(table: dict, row: list, column: str):
    return row[table["header"].index(column)]


@pytest.fixture
def scorer() -> MockScorer:
    return MockScorer()


@pytest.fixture
def client(scorer):
    app = create_app(settings=Settings(), scorer=scorer)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def loaded_client(client, examples, feature_kinds):
    """Client with the four-example dataset loaded and scored."""
    response = client.post(
        "/api/dataset", params={"wait": True}, json=_dataset_payload(examples, feature_kinds)
    )
    assert response.status_code == 200
    return client


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestDatasetEndpoint:
    """Test POST /api/dataset."""

    def test_empty_table_before_dataset(self, client):
        table = client.get("/api/metrics").json()
        assert table["header"] == ["id", "Model", "From", "Field", "N"]
        assert table["data"] == []

    def test_dataset_row(self, loaded_client):
        table = loaded_client.get("/api/metrics").json()
        assert table["header"] == [
            "id",
            "Model",
            "From",
            "Field",
            "N",
            "classification: accuracy",
            "classification: num_examples",
        ]
        assert table["data"] == [[0, "m1", "dataset", "pred", 4, "0.750", 4]]
        assert table["column_visibility"]["id"] is False

    def test_duplicate_ids_rejected(self, client, examples, feature_kinds):
        payload = _dataset_payload(examples + examples[:1], feature_kinds)
        response = client.post("/api/dataset", json=payload)
        assert response.status_code == 400

    def test_invalid_feature_kind(self, client, examples):
        payload = _dataset_payload(examples, {"genre": "image"})
        response = client.post("/api/dataset", json=payload)
        assert response.status_code == 422


class TestSelectionEndpoints:
    """Test selection and row selection."""

    def test_selection_row(self, loaded_client):
        response = loaded_client.post(
            "/api/selection", params={"wait": True}, json={"ids": ["ex-0", "ex-1"]}
        )
        table = response.json()
        rows = _rows_from(table, "selection")
        assert len(rows) == 1
        assert _cell(table, rows[0], "N") == 2
        assert _cell(table, rows[0], "classification: accuracy") == "0.500"

    def test_empty_selection_removes_rows(self, loaded_client):
        loaded_client.post("/api/selection", params={"wait": True}, json={"ids": ["ex-0"]})
        table = loaded_client.post(
            "/api/selection", params={"wait": True}, json={"ids": []}
        ).json()
        assert _rows_from(table, "selection") == []

    def test_select_row(self, loaded_client):
        table = loaded_client.post("/api/metrics/rows/0/select", params={"wait": True}).json()
        rows = _rows_from(table, "selection")
        assert len(rows) == 1
        assert _cell(table, rows[0], "N") == 4

    def test_select_missing_row(self, loaded_client):
        response = loaded_client.post("/api/metrics/rows/99/select")
        assert response.status_code == 404


class TestFacetEndpoints:
    """Test facet selection."""

    def test_faceted_rows(self, loaded_client):
        table = loaded_client.put(
            "/api/facets", params={"wait": True}, json={"features": ["genre"]}
        ).json()
        assert "genre" in table["header"]
        rows = _rows_from(table, "dataset (faceted)")
        by_genre = {
            _cell(table, row, "genre"): _cell(table, row, "classification: accuracy")
            for row in rows
        }
        assert by_genre == {"news": "0.500", "fiction": 1}

    def test_clearing_facets_drops_rows(self, loaded_client):
        loaded_client.put("/api/facets", params={"wait": True}, json={"features": ["genre"]})
        table = loaded_client.put(
            "/api/facets", params={"wait": True}, json={"features": []}
        ).json()
        assert _rows_from(table, "dataset (faceted)") == []

    def test_text_feature_rejected(self, loaded_client):
        response = loaded_client.put("/api/facets", json={"features": ["text"]})
        assert response.status_code == 400

    def test_unknown_feature_rejected(self, loaded_client):
        response = loaded_client.put("/api/facets", json={"features": ["nope"]})
        assert response.status_code == 400

    def test_feature_named_like_column_rejected(self, client, examples):
        payload = {
            "name": "reviews",
            "examples": [
                {"id": e.id, "data": {**e.data, "Model": "x"}} for e in examples
            ],
            "feature_kinds": {"Model": "categorical"},
            "models": ["m1"],
        }
        client.post("/api/dataset", params={"wait": True}, json=payload)
        response = client.put("/api/facets", json={"features": ["Model"]})
        assert response.status_code == 400
        assert client.get("/api/status").json()["selected_facets"] == []


class TestSliceEndpoints:
    """Test slice management."""

    def test_slice_row(self, loaded_client):
        table = loaded_client.put(
            "/api/slices/hard", params={"wait": True}, json={"ids": ["ex-1"]}
        ).json()
        rows = _rows_from(table, "hard")
        assert len(rows) == 1
        assert _cell(table, rows[0], "classification: accuracy") == 0

    def test_toggle_hides_slices(self, loaded_client):
        loaded_client.put("/api/slices/hard", params={"wait": True}, json={"ids": ["ex-1"]})
        table = loaded_client.put(
            "/api/facets/slices", params={"wait": True}, json={"enabled": False}
        ).json()
        assert _rows_from(table, "hard") == []

    def test_delete_slice(self, loaded_client):
        loaded_client.put("/api/slices/hard", params={"wait": True}, json={"ids": ["ex-1"]})
        response = loaded_client.delete("/api/slices/hard", params={"wait": True})
        assert response.status_code == 200
        assert _rows_from(response.json(), "hard") == []

    def test_delete_missing_slice(self, loaded_client):
        response = loaded_client.delete("/api/slices/missing")
        assert response.status_code == 404


class TestCalibrationEndpoint:
    def test_config_forwarded(self, loaded_client, scorer):
        response = loaded_client.put(
            "/api/calibration/m1", params={"wait": True}, json={"threshold": 0.5}
        )
        assert response.status_code == 200
        assert scorer.requests[-1].config == {"threshold": 0.5}
        assert len(_rows_from(response.json(), "dataset")) == 1


class TestStatusEndpoint:
    def test_status(self, loaded_client):
        status = loaded_client.get("/api/status").json()
        assert status["pending_calls"] == 0
        assert status["is_loading"] is False
        assert status["facet_by_slice"] is False
        assert status["slices_disabled"] is True
        assert status["selected_facets"] == []
        assert status["available_facets"] == ["genre", "source", "length"]

    def test_slices_enabled_after_slice(self, loaded_client):
        loaded_client.put("/api/slices/hard", params={"wait": True}, json={"ids": ["ex-1"]})
        status = loaded_client.get("/api/status").json()
        assert status["facet_by_slice"] is True
        assert status["slices_disabled"] is False
