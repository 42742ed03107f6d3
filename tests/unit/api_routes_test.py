"""Tests for the FastAPI routes."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from bytedocs.api.app import create_app
from bytedocs.config import DocsConfig
from bytedocs.core.openapi import DocsEngine

_HANDLERS = """
package handlers

type Item struct {
    ID   int    `json:"id"`
    Name string `json:"name"`
}

// ListItems lists items
func ListItems(c *gin.Context) {
    c.JSON(http.StatusOK, []Item{{ID: 1, Name: "first"}})
}

func (h *ItemHandler) CreateItem(c *gin.Context) {
    var item Item
    c.ShouldBindJSON(&item)
    c.JSON(http.StatusCreated, item)
}

func Silent(c *gin.Context) {}
"""


@pytest.fixture
def source_dir(write_go_package: Callable[..., Path]) -> Path:
    return write_go_package(handlers=_HANDLERS)


@pytest.fixture
def engine(source_dir: Path) -> DocsEngine:
    engine = DocsEngine(DocsConfig(title="Items", source_dir=str(source_dir)), "gin")
    engine.add_route("GET", "/items", "ListItems")
    engine.add_route("POST", "/items", "CreateItem", receiver="ItemHandler")
    return engine


@pytest.fixture
def client(engine: DocsEngine) -> TestClient:
    return TestClient(create_app(engine))


class TestHealthRoute:
    def test_health_reports_framework(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "framework": "gin"}


class TestOpenAPIRoute:
    def test_serves_engine_document(self, client: TestClient) -> None:
        resp = client.get("/openapi.json")
        assert resp.status_code == 200
        body = resp.json()
        assert body["openapi"] == "3.0.3"
        assert body["info"]["title"] == "Items"
        assert set(body["paths"]["/items"]) == {"get", "post"}
        assert body["paths"]["/items"]["post"]["requestBody"]["required"] is True

    def test_served_under_docs_path(self, client: TestClient) -> None:
        resp = client.get("/docs/openapi.json")
        assert resp.status_code == 200
        assert resp.json() == client.get("/openapi.json").json()

    def test_custom_docs_path(self, source_dir: Path) -> None:
        config = DocsConfig(docs_path="/api/reference", source_dir=str(source_dir))
        client = TestClient(create_app(DocsEngine(config, "gin")))

        assert client.get("/api/reference/openapi.json").status_code == 200
        assert client.get("/docs/openapi.json").status_code == 404

    def test_framework_docs_ui_is_disabled(self, client: TestClient) -> None:
        assert client.get("/docs").status_code == 404


class TestHandlerRoutes:
    def test_list_handlers(self, client: TestClient) -> None:
        resp = client.get("/handlers")
        assert resp.status_code == 200
        names = [row["function_name"] for row in resp.json()]
        assert names == ["ListItems", "CreateItem", "Silent"]

    def test_list_handlers_unknown_directory(self, client: TestClient, tmp_path: Path) -> None:
        resp = client.get("/handlers", params={"directory": str(tmp_path / "missing")})
        assert resp.status_code == 404

    def test_handler_metadata(self, client: TestClient) -> None:
        resp = client.get("/handlers/listitems")
        assert resp.status_code == 200
        body = resp.json()
        assert body["info"]["summary"] == "ListItems lists items"
        assert body["responses"]["200"]["schema"]["type"] == "array"
        assert body["responses"]["200"]["example"] == [{"id": 1, "name": "first"}]

    def test_handler_metadata_with_receiver(self, client: TestClient) -> None:
        resp = client.get("/handlers/CreateItem", params={"receiver": "*ItemHandler"})
        assert resp.status_code == 200
        assert resp.json()["request_body"]["schema"]["properties"]["name"] == {"type": "string"}

    def test_receiver_mismatch_is_404(self, client: TestClient) -> None:
        resp = client.get("/handlers/CreateItem", params={"receiver": ""})
        assert resp.status_code == 404

    def test_undocumented_handler_is_404(self, client: TestClient) -> None:
        resp = client.get("/handlers/Silent")
        assert resp.status_code == 404
        assert "Silent" in resp.json()["detail"]
