"""End-to-end handler analysis for each supported framework."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from bytedocs.core import analyzer
from bytedocs.core.analyzer import analyze_directory
from bytedocs.core.frameworks import get_framework
from bytedocs.core.syntax import FuncDecl
from bytedocs.models import HandlerMetadata

WriteGoPackage = Callable[..., Path]

_GIN_SOURCE = """
package handlers

import (
    "net/http"

    "github.com/gin-gonic/gin"
)

type CreateUserRequest struct {
    ID    int    `json:"id"`
    Name  string `json:"name" binding:"required"`
    Email string `json:"email"`
}

type User struct {
    ID   int    `json:"id"`
    Name string `json:"name"`
}

type Tagged struct {
    ID int `json:"id" example:"123"`
}

type Category struct {
    Name   string    `json:"name"`
    Parent *Category `json:"parent"`
}

// CreateUser creates a user
// Stores the user and returns it
// @Param X-Trace header string false "Trace id"
func CreateUser(c *gin.Context) {
    var req CreateUserRequest
    if err := c.ShouldBindJSON(&req); err != nil {
        c.JSON(http.StatusBadRequest, gin.H{"error": err.Error()})
        return
    }
    c.JSON(http.StatusCreated, User{ID: 123})
}

func CreateTagged(c *gin.Context) {
    c.JSON(201, Tagged{ID: 5})
}

func CreateCategory(c *gin.Context) {
    var category Category
    c.BindJSON(&category)
    c.JSON(http.StatusOK, category)
}

func Accept(c *gin.Context) {
    status := http.StatusAccepted
    c.JSON(status, gin.H{"queued": true})
}

func Unresolved(c *gin.Context) {
    code := computeStatus()
    c.XML(code, gin.H{"ok": true})
}

func Positional(c *gin.Context) {
    c.JSON(http.StatusOK, User{7, "x"})
}

func Export(c *gin.Context) {
    c.Data(http.StatusOK, "text/csv", []byte("a,b"))
}

func Health() gin.HandlerFunc {
    return func(c *gin.Context) {
        c.JSON(http.StatusOK, gin.H{"status": "up"})
    }
}

func helper(x int) int { return x }
"""

_ECHO_SOURCE = """
package handlers

type Item struct {
    Name  string  `json:"name"`
    Price float64 `json:"price"`
}

func GetItem(c echo.Context) error {
    item := Item{Name: "widget"}
    return c.JSON(http.StatusOK, item)
}

func UpdateItem(c echo.Context) error {
    item := new(Item)
    if err := c.Bind(item); err != nil {
        return c.String(http.StatusBadRequest, "bad request")
    }
    return c.JSON(http.StatusOK, item)
}

func DeleteItem(c echo.Context) error {
    return c.NoContent(http.StatusNoContent)
}
"""

_FIBER_SOURCE = """
package handlers

type Order struct {
    ID    int    `json:"id"`
    Items []string `json:"items"`
}

func CreateOrder(c *fiber.Ctx) error {
    order := new(Order)
    if err := c.BodyParser(order); err != nil {
        return c.Status(fiber.StatusBadRequest).JSON(fiber.Map{"error": "bad"})
    }
    return c.Status(fiber.StatusCreated).JSON(order)
}

func Ping(c *fiber.Ctx) error {
    return c.SendString("pong")
}
"""

_NET_HTTP_SOURCE = """
package handlers

type ThingRequest struct {
    Name string `json:"name"`
}

type Thing struct {
    ID   int    `json:"id"`
    Name string `json:"name"`
}

func CreateThing(w http.ResponseWriter, r *http.Request) {
    var req ThingRequest
    if err := json.NewDecoder(r.Body).Decode(&req); err != nil {
        http.Error(w, "invalid body", http.StatusBadRequest)
        return
    }
    w.Header().Set("Content-Type", "application/json")
    w.WriteHeader(http.StatusCreated)
    json.NewEncoder(w).Encode(Thing{ID: 1, Name: req.Name})
}

type ErrorResponse struct {
    Message string `json:"message"`
}

func GetThing(w http.ResponseWriter, r *http.Request) {
    if r.URL.Query().Get("id") == "" {
        w.WriteHeader(http.StatusBadRequest)
        json.NewEncoder(w).Encode(ErrorResponse{Message: "missing id"})
        return
    }
    json.NewEncoder(w).Encode(Thing{ID: 1})
}

func ListThings(w http.ResponseWriter, r *http.Request) {
    things := []Thing{{ID: 1, Name: "a"}}
    writeJSON(w, http.StatusOK, things)
}

func Reassigned(w http.ResponseWriter, r *http.Request) {
    var resp interface{}
    resp = Thing{ID: 9}
    json.NewEncoder(w).Encode(resp)
}

func writeJSON(w http.ResponseWriter, status int, v interface{}) {
    w.WriteHeader(status)
    json.NewEncoder(w).Encode(v)
}
"""


def _metadata(directory: Path, framework: str, name: str) -> HandlerMetadata:
    analysis = analyze_directory(directory, get_framework(framework))
    (record,) = analysis.candidates(name)
    return record.metadata


@pytest.fixture
def gin_dir(write_go_package: WriteGoPackage) -> Path:
    return write_go_package(handlers=_GIN_SOURCE)


class TestGinHandlers:
    """``*gin.Context`` handlers."""

    def test_request_body_round_trip(self, gin_dir: Path) -> None:
        body = _metadata(gin_dir, "gin", "CreateUser").request_body

        assert body is not None
        assert body.required is True
        assert body.content_type == "application/json"
        assert body.schema_ is not None
        assert body.schema_["type"] == "object"
        assert {name: prop["type"] for name, prop in body.schema_["properties"].items()} == {
            "id": "integer",
            "name": "string",
            "email": "string",
        }
        assert body.schema_["required"] == ["name"]

    def test_responses_by_status(self, gin_dir: Path) -> None:
        responses = _metadata(gin_dir, "gin", "CreateUser").responses

        assert set(responses) == {"400", "201"}
        assert responses["400"].description == "Bad Request"
        assert responses["400"].schema_ is not None
        assert "error" in responses["400"].schema_["properties"]
        created = responses["201"]
        assert created.description == "Created"
        assert created.schema_ is not None
        assert created.schema_["properties"]["id"]["type"] == "integer"
        assert created.example["id"] == 123

    def test_doc_comment_info(self, gin_dir: Path) -> None:
        info = _metadata(gin_dir, "gin", "CreateUser").info

        assert info.summary == "CreateUser creates a user"
        assert info.description == "Stores the user and returns it"
        assert [(p.name, p.in_) for p in info.parameters] == [("X-Trace", "header")]

    def test_example_tag_beats_literal(self, gin_dir: Path) -> None:
        response = _metadata(gin_dir, "gin", "CreateTagged").responses["201"]
        assert response.example == {"id": 123}

    def test_self_referential_request_is_finite(self, gin_dir: Path) -> None:
        metadata = _metadata(gin_dir, "gin", "CreateCategory")

        assert metadata.request_body is not None
        assert metadata.request_body.schema_ is not None
        assert metadata.request_body.schema_["properties"]["parent"] == {"type": "object"}
        assert "200" in metadata.responses

    def test_status_from_local_variable(self, gin_dir: Path) -> None:
        responses = _metadata(gin_dir, "gin", "Accept").responses
        assert list(responses) == ["202"]
        assert responses["202"].description == "Accepted"

    def test_unresolvable_status_defaults_to_200(self, gin_dir: Path) -> None:
        responses = _metadata(gin_dir, "gin", "Unresolved").responses
        assert list(responses) == ["200"]
        assert responses["200"].content_type == "application/xml"

    def test_content_type_argument(self, gin_dir: Path) -> None:
        response = _metadata(gin_dir, "gin", "Export").responses["200"]
        assert response.content_type == "text/csv"

    def test_handler_factory_closure(self, gin_dir: Path) -> None:
        response = _metadata(gin_dir, "gin", "Health").responses["200"]
        assert response.example == {"status": "up"}

    def test_non_handlers_are_skipped(self, gin_dir: Path) -> None:
        analysis = analyze_directory(gin_dir, get_framework("gin"))
        assert analysis.candidates("helper") == []

    def test_names_are_case_insensitive(self, gin_dir: Path) -> None:
        analysis = analyze_directory(gin_dir, get_framework("gin"))
        assert analysis.candidates("createuser") == analysis.candidates("CreateUser")

    def test_positional_struct_literal(self, gin_dir: Path) -> None:
        response = _metadata(gin_dir, "gin", "Positional").responses["200"]
        assert response.example == {"id": 7, "name": "x"}

    def test_handler_that_overflows_is_recorded_empty(
        self, gin_dir: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        real = analyzer.analyze_handler

        def _analyze_handler(fn: FuncDecl, *args: Any) -> analyzer.HandlerAnalysis:
            if fn.name == "Accept":
                raise RecursionError("maximum recursion depth exceeded")
            return real(fn, *args)

        monkeypatch.setattr(analyzer, "analyze_handler", _analyze_handler)
        with caplog.at_level("WARNING", logger="bytedocs.core.analyzer"):
            analysis = analyze_directory(gin_dir, get_framework("gin"))

        (overflowed,) = analysis.candidates("Accept")
        assert overflowed.metadata.request_body is None
        assert overflowed.metadata.responses == {}
        assert "Skipping body of Accept" in caplog.text
        (created,) = analysis.candidates("CreateUser")
        assert set(created.metadata.responses) == {"400", "201"}


class TestEchoHandlers:
    """``echo.Context`` handlers."""

    @pytest.fixture
    def echo_dir(self, write_go_package: WriteGoPackage) -> Path:
        return write_go_package(handlers=_ECHO_SOURCE)

    def test_literal_response(self, echo_dir: Path) -> None:
        response = _metadata(echo_dir, "echo", "GetItem").responses["200"]
        assert response.example == {"name": "widget", "price": 0.0}

    def test_bind_and_text_response(self, echo_dir: Path) -> None:
        metadata = _metadata(echo_dir, "echo", "UpdateItem")

        assert metadata.request_body is not None
        assert metadata.request_body.schema_ is not None
        assert set(metadata.request_body.schema_["properties"]) == {"name", "price"}
        assert metadata.responses["400"].content_type == "text/plain"
        assert metadata.responses["400"].example == "bad request"

    def test_no_content(self, echo_dir: Path) -> None:
        responses = _metadata(echo_dir, "echo", "DeleteItem").responses
        assert list(responses) == ["204"]
        assert responses["204"].description == "No Content"


class TestFiberHandlers:
    """``*fiber.Ctx`` handlers with chained status calls."""

    @pytest.fixture
    def fiber_dir(self, write_go_package: WriteGoPackage) -> Path:
        return write_go_package(handlers=_FIBER_SOURCE)

    def test_chained_status(self, fiber_dir: Path) -> None:
        metadata = _metadata(fiber_dir, "fiber", "CreateOrder")

        assert metadata.request_body is not None
        assert set(metadata.responses) == {"400", "201"}
        assert metadata.responses["201"].schema_ is not None
        assert metadata.responses["201"].schema_["properties"]["items"]["type"] == "array"

    def test_send_string_defaults_to_ok(self, fiber_dir: Path) -> None:
        response = _metadata(fiber_dir, "fiber", "Ping").responses["200"]
        assert response.content_type == "text/plain"
        assert response.example == "pong"


class TestNetHttpHandlers:
    """``(w http.ResponseWriter, r *http.Request)`` handlers."""

    @pytest.fixture
    def http_dir(self, write_go_package: WriteGoPackage) -> Path:
        return write_go_package(handlers=_NET_HTTP_SOURCE)

    def test_decoder_binding(self, http_dir: Path) -> None:
        body = _metadata(http_dir, "net/http", "CreateThing").request_body
        assert body is not None
        assert body.schema_ is not None
        assert list(body.schema_["properties"]) == ["name"]

    def test_encode_is_documented_as_ok(self, http_dir: Path) -> None:
        responses = _metadata(http_dir, "net/http", "CreateThing").responses

        assert set(responses) == {"400", "201", "200"}
        assert responses["400"].content_type == "text/plain"
        assert responses["201"].schema_ is None
        assert responses["200"].schema_ is not None
        assert set(responses["200"].schema_["properties"]) == {"id", "name"}

    def test_write_header_in_error_branch_keeps_success_response(self, http_dir: Path) -> None:
        responses = _metadata(http_dir, "net/http", "GetThing").responses

        assert set(responses) == {"400", "200"}
        assert responses["400"].description == "Bad Request"
        assert responses["200"].schema_ is not None
        assert set(responses["200"].schema_["properties"]) == {"id", "name"}
        assert responses["200"].example == {"id": 1, "name": "string"}

    def test_response_helper_function(self, http_dir: Path) -> None:
        response = _metadata(http_dir, "net/http", "ListThings").responses["200"]
        assert response.schema_ is not None
        assert response.schema_["type"] == "array"
        assert response.example == [{"id": 1, "name": "a"}]

    def test_reassignment_is_tracked(self, http_dir: Path) -> None:
        response = _metadata(http_dir, "net/http", "Reassigned").responses["200"]
        assert response.example == {"id": 9, "name": "string"}

    def test_gorilla_mux_shares_writer_shape(self, http_dir: Path) -> None:
        analysis = analyze_directory(http_dir, get_framework("gorilla/mux"))
        names = {record.function_name for record in analysis.records()}
        assert names == {"CreateThing", "GetThing", "ListThings", "Reassigned"}
