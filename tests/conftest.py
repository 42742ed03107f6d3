"""Shared fixtures and helpers for tests."""

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest
from tree_sitter import Parser
from tree_sitter_language_pack import get_parser

from bytedocs.core.source import ParsedFile, parse_source

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag every test under tests/unit as "unit"
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        rel = Path(str(item.fspath)).relative_to(_REPO_ROOT / "tests")
        if rel.parts and rel.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def go_parser() -> Parser:
    """Return a tree-sitter parser for Go."""
    return get_parser("go")


@pytest.fixture
def write_go_package(tmp_path: Path) -> Callable[..., Path]:
    """Write Go files (name -> source) into a fresh package directory."""

    def _write(files: dict[str, str] | None = None, name: str = "handlers", **sources: str) -> Path:
        directory = tmp_path / name
        directory.mkdir(parents=True, exist_ok=True)
        for filename, source in {**(files or {}), **sources}.items():
            if not filename.endswith(".go"):
                filename = f"{filename}.go"
            (directory / filename).write_text(textwrap.dedent(source).lstrip())
        return directory

    return _write


@pytest.fixture
def parse_go() -> Callable[..., ParsedFile]:
    """Parse a dedented Go snippet as a single file."""

    def _parse(source: str, path: str = "main.go") -> ParsedFile:
        return parse_source(textwrap.dedent(source).lstrip().encode("utf-8"), path)

    return _parse
