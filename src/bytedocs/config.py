from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, field_validator

DEFAULT_EXCLUDE_PATHS = ["_ignition", "debug", "health"]

_NAMED_BASE_URLS = (
    ("BYTEDOCS_PRODUCTION_URL", "Production"),
    ("BYTEDOCS_STAGING_URL", "Staging"),
    ("BYTEDOCS_LOCAL_URL", "Local"),
)


class BaseURLOption(BaseModel):
    name: str
    url: str


class DocsConfig(BaseModel):
    title: str = "API Documentation"
    version: str = "1.0.0"
    description: str = "Auto-generated API documentation"
    base_url: str = "http://localhost:8080"
    base_urls: list[BaseURLOption] = Field(default_factory=list)
    docs_path: str = "/docs"
    exclude_paths: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATHS))
    framework: str = "gin"
    source_dir: str = "."

    @field_validator("docs_path")
    @classmethod
    def validate_docs_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("docs path must start with /")
        return v.rstrip("/") or "/"

    @property
    def openapi_path(self) -> str:
        """Where the OpenAPI document is served under ``docs_path``."""
        return f"{self.docs_path.rstrip('/')}/openapi.json"

    def is_excluded(self, path: str) -> bool:
        return any(fragment and fragment in path for fragment in self.exclude_paths)


def _get(env: Mapping[str, str], key: str, default: str) -> str:
    return env.get(key) or default


def _get_list(env: Mapping[str, str], key: str, default: list[str]) -> list[str]:
    value = env.get(key)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config_from_env(env: Mapping[str, str] | None = None) -> DocsConfig:
    """Build a :class:`DocsConfig` from ``BYTEDOCS_*`` variables.

    Unset or empty variables keep their defaults. ``env`` defaults to the
    process environment.
    """
    if env is None:
        env = os.environ

    return DocsConfig(
        title=_get(env, "BYTEDOCS_TITLE", "API Documentation"),
        version=_get(env, "BYTEDOCS_VERSION", "1.0.0"),
        description=_get(env, "BYTEDOCS_DESCRIPTION", "Auto-generated API documentation"),
        base_url=_get(env, "BYTEDOCS_BASE_URL", "http://localhost:8080"),
        base_urls=[
            BaseURLOption(name=name, url=env[key]) for key, name in _NAMED_BASE_URLS if env.get(key)
        ],
        docs_path=_get(env, "BYTEDOCS_DOCS_PATH", "/docs"),
        exclude_paths=_get_list(env, "BYTEDOCS_EXCLUDE_PATHS", DEFAULT_EXCLUDE_PATHS),
        framework=_get(env, "BYTEDOCS_FRAMEWORK", "gin"),
        source_dir=_get(env, "BYTEDOCS_SOURCE_DIR", "."),
    )
