from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from bytedocs.core.analyzer import HandlerRecord, PackageAnalysis, analyze_directory
from bytedocs.core.capabilities import FrameworkCapabilities
from bytedocs.errors import SourceParseError
from bytedocs.models import HandlerMetadata

logger = logging.getLogger(__name__)

AnalyzeFn = Callable[[str, FrameworkCapabilities], PackageAnalysis]


def _normalize_path(path: str | Path) -> str:
    return str(Path(path).resolve())


class HandlerMetadataStore:
    """Per-directory cache of analysed handlers.

    Each directory is analysed at most once, even when several threads ask
    for it at the same time; a directory that fails to parse is remembered
    as unavailable and never retried.
    """

    def __init__(self, capabilities: FrameworkCapabilities, analyze: AnalyzeFn = analyze_directory) -> None:
        self.capabilities = capabilities
        self._analyze = analyze
        self._cache: dict[str, PackageAnalysis | None] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks.setdefault(key, threading.Lock())

    def load(self, directory: str | Path) -> PackageAnalysis | None:
        key = _normalize_path(directory)
        if key in self._cache:
            return self._cache[key]

        with self._lock_for(key):
            if key in self._cache:
                return self._cache[key]
            analysis: PackageAnalysis | None
            try:
                analysis = self._analyze(key, self.capabilities)
            except SourceParseError as exc:
                logger.warning("API documentation unavailable for %s: %s", key, exc)
                analysis = None
            self._cache[key] = analysis
            return analysis

    def lookup_record(
        self,
        function_name: str,
        directory: str | Path,
        *,
        file_path: str | Path | None = None,
        receiver: str | None = None,
        line: int | None = None,
    ) -> HandlerRecord | None:
        """Find the handler record for ``function_name`` in ``directory``.

        ``file_path``, ``receiver`` and ``line`` narrow down same-named
        candidates. ``receiver=""`` only matches free functions and pointer
        receivers compare equal to value receivers. With ``line``, an exact
        declaration line wins, otherwise the nearest declaration before it.
        """
        analysis = self.load(directory)
        if analysis is None:
            return None

        candidates = analysis.candidates(function_name)
        if file_path is not None:
            target = _normalize_path(file_path)
            candidates = [c for c in candidates if _normalize_path(c.file_path) == target]
        if receiver is not None:
            wanted = receiver.lstrip("*")
            candidates = [c for c in candidates if c.receiver_type.lstrip("*") == wanted]
        if line is not None:
            candidates = [c for c in candidates if c.start_line <= line]
            if candidates:
                return max(candidates, key=lambda c: c.start_line)
        return candidates[0] if candidates else None

    def lookup(
        self,
        function_name: str,
        directory: str | Path,
        *,
        file_path: str | Path | None = None,
        receiver: str | None = None,
        line: int | None = None,
    ) -> HandlerMetadata:
        record = self.lookup_record(function_name, directory, file_path=file_path, receiver=receiver, line=line)
        return record.metadata if record is not None else HandlerMetadata()
