"""Streaming JSON writer for record diffs."""

from __future__ import annotations

import json
import logging
from typing import IO, TYPE_CHECKING

from bulkimport.domain.errors import ReportSinkError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from bulkimport.domain.model import RecordDiff

log = logging.getLogger(__name__)

INDENT = 2


class JsonDiffSink:
    """Writes ``{"request": ..., "response": [...]}`` one record at a time."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._handle: IO[str] | None = None
        self._count = 0

    def open(self, request: Mapping[str, object]) -> None:
        try:
            self._handle = self.path.open("w", encoding="utf-8")
            self._handle.write('{\n"request": ')
            self._handle.write(self._dumps(dict(request)))
            self._handle.write(',\n"response": [\n')
        except OSError as exc:
            self._release()
            raise ReportSinkError(f"Cannot write {self.path}: {exc}") from exc

    def write(self, record: RecordDiff) -> None:
        handle = self._require_handle()
        try:
            if self._count:
                handle.write(",\n")
            handle.write(self._dumps(record.as_json()))
        except OSError as exc:
            self._release()
            raise ReportSinkError(f"Cannot write {self.path}: {exc}") from exc
        self._count += 1

    def close(self) -> Path:
        handle = self._require_handle()
        try:
            handle.write("\n]\n}\n")
        except OSError as exc:
            raise ReportSinkError(f"Cannot write {self.path}: {exc}") from exc
        finally:
            self._release()
        log.debug("Wrote %d record diffs to %s", self._count, self.path)
        return self.path

    def _require_handle(self) -> IO[str]:
        if self._handle is None:
            raise ReportSinkError(f"JSON sink for {self.path} is not open")
        return self._handle

    def _release(self) -> None:
        if self._handle is not None:
            self._handle.close()
        self._handle = None

    @staticmethod
    def _dumps(payload: object) -> str:
        return json.dumps(payload, ensure_ascii=False, indent=INDENT, default=str)
