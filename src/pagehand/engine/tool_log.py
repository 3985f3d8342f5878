"""Tool-use sinks.

``JsonlToolUseSink`` appends one JSON object per tool call to a local file,
the same append-only ledger format the rest of the project uses for run
artifacts.  ``NullToolUseSink`` discards everything.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
import logging
from pathlib import Path
from typing import IO

from pagehand.engine.protocols import ToolUseRecord

logger = logging.getLogger("pagehand.engine.tool_log")


class JsonlToolUseSink:
    """Append-only JSONL tool-use log."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._fh: IO[str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def connect(self) -> None:
        if self._fh is not None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = open(self._path, "a", encoding="utf-8")
        logger.info("Tool-use log opened at %s", self._path)

    def is_ready(self) -> bool:
        return self._fh is not None and not self._fh.closed

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def log_tool_use(self, record: ToolUseRecord) -> None:
        if not self.is_ready():
            raise RuntimeError(f"Tool-use log is not connected: {self._path}")
        entry = dataclasses.asdict(record)
        entry["timestamp"] = dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds")
        self._fh.write(json.dumps(entry, default=str) + "\n")  # type: ignore[union-attr]
        self._fh.flush()  # type: ignore[union-attr]

    def read_records(self) -> list[dict]:
        """Return every logged entry (empty list if the file does not exist)."""
        if not self._path.is_file():
            return []
        records: list[dict] = []
        for line in self._path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError:
                logger.warning("Skipping malformed tool-use log line in %s", self._path)
        return records


class NullToolUseSink:
    """Sink that accepts and drops every record."""

    def connect(self) -> None:
        pass

    def is_ready(self) -> bool:
        return True

    def close(self) -> None:
        pass

    def log_tool_use(self, record: ToolUseRecord) -> None:
        pass
