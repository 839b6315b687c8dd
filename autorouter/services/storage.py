"""
LogSink Class - Handles event log file I/O

This module owns the append-only JSONL event log shared by the metrics
tracker (writer) and the statistics manager (reader).
"""

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List


class LogSink:
    """
    Append-only JSONL event log.
    Responsibilities:
    - Append one self-contained JSON line per event
    - Read a stable snapshot of the raw lines
    - Rewrite the file with a retained subset (retention cleanup)

    A single re-entrant lock serializes every operation on the file;
    exclusive() holds it across a read-filter-rewrite sequence.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        self._lock = threading.RLock()

    def append(self, entry: Dict[str, Any]) -> None:
        """Append one event; raises OSError if the file cannot be written"""
        line = json.dumps(entry, ensure_ascii=False) + "\n"
        with self._lock:
            self._ensure_parent_dir()
            with open(self.file_path, "a", encoding="utf-8") as f:
                f.write(line)
                f.flush()

    def read_lines(self) -> List[str]:
        """
        Non-blank lines of the log file; empty when the file is missing.
        Lines that are not valid UTF-8 (e.g. a write torn mid-character)
        are skipped, like any other corrupt line.
        """
        with self._lock:
            try:
                with open(self.file_path, "rb") as f:
                    raw_lines = f.readlines()
            except FileNotFoundError:
                return []

        lines = []
        for raw in raw_lines:
            try:
                line = raw.decode("utf-8").strip()
            except UnicodeDecodeError:
                continue
            if line:
                lines.append(line)
        return lines

    def rewrite(self, entries: Iterable[Dict[str, Any]]) -> int:
        """
        Replace the log file with the given entries.
        Written to a temporary file first, then swapped in atomically.
        """
        with self._lock:
            self._ensure_parent_dir()
            directory = os.path.dirname(os.path.abspath(self.file_path))
            fd, tmp_path = tempfile.mkstemp(prefix=".autorouter-", suffix=".tmp", dir=directory)
            written = 0
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    for entry in entries:
                        f.write(json.dumps(entry, ensure_ascii=False) + "\n")
                        written += 1
                os.replace(tmp_path, self.file_path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
            return written

    def exists(self) -> bool:
        return os.path.exists(self.file_path)

    @contextmanager
    def exclusive(self) -> Iterator["LogSink"]:
        """Hold the file lock for a multi-step operation"""
        with self._lock:
            yield self

    def _ensure_parent_dir(self) -> None:
        """Create parent directories if needed"""
        os.makedirs(os.path.dirname(os.path.abspath(self.file_path)), exist_ok=True)
