"""Incremental JSON writer for the dump envelope."""
import json
import threading
from pathlib import Path
from typing import Any, Dict, IO, Optional

import structlog

from recipe_dumper import EmitterStateError, SinkIOError
from recipe_dumper.core.item_codec import encode_compact


class StreamEmitter:
    """Streams ``{"version": ..., "queries": [...]}`` one record at a time.

    Each record is fully serialized before the sink lock is taken, so a
    record is either written whole or not at all. Output is compact JSON.
    """

    def __init__(self, path: Path, logger: Optional[structlog.BoundLogger] = None):
        self.path = Path(path)
        self.logger = logger or structlog.get_logger(__name__)
        self._lock = threading.Lock()
        self._sink: Optional[IO[str]] = None
        self._closed = False
        self.records_written = 0

    def __enter__(self) -> "StreamEmitter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self._release()

    @property
    def is_open(self) -> bool:
        return self._sink is not None

    def open(self, version: str) -> None:
        """Create the sink and write the envelope header.

        Raises:
            EmitterStateError: If the emitter was already opened
            SinkIOError: If the file cannot be created or written
        """
        with self._lock:
            if self._sink is not None or self._closed:
                raise EmitterStateError(f"Emitter for {self.path} was already opened")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._sink = open(self.path, "w", encoding="utf-8")
                self._sink.write('{"version":' + json.dumps(version) + ',"queries":[')
            except OSError as e:
                self._release_locked()
                raise SinkIOError(f"Failed to open dump file {self.path}: {e}") from e

        self.logger.debug("Dump stream opened", path=str(self.path), version=version)

    def append_query(self, record: Dict[str, Any]) -> None:
        """Append one query record as the next array element.

        Safe to call from several threads; each record lands atomically.

        Raises:
            EmitterStateError: If the emitter is not open
            SinkIOError: If the write fails
        """
        payload = encode_compact(record)
        with self._lock:
            if self._sink is None:
                raise EmitterStateError(f"Emitter for {self.path} is not open")
            try:
                if self.records_written:
                    self._sink.write(",")
                self._sink.write(payload)
                self._sink.flush()
            except OSError as e:
                raise SinkIOError(f"Failed to write query record to {self.path}: {e}") from e
            self.records_written += 1

    def close(self) -> None:
        """Terminate the array and envelope, then release the sink.

        Raises:
            EmitterStateError: If the emitter is not open
            SinkIOError: If the final write or close fails
        """
        with self._lock:
            if self._sink is None:
                raise EmitterStateError(f"Emitter for {self.path} is not open")
            try:
                self._sink.write("]}")
                self._sink.close()
            except OSError as e:
                raise SinkIOError(f"Failed to close dump file {self.path}: {e}") from e
            finally:
                self._sink = None
                self._closed = True

        self.logger.debug("Dump stream closed", path=str(self.path), records=self.records_written)

    def _release(self) -> None:
        with self._lock:
            self._release_locked()

    def _release_locked(self) -> None:
        if self._sink is not None:
            try:
                self._sink.close()
            except OSError as e:
                self.logger.warning("Failed to release dump file", path=str(self.path), error=str(e))
        self._sink = None
        self._closed = True
