"""Single-flight recipe dump orchestration.

A dump finds every item in the catalog, queries all production sources for
the recipes that craft it and streams the result into one (probably large)
JSON file. Item payloads are interned along the way and written to a
companion ``<name>_stacks.json`` file once the main dump is closed.
"""
import json
import threading
from collections import deque
from contextlib import closing
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Set, Union

import structlog

from recipe_dumper import DuplicateRunError, SinkIOError, __version__
from recipe_dumper.core.config_manager import DumpConfig
from recipe_dumper.core.dump_context import DumpContext
from recipe_dumper.core.item_codec import ItemStack
from recipe_dumper.core.progress import ProgressCounters, ProgressSnapshot, ProgressTicker
from recipe_dumper.core.query_engine import QueryEngine
from recipe_dumper.export.stream_emitter import StreamEmitter
from recipe_dumper.registry.extractors import ExtractorRegistry
from recipe_dumper.registry.production_sources import ProductionSourceRegistry
from recipe_dumper.utils.notifications import DumpEvent, LoggingNotifier, Notifier

CatalogSource = Union[Sequence[ItemStack], Callable[[], Sequence[ItemStack]]]


class DumpState(Enum):
    """Lifecycle of a dump run."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class DumpResult:
    """Outcome of the most recent run."""
    state: DumpState
    target: Path
    completed: int
    total: int
    companion: Optional[Path] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == DumpState.COMPLETED


class RecipeDumper:
    """Runs recipe dumps in a background worker, one at a time."""

    file_extension = ".json"

    def __init__(self, catalog: CatalogSource, sources: ProductionSourceRegistry,
                 extractors: ExtractorRegistry, config: Optional[DumpConfig] = None,
                 notifier: Optional[Notifier] = None,
                 logger: Optional[structlog.BoundLogger] = None):
        """Initialize recipe dumper.

        Args:
            catalog: Items to query, or a callable returning them at run start
            sources: Production source registry
            extractors: Extractor registry
            config: Dump configuration (defaults when omitted)
            notifier: Receives duplicate/progress/complete events
            logger: Structured logger instance
        """
        self.catalog = catalog
        self.config = config or DumpConfig()
        self.logger = logger or structlog.get_logger(__name__)
        self.notifier = notifier or LoggingNotifier(self.logger)
        self.engine = QueryEngine(sources, extractors, self.logger)
        self.counters = ProgressCounters()
        self.last_result: Optional[DumpResult] = None

        self._state = DumpState.IDLE
        self._state_lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._ticker: Optional[ProgressTicker] = None

    @property
    def state(self) -> DumpState:
        with self._state_lock:
            return self._state

    @property
    def is_running(self) -> bool:
        """True from ``start`` until teardown has returned the dumper to IDLE."""
        return self.state != DumpState.IDLE

    def _set_state(self, state: DumpState) -> None:
        with self._state_lock:
            self._state = state

    def mode_count(self) -> int:
        # Hosts pass mode 0 or 1; both write the same JSON stream
        return 2

    def companion_path(self, target: Path) -> Path:
        """Path of the interned item catalog written next to ``target``."""
        target = Path(target)
        return target.with_name(f"{target.stem}{self.config.companion_suffix}{target.suffix}")

    def dump_to(self, target: Path, mode: int = 0) -> bool:
        """Start a dump as requested by a host UI.

        Returns:
            True if the dump started, False if another one is still running

        Raises:
            ValueError: If ``mode`` is not a supported mode
        """
        if not 0 <= mode < self.mode_count():
            raise ValueError(f"Unsupported dump mode {mode}, expected 0..{self.mode_count() - 1}")
        try:
            self.start(target)
        except DuplicateRunError:
            return False
        return True

    def start(self, target: Path) -> None:
        """Begin a dump into ``target`` on a background worker.

        Raises:
            DuplicateRunError: If a dump is already running
        """
        target = Path(target)
        with self._state_lock:
            if self._state != DumpState.IDLE:
                rejected = True
            else:
                rejected = False
                self._state = DumpState.RUNNING

        if rejected:
            self.logger.warning("Rejected recipe dump request, a dump is already running",
                                target=str(target),
                                completed=self.counters.completed,
                                total=self.counters.total)
            self._notify(DumpEvent.DUPLICATE, path=str(target))
            raise DuplicateRunError(f"A recipe dump is already running, ignoring request for {target}")

        try:
            items = list(self.catalog() if callable(self.catalog) else self.catalog)
        except Exception:
            with self._state_lock:
                self._state = DumpState.IDLE
            raise

        self.counters.reset(len(items))
        context = DumpContext(self.logger)
        self._ticker = ProgressTicker(self.counters, self._report_progress,
                                      self.config.progress_interval_ms, self.logger)
        self._ticker.start()

        self.logger.info("Recipe dump started", target=str(target), total=len(items),
                         workers=self.config.workers)
        self._worker = threading.Thread(target=self._run, args=(target, items, context),
                                        name="recipe-dump-worker", daemon=True)
        self._worker.start()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the current worker. Returns True once no run is active."""
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
        return not self.is_running

    def _run(self, target: Path, items: List[ItemStack], context: DumpContext) -> None:
        state = DumpState.FAILED
        error: Optional[str] = None
        companion: Optional[Path] = None
        snapshot = self.counters.snapshot()

        try:
            self._write_dump(target, items, context)
            state = DumpState.COMPLETED
            self._set_state(state)
            snapshot = self.counters.snapshot()
            companion = self._write_companion(target, context)
        except Exception as e:
            snapshot = self.counters.snapshot()
            error = str(e)
            if state != DumpState.COMPLETED:
                self._set_state(DumpState.FAILED)
            self.logger.error("Failed to save recipe dump to file",
                              target=str(target),
                              completed=snapshot.completed,
                              total=snapshot.total,
                              error=error,
                              error_type=type(e).__name__)
        finally:
            if self._ticker is not None:
                self._ticker.cancel()
            self.counters.clear()
            self.last_result = DumpResult(state, target, snapshot.completed, snapshot.total,
                                          companion, error)
            self._set_state(DumpState.IDLE)

        if state == DumpState.COMPLETED:
            self.logger.info("Recipe dump finished", target=str(target),
                             queries=snapshot.completed,
                             companion=str(companion) if companion else None)
            self._notify(DumpEvent.COMPLETE,
                         path=f"{self.config.dumps_dir}/{target.name}",
                         target=str(target),
                         completed=snapshot.completed,
                         total=snapshot.total)

    def _write_dump(self, target: Path, items: List[ItemStack], context: DumpContext) -> None:
        version = self.config.format_version or __version__
        with StreamEmitter(target, self.logger) as emitter, \
                closing(self._query_records(items, context)) as records:
            emitter.open(version)
            for record in records:
                emitter.append_query(record)
                self.counters.increment()

    def _query_records(self, items: List[ItemStack], context: DumpContext) -> Iterator[Dict[str, Any]]:
        if self.config.workers <= 1:
            for item in items:
                yield self.engine.query(item, context)
            return

        window = self.config.workers * 2
        remaining = iter(items)
        with ThreadPoolExecutor(max_workers=self.config.workers,
                                thread_name_prefix="recipe-dump-query") as executor:
            if self.config.preserve_order:
                ordered: deque = deque()
                try:
                    for item in remaining:
                        ordered.append(executor.submit(self.engine.query, item, context))
                        if len(ordered) >= window:
                            yield ordered.popleft().result()
                    while ordered:
                        yield ordered.popleft().result()
                finally:
                    for future in ordered:
                        future.cancel()
                return

            pending: Set[Future] = set()
            try:
                for item in remaining:
                    pending.add(executor.submit(self.engine.query, item, context))
                    if len(pending) >= window:
                        done, pending = wait(pending, return_when=FIRST_COMPLETED)
                        for future in done:
                            yield future.result()
                while pending:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        yield future.result()
            finally:
                for future in pending:
                    future.cancel()

    def _write_companion(self, target: Path, context: DumpContext) -> Optional[Path]:
        path = self.companion_path(target)
        try:
            self._write_catalog_file(path, context)
        except Exception as e:
            self.logger.error("Error dumping item catalog",
                              path=str(path), target=str(target), error=str(e))
            return None
        return path

    def _write_catalog_file(self, path: Path, context: DumpContext) -> None:
        stacks = context.export_mapping()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(stacks, f, separators=(",", ":"), ensure_ascii=False)
        except OSError as e:
            raise SinkIOError(f"Failed to write item catalog {path}: {e}") from e
        self.logger.info("Item catalog written", path=str(path), items=len(stacks))

    def _report_progress(self, snapshot: ProgressSnapshot) -> None:
        self._notify(DumpEvent.PROGRESS, completed=snapshot.completed, total=snapshot.total,
                     percent=snapshot.percent)

    def _notify(self, event: DumpEvent, **context: Any) -> None:
        try:
            self.notifier(event, **context)
        except Exception as e:
            self.logger.warning("Dump notification failed", notify_event=event.value, error=str(e))
