"""Event dispatcher -- fans one filesystem event out into extraction and relocation."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from .config import ManagerConfig
from .models import BookMetadata, FsEvent
from .ops.relocate import relocate

if TYPE_CHECKING:
    from .extractor import MetadataExtractor

log = logger.bind(stage="dispatch")


class EventDispatcher:
    """Handles one filesystem event at a time.

    Extraction runs concurrently for every path in the event, then
    relocation runs concurrently for every resolved path. The relocation
    phase never starts before the whole extraction phase has settled.

    By default the event is all-or-nothing: one failed extraction aborts
    the event before anything is moved. With config.isolate_failures,
    failed paths are logged and skipped and the rest proceed.
    """

    def __init__(self, config: ManagerConfig, extractor: MetadataExtractor) -> None:
        self.config = config
        self.extractor = extractor
        self._executor = ThreadPoolExecutor(
            max_workers=config.max_workers,
            thread_name_prefix="book-manager",
        )

    def __enter__(self) -> EventDispatcher:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def handle(self, event: FsEvent) -> list[Path]:
        """Process one event; returns the destinations written (or planned)."""
        if not event.is_actionable:
            return []

        paths = [Path(p) for p in event.paths]
        if not paths:
            return []

        log.debug(f"{event.kind} event with {len(paths)} path(s)")

        extracted = self._gather(
            [self._executor.submit(self.extractor.extract, p) for p in paths],
            paths,
            phase="extraction",
        )
        resolved: list[tuple[Path, BookMetadata]] = [
            (path, metadata)
            for path, metadata in zip(paths, extracted)
            if metadata is not None
        ]

        owner = self.config.owner
        written = self._gather(
            [
                self._executor.submit(
                    relocate,
                    path,
                    metadata,
                    self.config.out_path,
                    owner,
                    self.config.dry_run,
                )
                for path, metadata in resolved
            ],
            [path for path, _ in resolved],
            phase="relocation",
        )
        return [dest for dest in written if dest is not None]

    def _gather(self, futures: list[Future], paths: list[Path], phase: str) -> list:
        """Wait for every future, then pair results with paths in input order.

        Failed entries are None in isolation mode; otherwise the first
        failure (in path order) is re-raised once all futures have settled.
        """
        wait(futures)

        results = []
        first_error: BaseException | None = None
        for path, future in zip(paths, futures):
            error = future.exception()
            if error is None:
                results.append(future.result())
                continue
            log.error(f"{phase.capitalize()} failed for {path.name}: {error}")
            results.append(None)
            if first_error is None:
                first_error = error

        if first_error is not None and not self.config.isolate_failures:
            raise first_error
        return results
