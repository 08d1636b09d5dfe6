"""Inbox watcher -- watchdog events in, one dispatched FsEvent at a time out."""

from __future__ import annotations

import os
import queue
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..models import EventKind, FsEvent

if TYPE_CHECKING:
    from ..dispatcher import EventDispatcher

log = logger.bind(stage="watcher")

_KIND_BY_TYPE = {
    "created": EventKind.CREATE,
    "moved": EventKind.RENAME,
    "modified": EventKind.MODIFY,
    "deleted": EventKind.REMOVE,
}


def translate_event(event: FileSystemEvent) -> FsEvent:
    """Map a watchdog event to an FsEvent.

    Moves report only the destination path, since that is where the file
    now lives in the inbox. Directory events are never actionable.
    """
    if event.is_directory:
        return FsEvent(kind=EventKind.OTHER, paths=(os.fsdecode(event.src_path),))

    kind = _KIND_BY_TYPE.get(event.event_type, EventKind.OTHER)
    if kind == EventKind.RENAME:
        path = getattr(event, "dest_path", "") or event.src_path
    else:
        path = event.src_path
    return FsEvent(kind=kind, paths=(os.fsdecode(path),))


class InboxHandler(FileSystemEventHandler):
    """Pushes every translated event onto a queue for the worker loop."""

    def __init__(self, events: queue.Queue) -> None:
        super().__init__()
        self.events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        self.events.put(translate_event(event))


def watch(path: Path) -> Iterator[FsEvent]:
    """Yield FsEvents for path (recursively) in arrival order.

    The observer is stopped and joined when the generator is closed.
    """
    events: queue.Queue[FsEvent] = queue.Queue()
    observer = Observer()
    observer.schedule(InboxHandler(events), str(path), recursive=True)
    observer.start()
    log.info(f"Watching {path}")

    try:
        while True:
            yield events.get()
    finally:
        observer.stop()
        observer.join()
        log.info(f"Stopped watching {path}")


def run_forever(dispatcher: EventDispatcher, events: Iterable[FsEvent]) -> int:
    """Dispatch events strictly one after another until the source ends.

    A failed event is logged and skipped; the loop only stops when the
    event source is exhausted or interrupted. Returns the failure count.
    """
    failures = 0
    try:
        for event in events:
            try:
                dispatcher.handle(event)
            except Exception as e:
                failures += 1
                log.error(f"Event {event.kind} {list(event.paths)} failed: {e}")
    except KeyboardInterrupt:
        log.info("Interrupted, shutting down")
    return failures
