"""Watch mode: rebuild the minimal set of pages when sources change.

File events are staged and debounced. When the debounce fires the observer
is paused, the staged set is drained and compiled page by page, the watch
list is refreshed from the dependency tracker and the observer resumes.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Iterable, Optional, Set

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from pagesmith.cli.engine import BuildEngine
from pagesmith.config import BuildConfig
from pagesmith.pipeline.io import FileSystemPipelineIO, PipelineIO
from pagesmith.pipeline.paths import normalize_res_path
from pagesmith.watch.tracker import DependencyTracker
from pagesmith.watch.tracking import TrackingCache, TrackingPipelineIO

log = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.3


class ChangeHandler(FileSystemEventHandler):
    def __init__(self, engine: "WatchingBuildEngine"):
        self.engine = engine

    def handle(self, path, is_directory):
        if not is_directory:
            self.engine.stage(path)

    def on_modified(self, event):
        self.handle(event.src_path, event.is_directory)

    def on_created(self, event):
        self.handle(event.src_path, event.is_directory)

    def on_deleted(self, event):
        self.handle(event.src_path, event.is_directory)

    def on_moved(self, event):
        self.handle(event.src_path, event.is_directory)
        self.handle(event.dest_path, event.is_directory)


class WatchingBuildEngine(BuildEngine):
    """BuildEngine that records what every page reads and rebuilds on change."""

    def __init__(
        self,
        config: BuildConfig,
        io: Optional[PipelineIO] = None,
        debounce: float = DEBOUNCE_SECONDS,
    ):
        self.tracker = DependencyTracker()
        self._reads: Optional[Set[str]] = None
        if io is None:
            io = FileSystemPipelineIO(config.inpath, config.outpath)
        super().__init__(config, TrackingPipelineIO(io, self._record_read))

        cache = self.pipeline.cache
        cache.fragments = TrackingCache(cache.fragments, self._record_read)
        cache.components = TrackingCache(cache.components, self._record_read)
        cache.modules = TrackingCache(cache.modules, self._record_read)

        self.debounce = debounce
        self.watched: Set[str] = set()
        self._staged: Set[str] = set()
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._observer = None
        self._handler = ChangeHandler(self)

    def _record_read(self, res_path: str) -> None:
        # only reads made while a page compiles are dependencies
        if self._reads is not None:
            self._reads.add(res_path)

    def compile_page(self, res_path: str) -> bool:
        res_path = normalize_res_path(res_path)
        self._reads = set()
        try:
            return super().compile_page(res_path)
        finally:
            reads, self._reads = self._reads, None
            self.tracker.set_page_dependencies(res_path, reads)
            self.watched = self.tracker.all_tracked()

    def stage(self, path) -> None:
        """Record a changed file and (re)start the debounce timer."""
        res_path = self.io.source_res_path_for(path)
        if res_path not in self.watched:
            return
        with self._lock:
            self._staged.add(res_path)
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> Set[str]:
        """Drain the staged set and recompile what depends on it."""
        with self._lock:
            changed, self._staged = self._staged, set()
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if not changed:
            return set()

        self.pause()
        try:
            for res_path in changed:
                self.pipeline.cache.evict(res_path)
            pages = self.tracker.minimal_rebuild_set(changed)
            log.info("Changed: %s; rebuilding %d page(s)", ", ".join(sorted(changed)), len(pages))
            for page in sorted(pages):
                self.compile_page(page)
            return pages
        finally:
            self.resume()

    def pause(self) -> None:
        if self._observer is not None:
            self._observer.unschedule_all()

    def resume(self) -> None:
        self.watched = self.tracker.all_tracked()
        if self._observer is not None:
            self._observer.schedule(self._handler, str(self.config.inpath), recursive=True)

    def watch(self, pages: Iterable[str]) -> None:
        """Build ``pages`` once, then rebuild on change until interrupted."""
        self.build(pages)

        self._observer = Observer()
        self.resume()
        self._observer.start()
        log.info("Watching %s for changes (Ctrl+C to stop)", self.config.inpath)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            pass
        finally:
            self._observer.stop()
            self._observer.join()
            self._observer = None
