"""Batch build engine: compiles a list of pages, one failure at a time."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pagesmith.config import BuildConfig
from pagesmith.errors import PagesmithError
from pagesmith.pipeline.formatter import create_formatter
from pagesmith.pipeline.fragment import Page
from pagesmith.pipeline.io import FileSystemPipelineIO, PipelineIO
from pagesmith.pipeline.pipeline import Pipeline

log = logging.getLogger(__name__)

PAGE_GLOB = "*.html"


class BuildEngine:
    """Compiles pages through a single Pipeline.

    A failing page is logged and recorded in ``failures``; the remaining
    pages are still attempted.
    """

    def __init__(self, config: BuildConfig, io: Optional[PipelineIO] = None):
        self.config = config
        self.io = io if io is not None else FileSystemPipelineIO(config.inpath, config.outpath)
        self.pipeline = Pipeline(
            self.io,
            formatter=create_formatter(config.formatter),
            global_vars=config.vars,
            on_page_compiled=self._on_page_compiled,
        )
        self.failures: Dict[str, Exception] = {}

    def compile_page(self, res_path: str) -> bool:
        try:
            self.pipeline.compile_page(res_path)
        except PagesmithError as exc:
            log.error("Failed to compile %s: %s", res_path, exc)
            self.failures[res_path] = exc
            return False
        except Exception as exc:
            log.exception("Unexpected error compiling %s", res_path)
            self.failures[res_path] = exc
            return False
        self.failures.pop(res_path, None)
        return True

    def build(self, pages: Iterable[str]) -> int:
        """Compile every page; return how many failed."""
        failed = 0
        for res_path in pages:
            if not self.compile_page(res_path):
                failed += 1
        return failed

    def collect_pages(self, paths: Iterable[Path]) -> List[str]:
        """Expand files and directories into source resource paths.

        Directories contribute every ``*.html`` beneath them, except files
        inside the output directory.
        """
        outpath = Path(self.config.outpath).resolve()
        pages: List[str] = []
        for path in paths:
            path = Path(path)
            if path.is_dir():
                candidates = sorted(p for p in path.rglob(PAGE_GLOB) if p.is_file())
                candidates = [p for p in candidates if not p.resolve().is_relative_to(outpath)]
            else:
                candidates = [path]
            for candidate in candidates:
                res_path = self.io.source_res_path_for(candidate)
                if res_path not in pages:
                    pages.append(res_path)
        return pages

    def _on_page_compiled(self, page: Page) -> None:
        log.info("Compiled %s", page.path)
