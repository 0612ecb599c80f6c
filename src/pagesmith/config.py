"""Build configuration.

An optional ``pagesmith.yaml`` supplies defaults for the CLI:

- inpath: source directory (default ".")
- outpath: destination directory (default "out")
- formatter: pretty | minimized | none
- pages: page files or directories, relative to inpath
- vars: bindings visible in every fragment's root scope
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from pagesmith.pipeline.formatter import FormatterMode

CONFIG_FILE_NAME = "pagesmith.yaml"


class BuildConfig(BaseModel):
    """Settings for one build."""

    inpath: Path = Field(default=Path("."), description="Source directory")
    outpath: Path = Field(default=Path("out"), description="Destination directory")
    formatter: FormatterMode = Field(default=FormatterMode.NONE, description="Output formatting")
    pages: list[str] = Field(default_factory=list, description="Pages to compile")
    vars: dict[str, Any] = Field(default_factory=dict, description="Root scope bindings")

    def resolve_against(self, base: Path) -> "BuildConfig":
        """Make relative in/out paths relative to ``base`` (the config's directory)."""
        return self.model_copy(
            update={
                "inpath": self.inpath if self.inpath.is_absolute() else base / self.inpath,
                "outpath": self.outpath if self.outpath.is_absolute() else base / self.outpath,
            }
        )


def find_config(start: Path | None = None) -> Path | None:
    """Find pagesmith.yaml in the start directory or its parents."""
    cwd = (start or Path.cwd()).resolve()
    for parent in [cwd] + list(cwd.parents):
        candidate = parent / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate
    return None


def load_config(path: Path) -> BuildConfig:
    """Load pagesmith.yaml from path."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return BuildConfig(**data).resolve_against(path.parent)
