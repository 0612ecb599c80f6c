"""Pagesmith - compile annotated HTML templates into static pages."""

from pagesmith._version import __version__
from pagesmith.errors import PagesmithError
from pagesmith.pipeline import (
    FileSystemPipelineIO,
    MemoryPipelineIO,
    Page,
    Pipeline,
    ResourceType,
    UsageContext,
)

__all__ = [
    "__version__",
    "FileSystemPipelineIO",
    "MemoryPipelineIO",
    "Page",
    "PagesmithError",
    "Pipeline",
    "ResourceType",
    "UsageContext",
]
