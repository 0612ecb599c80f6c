"""Compilation pipeline: I/O, caches, contexts and the orchestrator."""

from pagesmith.pipeline.cache import Cache, PipelineCache
from pagesmith.pipeline.context import DEFAULT_SLOT, FragmentContext, UsageContext
from pagesmith.pipeline.formatter import FormatterMode, StandardHtmlFormatter, create_formatter
from pagesmith.pipeline.fragment import Component, Fragment, Page
from pagesmith.pipeline.io import FileSystemPipelineIO, MemoryPipelineIO, PipelineIO, ResourceType
from pagesmith.pipeline.pipeline import Pipeline

__all__ = [
    "DEFAULT_SLOT",
    "Cache",
    "Component",
    "FileSystemPipelineIO",
    "FormatterMode",
    "Fragment",
    "FragmentContext",
    "MemoryPipelineIO",
    "Page",
    "Pipeline",
    "PipelineCache",
    "PipelineIO",
    "ResourceType",
    "StandardHtmlFormatter",
    "UsageContext",
    "create_formatter",
]
