"""Tree-walking template compiler."""

from pagesmith.compiler.compiler import (
    CompilerContext,
    CompilerModule,
    Disposition,
    HtmlCompiler,
    ImportDefinition,
    default_modules,
)

__all__ = [
    "CompilerContext",
    "CompilerModule",
    "Disposition",
    "HtmlCompiler",
    "ImportDefinition",
    "default_modules",
]
