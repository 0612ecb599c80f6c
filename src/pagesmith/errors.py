"""Pagesmith Exceptions

Every failure raised while compiling a page derives from PagesmithError.
Errors carry the resource path and directive kind where known so that the
offending template can be located.
"""

from __future__ import annotations

from typing import Optional, Sequence


class PagesmithError(Exception):
    """Base exception for all pagesmith errors."""

    def __init__(self, message: str, res_path: Optional[str] = None):
        self.message = message
        self.res_path = res_path
        if res_path:
            message = f"{message} (in {res_path})"
        super().__init__(message)


class StructuralError(PagesmithError):
    """A template is shaped in a way the compiler cannot accept."""

    pass


class InvalidNodeError(StructuralError):
    """Raised when a tree operation would break the document model."""

    pass


class MissingAttributeError(StructuralError):
    """Raised when a directive is missing a required attribute."""

    def __init__(self, tag_name: str, attribute: str, res_path: Optional[str] = None):
        self.tag_name = tag_name
        self.attribute = attribute
        super().__init__(
            f"<{tag_name}> is missing required attribute '{attribute}'", res_path
        )


class ReferenceResolutionError(StructuralError):
    """Raised when a fragment, component or resource reference cannot be loaded."""

    def __init__(self, reference: str, kind: str, res_path: Optional[str] = None):
        self.reference = reference
        self.kind = kind
        super().__init__(f"Unable to resolve {kind} '{reference}'", res_path)


class ReferenceCycleError(StructuralError):
    """Raised when a fragment or component ends up referencing itself."""

    def __init__(self, chain: Sequence[str], res_path: Optional[str] = None):
        self.chain = tuple(chain)
        super().__init__(f"Reference cycle: {' -> '.join(self.chain)}", res_path)


class DuplicateSlotError(StructuralError):
    """Raised when a reference fills the same slot more than once."""

    def __init__(self, slot: str, reference: str, res_path: Optional[str] = None):
        self.slot = slot
        self.reference = reference
        super().__init__(
            f"Slot '{slot}' is filled more than once in reference to '{reference}'",
            res_path,
        )


class ComponentFormatError(StructuralError):
    """Raised when a component file is missing a section or has a bad one."""

    pass


class EvaluationError(PagesmithError):
    """Raised when an embedded expression or script fails."""

    def __init__(self, source: str, cause: BaseException, res_path: Optional[str] = None):
        self.source = source
        self.cause = cause
        super().__init__(
            f"Error evaluating '{_shorten(source)}': {type(cause).__name__}: {cause}",
            res_path,
        )


class ResourceIOError(PagesmithError):
    """Raised when the pipeline I/O cannot read or write a resource."""

    pass


class TemplateParseError(PagesmithError):
    """Raised when the tokenizer reports malformed input."""

    pass


def _shorten(source: str, limit: int = 60) -> str:
    source = " ".join(source.split())
    if len(source) > limit:
        return source[: limit - 3] + "..."
    return source
