"""Shared helpers for pagesmith tests."""

import pytest

from pagesmith.dom.serializer import serialize
from pagesmith.pipeline.io import MemoryPipelineIO
from pagesmith.pipeline.pipeline import Pipeline


def body_html(page) -> str:
    """Serialized children of the compiled page's <body>."""
    body = page.dom.find_child_tag("body")
    return "".join(serialize(child) for child in body.children)


def head_html(page) -> str:
    head = page.dom.find_child_tag("head")
    return "".join(serialize(child) for child in head.children)


def make_pipeline(sources, **kwargs) -> Pipeline:
    return Pipeline(MemoryPipelineIO(sources), **kwargs)


@pytest.fixture
def compile_body():
    """Compile ``index.html`` from in-memory sources and return its body HTML."""

    def _compile(sources, page="index.html", **kwargs):
        pipeline = make_pipeline(sources, **kwargs)
        return body_html(pipeline.compile_page(page))

    return _compile
