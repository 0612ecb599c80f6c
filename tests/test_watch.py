"""Tests for dependency tracking and incremental rebuilds."""

import pytest

from pagesmith.config import BuildConfig
from pagesmith.errors import ResourceIOError
from pagesmith.pipeline.cache import Cache
from pagesmith.pipeline.io import MemoryPipelineIO, ResourceType
from pagesmith.watch import DependencyTracker, TrackingCache, TrackingPipelineIO
from pagesmith.watch.engine import WatchingBuildEngine


def test_tracker_indexes_both_directions():
    tracker = DependencyTracker()
    tracker.set_page_dependencies("a.html", ["a.html", "nav.html"])
    tracker.set_page_dependencies("b.html", ["b.html", "nav.html"])

    assert tracker.dependents_of("nav.html") == {"a.html", "b.html"}
    assert tracker.dependencies_of("a.html") == {"a.html", "nav.html"}
    assert tracker.all_tracked() == {"a.html", "b.html", "nav.html"}


def test_tracker_replaces_edges():
    """New dependencies replace the old ones; stale edges disappear."""
    tracker = DependencyTracker()
    tracker.set_page_dependencies("a.html", ["old.html"])

    tracker.set_page_dependencies("a.html", ["new.html"])

    assert tracker.dependents_of("old.html") == set()
    assert "old.html" not in tracker.all_tracked()
    assert tracker.dependents_of("new.html") == {"a.html"}


def test_tracker_keeps_page_with_no_dependencies():
    tracker = DependencyTracker()
    tracker.set_page_dependencies("a.html", ["x.html"])

    tracker.set_page_dependencies("a.html", [])

    assert tracker.has_page("a.html")
    assert tracker.dependencies_of("a.html") == set()

    tracker.remove_page("a.html")
    assert not tracker.has_page("a.html")
    assert tracker.all_tracked() == set()


def test_minimal_rebuild_set():
    """Only pages whose last compile read a changed file are rebuilt."""
    tracker = DependencyTracker()
    tracker.set_page_dependencies("p1.html", ["p1.html", "a.html", "b.html"])
    tracker.set_page_dependencies("p2.html", ["p2.html", "b.html"])

    assert tracker.minimal_rebuild_set(["b.html"]) == {"p1.html", "p2.html"}
    assert tracker.minimal_rebuild_set(["a.html"]) == {"p1.html"}
    assert tracker.minimal_rebuild_set(["p2.html"]) == {"p2.html"}
    assert tracker.minimal_rebuild_set(["unrelated.css"]) == set()


def test_tracking_io_reports_reads_before_reading():
    """Reads are reported even when the file does not exist."""
    reads = []
    io = TrackingPipelineIO(MemoryPipelineIO({"a.html": "a"}), reads.append)

    assert io.get_resource(ResourceType.HTML, "./a.html") == "a"
    with pytest.raises(ResourceIOError):
        io.get_resource(ResourceType.HTML, "missing.html")

    assert reads == ["a.html", "missing.html"]


def test_tracking_cache_reports_hits_and_sources():
    """A cache hit counts as reading the entry and its external sections."""

    class Entry:
        sources = frozenset({"logic.py"})

    reads = []
    cache = TrackingCache(Cache(), reads.append)
    cache.store("c.html", Entry())

    assert cache.has("c.html")
    assert reads == []
    cache.get("c.html")
    assert reads == ["c.html", "logic.py"]
    assert len(cache) == 1


def _engine(sources):
    io = MemoryPipelineIO(sources)
    return io, WatchingBuildEngine(BuildConfig(), io=io, debounce=60)


def test_build_records_dependencies():
    """Every page depends on itself and everything it included."""
    io, engine = _engine(
        {
            "index.html": '<m-fragment src="nav.html"></m-fragment>',
            "about.html": "<p>about</p>",
            "nav.html": "<nav></nav>",
        }
    )

    assert engine.build(["index.html", "about.html"]) == 0

    assert engine.tracker.dependencies_of("index.html") == {"index.html", "nav.html"}
    assert engine.tracker.dependencies_of("about.html") == {"about.html"}
    assert "nav.html" in engine.watched


def test_cache_hits_are_recorded_as_dependencies():
    """A page compiled after the cache is warm still depends on shared files."""
    _, engine = _engine(
        {
            "a.html": '<m-fragment src="nav.html"></m-fragment><m-component src="c.html"></m-component>',
            "b.html": '<m-fragment src="nav.html"></m-fragment><m-component src="c.html"></m-component>',
            "nav.html": "<nav></nav>",
            "c.html": "<template><i>${ v }</i></template><script src='c.py'></script>",
            "c.py": "v = 1",
        }
    )

    engine.build(["a.html", "b.html"])

    assert engine.tracker.dependents_of("nav.html") == {"a.html", "b.html"}
    assert engine.tracker.dependents_of("c.py") == {"a.html", "b.html"}


def test_flush_rebuilds_only_dependents():
    """A changed fragment rebuilds the pages that used it and no others."""
    io, engine = _engine(
        {
            "index.html": '<m-fragment src="nav.html"></m-fragment>',
            "about.html": "<p>about</p>",
            "nav.html": "<nav>old</nav>",
        }
    )
    engine.build(["index.html", "about.html"])
    compiled = []
    engine.pipeline.on_page_compiled = lambda page: compiled.append(page.path)

    io.sources["nav.html"] = "<nav>new</nav>"
    engine.stage("nav.html")
    rebuilt = engine.flush()

    assert rebuilt == {"index.html"}
    assert compiled == ["index.html"]
    assert "<nav>new</nav>" in io.outputs["index.html"]


def test_changed_script_section_rebuilds_component_users():
    io, engine = _engine(
        {
            "index.html": '<m-component src="c.html"></m-component>',
            "c.html": "<template><i>${ v }</i></template><script src='c.py'></script>",
            "c.py": "v = 1",
        }
    )
    engine.build(["index.html"])

    io.sources["c.py"] = "v = 2"
    engine.stage("c.py")
    engine.flush()

    assert "<i>2</i>" in io.outputs["index.html"]


def test_unwatched_paths_are_ignored():
    _, engine = _engine({"index.html": "<p></p>"})
    engine.build(["index.html"])

    engine.stage("notes.txt")

    assert engine.flush() == set()


def test_missing_reference_is_rebuilt_when_it_appears():
    """A failed page keeps its dependencies and recovers on the next change."""
    io, engine = _engine({"index.html": '<m-fragment src="late.html"></m-fragment>'})

    assert engine.build(["index.html"]) == 1
    assert "index.html" in engine.failures
    assert "late.html" in engine.watched

    io.sources["late.html"] = "<p>here</p>"
    engine.stage("late.html")
    assert engine.flush() == {"index.html"}

    assert engine.failures == {}
    assert "<p>here</p>" in io.outputs["index.html"]


def test_flush_clears_staged_set_even_when_pages_fail():
    io, engine = _engine(
        {"index.html": '<m-fragment src="f.html"></m-fragment>', "f.html": "<p></p>"}
    )
    engine.build(["index.html"])

    io.sources["f.html"] = "<p>${ 1 / 0 }</p>"
    engine.stage("f.html")
    engine.flush()

    assert "index.html" in engine.failures
    assert engine.flush() == set()
