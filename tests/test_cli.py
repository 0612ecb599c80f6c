"""Tests for the command line, the batch build engine and configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError
from typer.testing import CliRunner

from pagesmith import __version__
from pagesmith.cli.engine import BuildEngine
from pagesmith.cli.main import typer_app
from pagesmith.compiler.compiler import CompilerContext, CompilerModule
from pagesmith.config import BuildConfig, find_config, load_config
from pagesmith.errors import ReferenceCycleError, StructuralError
from pagesmith.pipeline.formatter import FormatterMode
from pagesmith.pipeline.io import MemoryPipelineIO

runner = CliRunner()


@pytest.fixture
def site(tmp_path, monkeypatch):
    """A small source tree, with the working directory moved next to it."""
    monkeypatch.chdir(tmp_path)
    root = tmp_path / "site"
    (root / "parts").mkdir(parents=True)
    (root / "index.html").write_text('<m-fragment src="parts/nav.html"></m-fragment><p>${ name }</p>')
    (root / "about.html").write_text("<p>about</p>")
    (root / "parts" / "nav.html").write_text("<nav></nav>")
    return root


def test_version():
    result = runner.invoke(typer_app, ["--version"])

    assert result.exit_code == 0
    assert f"pagesmith {__version__}" in result.output


def test_build_every_page(site, tmp_path):
    """Without page arguments every page under inpath is compiled."""
    out = tmp_path / "out"

    result = runner.invoke(typer_app, ["-i", str(site), "-o", str(out)])

    assert result.exit_code == 0, result.output
    assert "Compiled 3 page(s)" in result.output
    assert "<nav></nav>" in (out / "index.html").read_text()
    assert (out / "about.html").exists()


def test_build_selected_page(site, tmp_path):
    out = tmp_path / "out"

    result = runner.invoke(typer_app, [str(site / "about.html"), "-i", str(site), "-o", str(out)])

    assert result.exit_code == 0, result.output
    assert (out / "about.html").exists()
    assert not (out / "index.html").exists()


def test_output_inside_source_is_skipped(site):
    """Pages already written to the output directory are not sources."""
    args = ["-i", str(site), "-o", str(site / "out"), str(site / "index.html"), str(site)]
    runner.invoke(typer_app, args)

    result = runner.invoke(typer_app, ["-i", str(site), "-o", str(site / "out")])

    assert result.exit_code == 0, result.output
    assert "Compiled 3 page(s)" in result.output


def test_failed_page_sets_exit_code(site, tmp_path):
    """Other pages are still written when one page fails."""
    (site / "broken.html").write_text("<m-if>x</m-if>")
    out = tmp_path / "out"

    result = runner.invoke(typer_app, ["-i", str(site), "-o", str(out)])

    assert result.exit_code == 1
    assert (out / "about.html").exists()
    assert not (out / "broken.html").exists()


def _build(sources):
    io = MemoryPipelineIO(dict(sources, **{"b.html": "<p>b</p>"}))
    engine = BuildEngine(BuildConfig(), io=io)
    failed = engine.build(["a.html", "b.html"])
    return io, engine, failed


def test_engine_continues_after_non_collection_loop():
    io, engine, failed = _build({"a.html": '<m-for of="{{ 5 }}" var="x">${ x }</m-for>'})

    assert failed == 1
    assert isinstance(engine.failures["a.html"], StructuralError)
    assert "b.html" in io.outputs
    assert "a.html" not in io.outputs


def test_engine_continues_after_reference_cycle():
    io, engine, failed = _build({"a.html": '<m-fragment src="a.html"></m-fragment>'})

    assert failed == 1
    assert isinstance(engine.failures["a.html"], ReferenceCycleError)
    assert "b.html" in io.outputs


class _Explode(CompilerModule):
    def enter_node(self, ctx: CompilerContext) -> None:
        if getattr(ctx.node, "tag_name", None) == "explode":
            raise RuntimeError("boom")


def test_engine_continues_after_unexpected_error():
    """Errors that are not PagesmithErrors still only fail their own page."""
    io = MemoryPipelineIO({"a.html": "<explode></explode>", "b.html": "<p>b</p>"})
    engine = BuildEngine(BuildConfig(), io=io)
    engine.pipeline.compiler.modules.append(_Explode())

    assert engine.build(["a.html", "b.html"]) == 1
    assert isinstance(engine.failures["a.html"], RuntimeError)
    assert "b.html" in io.outputs

    io.sources["a.html"] = "<p>a</p>"
    assert engine.build(["a.html"]) == 0
    assert engine.failures == {}


def test_missing_source_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(typer_app, ["-i", str(tmp_path / "nope")])

    assert result.exit_code == 1


def test_no_pages(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "empty").mkdir()

    result = runner.invoke(typer_app, ["-i", str(tmp_path / "empty")])

    assert result.exit_code == 1


def test_config_file_supplies_defaults(site, tmp_path):
    """pagesmith.yaml paths are relative to the file; vars reach templates."""
    (tmp_path / "pagesmith.yaml").write_text(
        "inpath: site\n"
        "outpath: build\n"
        "formatter: minimized\n"
        "pages:\n"
        "  - index.html\n"
        "vars:\n"
        "  name: Configured\n"
    )

    result = runner.invoke(typer_app, [])

    assert result.exit_code == 0, result.output
    html = (tmp_path / "build" / "index.html").read_text()
    assert "<p>Configured</p>" in html
    assert "\n" not in html
    assert not (tmp_path / "build" / "about.html").exists()


def test_command_line_overrides_config(site, tmp_path):
    (tmp_path / "pagesmith.yaml").write_text("inpath: site\noutpath: build\n")

    result = runner.invoke(typer_app, ["-o", str(tmp_path / "other")])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "other" / "index.html").exists()
    assert not (tmp_path / "build").exists()


def test_invalid_config_is_reported(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "pagesmith.yaml").write_text("formatter: fancy\n")

    result = runner.invoke(typer_app, [])

    assert result.exit_code == 1


def test_load_config_resolves_paths(tmp_path):
    path = tmp_path / "pagesmith.yaml"
    path.write_text("inpath: src\nvars:\n  site: Demo\n")

    config = load_config(path)

    assert config.inpath == tmp_path / "src"
    assert config.outpath == tmp_path / "out"
    assert config.formatter == FormatterMode.NONE
    assert config.vars == {"site": "Demo"}


def test_load_config_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")

    bad = tmp_path / "pagesmith.yaml"
    bad.write_text("formatter: fancy\n")
    with pytest.raises(ValidationError):
        load_config(bad)


def test_find_config_searches_parents(tmp_path):
    (tmp_path / "pagesmith.yaml").write_text("")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert find_config(nested) == (tmp_path / "pagesmith.yaml").resolve()


def test_empty_config_uses_defaults(tmp_path):
    path = tmp_path / "pagesmith.yaml"
    path.write_text("")

    config = load_config(path)

    assert config == BuildConfig().resolve_against(tmp_path)
    assert Path(config.outpath).name == "out"
