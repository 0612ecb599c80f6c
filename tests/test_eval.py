"""Tests for scopes and the script engine."""

import pytest

from pagesmith.eval.context import EvalContext
from pagesmith.eval.engine import (
    StandardScriptEngine,
    is_expression_string,
    is_interpolated_string,
    is_whole_value_expression,
)
from pagesmith.eval.scope import Scope, to_scope_name


def test_to_scope_name():
    """Hyphenated names become camel case."""
    assert to_scope_name("my-param") == "myParam"
    assert to_scope_name("a-b-c") == "aBC"
    assert to_scope_name("plain") == "plain"


def test_scope_lookup_falls_through():
    """Reads walk the parent chain; writes stay local."""
    root = Scope({"a": 1, "b": 2})
    child = root.child({"b": 3})

    assert child["a"] == 1
    assert child["b"] == 3
    child["a"] = 10
    assert root["a"] == 1
    assert child.has_local("a")


def test_scope_flatten_prefers_nearest():
    """Flattening keeps the nearest binding of each name."""
    root = Scope({"a": 1, "b": 2})
    child = root.child({"b": 3, "c": 4})

    assert child.flatten() == {"a": 1, "b": 3, "c": 4}
    assert len(child) == 3
    assert sorted(child) == ["a", "b", "c"]


def test_scope_missing_name_raises_key_error():
    """Unknown names raise KeyError and are not 'in' the scope."""
    scope = Scope().child()

    with pytest.raises(KeyError):
        scope["missing"]
    assert "missing" not in scope


def test_expression_detection():
    """Both syntaxes are detected; plain text is not."""
    assert is_whole_value_expression("  {{ a }}  ")
    assert not is_whole_value_expression("x {{ a }}")
    assert is_interpolated_string("Hello ${ name }!")
    assert not is_interpolated_string(r"Hello \${ name }")
    assert not is_expression_string("plain text")
    assert is_whole_value_expression("{{ {'a': {'b': 1}} }}")


def test_whole_value_returns_raw_value():
    """Whole-value expressions are not converted to strings."""
    engine = StandardScriptEngine()
    context = EvalContext(Scope({"items": [1, 2]}))

    assert engine.compile_expression("{{ items }}")(context) == [1, 2]
    assert engine.compile_expression("{{ items | length > 1 }}")(context) is True
    assert engine.compile_expression("{{ {'a': {'b': 1}} }}")(context) == {"a": {"b": 1}}


def test_interpolation_builds_string():
    """Interpolated expressions render into the surrounding text."""
    engine = StandardScriptEngine()
    context = EvalContext(Scope({"name": "World", "n": 2}))

    result = engine.compile_expression("Hello ${ name }, ${ n + 1 }!")(context)

    assert result == "Hello World, 3!"


def test_undefined_names_are_none():
    """Unbound names evaluate to None; interpolation renders them empty."""
    engine = StandardScriptEngine()
    context = EvalContext(Scope())

    assert engine.compile_expression("{{ missing }}")(context) is None
    assert engine.compile_expression("[${ missing }]")(context) == "[]"


def test_reserved_names_are_bound():
    """scope and context are always available."""
    engine = StandardScriptEngine()
    scope = Scope({"x": 5})
    context = EvalContext(scope)

    assert engine.compile_expression("{{ scope }}")(context) is scope
    assert engine.compile_expression("{{ context.scope.x }}")(context) == 5


def test_plain_text_cannot_be_compiled():
    """Compiling text with no expression is an error."""
    with pytest.raises(ValueError):
        StandardScriptEngine().compile_expression("just text")


def test_compiled_expression_is_reusable():
    """One compiled expression gives fresh results for each context."""
    expression = StandardScriptEngine().compile_expression("{{ a * 2 }}")

    assert expression(EvalContext(Scope({"a": 2}))) == 4
    assert expression(EvalContext(Scope({"a": 5}))) == 10


def test_script_returns_new_bindings():
    """Scripts return the public names they bind."""
    script = StandardScriptEngine().compile_script(
        """
        import math
        total = base + 1
        _private = 1
        def double(v):
            return v * 2
        """
    )

    produced = script(EvalContext(Scope({"base": 1, "other": "kept"})))

    assert produced["total"] == 2
    assert produced["double"](4) == 8
    assert "_private" not in produced
    assert "math" not in produced
    assert "other" not in produced
    assert "scope" not in produced


def test_script_sees_scope_bindings():
    """Scripts can read bindings and the live scope."""
    scope = Scope({"name": "pagesmith"})
    script = StandardScriptEngine().compile_script("upper = name.upper()\nsame = scope is not None")

    produced = script(EvalContext(scope))

    assert produced == {"upper": "PAGESMITH", "same": True}


def test_script_errors_propagate():
    """Exceptions raised by a script are not swallowed."""
    script = StandardScriptEngine().compile_script("raise RuntimeError('boom')")

    with pytest.raises(RuntimeError):
        script(EvalContext(Scope()))


def test_require_without_pipeline_fails():
    """require() needs a pipeline to load modules."""
    context = EvalContext(Scope())

    with pytest.raises(RuntimeError):
        context.require("helpers.py")
