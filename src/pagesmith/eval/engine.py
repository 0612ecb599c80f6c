"""Script engine.

Template text can embed dynamic content two ways:

- whole-value ``{{ expr }}``: the trimmed text is exactly one expression and
  evaluates to its raw (unconverted) value.
- interpolation ``${ expr }``: any number of expressions embedded in a larger
  string; the result is always a string.

Expressions are Jinja2 expressions. Scripts (``<script compiled>`` and
component scripts) are Python statements executed with full interpreter
access; the top-level names a script binds become scope bindings.
"""

from __future__ import annotations

import os
import re
import textwrap
from types import ModuleType
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

from jinja2 import Environment

from pagesmith.eval.context import RESERVED_NAMES, EvalContext

EvalFunction = Callable[[EvalContext], Any]

_WHOLE_VALUE_RE = re.compile(r"^\{\{(.*)\}\}$", re.DOTALL)
_INTERPOLATION_RE = re.compile(r"(?<!\\)\$\{((?:[^\\}]|\\.)*)\}", re.DOTALL)


def is_whole_value_expression(text: str) -> bool:
    return _WHOLE_VALUE_RE.match(text.strip()) is not None


def is_interpolated_string(text: str) -> bool:
    return _INTERPOLATION_RE.search(text) is not None


def is_expression_string(text: str) -> bool:
    """True if ``text`` contains dynamic content in either syntax."""
    return is_whole_value_expression(text) or is_interpolated_string(text)


def env_var(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read an environment variable from inside an expression."""
    return os.environ.get(name, default)


def create_expression_environment() -> Environment:
    """Create the Jinja2 environment used to compile expressions.

    Returns:
        Configured Jinja2 Environment.
    """
    env = Environment(autoescape=False)
    env.globals["env"] = env_var
    return env


class ScriptEngine(Protocol):
    """Compiles source text into callables bound to an EvalContext."""

    def compile_expression(self, source: str) -> EvalFunction: ...

    def compile_script(self, source: str) -> EvalFunction: ...


class StandardScriptEngine:
    """Jinja2 expressions and Python scripts."""

    def __init__(self, env: Optional[Environment] = None):
        self.env = env or create_expression_environment()

    def compile_expression(self, source: str) -> EvalFunction:
        """Compile dynamic text into a callable.

        Args:
            source: Text containing ``{{ }}`` or ``${ }`` expressions.

        Returns:
            Callable taking an EvalContext and returning the value.

        Raises:
            ValueError: If ``source`` contains no dynamic content.
        """
        stripped = source.strip()
        match = _WHOLE_VALUE_RE.match(stripped)
        if match is not None:
            return WholeValueExpression(self._compile(match.group(1)))

        parts: List[Union[str, Callable[..., Any]]] = []
        position = 0
        for match in _INTERPOLATION_RE.finditer(source):
            if match.start() > position:
                parts.append(source[position : match.start()])
            parts.append(self._compile(match.group(1).replace("\\}", "}")))
            position = match.end()

        if not any(callable(part) for part in parts):
            raise ValueError(f"Text does not contain an expression: {source!r}")

        if position < len(source):
            parts.append(source[position:])
        return InterpolatedExpression(parts)

    def compile_script(self, source: str) -> EvalFunction:
        """Compile Python statements into a callable returning new bindings."""
        code = compile(textwrap.dedent(source).strip("\n"), "<script>", "exec")
        return CompiledScript(code)

    def _compile(self, expression: str) -> Callable[..., Any]:
        return self.env.compile_expression(expression.strip(), undefined_to_none=True)


class WholeValueExpression:
    def __init__(self, expression: Callable[..., Any]):
        self.expression = expression

    def __call__(self, context: EvalContext) -> Any:
        return self.expression(context.bindings())


class InterpolatedExpression:
    def __init__(self, parts: List[Union[str, Callable[..., Any]]]):
        self.parts = parts

    def __call__(self, context: EvalContext) -> str:
        bindings = context.bindings()
        out = []
        for part in self.parts:
            if isinstance(part, str):
                out.append(part)
            else:
                value = part(bindings)
                out.append("" if value is None else str(value))
        return "".join(out)


class CompiledScript:
    """A compiled Python script.

    Calling it executes the script in a namespace seeded from the context
    and returns every top-level name the script bound or rebound, skipping
    private names, modules and the reserved names.
    """

    def __init__(self, code):
        self.code = code

    def __call__(self, context: EvalContext) -> Dict[str, Any]:
        namespace = context.bindings()
        before = dict(namespace)

        exec(self.code, namespace)

        produced = {}
        for name, value in namespace.items():
            if name.startswith("_") or name in RESERVED_NAMES:
                continue
            if isinstance(value, ModuleType):
                continue
            if name in before and before[name] is value:
                continue
            produced[name] = value
        return produced
