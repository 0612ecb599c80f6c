"""Scopes, evaluation contexts and the script engine."""

from pagesmith.eval.context import EvalContext
from pagesmith.eval.engine import (
    EvalFunction,
    ScriptEngine,
    StandardScriptEngine,
    is_expression_string,
)
from pagesmith.eval.scope import Scope, to_scope_name

__all__ = [
    "EvalContext",
    "EvalFunction",
    "Scope",
    "ScriptEngine",
    "StandardScriptEngine",
    "is_expression_string",
    "to_scope_name",
]
