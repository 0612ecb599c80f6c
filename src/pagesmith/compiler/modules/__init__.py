"""Compiler modules, one per directive family."""

from pagesmith.compiler.modules.anchor import AnchorModule
from pagesmith.compiler.modules.dedupe import DeduplicateModule
from pagesmith.compiler.modules.expression import ExpressionModule
from pagesmith.compiler.modules.imports import ImportModule
from pagesmith.compiler.modules.logic import DomLogicModule
from pagesmith.compiler.modules.reference import ReferenceModule
from pagesmith.compiler.modules.script import ScriptModule
from pagesmith.compiler.modules.slot import SlotModule
from pagesmith.compiler.modules.style import StyleModule
from pagesmith.compiler.modules.var import VarModule
from pagesmith.compiler.modules.whitespace import WhitespaceModule

__all__ = [
    "AnchorModule",
    "DeduplicateModule",
    "DomLogicModule",
    "ExpressionModule",
    "ImportModule",
    "ReferenceModule",
    "ScriptModule",
    "SlotModule",
    "StyleModule",
    "VarModule",
    "WhitespaceModule",
]
