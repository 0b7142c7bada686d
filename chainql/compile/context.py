"""Compilation context for a single compile run.

Packages the ``(compiler, bindings)`` pair every clause-level sub-builder
needs, plus the list of parameter names in the order their placeholders
were emitted.  That order is the positional order for ``?``-style drivers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chainql.compile.base import SQLCompiler
from chainql.errors import CompilationError
from chainql.schema.bindings import BindingGenerator


@dataclass
class CompilationContext:
    """Per-statement rendering state.

    Attributes:
        compiler: Dialect-specific SQL compiler instance.
        bindings: The query state's binding generator (read only).
        emitted: Parameter names in placeholder order.
    """

    compiler: SQLCompiler
    bindings: BindingGenerator
    emitted: list[str] = field(default_factory=list)

    def place(self, name: str) -> str:
        """Record ``name`` as used and return its placeholder."""
        if name not in self.bindings:
            raise CompilationError(f"Unknown binding '{name}'.")
        self.emitted.append(name)
        return self.compiler.param_placeholder(name)

    def params(self) -> dict[str, Any]:
        """Return emitted bindings with their values, in emission order."""
        return {name: self.bindings.value_of(name) for name in self.emitted}
