"""Binding generator: unique, stable parameter names for literal values.

A single :class:`BindingGenerator` is owned by each query state and shared,
by reference, with every nested group built from it.  Names are therefore
unique across the whole statement, including parenthesized sub-groups,
without relying on any process-global counter.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

_UNSAFE = re.compile(r"[^0-9A-Za-z_]")


def sanitize_stem(text: str) -> str:
    """Reduce ``text`` to characters that are legal in a parameter name.

    Dots become underscores (``users.id`` -> ``users_id``); every other
    character outside ``[A-Za-z0-9_]`` is stripped.  An empty result falls
    back to ``param``.
    """
    stem = _UNSAFE.sub("", text.replace(".", "_")).strip("_")
    return stem or "param"


@dataclass
class BindingGenerator:
    """Allocates parameter names and records their values.

    Attributes:
        prefix: Leading token of every generated name.
        values: Ordered ``name -> value`` mapping; append-only.
        counter: Seed of the next name; only ever increases.
    """

    prefix: str = "qb"
    values: dict[str, Any] = field(default_factory=dict)
    counter: int = 0

    def add(self, stem: str, value: Any) -> str:
        """Register ``value`` under a fresh name derived from ``stem``.

        Args:
            stem: Usually the column the value is compared with.
            value: The literal value; never rendered into SQL text.

        Returns:
            The generated parameter name, e.g. ``qb_status_0``.
        """
        name = f"{self.prefix}_{sanitize_stem(stem)}_{self.counter}"
        self.counter += 1
        self.values[name] = value
        return name

    def add_many(self, stem: str, values: list[Any]) -> list[str]:
        """Register each of ``values`` in order and return their names."""
        return [self.add(stem, value) for value in values]

    def value_of(self, name: str) -> Any:
        return self.values[name]

    def __len__(self) -> int:
        return len(self.values)

    def __contains__(self, name: object) -> bool:
        return name in self.values
