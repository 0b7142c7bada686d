"""Dialect lookup for ``Database``.

``CompilerFactory`` maps the ``dialect`` setting to a
:class:`~chainql.compile.base.SQLCompiler` subclass.  The package
``__init__`` registers the four built-in targets:

===============  ========================  ====================
target           compiler                  aliases
===============  ========================  ====================
``sqlite``       ``SQLiteCompiler``        ``sqlite3``
``postgres``     ``PostgresCompiler``      ``postgresql``
``mysql``        ``MySQLCompiler``         ``mariadb``
``sqlserver``    ``SQLServerCompiler``     ``mssql``
===============  ========================  ====================

Target names and aliases are matched case-insensitively, so the scheme of
a connection URL (``postgresql://…``) can be passed straight through as
the dialect.  A third-party compiler is added the same way::

    @CompilerFactory.register("duckdb")
    class DuckDBCompiler(SQLiteCompiler):
        @property
        def dialect_name(self) -> str:
            return "duckdb"

    db = Database(executor, dialect="duckdb")
"""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from chainql.compile.base import SQLCompiler
from chainql.errors import CompilationError


def _key(name: str) -> str:
    return name.strip().lower()


class CompilerFactory:
    """Class-level registry of dialect compilers.

    Registering a target twice replaces the earlier compiler, which is how
    a built-in dialect is overridden.  Aliases always point at a target,
    never at a compiler class directly.
    """

    _compilers: ClassVar[dict[str, type[SQLCompiler]]] = {}
    _aliases: ClassVar[dict[str, str]] = {}

    @classmethod
    def register(
        cls, target: str, *aliases: str
    ) -> Callable[[type[SQLCompiler]], type[SQLCompiler]]:
        """Class decorator form of :meth:`register_class`."""

        def decorator(compiler_cls: type[SQLCompiler]) -> type[SQLCompiler]:
            cls.register_class(target, compiler_cls, *aliases)
            return compiler_cls

        return decorator

    @classmethod
    def register_class(
        cls, target: str, compiler_cls: type[SQLCompiler], *aliases: str
    ) -> None:
        """Register ``compiler_cls`` under ``target`` and any ``aliases``.

        Raises:
            TypeError: If ``compiler_cls`` is not an ``SQLCompiler`` subclass.
            ValueError: If ``target`` is blank or an alias already names a
                different target.
        """
        if not (isinstance(compiler_cls, type) and issubclass(compiler_cls, SQLCompiler)):
            raise TypeError(f"{compiler_cls!r} is not an SQLCompiler subclass.")
        key = _key(target)
        if not key:
            raise ValueError("Dialect target name must not be blank.")
        cls._compilers[key] = compiler_cls
        cls._aliases.pop(key, None)
        for alias in aliases:
            alias_key = _key(alias)
            if alias_key in cls._compilers or cls._aliases.get(alias_key, key) != key:
                raise ValueError(f"Dialect alias {alias!r} is already taken.")
            cls._aliases[alias_key] = key

    @classmethod
    def resolve(cls, name: str) -> str:
        """Return the registered target that ``name`` refers to.

        Raises:
            CompilationError: If ``name`` is neither a target nor an alias.
        """
        key = _key(name)
        key = cls._aliases.get(key, key)
        if key not in cls._compilers:
            raise CompilationError(
                f"Unsupported dialect target: '{name}'. "
                f"Registered targets: {cls.registered_targets()}."
            )
        return key

    @classmethod
    def create(cls, name: str) -> SQLCompiler:
        """Return a fresh compiler for the target or alias ``name``."""
        return cls._compilers[cls.resolve(name)]()

    @classmethod
    def registered_targets(cls) -> list[str]:
        """Sorted target names, without aliases."""
        return sorted(cls._compilers)
