"""chainql compilation layer: QueryState → parameterized SQL."""
from chainql.compile.base import CompiledSQL, SQLCompiler
from chainql.compile.builder import StatementBuilder
from chainql.compile.mysql import MySQLCompiler
from chainql.compile.postgres import PostgresCompiler
from chainql.compile.registry import CompilerFactory
from chainql.compile.sqlite import SQLiteCompiler
from chainql.compile.sqlserver import SQLServerCompiler

__all__ = [
    "CompiledSQL",
    "SQLCompiler",
    "StatementBuilder",
    "CompilerFactory",
    "MySQLCompiler",
    "PostgresCompiler",
    "SQLiteCompiler",
    "SQLServerCompiler",
]
