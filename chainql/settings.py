"""Runtime settings for chainql.

Values are read from the environment (prefix ``CHAINQL_``) or an optional
``.env`` file, and can always be overridden by passing a
:class:`ChainQLSettings` instance to :class:`~chainql.database.Database`::

    settings = ChainQLSettings(dialect="postgres", allow_unconditional_mutations=False)
    db = Database(DBAPIExecutor(conn), settings=settings)
"""
from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chainql.schema.bindings import sanitize_stem


class ChainQLSettings(BaseSettings):
    """Configuration shared by every builder created from one ``Database``.

    Attributes:
        dialect: Registered compiler target used to render SQL.
        binding_prefix: Leading token of every generated parameter name.
        default_primary_key: Column used by ``find()`` and returned by
            ``insert()`` on dialects that need ``RETURNING``.
        allow_unconditional_mutations: When False, UPDATE / DELETE /
            INCREMENT without a WHERE clause raise instead of running.
        log_bindings: Include binding names in DEBUG statement logs.
            Values are never logged.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHAINQL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    dialect: str = Field(
        default="sqlite",
        description="Compiler target: sqlite, postgres, mysql or sqlserver",
    )
    binding_prefix: str = Field(
        default="qb",
        min_length=1,
        description="Prefix of generated parameter names (qb -> qb_status_0)",
    )
    default_primary_key: str = Field(
        default="id",
        min_length=1,
        description="Primary key column for find() and insert() id retrieval",
    )
    allow_unconditional_mutations: bool = Field(
        default=True,
        description="Permit UPDATE/DELETE statements that have no WHERE clause",
    )
    log_bindings: bool = Field(
        default=False,
        description="Log binding names (never values) with each statement",
    )

    @field_validator("dialect")
    @classmethod
    def _normalize_dialect(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("binding_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if sanitize_stem(value) != value:
            raise ValueError(
                f"binding_prefix must contain only letters, digits and inner underscores: {value!r}"
            )
        return value
