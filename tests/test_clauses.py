"""Unit tests for clause registration and the binding generator."""

from __future__ import annotations

import pytest

from chainql import ChainQLSettings, Database, QueryBuilder
from chainql.errors import (
    BindingCountError,
    CompilationError,
    EmptySetClauseWarning,
    InvalidOperatorError,
)
from chainql.schema.bindings import BindingGenerator, sanitize_stem
from chainql.schema.clauses import BasicClause, GroupClause, InClause, NullClause


def _q(table: str = "users", **settings) -> QueryBuilder:
    return Database(settings=ChainQLSettings(_env_file=None, **settings)).table(table)


# ---------------------------------------------------------------------------
# Binding generator
# ---------------------------------------------------------------------------


class TestSanitizeStem:
    def test_dot_becomes_underscore(self):
        assert sanitize_stem("users.id") == "users_id"

    def test_unsafe_characters_are_stripped(self):
        assert sanitize_stem("LOWER(email)") == "LOWERemail"
        assert sanitize_stem("a-b c") == "abc"

    def test_empty_falls_back_to_param(self):
        assert sanitize_stem("") == "param"
        assert sanitize_stem("(*)") == "param"


def test_generator_counter_is_monotonic():
    gen = BindingGenerator()
    names = [gen.add("status", v) for v in ("a", "b", "c")]
    assert names == ["qb_status_0", "qb_status_1", "qb_status_2"]
    assert gen.counter == 3
    assert len(gen) == 3
    assert gen.value_of("qb_status_1") == "b"
    assert "qb_status_2" in gen


def test_repeated_column_gets_distinct_names():
    q = _q().where("status", "a").where("status", "b").or_where("status", "c")
    assert q.get_bindings() == {
        "qb_status_0": "a",
        "qb_status_1": "b",
        "qb_status_2": "c",
    }


def test_dotted_column_binding_name():
    assert _q().where("users.id", 7).to_sql() == (
        "SELECT * FROM users WHERE users.id = :qb_users_id_0"
    )


def test_custom_binding_prefix():
    assert _q(binding_prefix="p").where("id", 1).to_sql() == (
        "SELECT * FROM users WHERE id = :p_id_0"
    )


# ---------------------------------------------------------------------------
# where / or_where
# ---------------------------------------------------------------------------


class TestOperatorWhitelist:
    @pytest.mark.parametrize("op", ["=", "!=", "<>", ">", ">=", "<", "<=", "LIKE"])
    def test_allowed(self, op):
        clause = _q().where("age", op, 1).state.wheres[0]
        assert isinstance(clause, BasicClause)
        assert clause.operator == op

    def test_like_is_case_insensitive_and_trimmed(self):
        assert _q().where("name", " like ", "A%").to_sql() == (
            "SELECT * FROM users WHERE name LIKE :qb_name_0"
        )

    @pytest.mark.parametrize("op", ["; DROP TABLE users; --", "IN", "==", "", None])
    def test_rejected_before_state_changes(self, op):
        q = _q()
        with pytest.raises(InvalidOperatorError):
            q.where("age", op, 1)
        assert q.state.wheres == []
        assert len(q.state.bindings) == 0


def test_missing_value_is_an_error():
    with pytest.raises(TypeError):
        _q().where("status")


def test_where_mapping_uses_call_connector():
    q = _q().where("a", 1).or_where({"b": 2, "c": 3})
    assert q.to_sql() == "SELECT * FROM users WHERE a = :qb_a_0 OR b = :qb_b_1 OR c = :qb_c_2"
    q = _q().where({"status": "active", "role": "admin"})
    assert q.to_sql() == (
        "SELECT * FROM users WHERE status = :qb_status_0 AND role = :qb_role_1"
    )


def test_none_value_becomes_null_check():
    q = _q().where("deleted_at", None).where("email", "!=", None)
    assert q.to_sql() == (
        "SELECT * FROM users WHERE deleted_at IS NULL AND email IS NOT NULL"
    )
    assert q.get_bindings() == {}


def test_group_clause_is_recorded():
    q = _q().or_where(lambda g: g.where("a", 1).where("b", 2))
    group = q.state.wheres[0]
    assert isinstance(group, GroupClause)
    assert group.connector.value == "OR"
    assert len(group.nested) == 2


@pytest.mark.parametrize("method", ["where", "or_where", "having"])
def test_table_inside_group_is_rejected(method):
    q = _q().where("status", "active")
    with pytest.raises(CompilationError, match="nested"):
        getattr(q, method)(lambda g: g.table("posts").where("a", 1))
    assert q.to_sql() == "SELECT * FROM users WHERE status = :qb_status_0"


# ---------------------------------------------------------------------------
# IN / NULL / BETWEEN / RAW
# ---------------------------------------------------------------------------


def test_where_in_binds_each_value():
    q = _q().where_in("id", [1, 2, 3])
    assert q.to_sql() == "SELECT * FROM users WHERE id IN (:qb_id_0, :qb_id_1, :qb_id_2)"
    assert q.get_bindings() == {"qb_id_0": 1, "qb_id_1": 2, "qb_id_2": 3}


def test_where_in_materializes_iterables():
    q = _q().where_in("id", (n for n in range(2)))
    assert q.get_bindings() == {"qb_id_0": 0, "qb_id_1": 1}


def test_where_in_rejects_a_string():
    with pytest.raises(TypeError):
        _q().where_in("status", "active")


def test_or_where_not_in():
    q = _q().where("a", 1).or_where_not_in("role", ["admin"])
    assert q.to_sql() == "SELECT * FROM users WHERE a = :qb_a_0 OR role NOT IN (:qb_role_1)"


def test_empty_in_is_always_false():
    with pytest.warns(EmptySetClauseWarning):
        q = _q().where_in("id", [])
    assert q.to_sql() == "SELECT * FROM users WHERE 1 = 0"
    assert q.get_bindings() == {}
    assert isinstance(q.state.wheres[0], InClause)


def test_empty_not_in_is_always_true():
    with pytest.warns(EmptySetClauseWarning):
        q = _q().where("status", "active").where_not_in("id", [])
    assert q.to_sql() == "SELECT * FROM users WHERE status = :qb_status_0 AND 1 = 1"


def test_empty_in_is_logged(caplog):
    with pytest.warns(EmptySetClauseWarning):
        with caplog.at_level("WARNING", logger="chainql.query.builder"):
            _q().where_in("id", [])
    assert "Empty IN list" in caplog.text


def test_null_variants():
    q = (
        _q()
        .where_null("deleted_at")
        .or_where_null("email")
        .where_not_null("name")
        .or_where_not_null("age")
    )
    assert q.to_sql() == (
        "SELECT * FROM users WHERE deleted_at IS NULL OR email IS NULL "
        "AND name IS NOT NULL OR age IS NOT NULL"
    )
    assert all(isinstance(c, NullClause) for c in q.state.wheres)


def test_between_keeps_bound_order():
    q = _q().where_between("age", 65, 18)
    assert q.to_sql() == (
        "SELECT * FROM users WHERE age BETWEEN :qb_age_min_0 AND :qb_age_max_1"
    )
    assert list(q.get_bindings().values()) == [65, 18]


def test_not_between_and_or_variants():
    q = _q().where_not_between("age", 1, 2).or_where_between("id", 3, 4)
    assert q.to_sql() == (
        "SELECT * FROM users WHERE age NOT BETWEEN :qb_age_min_0 AND :qb_age_max_1 "
        "OR id BETWEEN :qb_id_min_2 AND :qb_id_max_3"
    )


def test_raw_fragment_markers_are_bound():
    q = _q().where("status", "active").or_where_raw("LOWER(email) = ? AND age > ?", ["a@b.c", 30])
    assert q.to_sql() == (
        "SELECT * FROM users WHERE status = :qb_status_0 "
        "OR LOWER(email) = :qb_raw_1 AND age > :qb_raw_2"
    )
    assert q.get_bindings() == {"qb_status_0": "active", "qb_raw_1": "a@b.c", "qb_raw_2": 30}


def test_raw_fragment_without_markers():
    assert _q().where_raw("deleted_at IS NULL").to_sql() == (
        "SELECT * FROM users WHERE deleted_at IS NULL"
    )


@pytest.mark.parametrize("values", [[], [1, 2]])
def test_raw_marker_mismatch(values):
    q = _q()
    with pytest.raises(BindingCountError) as info:
        q.where_raw("age > ?", values)
    assert info.value.expected == 1
    assert info.value.given == len(values)
    assert q.state.wheres == []


def test_having_variants():
    q = (
        _q("posts")
        .select("user_id")
        .group_by("user_id")
        .having_in("user_id", [1, 2])
        .having_not_null("user_id")
        .having_between("user_id", 0, 9)
        .or_having_raw("SUM(views) > ?", [5])
    )
    assert q.to_sql() == (
        "SELECT user_id FROM posts GROUP BY user_id HAVING "
        "user_id IN (:qb_user_id_0, :qb_user_id_1) AND user_id IS NOT NULL "
        "AND user_id BETWEEN :qb_user_id_min_2 AND :qb_user_id_max_3 "
        "OR SUM(views) > :qb_raw_4"
    )


# ---------------------------------------------------------------------------
# Pagination and cloning
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("per_page", "page", "offset"),
    [(20, 1, 0), (20, 3, 40), (1, 7, 6), (15, 2, 15)],
)
def test_paginate_arithmetic(per_page, page, offset):
    state = _q().paginate(per_page, page=page).state
    assert state.limit == per_page
    assert state.offset == offset


@pytest.mark.parametrize(("per_page", "page"), [(0, 1), (10, 0), (-1, 1)])
def test_paginate_rejects_non_positive(per_page, page):
    with pytest.raises(ValueError):
        _q().paginate(per_page, page=page)


def test_negative_limit_and_offset():
    with pytest.raises(ValueError):
        _q().limit(-1)
    with pytest.raises(ValueError):
        _q().offset(-5)


def test_clone_is_independent():
    base = _q().where("status", "active")
    branch = base.clone().where("age", ">", 18)
    assert base.to_sql() == "SELECT * FROM users WHERE status = :qb_status_0"
    assert branch.to_sql() == (
        "SELECT * FROM users WHERE status = :qb_status_0 AND age > :qb_age_1"
    )
    assert len(base.state.bindings) == 1


def test_chaining_returns_same_builder():
    q = _q()
    assert q.where("a", 1) is q
    assert q.order_by("a") is q
    assert q.limit(1) is q
