# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

from decimal import Decimal

import pytest

from sqlguard.detection import generate_secure_rewrite, render_literal, substitute_parameters
from sqlguard.errors import ValidationError


def test_rewrite_lifts_operator_adjacent_literals():
    result = generate_secure_rewrite("SELECT * FROM users WHERE name = 'admin' AND age > 30")
    assert result.secure == "SELECT * FROM users WHERE name = :param_1 AND age > :param_2"
    assert result.parameters == {"param_1": "admin", "param_2": 30}
    assert result.rewritten is True
    assert "2 literal values" in result.explanation


def test_rewrite_round_trips_to_original_text():
    original = "SELECT * FROM orders WHERE note = 'it''s late' AND total >= 19.95 AND id <> 7"
    result = generate_secure_rewrite(original)
    assert result.parameters["param_1"] == "it's late"
    assert result.parameters["param_2"] == Decimal("19.95")
    assert substitute_parameters(result.secure, result.parameters) == original


def test_rewrite_leaves_identifiers_and_unrelated_numbers_alone():
    query = 'SELECT "col 1", [order], `limit` FROM t1 LIMIT 10'
    result = generate_secure_rewrite(query)
    assert result.secure == query
    assert result.parameters == {}
    assert result.rewritten is False
    assert "unchanged" in result.explanation


def test_rewrite_keeps_existing_parameters_and_continues_numbering():
    result = generate_secure_rewrite("SELECT * FROM t WHERE a = :param_1 AND b = 5", {"param_1": "x"})
    assert result.secure == "SELECT * FROM t WHERE a = :param_1 AND b = :param_2"
    assert result.parameters == {"param_1": "x", "param_2": 5}


def test_rewrite_skips_placeholder_names_already_in_the_query():
    result = generate_secure_rewrite("SELECT * FROM t WHERE a = :param_1 AND b = 5")
    assert result.secure == "SELECT * FROM t WHERE a = :param_1 AND b = :param_2"
    assert result.parameters == {"param_2": 5}
    assert substitute_parameters(result.secure, {"param_1": 9, **result.parameters}) == "SELECT * FROM t WHERE a = 9 AND b = 5"


def test_rewrite_numbered_style_skips_existing_positions():
    result = generate_secure_rewrite("SELECT * FROM t WHERE a = $1 AND b = 5 AND c = 'x'", style="numbered")
    assert result.secure == "SELECT * FROM t WHERE a = $1 AND b = $2 AND c = $3"
    assert result.parameters == {"2": 5, "3": "x"}


def test_rewrite_ignores_placeholder_lookalikes_inside_strings():
    result = generate_secure_rewrite("SELECT * FROM t WHERE note = ':param_1' AND id = 4")
    assert result.secure == "SELECT * FROM t WHERE note = :param_1 AND id = :param_2"
    assert result.parameters == {"param_1": ":param_1", "param_2": 4}


def test_rewrite_numbered_style():
    result = generate_secure_rewrite("UPDATE t SET name = 'bob' WHERE id = 3", style="numbered")
    assert result.secure == "UPDATE t SET name = $1 WHERE id = $2"
    assert result.parameters == {"1": "bob", "2": 3}
    assert substitute_parameters(result.secure, result.parameters) == "UPDATE t SET name = 'bob' WHERE id = 3"


def test_rewrite_does_not_remove_injected_statements():
    result = generate_secure_rewrite("SELECT * FROM t WHERE id = 1; DROP TABLE users")
    assert result.secure == "SELECT * FROM t WHERE id = :param_1; DROP TABLE users"


def test_substitute_skips_placeholders_inside_strings():
    secure = "SELECT ':param_1' AS label FROM t WHERE id = :param_1"
    assert substitute_parameters(secure, {"param_1": 4}) == "SELECT ':param_1' AS label FROM t WHERE id = 4"


def test_render_literal_escapes_quotes():
    assert render_literal("o'neil") == "'o''neil'"
    assert render_literal(12) == "12"
    assert render_literal(Decimal("1.50")) == "1.50"


def test_rewrite_rejects_bad_input():
    with pytest.raises(ValidationError):
        generate_secure_rewrite(None)
    with pytest.raises(ValidationError):
        generate_secure_rewrite("SELECT 1", style="qmark")
