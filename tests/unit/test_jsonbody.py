"""
Unit tests for the compact JSON writer.
"""

from decimal import Decimal

import pytest

from bulletinboard.http.jsonbody import dumps, escape_string
from bulletinboard.http.status_codes import HTTPStatus


class TestEscapeString:
    """Tests for escape_string()."""

    @pytest.mark.parametrize("raw,expected", [
        ('say "hi"', 'say \\"hi\\"'),
        ("a\\b", "a\\\\b"),
        ("line1\nline2", "line1\\nline2"),
        ("\r\t", "\\r\\t"),
        ("\x01", "\\u0001"),
        ("\x1f", "\\u001f"),
        ("plain", "plain"),
        ("café", "café"),
        ("a/b", "a/b"),
    ])
    def test_escape(self, raw: str, expected: str):
        assert escape_string(raw) == expected


class TestDumps:
    """Tests for dumps()."""

    def test_scalars(self):
        assert dumps(None) == "null"
        assert dumps(True) == "true"
        assert dumps(False) == "false"
        assert dumps(42) == "42"
        assert dumps("x") == '"x"'

    def test_int_enum_written_as_number(self):
        assert dumps(HTTPStatus.NOT_FOUND) == "404"

    @pytest.mark.parametrize("amount,expected", [
        (Decimal("150"), "150.00"),
        (Decimal("12.5"), "12.50"),
        (Decimal("0"), "0.00"),
        (Decimal("19.999"), "20.00"),
    ])
    def test_money(self, amount: Decimal, expected: str):
        """Test that Decimal amounts always carry two decimals."""
        assert dumps(amount) == expected

    def test_nested_keeps_key_order(self):
        data = {"id": 1, "user": {"name": "A", "tags": ["x", "y"]}, "ok": True}

        assert dumps(data) == '{"id":1,"user":{"name":"A","tags":["x","y"]},"ok":true}'

    def test_keys_escaped(self):
        assert dumps({'k"': 1}) == '{"k\\"":1}'

    def test_empty_containers(self):
        assert dumps({}) == "{}"
        assert dumps([]) == "[]"

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), Decimal("NaN")])
    def test_non_finite_rejected(self, value):
        with pytest.raises(TypeError):
            dumps(value)

    def test_unknown_type_rejected(self):
        with pytest.raises(TypeError):
            dumps(object())
