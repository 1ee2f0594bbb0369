"""Tests for typed literals and comparisons."""

import math

import pytest

from popvars.values import (
    INT64_MAX,
    INT64_MIN,
    UINT64_MAX,
    Comparator,
    Literal,
    LiteralKind,
    coerce,
    matches,
    parse_float,
    parse_number_literal,
    parse_signed,
    parse_unsigned,
)


class TestNumberParsing:
    def test_unsigned(self):
        assert parse_unsigned("42") == 42
        assert parse_unsigned(str(UINT64_MAX)) == UINT64_MAX
        assert parse_unsigned(str(UINT64_MAX + 1)) is None
        assert parse_unsigned("-1") is None
        assert parse_unsigned("4.0") is None
        assert parse_unsigned("") is None

    def test_signed(self):
        assert parse_signed("-42") == -42
        assert parse_signed("+7") == 7
        assert parse_signed(str(INT64_MIN)) == INT64_MIN
        assert parse_signed(str(INT64_MAX + 1)) is None
        assert parse_signed("ten") is None

    def test_float(self):
        assert parse_float("2.5") == 2.5
        assert parse_float("-.5") == -0.5
        assert parse_float("1e-3") == 0.001
        assert parse_float("inf") == math.inf
        assert parse_float("1,5") is None
        assert parse_float(" 1.5") is None


class TestLiteralClassification:
    @pytest.mark.parametrize(
        "text, kind, value",
        [
            ("0", LiteralKind.UNSIGNED, 0),
            ("10", LiteralKind.UNSIGNED, 10),
            ("-10", LiteralKind.SIGNED, -10),
            ("+10", LiteralKind.SIGNED, 10),
            ("1.0", LiteralKind.FLOAT, 1.0),
            ("1e2", LiteralKind.FLOAT, 100.0),
            (str(UINT64_MAX + 1), LiteralKind.FLOAT, float(UINT64_MAX + 1)),
        ],
    )
    def test_first_valid_form_wins(self, text, kind, value):
        assert parse_number_literal(text) == Literal(kind, value)

    def test_not_a_number(self):
        assert parse_number_literal("abc") is None

    def test_str(self):
        assert str(Literal.text("x")) == '"x"'
        assert str(Literal(LiteralKind.SIGNED, -1)) == "-1"


class TestComparator:
    def test_from_spelling(self):
        assert Comparator("!=") is Comparator.NEQ
        assert Comparator(">=") is Comparator.GTE

    @pytest.mark.parametrize(
        "op, left, right, expected",
        [
            (Comparator.EQ, 1, 1, True),
            (Comparator.NEQ, 1, 1, False),
            (Comparator.GT, 2, 1, True),
            (Comparator.LT, 2, 1, False),
            (Comparator.GTE, 1, 1, True),
            (Comparator.LTE, 0, 1, True),
        ],
    )
    def test_compare(self, op, left, right, expected):
        assert op.compare(left, right) is expected


class TestCoerce:
    def test_text_is_unchanged(self):
        assert coerce(" 12 ", LiteralKind.TEXT) == " 12 "

    def test_unsigned(self):
        assert coerce("12", LiteralKind.UNSIGNED) == 12

    def test_invalid(self):
        with pytest.raises(ValueError, match="'ten' is not a valid unsigned integer"):
            coerce("ten", LiteralKind.UNSIGNED)

    def test_negative_is_not_unsigned(self):
        with pytest.raises(ValueError):
            coerce("-1", LiteralKind.UNSIGNED)


class TestMatches:
    def test_field_on_the_left(self):
        # size > 10 holds for a field value of 15
        assert matches("15", Comparator.GT, Literal(LiteralKind.UNSIGNED, 10))
        assert not matches("5", Comparator.GT, Literal(LiteralKind.UNSIGNED, 10))

    def test_numeric_not_lexicographic(self):
        assert matches("9", Comparator.LT, Literal(LiteralKind.UNSIGNED, 10))

    def test_text_is_lexicographic(self):
        assert not matches("9", Comparator.LT, Literal.text("10"))

    def test_float_field(self):
        assert matches("2.50", Comparator.EQ, Literal(LiteralKind.FLOAT, 2.5))

    def test_signed_field(self):
        assert matches("-3", Comparator.LTE, Literal(LiteralKind.SIGNED, -3))

    def test_unparseable_field(self):
        with pytest.raises(ValueError):
            matches("ten", Comparator.GT, Literal(LiteralKind.UNSIGNED, 10))
