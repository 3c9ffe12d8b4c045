"""Unit tests for shared runtime configuration parsing helpers."""

import pytest

from docexpert.parsing import (
    normalize_optional_string,
    parse_permissive_boolean,
    parse_positive_float,
    parse_positive_int,
)


def test_normalize_optional_string_handles_blank_values() -> None:
    """Normalization should return `None` for `None` and blank textual values."""

    assert normalize_optional_string(None) is None
    assert normalize_optional_string("") is None
    assert normalize_optional_string("   ") is None


def test_normalize_optional_string_strips_non_blank_values() -> None:
    """Normalization should return stripped content for non-empty values."""

    assert normalize_optional_string("  value  ") == "value"
    assert normalize_optional_string(42) == "42"


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("TrUe", True),
        ("  ON ", True),
        ("YeS", True),
        ("FALSE", False),
        (" oFf ", False),
        ("nO", False),
    ],
)
def test_parse_permissive_boolean_accepts_mixed_case_tokens(
    token: str, expected: bool
) -> None:
    """Permissive parsing should accept valid tokens case-insensitively."""

    assert parse_permissive_boolean(token) is expected


@pytest.mark.parametrize("value", ["", "   ", "maybe", "2", object()])
def test_parse_permissive_boolean_returns_none_for_invalid_tokens(value: object) -> None:
    """Permissive parsing should return `None` for invalid or blank inputs."""

    assert parse_permissive_boolean(value) is None


@pytest.mark.parametrize(("value", "expected"), [(5, 5), (" 12 ", 12), ("1", 1)])
def test_parse_positive_int_accepts_ints_and_decimal_strings(value: object, expected: int) -> None:
    """Positive integers parse from ints and trimmed strings."""

    assert parse_positive_int(value, "chunk_size") == expected


@pytest.mark.parametrize("value", [0, -3, "0", "abc", "", None, True, "2.5"])
def test_parse_positive_int_rejects_invalid_values(value: object) -> None:
    """Zero, negatives, booleans, and non-integers are rejected with the field name."""

    with pytest.raises(ValueError, match=r"`chunk_size` must be a positive integer\."):
        parse_positive_int(value, "chunk_size")


def test_parse_positive_float_accepts_numbers_and_rejects_non_positive() -> None:
    """Timeouts parse from numbers or strings and must be positive."""

    assert parse_positive_float("0.5", "timeout_seconds") == 0.5
    assert parse_positive_float(900, "timeout_seconds") == 900.0
    with pytest.raises(ValueError, match="timeout_seconds"):
        parse_positive_float("-1", "timeout_seconds")
    with pytest.raises(ValueError, match="timeout_seconds"):
        parse_positive_float("soon", "timeout_seconds")
