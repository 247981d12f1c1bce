from __future__ import annotations

import logging
import math
import sys

import pytest

from serialplot.core.record_parser import RecordParseError, coerce_number, decode_record, parse_record


def test_parse_record_returns_mapping_with_raw_values() -> None:
    record = parse_record('{"temp": 21.5, "count": 3, "state": "idle", "ok": true}')
    assert record == {"temp": 21.5, "count": 3, "state": "idle", "ok": True}


def test_parse_record_keeps_key_order() -> None:
    record = parse_record('{"z": 1, "a": 2, "m": 3}')
    assert list(record) == ["z", "a", "m"]


@pytest.mark.parametrize("text", ["not json", "", "[1, 2, 3]", "42", '"text"', '{"a": 1'])
def test_parse_record_rejects_non_objects_with_one_warning(text: str, caplog) -> None:
    caplog.set_level(logging.WARNING, logger="serialplot.core.record_parser")
    assert parse_record(text) is None
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "malformed record" in warnings[0].getMessage()


def test_parse_record_tolerates_surrounding_whitespace() -> None:
    assert parse_record(' {"a": 1}\r') == {"a": 1}


def test_decode_record_raises_parse_error() -> None:
    with pytest.raises(RecordParseError) as excinfo:
        decode_record("[1]")
    assert excinfo.value.text == "[1]"
    assert isinstance(excinfo.value, ValueError)


def test_parse_record_log_level_can_be_lowered(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="serialplot.core.record_parser")
    assert parse_record("oops", log_level=logging.DEBUG) is None
    assert [r.levelno for r in caplog.records] == [logging.DEBUG]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1, 1.0),
        (2.5, 2.5),
        ("3.25", 3.25),
        (" 4 ", 4.0),
        (True, None),
        (False, None),
        ("abc", None),
        (None, None),
        ([1], None),
        ({"a": 1}, None),
    ],
)
def test_coerce_number(value, expected) -> None:
    assert coerce_number(value) == expected


def test_coerce_number_treats_nan_as_absent() -> None:
    assert coerce_number(math.nan) is None
    assert coerce_number("nan") is None


needs_int_digit_limit = pytest.mark.skipif(
    not getattr(sys, "get_int_max_str_digits", lambda: 0)(),
    reason="interpreter has no int string-conversion limit",
)


@needs_int_digit_limit
def test_parse_record_rejects_integer_past_digit_limit(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="serialplot.core.record_parser")
    text = '{"x": ' + "9" * (sys.get_int_max_str_digits() + 10) + "}"
    assert parse_record(text) is None
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1


def test_parse_record_rejects_pathologically_deep_nesting() -> None:
    assert parse_record("[" * 100_000) is None
    assert parse_record('{"a": ' * 100_000) is None


def test_decode_record_wraps_deep_nesting_as_parse_error() -> None:
    with pytest.raises(RecordParseError) as excinfo:
        decode_record("[" * 100_000)
    assert "RecursionError" in excinfo.value.reason


def test_coerce_number_treats_float_overflow_as_absent() -> None:
    assert coerce_number(10**400) is None
    assert coerce_number(-(10**400)) is None
