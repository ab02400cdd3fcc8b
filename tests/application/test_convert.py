"""Type converter tests: one scenario per supported family plus failure modes."""

from __future__ import annotations

import enum
import math
import struct
from datetime import date, datetime, timedelta, timezone
from typing import Annotated, Any, Literal, Mapping, Optional, Sequence

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_env_decoder.application.convert import (
    compile_converter,
    convert,
    is_custom,
    is_skipped,
    parse_duration,
    parse_rfc3339,
    unwrap_optional,
    zero_value,
)
from lib_env_decoder.domain.errors import ConversionFailed, UnsupportedType
from lib_env_decoder.domain.types import Float32, Int8, Int64, UInt8, UInt16
from tests.support import HexNumber


class Level(enum.Enum):
    DEBUG = "debug"
    INFO = "info"


def test_string_is_unmodified() -> None:
    assert convert("  spaced, value=1 ", str) == "  spaced, value=1 "


@pytest.mark.parametrize(("raw", "expected"), [("100", 100), ("-7", -7), ("+3", 3), ("0", 0)])
def test_int_base_ten(raw: str, expected: int) -> None:
    assert convert(raw, int) == expected


@pytest.mark.parametrize("raw", ["", "1.5", "0x10", "1_000", " 1", "ten"])
def test_int_rejects_malformed(raw: str) -> None:
    with pytest.raises(ConversionFailed) as info:
        convert(raw, int, path="APP_COUNT")
    assert info.value.path == "APP_COUNT"
    assert isinstance(info.value.cause, ValueError)


def test_int_width_overflow() -> None:
    assert convert("127", Int8) == 127
    assert convert("-128", Int8) == -128
    with pytest.raises(ConversionFailed):
        convert("128", Int8)
    assert convert("255", UInt8) == 255
    with pytest.raises(ConversionFailed):
        convert("256", UInt8)
    with pytest.raises(ConversionFailed):
        convert("-1", UInt16)
    with pytest.raises(ConversionFailed):
        convert(str(2**63), Int64)


@given(st.integers(min_value=-(2**63), max_value=2**63 - 1))
def test_int64_round_trip(value: int) -> None:
    assert convert(str(value), Int64) == value


def test_floats() -> None:
    assert convert("99.9", float) == 99.9
    assert convert("1e3", float) == 1000.0
    assert convert("-.5", float) == -0.5
    assert math.isinf(convert("inf", float))
    assert math.isnan(convert("NaN", float))
    with pytest.raises(ConversionFailed):
        convert("1.2.3", float)
    with pytest.raises(ConversionFailed):
        convert("", float)


def test_float32_rounds_and_rejects_overflow() -> None:
    expected = struct.unpack("f", struct.pack("f", 99.9))[0]
    assert convert("99.9", Float32) == expected
    assert convert("99.9", Float32) != 99.9
    with pytest.raises(ConversionFailed):
        convert("1e39", Float32)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("true", True), ("TRUE", True), ("1", True), ("t", True), ("false", False), ("False", False), ("0", False)],
)
def test_bool_tokens(raw: str, expected: bool) -> None:
    assert convert(raw, bool) is expected


def test_bool_rejects_unknown_token() -> None:
    with pytest.raises(ConversionFailed):
        convert("maybe", bool)


@pytest.mark.parametrize("raw", [" true", "false ", " 1 ", ""])
def test_bool_rejects_surrounding_whitespace(raw: str) -> None:
    with pytest.raises(ConversionFailed):
        convert(raw, bool)


def test_rfc3339_timestamps() -> None:
    assert convert("2021-01-02T15:04:05Z", datetime) == datetime(2021, 1, 2, 15, 4, 5, tzinfo=timezone.utc)
    shifted = parse_rfc3339("2021-01-02T15:04:05.123456789+09:00")
    assert shifted.microsecond == 123456
    assert shifted.utcoffset() == timedelta(hours=9)


@pytest.mark.parametrize(
    "raw",
    ["2021-01-02", "2021-01-02 15:04:05Z", "2021-01-02T15:04:05", "2021-13-02T15:04:05Z", "02/01/2021"],
)
def test_rfc3339_rejects_deviations(raw: str) -> None:
    with pytest.raises(ConversionFailed):
        convert(raw, datetime)


def test_date() -> None:
    assert convert("2024-02-29", date) == date(2024, 2, 29)
    with pytest.raises(ConversionFailed):
        convert("2023-02-29", date)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("300ms", timedelta(milliseconds=300)),
        ("1s", timedelta(seconds=1)),
        ("1m", timedelta(minutes=1)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1.5s", timedelta(milliseconds=1500)),
        ("2us", timedelta(microseconds=2)),
        ("2µs", timedelta(microseconds=2)),
        ("1500ns", timedelta(microseconds=1)),
        ("-2m", timedelta(minutes=-2)),
        ("0", timedelta(0)),
    ],
)
def test_durations(raw: str, expected: timedelta) -> None:
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "10", "1d", "ms", "1 s", "1s2", "--1s"])
def test_duration_rejects_malformed(raw: str) -> None:
    with pytest.raises(ConversionFailed):
        convert(raw, timedelta)


def test_sequences() -> None:
    assert convert("foo,bar,baz", list[str]) == ["foo", "bar", "baz"]
    assert convert("100ms,1s,1m", list[timedelta]) == [
        timedelta(milliseconds=100),
        timedelta(seconds=1),
        timedelta(seconds=60),
    ]
    assert convert("1,2,3", tuple[int, ...]) == (1, 2, 3)
    assert convert("a,b,a", set[str]) == {"a", "b"}
    assert convert("1,2", Sequence[int]) == [1, 2]
    assert convert("x,y", list) == ["x", "y"]


def test_empty_sequence() -> None:
    assert convert("", list[int]) == []
    assert convert("", tuple[str, ...]) == ()


def test_sequence_element_failure_names_field() -> None:
    with pytest.raises(ConversionFailed) as info:
        convert("1,two,3", list[int], path="APP_IDS")
    assert info.value.path == "APP_IDS"


def test_fixed_tuple() -> None:
    assert convert("a,1", tuple[str, int]) == ("a", 1)
    with pytest.raises(ConversionFailed):
        convert("a,1,2", tuple[str, int])


def test_mappings() -> None:
    assert convert("foo=1,bar=2,baz=three", dict[str, str]) == {"foo": "1", "bar": "2", "baz": "three"}
    assert convert("a=1,a=2", dict[str, int]) == {"a": 2}
    assert convert("url=http://x?a=b", dict[str, str]) == {"url": "http://x?a=b"}
    assert convert("", Mapping[str, int]) == {}
    assert convert("1=on,2=off", dict[int, bool]) == {1: True, 2: False}


def test_mapping_rejects_entry_without_separator() -> None:
    with pytest.raises(ConversionFailed) as info:
        convert("foo=1,bar", dict[str, str], path="APP_MAP")
    assert "malformed map entry" in str(info.value)


def test_optional_converts_pointee() -> None:
    assert convert("pointer", Optional[str]) == "pointer"
    assert convert("5", int | None) == 5


def test_enum_and_literal() -> None:
    assert convert("DEBUG", Level) is Level.DEBUG
    assert convert("info", Level) is Level.INFO
    assert convert("fast", Literal["fast", "slow"]) == "fast"
    with pytest.raises(ConversionFailed):
        convert("medium", Literal["fast", "slow"])


def test_custom_capability_takes_precedence() -> None:
    assert convert("27", HexNumber) == HexNumber(39)
    with pytest.raises(ConversionFailed) as info:
        convert("zz", HexNumber, path="APP_HEX")
    assert info.value.path == "APP_HEX"


def test_unsupported_types() -> None:
    with pytest.raises(UnsupportedType) as info:
        convert("1", complex, path="APP_COMPLEX")
    assert info.value.path == "APP_COMPLEX"
    assert info.value.declared_type is complex
    with pytest.raises(UnsupportedType):
        convert("1", int | str)
    with pytest.raises(UnsupportedType):
        compile_converter(list[complex])


def test_type_predicates() -> None:
    assert is_skipped(Any)
    assert is_skipped(object)
    assert is_skipped(Optional[Any])
    assert not is_skipped(str)
    assert is_custom(HexNumber)
    assert not is_custom(str)
    assert unwrap_optional(Optional[int]) is int
    assert unwrap_optional(int) is None


def test_zero_values() -> None:
    assert zero_value(str) == ""
    assert zero_value(Int8) == 0
    assert zero_value(Optional[int]) is None
    assert zero_value(list[int]) == []
    assert zero_value(dict[str, int]) == {}
    assert zero_value(timedelta) == timedelta(0)
    assert zero_value(Level) is Level.DEBUG


def test_annotated_metadata_may_be_unhashable() -> None:
    documented = Annotated[int, {"doc": "listen port"}]
    assert convert("80", documented, path="APP_PORT") == 80
    assert convert("a,b", list[Annotated[str, {"doc": "peer"}]]) == ["a", "b"]
    with pytest.raises(ConversionFailed) as info:
        convert("eighty", documented, path="APP_PORT")
    assert info.value.path == "APP_PORT"
    with pytest.raises(UnsupportedType) as unsupported:
        convert("1", Annotated[complex, {"doc": "phase"}], path="APP_PHASE")
    assert unsupported.value.path == "APP_PHASE"
