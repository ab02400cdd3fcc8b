"""Type converter turning raw environment strings into declared Python types.

Purpose
-------
Map a field's declared type (or its custom ``unmarshal_env`` capability) plus a
raw string to a typed value. The dispatch is a closed switch over the supported
type families; anything outside that set raises
:class:`~lib_env_decoder.domain.errors.UnsupportedType`.

Contents
--------
* :func:`compile_converter` – build (and cache) a ``raw -> value`` callable for a type.
* :func:`convert` – one-shot conversion wrapping failures in ``ConversionFailed``.
* :func:`parse_duration` / :func:`parse_rfc3339` – the time grammars.
* :func:`is_skipped` / :func:`is_custom` / :func:`is_class` / :func:`unwrap_optional` – type predicates
  shared with the planner.

Conversion rules
----------------
* ``str`` – unmodified; ``int`` – base 10 (width aliases enforce ranges);
  ``float`` – decimal or scientific; ``bool`` – ``1/t/true/yes/on`` and
  ``0/f/false/no/off`` (case-insensitive, no surrounding whitespace).
* ``datetime`` – strict RFC 3339; ``date`` – ``YYYY-MM-DD``; ``timedelta`` –
  unit-suffixed duration grammar (``300ms``, ``1h30m``).
* ``list``/``tuple``/``set``/``frozenset`` – comma separated, each element
  converted recursively; ``dict`` – comma separated ``key=value`` entries.
* ``Optional[T]`` – converted as ``T``; ``Enum`` – by member name then value;
  ``Literal`` – one of the string literals.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import enum
import re
import struct
import types
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Annotated, Any, Callable, Final, Literal, Union, get_args, get_origin

from ..domain.errors import ConversionFailed, UnsupportedType
from ..domain.types import FloatWidth, IntWidth

Converter = Callable[[str], Any]

LIST_DELIMITER: Final[str] = ","
MAP_ENTRY_DELIMITER: Final[str] = "="

TRUE_TOKENS: Final[frozenset[str]] = frozenset({"1", "t", "true", "yes", "on"})
FALSE_TOKENS: Final[frozenset[str]] = frozenset({"0", "f", "false", "no", "off"})

_SIGNED_INT: Final[re.Pattern[str]] = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_INT: Final[re.Pattern[str]] = re.compile(r"[0-9]+")
_FLOAT: Final[re.Pattern[str]] = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)
_RFC3339: Final[re.Pattern[str]] = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})"
)
_DATE: Final[re.Pattern[str]] = re.compile(r"(\d{4})-(\d{2})-(\d{2})")

_DURATION_UNITS: Final[dict[str, int]] = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # micro sign
    "μs": 1_000,  # greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_PART: Final[str] = r"(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:ns|us|µs|μs|ms|s|m|h)"
_DURATION: Final[re.Pattern[str]] = re.compile(rf"[+-]?(?:{_DURATION_PART})+")
_DURATION_PIECE: Final[re.Pattern[str]] = re.compile(r"([0-9]*\.?[0-9]*)(ns|us|µs|μs|ms|s|m|h)")

_SEQUENCE_ORIGINS: Final[dict[object, type]] = {
    list: list,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    set: set,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
    frozenset: frozenset,
}
_MAPPING_ORIGINS: Final[frozenset[object]] = frozenset(
    {dict, collections.abc.Mapping, collections.abc.MutableMapping}
)


def convert(raw: str, declared_type: Any, *, path: str = "") -> Any:
    """Convert *raw* into *declared_type*.

    Raises
    ------
    ConversionFailed
        When *raw* is malformed for the declared type (``path`` names the key).
    UnsupportedType
        When no conversion rule exists for *declared_type*.

    Examples
    --------
    >>> convert("foo,bar,baz", list[str])
    ['foo', 'bar', 'baz']
    >>> convert("100ms,1s,1m", list[timedelta])
    [datetime.timedelta(microseconds=100000), datetime.timedelta(seconds=1), datetime.timedelta(seconds=60)]
    >>> convert("foo=1,bar=2", dict[str, int])
    {'foo': 1, 'bar': 2}
    """

    try:
        converter = compile_converter(declared_type)
    except UnsupportedType as exc:
        raise UnsupportedType(path, declared_type, str(exc)) from exc
    try:
        return converter(raw)
    except Exception as exc:  # noqa: BLE001 - custom unmarshalers may raise anything
        raise ConversionFailed(path, exc) from exc


def compile_converter(declared_type: Any) -> Converter:
    """Return a callable converting a raw string into *declared_type*.

    Converters raise :class:`ValueError` (or another built-in parsing error) on
    malformed input; :func:`convert` and the populator wrap those into
    :class:`ConversionFailed`. Unsupported types raise :class:`UnsupportedType`
    here, at compile time. Hashable types are cached; annotations carrying
    unhashable metadata (``Annotated[int, {"doc": ...}]``) are compiled on
    every call.
    """

    try:
        hash(declared_type)
    except TypeError:
        return _build_converter(declared_type)
    return _cached_converter(declared_type)


@lru_cache(maxsize=512)
def _cached_converter(declared_type: Any) -> Converter:
    return _build_converter(declared_type)


def _build_converter(declared_type: Any) -> Converter:
    base, markers = _strip_annotated(declared_type)
    origin = get_origin(base)

    if is_custom(base):
        return _custom_converter(base)
    if _is_union(origin):
        inner = unwrap_optional(base)
        if inner is None:
            raise UnsupportedType("", declared_type, "unions other than Optional[T] are ambiguous")
        return compile_converter(inner)
    if origin is Literal:
        return _literal_converter(get_args(base))
    if is_class(base) and issubclass(base, enum.Enum):
        return _enum_converter(base)
    if base is str:
        return str
    if base is bool:
        return parse_bool
    if base is int:
        width = _find_marker(markers, IntWidth)
        return lambda raw: parse_int(raw, width)
    if base is float:
        width = _find_marker(markers, FloatWidth)
        return lambda raw: parse_float(raw, width)
    if base is datetime:
        return parse_rfc3339
    if base is date:
        return parse_date
    if base is timedelta:
        return parse_duration
    if origin is None and base in _SEQUENCE_ORIGINS:
        return _sequence_converter(_SEQUENCE_ORIGINS[base], str)
    if base is tuple:
        return _sequence_converter(tuple, str)
    if base is dict:
        return _mapping_converter(str, str)
    if origin in _SEQUENCE_ORIGINS:
        (element,) = get_args(base) or (str,)
        return _sequence_converter(_SEQUENCE_ORIGINS[origin], element)
    if origin is tuple:
        return _tuple_converter(get_args(base))
    if origin in _MAPPING_ORIGINS:
        key_type, value_type = get_args(base) or (str, str)
        return _mapping_converter(key_type, value_type)
    raise UnsupportedType("", declared_type)


def parse_bool(raw: str) -> bool:
    """Parse boolean tokens (case-insensitive).

    >>> parse_bool("TRUE"), parse_bool("0")
    (True, False)
    """

    token = raw.lower()
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    raise ValueError(f"invalid boolean {raw!r}")


def parse_int(raw: str, width: IntWidth | None = None) -> int:
    """Parse a base-10 integer, enforcing *width* when given.

    >>> parse_int("-42")
    -42
    >>> parse_int("300", IntWidth(8))
    Traceback (most recent call last):
    ...
    OverflowError: 300 out of range for int8
    """

    pattern = _UNSIGNED_INT if width is not None and not width.signed else _SIGNED_INT
    if not pattern.fullmatch(raw):
        raise ValueError(f"invalid integer {raw!r}")
    value = int(raw, 10)
    if width is not None and not width.minimum <= value <= width.maximum:
        kind = "int" if width.signed else "uint"
        raise OverflowError(f"{value} out of range for {kind}{width.bits}")
    return value


def parse_float(raw: str, width: FloatWidth | None = None) -> float:
    """Parse a decimal or scientific float; 32-bit widths round to single precision."""

    if not _FLOAT.fullmatch(raw):
        raise ValueError(f"invalid float {raw!r}")
    value = float(raw)
    if width is not None and width.bits == 32:
        # struct raises OverflowError for finite values beyond float32 range
        (value,) = struct.unpack("f", struct.pack("f", value))
    return value


def parse_rfc3339(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp into a timezone-aware ``datetime``.

    >>> parse_rfc3339("2021-01-02T15:04:05Z").isoformat()
    '2021-01-02T15:04:05+00:00'
    >>> parse_rfc3339("2021-01-02 15:04:05")
    Traceback (most recent call last):
    ...
    ValueError: invalid RFC 3339 timestamp '2021-01-02 15:04:05'
    """

    match = _RFC3339.fullmatch(raw)
    if match is None:
        raise ValueError(f"invalid RFC 3339 timestamp {raw!r}")
    year, month, day, hour, minute, second = (int(part) for part in match.groups()[:6])
    fraction, offset = match.group(7), match.group(8)
    microsecond = int(fraction[:6].ljust(6, "0")) if fraction else 0
    if offset == "Z":
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        if hours > 23 or minutes > 59:
            raise ValueError(f"invalid RFC 3339 offset {offset!r}")
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=tz)


def parse_date(raw: str) -> date:
    """Parse a ``YYYY-MM-DD`` calendar date."""

    match = _DATE.fullmatch(raw)
    if match is None:
        raise ValueError(f"invalid date {raw!r}")
    year, month, day = (int(part) for part in match.groups())
    return date(year, month, day)


def parse_duration(raw: str) -> timedelta:
    """Parse a unit-suffixed duration such as ``300ms`` or ``1h15m30.5s``.

    Sub-microsecond remainders are truncated.

    >>> parse_duration("1m30s")
    datetime.timedelta(seconds=90)
    >>> parse_duration("-1.5h")
    datetime.timedelta(days=-1, seconds=81000)
    >>> parse_duration("0")
    datetime.timedelta(0)
    """

    if raw in {"0", "+0", "-0"}:
        return timedelta(0)
    if not _DURATION.fullmatch(raw):
        raise ValueError(f"invalid duration {raw!r}")
    negative = raw.startswith("-")
    body = raw.lstrip("+-")
    nanoseconds = Decimal(0)
    for number, unit in _DURATION_PIECE.findall(body):
        try:
            nanoseconds += Decimal(number) * _DURATION_UNITS[unit]
        except InvalidOperation as exc:
            raise ValueError(f"invalid duration {raw!r}") from exc
    micro = int(nanoseconds) // 1_000
    return timedelta(microseconds=-micro if negative else micro)


def is_skipped(declared_type: Any) -> bool:
    """Return ``True`` for dynamic types the decoder never populates.

    ``Any``, ``object``, ``Optional[Any]`` and callables carry no static shape to
    convert into.
    """

    base, _ = _strip_annotated(declared_type)
    inner = unwrap_optional(base)
    if inner is not None:
        base, _ = _strip_annotated(inner)
    if base is Any or base is object:
        return True
    origin = get_origin(base)
    return base is collections.abc.Callable or origin is collections.abc.Callable


def is_class(declared_type: Any) -> bool:
    """Return ``True`` for plain classes (``list[int]`` passes ``isinstance(..., type)`` on 3.10)."""

    return isinstance(declared_type, type) and get_origin(declared_type) is None


def is_custom(declared_type: Any) -> bool:
    """Return ``True`` when instances of *declared_type* implement ``unmarshal_env``."""

    return is_class(declared_type) and callable(getattr(declared_type, "unmarshal_env", None))


def unwrap_optional(declared_type: Any) -> Any | None:
    """Return ``T`` for ``Optional[T]`` (or ``T | None``), otherwise ``None``."""

    if not _is_union(get_origin(declared_type)):
        return None
    args = [arg for arg in get_args(declared_type) if arg is not type(None)]
    if len(args) != 1 or len(args) == len(get_args(declared_type)):
        return None
    return args[0]


def strip_annotated(declared_type: Any) -> Any:
    """Return the bare type behind ``Annotated[...]`` wrappers."""

    return _strip_annotated(declared_type)[0]


def _strip_annotated(declared_type: Any) -> tuple[Any, tuple[Any, ...]]:
    markers: tuple[Any, ...] = ()
    while get_origin(declared_type) is Annotated:
        markers += declared_type.__metadata__
        declared_type = declared_type.__origin__
    return declared_type, markers


def _is_union(origin: Any) -> bool:
    return origin is Union or origin is types.UnionType


def _find_marker(markers: tuple[Any, ...], kind: type) -> Any:
    for marker in markers:
        if isinstance(marker, kind):
            return marker
    return None


def _custom_converter(cls: type) -> Converter:
    def _convert(raw: str) -> Any:
        instance = cls()
        instance.unmarshal_env(raw)
        return instance

    return _convert


def _literal_converter(choices: tuple[Any, ...]) -> Converter:
    allowed = {str(choice): choice for choice in choices}

    def _convert(raw: str) -> Any:
        if raw not in allowed:
            raise ValueError(f"{raw!r} is not one of {sorted(allowed)}")
        return allowed[raw]

    return _convert


def _enum_converter(cls: type[enum.Enum]) -> Converter:
    def _convert(raw: str) -> enum.Enum:
        if raw in cls.__members__:
            return cls.__members__[raw]
        for member in cls:
            if str(member.value) == raw:
                return member
        raise ValueError(f"{raw!r} is not a valid {cls.__name__}")

    return _convert


def _split_list(raw: str) -> list[str]:
    if raw == "":
        return []
    return raw.split(LIST_DELIMITER)


def _sequence_converter(container: type, element_type: Any) -> Converter:
    element = compile_converter(element_type)

    def _convert(raw: str) -> Any:
        return container(element(part) for part in _split_list(raw))

    return _convert


def _tuple_converter(args: tuple[Any, ...]) -> Converter:
    if not args or (len(args) == 2 and args[1] is Ellipsis):
        return _sequence_converter(tuple, args[0] if args else str)
    elements = [compile_converter(arg) for arg in args]

    def _convert(raw: str) -> tuple[Any, ...]:
        parts = _split_list(raw)
        if len(parts) != len(elements):
            raise ValueError(f"expected {len(elements)} comma separated values, got {len(parts)}")
        return tuple(element(part) for element, part in zip(elements, parts))

    return _convert


def _mapping_converter(key_type: Any, value_type: Any) -> Converter:
    key_converter = compile_converter(key_type)
    value_converter = compile_converter(value_type)

    def _convert(raw: str) -> dict[Any, Any]:
        result: dict[Any, Any] = {}
        for entry in _split_list(raw):
            key, sep, value = entry.partition(MAP_ENTRY_DELIMITER)
            if not sep:
                raise ValueError(f"malformed map entry {entry!r} (expected key=value)")
            result[key_converter(key)] = value_converter(value)
        return result

    return _convert


def zero_value(declared_type: Any, build: Callable[[type], Any] | None = None) -> Any:
    """Return the zero value used when a field without default must be materialised.

    *build* constructs nested dataclasses; the planner passes its own
    constructor so required nested fields are zero-filled recursively.
    """

    base = strip_annotated(declared_type)
    if unwrap_optional(base) is not None or is_skipped(base):
        return None
    origin = get_origin(base) or base
    if is_class(base) and dataclasses.is_dataclass(base) and build is not None:
        return build(base)
    if is_custom(base):
        return base()
    if origin is Literal:
        return get_args(base)[0]
    if is_class(base) and issubclass(base, enum.Enum):
        return next(iter(base))
    simple: dict[object, Callable[[], Any]] = {
        str: str,
        bool: bool,
        int: int,
        float: float,
        timedelta: timedelta,
        datetime: lambda: datetime(1, 1, 1, tzinfo=timezone.utc),
        date: lambda: date.min,
        tuple: tuple,
    }
    if origin in simple:
        return simple[origin]()
    if origin in _SEQUENCE_ORIGINS:
        return _SEQUENCE_ORIGINS[origin]()
    if origin in _MAPPING_ORIGINS:
        return {}
    return None
