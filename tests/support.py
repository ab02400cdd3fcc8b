"""Shared dataclass fixtures for the decoder test-suites.

The shapes live at module level so ``typing.get_type_hints`` can resolve their
annotations, and so the CLI tests can address them as ``tests.support:Spec``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Annotated, Any, Callable, Optional

from lib_env_decoder import (
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    env_field,
)


class HexNumber:
    """Custom type parsing its environment value as base-16."""

    def __init__(self, value: int = 0) -> None:
        self.value = value

    def unmarshal_env(self, raw: str) -> None:
        try:
            self.value = int(raw, 16)
        except ValueError as exc:
            raise ValueError("failed to parse value for HexNumber") from exc

    def __eq__(self, other: object) -> bool:
        return isinstance(other, HexNumber) and other.value == self.value

    def __repr__(self) -> str:
        return f"HexNumber({self.value})"

    def __str__(self) -> str:
        return hex(self.value)


@dataclass
class Embedded:
    message: str = ""


@dataclass
class Nested:
    foo: str = ""
    bar: int = 0


@dataclass
class Spec:
    embedded: Embedded = field(default_factory=Embedded)
    simple_string: str = ""
    simple_int: int = 0
    simple_int8: Int8 = 0
    simple_int16: Int16 = 0
    simple_int32: Int32 = 0
    simple_int64: Int64 = 0
    simple_uint: UInt = 0
    simple_uint8: UInt8 = 0
    simple_uint16: UInt16 = 0
    simple_uint32: UInt32 = 0
    simple_uint64: UInt64 = 0
    simple_float32: Float32 = 0.0
    simple_float64: Float64 = 0.0
    explicit_name_lower_case: str = env_field(name="explicit_lower_case", default="")
    explicit_name_upper_case: str = env_field(name="EXPLICIT_UPPER_CASE", default="")
    boolean: bool = False
    nested_struct: Nested = field(default_factory=Nested)
    nested_struct_ptr: Optional[Nested] = None
    pointer: Optional[str] = None
    pointer_uninitialized: Optional[str] = None
    time: Optional[datetime] = None
    duration: timedelta = timedelta(0)
    SplitWord: str = env_field(split_words=True, default="")
    StringSlice: list[str] = env_field(split_words=True, default_factory=list)
    CustomSlice: list[timedelta] = env_field(split_words=True, default_factory=list)
    CustomUnmarshal: HexNumber = env_field(split_words=True, default_factory=HexNumber)
    map: dict[str, str] = field(default_factory=dict)
    FOOCapitalized: str = env_field(split_words=True, default="")
    interface: Any = None
    interface_ptr: Optional[Any] = None


@dataclass
class Flattened:
    embedded: Embedded = env_field(embedded=True, default_factory=Embedded)
    name: str = ""


@dataclass
class TaggedEmbedded:
    embedded: Embedded = env_field(embedded=True, name="INNER", default_factory=Embedded)


@dataclass
class Base:
    host: str = "localhost"


@dataclass
class Derived(Base):
    port: int = 0


@dataclass
class TLSOptions:
    server_name: str = ""
    insecure_skip_verify: bool = False
    certificates: list[Nested] = field(default_factory=list)


@dataclass
class ClientOptions:
    """Network client options with hooks and an optional TLS block."""

    addr: str = "localhost:6379"
    password: str = ""
    db: int = 0
    dial_timeout: timedelta = timedelta(seconds=5)
    on_connect: Optional[Callable[[], None]] = None
    dialer: Callable[..., Any] | None = None
    tls_config: Optional[TLSOptions] = None


@dataclass
class RequiredFields:
    name: str
    retries: int
    nested: Nested


@dataclass
class Colliding:
    SimpleInt: int = 0
    simpleint: int = 0


@dataclass
class Node:
    value: str = ""
    next: Optional[Node] = None


@dataclass(frozen=True)
class FrozenSpec:
    name: str = ""


@dataclass
class WithFrozenChild:
    child: FrozenSpec = field(default_factory=FrozenSpec)
    label: str = ""


@dataclass
class Unsupported:
    payload: complex = 0j
    label: str = ""


@dataclass
class Private:
    _secret: str = ""
    visible: str = ""


@dataclass
class Strict:
    name: str
    replicas: int = 1

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name must not be empty")


@dataclass
class StrictHolder:
    strict: Optional[Strict] = None
    label: str = ""


@dataclass
class Documented:
    port: Annotated[int, {"doc": "listen port"}] = 0
    hosts: list[Annotated[str, {"doc": "peer host"}]] = field(default_factory=list)
