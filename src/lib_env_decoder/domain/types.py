"""Fixed-width numeric aliases for field annotations.

Python integers and floats are unbounded/double precision. Fields that must
honour a narrower width annotate with these aliases; the converter reads the
attached :class:`IntWidth` / :class:`FloatWidth` marker and rejects values that
do not fit.

Examples
--------
>>> from dataclasses import dataclass
>>> @dataclass
... class Limits:
...     retries: UInt8 = 3
...     ratio: Float32 = 0.5
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated


@dataclass(frozen=True, slots=True)
class IntWidth:
    """Range marker for integer fields."""

    bits: int
    signed: bool = True

    @property
    def minimum(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def maximum(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1


@dataclass(frozen=True, slots=True)
class FloatWidth:
    """Precision marker for float fields (32 or 64 bits)."""

    bits: int


Int8 = Annotated[int, IntWidth(8)]
Int16 = Annotated[int, IntWidth(16)]
Int32 = Annotated[int, IntWidth(32)]
Int64 = Annotated[int, IntWidth(64)]
UInt = Annotated[int, IntWidth(64, signed=False)]
UInt8 = Annotated[int, IntWidth(8, signed=False)]
UInt16 = Annotated[int, IntWidth(16, signed=False)]
UInt32 = Annotated[int, IntWidth(32, signed=False)]
UInt64 = Annotated[int, IntWidth(64, signed=False)]
Float32 = Annotated[float, FloatWidth(32)]
Float64 = Annotated[float, FloatWidth(64)]

__all__ = [
    "IntWidth",
    "FloatWidth",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Float32",
    "Float64",
]
