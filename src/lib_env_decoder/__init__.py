"""Public package surface for ``lib_env_decoder``.

Decode environment variables (or any key/value source) into nested dataclass
instances. ``import lib_env_decoder`` and ``python -m lib_env_decoder`` expose
the same stable API.
"""

from __future__ import annotations

from .application.ports import EnvUnmarshaler, KeyValueSource
from .core import Decoder, EnvironSource, MappingSource, decode_env, default_env_prefix, new_decoder
from .domain.errors import ConversionFailed, DecodeError, KeyCollision, NotAddressable, UnsupportedType
from .domain.fields import EMBEDDED_TAG, ENV_TAG, SPLIT_WORDS_TAG, FieldOptions, env_field
from .domain.keys import derive_key, split_words
from .domain.types import Float32, Float64, Int8, Int16, Int32, Int64, UInt, UInt8, UInt16, UInt32, UInt64
from .observability import bind_trace_id, get_logger

__all__ = [
    "Decoder",
    "EnvironSource",
    "MappingSource",
    "KeyValueSource",
    "EnvUnmarshaler",
    "new_decoder",
    "decode_env",
    "default_env_prefix",
    "derive_key",
    "split_words",
    "env_field",
    "FieldOptions",
    "ENV_TAG",
    "SPLIT_WORDS_TAG",
    "EMBEDDED_TAG",
    "DecodeError",
    "NotAddressable",
    "ConversionFailed",
    "UnsupportedType",
    "KeyCollision",
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
    "bind_trace_id",
    "get_logger",
]
