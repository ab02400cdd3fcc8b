"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by the planner, the populator, the
type converter, and consuming applications. The hierarchy lives in the domain
layer so outer layers may depend on it without creating import cycles.

Contents
--------
* :class:`DecodeError` – umbrella base class for all decoding issues.
* :class:`NotAddressable` – the decode target cannot be mutated in place.
* :class:`ConversionFailed` – a raw string could not become the declared type.
* :class:`UnsupportedType` – a declared type has no conversion rule.
* :class:`KeyCollision` – two fields derive the same lookup key.

System Role
-----------
Every failure raised by :meth:`lib_env_decoder.core.Decoder.decode` is a
:class:`DecodeError`. Callers catch it to treat the decode as unreliable and
must not trust partially populated targets afterwards.
"""

from __future__ import annotations


class DecodeError(Exception):
    """Base type for all exceptions emitted by ``lib_env_decoder``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class NotAddressable(DecodeError):
    """Raised when the decode target is not a mutable dataclass instance.

    Typical Sources
    ---------------
    Passing the class instead of an instance, ``None``, a primitive, or a
    frozen dataclass. Raised before any field is touched.
    """


class ConversionFailed(DecodeError):
    """Raised when a value for *path* cannot be converted to its declared type.

    Attributes
    ----------
    path:
        Fully derived key (for example ``MYAPP_SIMPLE_INT``) of the offending field.
    cause:
        Original exception raised by the parser or by a custom ``unmarshal_env``.

    Examples
    --------
    >>> err = ConversionFailed("APP_PORT", ValueError("bad digit"))
    >>> str(err)
    'failed to convert APP_PORT: bad digit'
    """

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"failed to convert {path}: {cause}")
        self.path = path
        self.cause = cause


class UnsupportedType(DecodeError):
    """Raised when a field's declared type has no conversion rule.

    Attributes
    ----------
    path:
        Derived key of the field (empty when raised outside of a field context).
    declared_type:
        The annotation that could not be handled.
    """

    def __init__(self, path: str, declared_type: object, reason: str | None = None) -> None:
        detail = reason or "no conversion rule"
        super().__init__(f"unsupported type {declared_type!r} for {path or '<root>'}: {detail}")
        self.path = path
        self.declared_type = declared_type


class KeyCollision(DecodeError):
    """Raised when two fields of one target derive the same lookup key.

    Why
    ----
    A shared key would let traversal order silently decide which field wins.
    The planner rejects such shapes before any lookup or mutation happens.
    """

    def __init__(self, key: str, first: str, second: str) -> None:
        super().__init__(f"fields {first!r} and {second!r} both map to key {key}")
        self.key = key
        self.fields = (first, second)
