"""Composition root for ``lib_env_decoder``.

Purpose
-------
Provide the single entry point that wires a key/value source, the shape
planner, and the structure populator together, and exports only stable,
consumer-ready APIs.

Contents
--------
* :class:`Decoder` – immutable decoder bound to a source and a prefix.
* :func:`new_decoder` – build a :class:`Decoder` (process environment by default).
* :func:`decode_env` – one-call convenience for the common case.

System Role
-----------
This module connects the environment adapter with the application layer while
emitting structured observability signals. It is the canonical location for
changing how a decode is orchestrated.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Mapping, TypeVar

from .adapters.env.default import EnvironSource, MappingSource
from .application.plan import plan_for
from .application.populate import ensure_addressable, populate
from .application.ports import KeyValueSource
from .domain.errors import DecodeError
from .domain.keys import default_env_prefix
from .observability import log_debug, log_error, log_info

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Decoder:
    """Decode key/value pairs into dataclass instances.

    Why
    ----
    Callers need a reusable, shareable object that remembers where values come
    from and which namespace they live in, without holding any per-call state.

    Attributes
    ----------
    source:
        Any :class:`~lib_env_decoder.application.ports.KeyValueSource`.
    prefix:
        Key namespace prepended to every derived key (``""`` for none).

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Service:
    ...     port: int = 0
    ...     debug: bool = False
    >>> source = MappingSource({"MYAPP_PORT": "8080", "MYAPP_DEBUG": "true"})
    >>> new_decoder(source).with_prefix("MYAPP").decode(Service())
    Service(port=8080, debug=True)
    """

    source: KeyValueSource
    prefix: str = ""

    def with_prefix(self, prefix: str) -> Decoder:
        """Return a copy of this decoder using *prefix*; ``self`` is unchanged."""

        return dataclasses.replace(self, prefix=prefix)

    def decode(self, target: T) -> T:
        """Populate *target* in place and return it.

        Raises
        ------
        NotAddressable
            *target* is not a mutable dataclass instance (nothing is touched).
        ConversionFailed / UnsupportedType
            A present value could not be converted. Fields decoded before the
            failure keep their new values.
        KeyCollision
            Two fields of the target type derive the same key.
        """

        target_type = ensure_addressable(target)
        name = target_type.__qualname__
        log_debug("decode_started", target=name, prefix=self.prefix)
        try:
            plan = plan_for(target_type, self.prefix)
            populated = populate(self.source, plan, target)
        except DecodeError as exc:
            log_error(
                "decode_failed",
                target=name,
                prefix=self.prefix,
                error=type(exc).__name__,
                key=getattr(exc, "path", None),
            )
            raise
        log_info("decode_finished", target=name, prefix=self.prefix, fields=populated)
        return target

    def keys(self, target_type: type) -> list[str]:
        """Return every key :meth:`decode` would consult for *target_type*, in order."""

        return plan_for(target_type, self.prefix).keys()


def new_decoder(source: KeyValueSource | None = None) -> Decoder:
    """Return a :class:`Decoder` reading from *source* (the process environment by default)."""

    return Decoder(source=source if source is not None else EnvironSource())


def decode_env(target: T, *, prefix: str = "", environ: Mapping[str, str] | None = None) -> T:
    """Decode environment variables into *target* and return it.

    Parameters
    ----------
    target:
        Mutable dataclass instance to populate.
    prefix:
        Key namespace (for example ``"MYAPP"``).
    environ:
        Mapping to read instead of :data:`os.environ`.
    """

    return new_decoder(EnvironSource(environ=environ)).with_prefix(prefix).decode(target)


__all__ = [
    "Decoder",
    "EnvironSource",
    "MappingSource",
    "new_decoder",
    "decode_env",
    "default_env_prefix",
]
