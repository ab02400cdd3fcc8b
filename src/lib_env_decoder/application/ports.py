"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts the decoder consumes so the composition root
can work against abstractions instead of concrete environment access.

Contents
--------
* :class:`KeyValueSource` – exact-match lookup of raw string values.
* :class:`EnvUnmarshaler` – user types that parse their own raw text.

System Role
-----------
Adapters implement :class:`KeyValueSource`; user code implements
:class:`EnvUnmarshaler`. Both protocols are runtime-checkable so the populator
and the contract tests can verify conformance with ``isinstance``.
"""

from __future__ import annotations

from typing import Protocol, Tuple, runtime_checkable


@runtime_checkable
class KeyValueSource(Protocol):
    """Look up raw string values by key.

    Why
    ----
    Keep process-wide environment state out of the decoding core; the
    environment is only one implementation of this capability.

    Contract
    --------
    Keys match exactly and case-sensitively. No wildcarding. Lookups must not
    mutate the source.
    """

    def lookup(self, key: str) -> Tuple[str, bool]:
        """Return ``(value, True)`` when *key* exists, otherwise ``("", False)``."""


@runtime_checkable
class EnvUnmarshaler(Protocol):
    """Parse a raw environment string into ``self``.

    Why
    ----
    Types with their own textual encoding (hex numbers, URLs, secrets
    references) take precedence over the built-in conversion rules.

    Contract
    --------
    Raise any exception to signal malformed input; the populator wraps it in
    :class:`lib_env_decoder.domain.errors.ConversionFailed`.
    """

    def unmarshal_env(self, raw: str) -> None:
        """Populate ``self`` from *raw*."""
