"""Key/value source adapters.

Purpose
-------
Implement the :class:`lib_env_decoder.application.ports.KeyValueSource` port
for the process environment and for plain in-memory mappings.

Key behaviours
--------------
* Lookups are exact and case-sensitive; no prefix stripping or wildcarding.
* :class:`EnvironSource` reads :data:`os.environ` lazily on every lookup, so
  changes made between decode calls are visible.
* :class:`MappingSource` snapshots the supplied mapping for test doubles and
  embedded use.
"""

from __future__ import annotations

import os
from types import MappingProxyType
from typing import Mapping, Tuple


class EnvironSource:
    """Look up keys in the process environment (or an injected mapping).

    Examples
    --------
    >>> source = EnvironSource(environ={"APP_PORT": "8080"})
    >>> source.lookup("APP_PORT")
    ('8080', True)
    >>> source.lookup("app_port")
    ('', False)
    """

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the source with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._environ = os.environ if environ is None else environ

    def lookup(self, key: str) -> Tuple[str, bool]:
        value = self._environ.get(key)
        if value is None:
            return "", False
        return value, True

    def __repr__(self) -> str:
        origin = "os.environ" if self._environ is os.environ else "mapping"
        return f"EnvironSource({origin})"


class MappingSource:
    """Immutable in-memory source.

    Examples
    --------
    >>> MappingSource({"A": "1"}).lookup("A")
    ('1', True)
    """

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values = MappingProxyType(dict(values or {}))

    def lookup(self, key: str) -> Tuple[str, bool]:
        if key in self._values:
            return self._values[key], True
        return "", False

    def __repr__(self) -> str:
        return f"MappingSource(keys={len(self._values)})"
