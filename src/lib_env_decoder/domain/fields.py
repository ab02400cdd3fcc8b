"""Per-field annotations consumed by the planner.

Purpose
-------
Replace textual struct tags with an explicit configuration record attached to
``dataclasses.field(metadata=...)``. The record is resolved when a target type
is planned, never while values are being converted.

Contents
--------
* :data:`ENV_TAG` / :data:`SPLIT_WORDS_TAG` / :data:`EMBEDDED_TAG` – metadata keys.
* :class:`FieldOptions` – resolved annotation values for one field.
* :func:`env_field` – ``dataclasses.field`` wrapper that fills the metadata.
* :func:`field_options` – read :class:`FieldOptions` back from a field.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Final, Mapping

ENV_TAG: Final[str] = "env"
SPLIT_WORDS_TAG: Final[str] = "split_words"
EMBEDDED_TAG: Final[str] = "embedded"


@dataclass(frozen=True, slots=True)
class FieldOptions:
    """Annotation values for a single dataclass field.

    Attributes
    ----------
    explicit_key:
        Key segment used verbatim instead of the transformed field name.
    split_words:
        Insert ``_`` at camel-case word boundaries when deriving the segment.
    embedded:
        Flatten a nested dataclass into the parent's key namespace.
    """

    explicit_key: str | None = None
    split_words: bool = False
    embedded: bool = False


def env_field(
    *,
    name: str | None = None,
    split_words: bool = False,
    embedded: bool = False,
    default: Any = dataclasses.MISSING,
    default_factory: Callable[[], Any] | Any = dataclasses.MISSING,
    metadata: Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> Any:
    """Return a ``dataclasses.field`` carrying environment annotations.

    Parameters
    ----------
    name:
        Explicit key segment, used as-is (no case change).
    split_words:
        Derive the segment with camel-case splitting (``SplitWord`` → ``SPLIT_WORD``).
    embedded:
        Flatten the nested dataclass into the parent namespace.
    default / default_factory / metadata / kwargs:
        Forwarded to :func:`dataclasses.field`.

    Examples
    --------
    >>> from dataclasses import dataclass, fields
    >>> @dataclass
    ... class Demo:
    ...     url: str = env_field(name="DATABASE_URL", default="")
    >>> field_options(fields(Demo)[0]).explicit_key
    'DATABASE_URL'
    """

    merged: dict[str, Any] = dict(metadata or {})
    if name is not None:
        merged[ENV_TAG] = name
    if split_words:
        merged[SPLIT_WORDS_TAG] = True
    if embedded:
        merged[EMBEDDED_TAG] = True
    return dataclasses.field(default=default, default_factory=default_factory, metadata=merged, **kwargs)


def field_options(item: dataclasses.Field[Any]) -> FieldOptions:
    """Resolve :class:`FieldOptions` from a dataclass field's metadata."""

    meta = item.metadata
    explicit = meta.get(ENV_TAG)
    return FieldOptions(
        explicit_key=str(explicit) if explicit else None,
        split_words=_truthy(meta.get(SPLIT_WORDS_TAG, False)),
        embedded=_truthy(meta.get(EMBEDDED_TAG, False)),
    )


def _truthy(value: object) -> bool:
    """Accept booleans and the ``"true"`` spelling used by struct-tag style metadata."""

    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)
