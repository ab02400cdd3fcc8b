"""Key derivation rules.

Purpose
-------
Turn a field's declared name, its optional explicit key annotation, the
word-splitting flag, and the active prefix into the single string used to
look up the field's value. Everything here is pure: no I/O, no mutation.

Contents
--------
* :func:`split_words` – acronym-aware camel-case word splitter.
* :func:`key_segment` – the per-field segment (explicit tag or transformed name).
* :func:`join_key` – prefix joining used by nested traversal.
* :func:`derive_key` – the full contract combining the helpers above.
* :func:`default_env_prefix` – canonical prefix for an application slug.
"""

from __future__ import annotations

import re
from typing import Final

SEPARATOR: Final[str] = "_"

# A word is an acronym run (upper-case letters not followed by lower case), a
# capitalised or lower-case word, or a run of digits glued to the word before it.
_WORD_BOUNDARY: Final[re.Pattern[str]] = re.compile(
    r"(?<=[a-z0-9])(?=[A-Z])"  # fooBar, foo2Bar
    r"|(?<=[A-Z])(?=[A-Z][a-z])"  # FOOBar -> FOO Bar
)


def split_words(name: str) -> list[str]:
    """Split *name* into words at camel-case transitions.

    Boundaries are inserted between a lower-case letter or digit and a following
    upper-case letter, and before the last capital of an acronym run when that
    capital starts a new word. Existing underscores also separate words.

    Examples
    --------
    >>> split_words("SplitWord")
    ['Split', 'Word']
    >>> split_words("FOOCapitalized")
    ['FOO', 'Capitalized']
    >>> split_words("HTTPServer2Go")
    ['HTTP', 'Server2', 'Go']
    >>> split_words("already_snake")
    ['already', 'snake']
    """

    words: list[str] = []
    for chunk in name.split(SEPARATOR):
        if chunk:
            words.extend(part for part in _WORD_BOUNDARY.split(chunk) if part)
    return words


def key_segment(field_name: str, explicit_tag: str | None = None, split: bool = False) -> str:
    """Return the key segment contributed by a single field.

    Examples
    --------
    >>> key_segment("SimpleInt")
    'SIMPLEINT'
    >>> key_segment("SimpleInt", split=True)
    'SIMPLE_INT'
    >>> key_segment("ignored", explicit_tag="explicit_lower_case")
    'explicit_lower_case'
    """

    if explicit_tag:
        return explicit_tag
    if split:
        return SEPARATOR.join(word.upper() for word in split_words(field_name))
    return field_name.upper()


def join_key(prefix: str, segment: str) -> str:
    """Join *segment* onto *prefix* with the key separator.

    Examples
    --------
    >>> join_key("MYAPP", "PORT")
    'MYAPP_PORT'
    >>> join_key("", "PORT")
    'PORT'
    """

    if not prefix:
        return segment
    if not segment:
        return prefix
    return f"{prefix}{SEPARATOR}{segment}"


def derive_key(prefix: str, field_name: str, explicit_tag: str | None = None, split: bool = False) -> str:
    """Derive the full lookup key for a field under *prefix*.

    Examples
    --------
    >>> derive_key("MYAPP", "SplitWord", split=True)
    'MYAPP_SPLIT_WORD'
    >>> derive_key("MYAPP", "FOOCapitalized", split=True)
    'MYAPP_FOO_CAPITALIZED'
    >>> derive_key("", "SimpleInt")
    'SIMPLEINT'
    """

    return join_key(prefix, key_segment(field_name, explicit_tag, split))


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('lib-env-decoder')
    'LIB_ENV_DECODER'
    """

    return slug.replace("-", SEPARATOR).upper()
