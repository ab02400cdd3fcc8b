"""Key derivation tests covering casing, word splitting, and prefix joining."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_env_decoder.domain.keys import default_env_prefix, derive_key, join_key, key_segment, split_words


@pytest.mark.parametrize(
    ("name", "split", "expected"),
    [
        ("SplitWord", True, "SPLIT_WORD"),
        ("FOOCapitalized", True, "FOO_CAPITALIZED"),
        ("SimpleInt", False, "SIMPLEINT"),
        ("SimpleInt", True, "SIMPLE_INT"),
        ("HTTPServer2Go", True, "HTTP_SERVER2_GO"),
        ("simple_int", False, "SIMPLE_INT"),
        ("simple_int", True, "SIMPLE_INT"),
        ("URL", True, "URL"),
        ("myURLValue", True, "MY_URL_VALUE"),
        ("Int8Value", True, "INT8_VALUE"),
    ],
)
def test_key_segment_casing(name: str, split: bool, expected: str) -> None:
    assert key_segment(name, split=split) == expected


def test_explicit_tag_is_used_verbatim() -> None:
    """Explicit annotations are already in final casing and bypass splitting."""

    assert derive_key("MYAPP", "ExplicitNameLowerCase", "explicit_lower_case", True) == "MYAPP_explicit_lower_case"
    assert derive_key("", "whatever", "EXPLICIT_UPPER_CASE") == "EXPLICIT_UPPER_CASE"


def test_empty_explicit_tag_falls_back_to_name() -> None:
    assert derive_key("APP", "port", "") == "APP_PORT"


def test_prefix_joining() -> None:
    assert join_key("", "PORT") == "PORT"
    assert join_key("MYAPP", "PORT") == "MYAPP_PORT"
    assert join_key("MYAPP_NESTED", "FOO") == "MYAPP_NESTED_FOO"
    assert join_key("MYAPP", "") == "MYAPP"


def test_split_words_ignores_repeated_underscores() -> None:
    assert split_words("__leading__and_trailing_") == ["leading", "and", "trailing"]


def test_default_env_prefix() -> None:
    assert default_env_prefix("lib-env-decoder") == "LIB_ENV_DECODER"


IDENTIFIERS = st.from_regex(r"[A-Za-z][A-Za-z0-9_]{0,20}", fullmatch=True)


@given(st.sampled_from(["", "MYAPP", "A_B"]), IDENTIFIERS, st.booleans())
def test_derive_key_is_deterministic(prefix: str, name: str, split: bool) -> None:
    """Identical inputs always yield identical keys."""

    first = derive_key(prefix, name, None, split)
    assert first == derive_key(prefix, name, None, split)
    assert first == first.upper()
    if prefix:
        assert first.startswith(prefix + "_")


@given(IDENTIFIERS)
def test_split_words_preserves_letters(name: str) -> None:
    """Splitting only inserts separators; the characters themselves survive in order."""

    assert "".join(split_words(name)) == name.replace("_", "")
