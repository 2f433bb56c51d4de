"""Tests for query string parsing and building."""

import pytest
from hod_sso.querystring import (
    append_query,
    build_query,
    first_values,
    parse_query,
    query_of,
)


def test_parse_empty_string() -> None:
    assert parse_query("") == {}
    assert parse_query("?") == {}


def test_parse_collects_repeated_keys() -> None:
    parsed = parse_query("?a=1&a=2&b=x")

    assert parsed == {"a": ["1", "2"], "b": ["x"]}
    assert first_values(parsed) == {"a": "1", "b": "x"}


def test_parse_decodes_keys_and_values() -> None:
    parsed = parse_query("redirect%20url=https%3A%2F%2Fapp.test%2F%3Fx%3D1")

    assert parsed == {"redirect url": ["https://app.test/?x=1"]}


def test_parse_keeps_plus_literal() -> None:
    assert parse_query("q=a+b") == {"q": ["a+b"]}


def test_parse_handles_bare_keys_and_empty_segments() -> None:
    assert parse_query("a&&b=&c=3") == {"a": [""], "b": [""], "c": ["3"]}


def test_parse_splits_on_first_equals_only() -> None:
    assert parse_query("token=abc==") == {"token": ["abc=="]}


def test_build_preserves_order_and_encodes() -> None:
    query = build_query(
        {
            "domain": ["d"],
            "user-store-name": ["my store"],
            "redirect_url": ["https://app.test/?a=1&b=2"],
        }
    )

    assert query == (
        "domain=d&user-store-name=my%20store"
        "&redirect_url=https%3A%2F%2Fapp.test%2F%3Fa%3D1%26b%3D2"
    )


def test_build_repeats_multi_valued_keys() -> None:
    assert build_query({"a": ["1", "2"], "b": ["x"]}) == "a=1&a=2&b=x"


def test_build_accepts_plain_string_values() -> None:
    assert build_query({"application": "app"}) == "application=app"


def test_build_leaves_unreserved_characters() -> None:
    assert build_query({"v": ["a-b_c.d!e~f*g'h(i)"]}) == "v=a-b_c.d!e~f*g'h(i)"


def test_build_empty_mapping() -> None:
    assert build_query({}) == ""


@pytest.mark.parametrize(
    "parameters",
    [
        {"a": ["1"]},
        {"a": ["1", "2"], "b": ["x y"], "c": ["https://h.test/p?q=1"]},
        {"user-store-domain": ["ud"], "user-store-name": ["us"]},
    ],
)
def test_build_then_parse_round_trips(parameters: dict[str, list[str]]) -> None:
    assert parse_query(build_query(parameters)) == parameters


def test_append_query_to_url_without_query() -> None:
    url = append_query("https://app.test/sso", {"authenticated": "true"})

    assert url == "https://app.test/sso?authenticated=true"


def test_append_query_keeps_existing_parameters_and_fragment() -> None:
    url = append_query("https://app.test/sso?foo=bar#top", {"authenticated": "true"})

    assert url == "https://app.test/sso?foo=bar&authenticated=true#top"


def test_append_query_after_trailing_question_mark() -> None:
    assert append_query("https://app.test/?", {"a": "1"}) == "https://app.test/?a=1"


def test_append_query_without_parameters_returns_url() -> None:
    assert append_query("https://app.test/x?y=1", {}) == "https://app.test/x?y=1"


def test_query_of_ignores_fragment() -> None:
    assert query_of("https://app.test/?a=1&a=2#b=3") == {"a": ["1", "2"]}
    assert query_of("https://app.test/") == {}
