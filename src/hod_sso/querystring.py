"""Query string parsing and building with multi-value support."""

from __future__ import annotations
from collections.abc import Mapping, Sequence
from urllib.parse import quote, unquote


# Punctuation left unescaped alongside letters and digits.
_UNRESERVED = "-_.!~*'()"

QueryParameters = Mapping[str, Sequence[str] | str]


def encode_component(value: str) -> str:
    """Percent-encode ``value`` for use as a query key or value."""
    return quote(value, safe=_UNRESERVED)


def parse_query(search: str) -> dict[str, list[str]]:
    """Parse ``search`` into a mapping of keys to every value, in order.

    A leading ``?`` is ignored. ``+`` is kept literally rather than decoded to
    a space. Segments without ``=`` map to an empty string.
    """
    if search.startswith("?"):
        search = search[1:]

    parameters: dict[str, list[str]] = {}
    for segment in search.split("&"):
        if not segment:
            continue
        name, _, value = segment.partition("=")
        parameters.setdefault(unquote(name), []).append(unquote(value))
    return parameters


def first_values(parameters: Mapping[str, Sequence[str]]) -> dict[str, str]:
    """Collapse parsed parameters to the first value recorded for each key."""
    return {name: values[0] for name, values in parameters.items() if values}


def build_query(parameters: QueryParameters) -> str:
    """Return an encoded query string for ``parameters`` (no leading ``?``)."""
    pairs: list[str] = []
    for name, values in parameters.items():
        if isinstance(values, str):
            values = [values]
        encoded_name = encode_component(name)
        pairs.extend(f"{encoded_name}={encode_component(value)}" for value in values)
    return "&".join(pairs)


def append_query(url: str, parameters: QueryParameters) -> str:
    """Add ``parameters`` to ``url`` after any query it already carries."""
    query = build_query(parameters)
    if not query:
        return url

    base, hash_mark, fragment = url.partition("#")
    if "?" not in base:
        separator = "?"
    elif base.endswith(("?", "&")):
        separator = ""
    else:
        separator = "&"
    return f"{base}{separator}{query}{hash_mark}{fragment}"


def query_of(url: str) -> dict[str, list[str]]:
    """Return the parsed query parameters of ``url``."""
    base = url.partition("#")[0]
    _, _, search = base.partition("?")
    return parse_query(search)


__all__ = [
    "QueryParameters",
    "append_query",
    "build_query",
    "encode_component",
    "first_values",
    "parse_query",
    "query_of",
]
