"""
Query composer for the Strapi REST API.

Strapi parses its query string with ``qs``, so nested parameters are sent in
bracket notation::

    {"filters": {"slug": {"$eq": "kilimanjaro"}}, "sort": ["order:asc"]}

    filters%5Bslug%5D%5B%24eq%5D=kilimanjaro&sort%5B0%5D=order%3Aasc
"""

import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, unquote_plus

_SEGMENT = re.compile(r"\[([^\]]*)\]")


def _encode(value: str) -> str:
    return quote(value, safe="-_.~")


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flatten(prefix: str, value: Any, pairs: list[tuple[str, str]]) -> None:
    if isinstance(value, Mapping):
        for key, child in value.items():
            _flatten(f"{prefix}[{key}]" if prefix else str(key), child, pairs)
    elif isinstance(value, (list, tuple)):
        for index, child in enumerate(value):
            _flatten(f"{prefix}[{index}]", child, pairs)
    else:
        pairs.append((prefix, _scalar(value)))


def flatten_params(params: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """Flatten nested params into ordered (bracket-key, value) pairs."""
    pairs: list[tuple[str, str]] = []
    if params:
        _flatten("", params, pairs)
    return pairs


def stringify_params(params: Mapping[str, Any] | None) -> str:
    """Serialize nested params into a bracket-notation query string.

    Key order follows the mapping's insertion order, so the same params
    always produce the same string.
    """
    return "&".join(
        f"{_encode(key)}={_encode(value)}" for key, value in flatten_params(params)
    )


def _split_key(key: str) -> list[str]:
    root, bracket, rest = key.partition("[")
    if not bracket:
        return [key]
    return [root, *_SEGMENT.findall(bracket + rest)]


def _listify(node: Any) -> Any:
    if not isinstance(node, dict):
        return node
    converted = {key: _listify(child) for key, child in node.items()}
    keys = list(converted)
    if keys and all(k.isdigit() for k in keys):
        indices = sorted(int(k) for k in keys)
        if indices == list(range(len(indices))):
            return [converted[str(i)] for i in indices]
    return converted


def parse_params(query: str) -> dict[str, Any]:
    """Parse a bracket-notation query string the way the origin does.

    Index-keyed groups come back as lists; every leaf is a string.
    """
    result: dict[str, Any] = {}
    for part in query.lstrip("?").split("&"):
        if not part:
            continue
        raw_key, _, raw_value = part.partition("=")
        segments = _split_key(unquote_plus(raw_key))
        node = result
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        node[segments[-1]] = unquote_plus(raw_value)
    return _listify(result)


def build_url(base_url: str, path: str, params: Mapping[str, Any] | None = None) -> str:
    """Build ``{base}/api/{path}?{query}``; the query is omitted when empty."""
    url = f"{base_url.rstrip('/')}/api/{path.lstrip('/')}"
    query = stringify_params(params)
    return f"{url}?{query}" if query else url
