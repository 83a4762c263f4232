"""
URI templating.

A URI is either a plain string (used as-is) or a UriSpec: a template with
"{name}" placeholders, path params, and query entries.

Example:
    >>> resolve_uri(UriSpec("orders/{id}", params={"id": 1234}, query={"state": "open"}))
    'orders/1234?state=open'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union
from urllib.parse import quote

# Same unreserved set as JavaScript's encodeURIComponent.
_QUERY_SAFE = "!*'()"


@dataclass(frozen=True)
class UriSpec:
    """
    URI template plus path params and query entries.

    - params values replace "{key}" literally; they are never encoded, so
      callers that need encoded path segments must pre-encode them.
    - query values may be scalars or sequences (one pair per element).
    """

    uri: str
    params: Mapping[str, Any] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)


UriLike = Union[str, UriSpec, Mapping[str, Any]]


def as_uri_spec(uri: UriLike) -> str | UriSpec:
    """
    Normalise a URI argument; mappings become UriSpec.
    """

    if isinstance(uri, (str, UriSpec)):
        return uri
    if isinstance(uri, Mapping):
        if "uri" not in uri:
            raise ValueError("URI mapping requires a 'uri' key.")
        return UriSpec(
            uri=str(uri["uri"]),
            params=uri.get("params") or {},
            query=uri.get("query") or {},
        )
    raise TypeError(f"Unsupported URI type: {type(uri).__name__}")


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def _elements(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def resolve_uri(uri: UriLike, *, encode_query: bool = True) -> str:
    """
    Resolve a URI argument into the final path (or absolute URL) string.

    Inputs:
    - uri: string, UriSpec, or {"uri", "params", "query"} mapping.
    - encode_query: percent-encode textual query values.

    Outputs:
    - The template with params substituted and the query appended.
    """

    spec = as_uri_spec(uri)
    if isinstance(spec, str):
        return spec

    resolved = spec.uri
    for key, value in spec.params.items():
        resolved = resolved.replace("{" + str(key) + "}", _scalar(value), 1)

    pairs: list[str] = []
    for key, value in spec.query.items():
        for element in _elements(value):
            if element is None:
                continue
            if isinstance(element, str):
                text = quote(element, safe=_QUERY_SAFE) if encode_query else element
            else:
                text = _scalar(element)
            pairs.append(f"{key}={text}")

    if pairs:
        resolved += "?" + "&".join(pairs)
    return resolved


def is_absolute(uri: str) -> bool:
    return uri.lower().startswith(("http://", "https://"))
