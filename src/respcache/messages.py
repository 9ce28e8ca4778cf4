"""Request and response views the cache reads from and writes into.

The cache never depends on a particular web framework.  It reads a request
through :class:`RequestLike` (method, URI, and parameters) and writes a hit
into a :class:`ResponseLike` (body bytes, status code, and a completion
signal).  Any host object with those attributes works as-is.

:class:`Request` and :class:`Response` are small concrete implementations
for hosts that have nothing suitable, with converters from :mod:`httpx`
objects for proxies and API gateways built on it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Protocol, Union, runtime_checkable
from urllib.parse import parse_qsl

import httpx

Params = Union[Mapping[str, str], Iterable[tuple[str, str]]]

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@runtime_checkable
class RequestLike(Protocol):
    """Read-only view of an inbound request used for key derivation."""

    method: str
    uri: str
    params: Params


@runtime_checkable
class ResponseLike(Protocol):
    """Writable view of the response a cache hit is served into."""

    body: bytes
    status_code: int

    def complete(self) -> None: ...


@dataclass
class Request:
    """A framework-neutral inbound request.

    Attributes:
        method: HTTP method, e.g. ``"GET"``.
        uri: Request URI (path plus query string).
        params: Query and body parameters as ``(name, value)`` pairs.
    """

    method: str
    uri: str
    params: list[tuple[str, str]] = field(default_factory=list)

    @classmethod
    def from_httpx(cls, request: httpx.Request) -> Request:
        """Build a :class:`Request` from an :class:`httpx.Request`.

        Query parameters are always included.  URL-encoded form bodies
        contribute their fields as well, so two POSTs to the same URI with
        different form data map to different cache keys.
        """
        params = list(request.url.params.multi_items())
        content_type = request.headers.get("content-type", "")
        if content_type.split(";")[0].strip().lower() == _FORM_CONTENT_TYPE:
            body = request.read().decode("utf-8", errors="replace")
            params.extend(parse_qsl(body, keep_blank_values=True))
        return cls(
            method=request.method,
            uri=request.url.raw_path.decode("ascii"),
            params=params,
        )


@dataclass
class Response:
    """A framework-neutral outbound response.

    :meth:`complete` marks the response as ready to flush to the client.
    """

    body: bytes = b""
    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    completed: bool = False

    def complete(self) -> None:
        self.completed = True

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> Response:
        """Copy an upstream :class:`httpx.Response` so its body can be cached."""
        return cls(
            body=response.content,
            status_code=response.status_code,
            headers=dict(response.headers),
        )
