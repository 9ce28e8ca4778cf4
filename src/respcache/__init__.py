"""respcache -- disk-backed response cache for HTTP request handlers.

A handler asks :class:`ResponseCache` to serve a request from disk before
doing any work, and stores the finished response body afterwards.  Entries
live at ``<root>/<hex[0]>/<hex[1]>/<hex digest>.cache`` and expire on file
age alone.  Every internal failure degrades to a cache miss.

Example::

    from respcache import Request, Response, ResponseCache

    cache = ResponseCache("/tmp/cache")
    request = Request("GET", "/users?page=1", [("page", "1")])
    response = Response()
    if not cache.serve(request, response):
        response.body = b"[...]"
        response.complete()
        cache.store(response, request)
"""

from respcache.aio import AsyncResponseCache
from respcache.cache import ResponseCache
from respcache.config import resolve_cache_config
from respcache.messages import Request, RequestLike, Response, ResponseLike
from respcache.models import CacheConfig, CacheStats, HitPolicy

__version__ = "0.1.0"

__all__ = [
    "AsyncResponseCache",
    "CacheConfig",
    "CacheStats",
    "HitPolicy",
    "Request",
    "RequestLike",
    "Response",
    "ResponseCache",
    "ResponseLike",
    "resolve_cache_config",
]
