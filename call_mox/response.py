"""Response-like double handed to request/response style entry points."""

from __future__ import annotations

import typing as t

RESPONSE_GROUP: t.Final[str] = "HttpResponse"

RESPONSE_FINISHERS: t.Final[frozenset[str]] = frozenset(
    {
        "send",
        "json",
        "jsonp",
        "redirect",
        "send_file",
        "render",
        "send_status",
        "end",
    }
)


class ResponseDouble:
    """Stand-in for an HTTP response object.

    Every method is a no-op until a :class:`~call_mox.scenarios.RequestScenario`
    intercepts it. Calling one of :data:`RESPONSE_FINISHERS` ends the request.
    """

    def header(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def status(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def set(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def get(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def type(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def append(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def cookie(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def clear_cookie(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def location(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def links(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def vary(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def cache(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def attachment(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def download(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def format(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...

    # Finishers
    def send(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def json(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def jsonp(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def redirect(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def send_file(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def render(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def send_status(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...
    def end(self, *args: t.Any, **kwargs: t.Any) -> t.Any: ...


def is_finisher(name: str) -> bool:
    """Return ``True`` when calling *name* completes the response."""
    return name in RESPONSE_FINISHERS


__all__ = ["RESPONSE_FINISHERS", "RESPONSE_GROUP", "ResponseDouble", "is_finisher"]
