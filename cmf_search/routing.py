"""URL generation for search result links."""
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol
from urllib.parse import quote

from fastapi import Request

DEFAULT_CONTENT_ROUTE = "content_show"


class UrlGenerator(Protocol):
    def generate(self, route_name: Optional[str], params: Mapping[str, Any]) -> str:
        ...


def encode_path_param(value: Any) -> str:
    """Percent-encode a path parameter completely; a leading slash is dropped."""
    return quote(str(value).lstrip("/"), safe="")


class RequestUrlGenerator:
    """Builds absolute URLs from the routes registered on the current application."""

    def __init__(self, request: Request, default_route: str = DEFAULT_CONTENT_ROUTE) -> None:
        self.request = request
        self.default_route = default_route

    def generate(self, route_name: Optional[str], params: Mapping[str, Any]) -> str:
        path_params = {key: encode_path_param(value) for key, value in params.items()}
        return str(self.request.url_for(route_name or self.default_route, **path_params))


__all__ = ["DEFAULT_CONTENT_ROUTE", "RequestUrlGenerator", "UrlGenerator", "encode_path_param"]
