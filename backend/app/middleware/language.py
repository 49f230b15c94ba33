"""Accept-Language negotiation for the French/English API."""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from backend.app.core.config import settings
from backend.app.core.i18n import SUPPORTED_LANGUAGES


class LanguageMiddleware(BaseHTTPMiddleware):
    """Set ``request.state.language`` and echo it as ``Content-Language``."""

    def __init__(self, app: ASGIApp, default: str | None = None) -> None:
        super().__init__(app)
        self.default = default or settings.DEFAULT_LANGUAGE

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        language = negotiate(request.headers.get("Accept-Language", "")) or self.default
        request.state.language = language

        response = await call_next(request)
        response.headers["Content-Language"] = language
        return response


def _quality(params: list[str]) -> float:
    for param in params:
        name, _, value = param.strip().partition("=")
        if name == "q":
            try:
                return float(value)
            except ValueError:
                return 0.0
    return 1.0


def negotiate(header: str) -> str | None:
    """Highest-weighted supported language in an Accept-Language header.

    ``fr-CA`` matches ``fr``; ties keep header order; ``q=0`` never matches.
    """
    candidates: list[tuple[float, int, str]] = []
    for index, part in enumerate(header.split(",")):
        tag, *params = part.split(";")
        primary = tag.strip().lower().split("-")[0]
        q = _quality(params)
        if primary in SUPPORTED_LANGUAGES and q > 0:
            candidates.append((-q, index, primary))
    return min(candidates)[2] if candidates else None
