from __future__ import annotations

from fastapi import Depends, Request

from backend.app.core.config import settings
from backend.app.core.context import AppContext
from backend.app.core.i18n import translate
from backend.app.core.store import DataStore


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_store(context: AppContext = Depends(get_context)) -> DataStore:
    return context.store


def get_language(request: Request) -> str:
    return getattr(request.state, "language", None) or settings.DEFAULT_LANGUAGE


def error_detail(request: Request, key: str, **kwargs: str) -> str:
    """Translate a service error key for the caller's language."""
    return translate(get_language(request), key, **kwargs)
