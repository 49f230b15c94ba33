import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api.v1.api import api_router
from backend.app.core.config import settings
from backend.app.core.context import AppContext, build_context
from backend.app.middleware.language import LanguageMiddleware

logger = logging.getLogger(__name__)


def create_app(context: AppContext | None = None) -> FastAPI:
    """Build the API; *context* replaces the one built from settings (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = context is None
        app.state.context = context or build_context(settings)
        logger.info("%s started", settings.APP_NAME)
        try:
            yield
        finally:
            if owned:
                await app.state.context.aclose()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    if context is not None:
        app.state.context = context

    # ─── CORS: admin dashboard front-end ─────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Accept-Language"],
        expose_headers=["Content-Disposition", "Content-Language"],
    )
    app.add_middleware(LanguageMiddleware)

    app.include_router(api_router)
    return app


logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
