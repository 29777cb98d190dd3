import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from servicefinder.api.api import api_router
from servicefinder.api.endpoints import pages
from servicefinder.core.config import Settings, get_settings
from servicefinder.db.provider_store import ProviderStore, SupabaseProviderStore

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ProviderStore] = None,
) -> FastAPI:
    """
    Build the application. Missing SUPABASE_URL / SUPABASE_ANON_KEY raise
    ConfigError here, before anything is served. Pass `store` to replace the
    hosted backend (tests use MockProviderStore).
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        # Startup: connect the read-only provider store once, shared by every request
        if app.state.store is None:
            app.state.store = SupabaseProviderStore.from_settings(settings)
            logger.info(f"Provider store ready: {settings.SUPABASE_URL} / {settings.PROVIDERS_TABLE}")
        yield

    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.API_V1_STR)
    app.include_router(pages.router, tags=["pages"])
    return app


app = create_app()
