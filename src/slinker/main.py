from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException

from slinker.api.auth import router as auth_router
from slinker.api.deps import get_store
from slinker.api.redirects import router as redirect_router
from slinker.api.routes import router as api_router
from slinker.core.config import Settings, get_settings
from slinker.core.errors import register_error_handlers
from slinker.core.logging_config import configure_logging
from slinker.core.redis import make_redis_client
from slinker.services.link_store import LinkStore, build_store

logger = logging.getLogger("slinker")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = build_store(settings)
        store.open()
        app.state.store = store
        app.state.redis = make_redis_client(settings.redis_url)
        logger.info("slinker started (env=%s, backend=%s)", settings.app_env, store.backend)
        try:
            yield
        finally:
            if app.state.redis is not None:
                app.state.redis.close()
            store.close()
            logger.info("slinker stopped")

    app = FastAPI(title="slinker", lifespan=lifespan)
    app.state.settings = settings
    register_error_handlers(app)

    @app.get("/", include_in_schema=False)
    def home():
        return {"service": "slinker", "status": "ok"}

    @app.get("/health")
    def health(store: LinkStore = Depends(get_store)):
        if not store.ping():
            raise HTTPException(status_code=503, detail="Database connection failed")
        return {"status": "ok", "backend": store.backend}

    app.include_router(api_router)
    app.include_router(auth_router)
    # Catch-all /{short_code} goes last so it never shadows the routes above.
    app.include_router(redirect_router)
    return app


app = create_app()
