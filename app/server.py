from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.api.routes import router as api_router
from app.config import Settings
from app.state import build_state

log = logging.getLogger("api")


def create_app(settings: Settings, start_stream: bool = True) -> FastAPI:
    """
    Build the API around one in-memory state.

    start_stream=False leaves the websocket client idle (tests, offline dev).
    """
    state = build_state(settings)

    app = FastAPI(title="Climate Metrics API", version="1.0.0")
    app.state.climate = state

    # per client address and per route; CORS wraps it so preflights are not counted
    app.state.limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=["GET"],
            allow_headers=["Authorization", "Content-Type"],
        )

    app.include_router(api_router)

    @app.on_event("startup")
    async def _startup():
        if start_stream:
            log.info("Starting stream provider=%s", settings.provider)
            state.stream.connect()

    @app.on_event("shutdown")
    async def _shutdown():
        log.info("Stopping stream provider=%s", settings.provider)
        await state.stream.disconnect()

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "app_env": settings.app_env,
            "provider_config": settings.provider,
            "provider_loaded": state.stream.__class__.__name__,
            "stream_state": state.stream.state.value,
            "cities": state.store.cities(),
        }

    return app
