# pulse/main.py
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from starlette.middleware.base import BaseHTTPMiddleware

from pulse import __version__
from pulse.api import register_routers
from pulse.api.errors import register_exception_handlers
from pulse.data.database import Base, build_engine, build_session_factory, init_models
from pulse.services.rate_limiter import RateLimiter
from pulse.utils.logging import RequestLoggingMiddleware, get_logger, setup_logging
from pulse.utils.settings import FRONTEND_URL, PORT

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the API. Tests pass their own engine; otherwise one is created
    from DATABASE_URL at startup and disposed at shutdown.
    """
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_engine = engine is None
        app.state.engine = engine or build_engine()
        app.state.session_factory = build_session_factory(app.state.engine)
        app.state.rate_limiter = RateLimiter()

        init_models(app.state.engine)
        logger.info(f"Database ready, tables: {sorted(Base.metadata.tables.keys())}")

        yield

        if owns_engine:
            app.state.engine.dispose()
        logger.info("Pulse API stopped")

    app = FastAPI(
        title="Pulse Storefront API",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Admin-Key"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)
    register_routers(app)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=PORT)
