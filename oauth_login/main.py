from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from sqlalchemy.engine import Engine

from .config import Settings
from .database import build_engine, build_session_factory, init_db
from .errors import register_exception_handlers
from .health import readiness_state
from .observability import configure_observability
from .routers import auth, user

_NO_STORE_PREFIXES = ("/auth/", "/logout", "/me")


def _is_auth_path(path: str) -> bool:
    return path.startswith(_NO_STORE_PREFIXES)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(app.state.engine)
    yield
    app.state.engine.dispose()


def create_app(
    settings: Optional[Settings] = None, *, engine: Optional[Engine] = None
) -> FastAPI:
    settings = settings or Settings()
    engine = engine or build_engine(settings)

    app = FastAPI(title="oauth-login", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    configure_observability(app, settings)
    register_exception_handlers(app)

    @app.middleware("http")
    async def auth_cache_headers_middleware(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if _is_auth_path(request.url.path):
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"
        return response

    app.include_router(auth.router)
    app.include_router(user.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/ready")
    def ready(request: Request):
        is_ready, checks = readiness_state(request.app.state.engine)
        if not is_ready:
            raise HTTPException(
                status_code=503,
                detail={
                    "detail": "Service dependencies are not ready",
                    "error_code": "service_not_ready",
                },
            )
        return {"status": "ok", "checks": checks}

    return app


app = create_app()
