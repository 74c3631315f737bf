"""Top-level wiring for the wellbeing tracker API.

Importing this module configures logging, makes sure the schema exists,
installs middleware and exception handlers, and mounts the routers. The
resulting ``app`` is what the ASGI server runs.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_fastapi_instrumentator import Instrumentator

from .core.config import settings
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .db.migrate import run_migrations
from .db.session import Base, engine
from .middlewares import RequestIdMiddleware

# Importing the models registers their tables on ``Base.metadata``.
from .models import usage as _usage  # noqa: F401
from .models import user as _user  # noqa: F401

configure_logging()

# ---------- App init ----------
app = FastAPI(title=settings.APP_NAME)

# ---------- DB init/migrations ----------
Base.metadata.create_all(bind=engine)
run_migrations(engine)

# ---------- Middleware ----------
# The extension calls in from chrome-extension:// origins; dashboards are listed explicitly.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_origin_regex=settings.extension_origin_regex,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)
app.add_middleware(RequestIdMiddleware)

register_exception_handlers(app)

# ---------- Routers ----------
from .routers import api_auth as api_auth_router  # noqa: E402

app.include_router(api_auth_router.router)

from .routers import api_tracking as api_tracking_router  # noqa: E402

app.include_router(api_tracking_router.router)


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def index() -> str:
    return "Welcome to the Browser Wellbeing Tracker API!"


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


# ---------- Metrics ----------
instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app, include_in_schema=False)


__all__ = ["app"]
