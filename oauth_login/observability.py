from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI

from .config import Settings


def _route_exists(app: FastAPI, path: str) -> bool:
    return any(getattr(route, "path", None) == path for route in app.routes)


def configure_structured_logging(level: str = "INFO") -> bool:
    root = logging.getLogger()
    if getattr(root, "_json_logging_configured", False):
        return False

    handler = logging.StreamHandler()
    try:
        from pythonjsonlogger.json import JsonFormatter

        handler.setFormatter(
            JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    except ImportError:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )

    root.handlers = [handler]
    root.setLevel(level.upper())
    setattr(root, "_json_logging_configured", True)
    return True


def configure_metrics(app: FastAPI, settings: Settings) -> bool:
    if not settings.metrics_enabled:
        return False
    if _route_exists(app, "/metrics"):
        return False

    try:
        from prometheus_fastapi_instrumentator import Instrumentator
    except ImportError:
        return False

    Instrumentator().instrument(app).expose(
        app, endpoint="/metrics", include_in_schema=False
    )
    return True


def configure_observability(app: FastAPI, settings: Settings) -> dict[str, Any]:
    return {
        "logging": configure_structured_logging(settings.log_level),
        "metrics": configure_metrics(app, settings),
    }
