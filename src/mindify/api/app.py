"""FastAPI server exposing the categorize contract.

Usage:
    app = create_app(load_config())
    uvicorn.run(app, host="127.0.0.1", port=8787)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mindify import __version__
from mindify.api.routes.categorize import router as categorize_router
from mindify.api.routes.health import router as health_router
from mindify.config import MindifyConfig, load_config

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Any missing or malformed body field is reported as one 400."""
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Missing required fields: rawInput and userContext"},
    )


def create_app(config: MindifyConfig | None = None) -> FastAPI:
    """Build the API application.

    Args:
        config: Loaded configuration; read from disk when omitted.
    """
    app = FastAPI(title="Mindify API", version=__version__)
    app.state.config = config or load_config()
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.include_router(categorize_router)
    app.include_router(health_router)
    return app
