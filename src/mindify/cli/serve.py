"""mindify serve: run the categorize API with uvicorn."""

from __future__ import annotations

from typing import Annotated

import typer
import uvicorn

from mindify.api.app import create_app
from mindify.cli.common import console, get_config


def serve_cmd(
    ctx: typer.Context,
    host: Annotated[str | None, typer.Option("--host", help="Bind address.")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Port.")] = None,
) -> None:
    """Serve POST /categorize, POST /categorize/extract-multiple and GET /categorize/health."""
    cfg = get_config(ctx)
    bind_host = host or cfg.api.host
    bind_port = port or cfg.api.port
    console.print(f"Serving Mindify API on http://{bind_host}:{bind_port}")
    uvicorn.run(create_app(cfg), host=bind_host, port=bind_port, log_level="info")
