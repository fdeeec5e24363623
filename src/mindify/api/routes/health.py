"""Health check endpoint."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter

router = APIRouter(prefix="/categorize", tags=["health"])


@router.get("/health")
def health_check() -> dict[str, Any]:
    """Liveness only; makes no LLM call."""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
