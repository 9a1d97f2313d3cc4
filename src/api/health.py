from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health_check() -> dict[str, str]:
    """Liveness probe; does not touch the database or the image store."""
    return {"status": "ok"}
