"""Health check endpoints.

- /health       - Plain "OK" for load balancers
- /health/live  - Liveness probe (always OK if the process is running)
- /health/ready - Readiness probe (checks blob storage connectivity)
"""

from __future__ import annotations

import asyncio
import time
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from fileservice.api.deps import get_storage
from fileservice.storage.base import BlobStorage

router = APIRouter(tags=["Health"])

READY_CHECK_TIMEOUT = 5.0  # seconds


@router.get("/health")
async def health() -> str:
    return "OK"


@router.get("/health/live")
async def liveness() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness(storage: Annotated[BlobStorage, Depends(get_storage)]) -> JSONResponse:
    """Report whether blob storage is reachable."""
    start = time.monotonic()
    try:
        healthy = await asyncio.wait_for(storage.check_health(), timeout=READY_CHECK_TIMEOUT)
        message = None if healthy else "Blob storage check failed"
    except asyncio.TimeoutError:
        healthy = False
        message = "Blob storage check timed out"

    component: dict[str, Any] = {
        "name": "blob_storage",
        "status": "healthy" if healthy else "unhealthy",
        "latency_ms": round((time.monotonic() - start) * 1000, 2),
    }
    if message:
        component["message"] = message

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": component["status"], "components": [component]},
    )
