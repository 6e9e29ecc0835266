"""Liveness endpoint.

Docker health checks and load balancers hit this endpoint to verify the
application is running and responsive.
"""

from __future__ import annotations

from fastapi import APIRouter, Response

router = APIRouter(tags=["health"])


@router.get("/ping")
async def ping() -> Response:
    """Return 200 with an empty body."""
    return Response(status_code=200)
