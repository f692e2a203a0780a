"""Shared dependencies for telops web routes.

Usage:
    from fastapi import Depends
    from telops.web.dependencies import get_actor, get_services

    @router.post("/faults")
    async def create_fault(
        actor: Actor = Depends(get_actor),
        services: Services = Depends(get_services),
    ):
        ...
"""

from __future__ import annotations

from typing import Any, TypeVar

from fastapi import Header, HTTPException, Request

from telops.core.result import Err, ErrorKind, Result
from telops.models import Actor
from telops.services import Services

T = TypeVar("T")

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_TRANSITION: 400,
    ErrorKind.INSUFFICIENT_STOCK: 400,
    ErrorKind.CONFLICT: 409,
}


def get_services(request: Request) -> Services:
    """Services built for this app instance during startup."""
    return request.app.state.services


def get_actor(
    request: Request,
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
    x_actor_username: str | None = Header(default=None),
) -> Actor:
    """Authenticated caller as forwarded by the upstream auth layer.

    Raises:
        HTTPException: 401 if the actor header is missing or malformed
    """
    if not x_actor_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        actor_id = int(x_actor_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid actor identity") from None

    return Actor(
        id=actor_id,
        role=x_actor_role,
        username=x_actor_username,
        ip_address=request.client.host if request.client else None,
    )


def unwrap(result: Result[T]) -> T:
    """Return the Ok value or raise the HTTP error for the Err kind."""
    if isinstance(result, Err):
        raise HTTPException(status_code=ERROR_STATUS[result.kind], detail=result.detail)
    return result.value


def envelope(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}
