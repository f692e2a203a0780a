"""KPI metrics routes.

Routes:
- GET  /metrics/kpi?time_range=  - Windowed KPI summary
- GET  /metrics/health           - Component health scores
- GET  /metrics/history?days=    - Daily fault and resolution series
- POST /metrics/snapshot         - Record today's headline figures
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from telops.models import Actor, parse_time_range
from telops.services import Services
from telops.web.dependencies import envelope, get_actor, get_services

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("/kpi")
async def kpi_summary(
    time_range: str | None = Query(default=None),
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    try:
        window_days = parse_time_range(time_range, default=services.default_time_range)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from None

    metrics = await services.metrics.kpi_summary(window_days)
    return envelope(metrics.to_dict())


@router.get("/health")
async def component_health(
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    rows = await services.metrics.component_health()
    return envelope([row.to_dict() for row in rows])


@router.get("/history")
async def metrics_history(
    days: str | None = Query(default=None),
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    try:
        window_days = parse_time_range(days, default="weekly")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from None

    history = await services.metrics.history(window_days)
    return envelope(history.to_dict())


@router.post("/snapshot", status_code=status.HTTP_201_CREATED)
async def record_snapshot(
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    snapshot = await services.metrics.record_snapshot()
    return envelope(snapshot.to_dict())
