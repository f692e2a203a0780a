"""Fault lifecycle routes.

Routes:
- POST /faults                 - Report a fault
- GET  /faults/stats/summary   - Counts by status, priority and category
- GET  /faults/{id}            - Fetch one fault
- PUT  /faults/{id}/assign     - Assign a technician
- PUT  /faults/{id}/unassign   - Remove the assignment
- PUT  /faults/{id}/status     - Move along the state machine
- PUT  /faults/{id}/schedule   - Plan the work
- GET  /faults/{id}/comments   - Discussion thread, oldest first
- POST /faults/{id}/comments   - Add a comment
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from telops.models import Actor
from telops.services import Services
from telops.web.dependencies import envelope, get_actor, get_services, unwrap
from telops.web.models import (
    FaultAssignRequest,
    FaultCommentRequest,
    FaultCreateRequest,
    FaultScheduleRequest,
    FaultStatusRequest,
    FaultUnassignRequest,
)

router = APIRouter(prefix="/faults", tags=["faults"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_fault(
    body: FaultCreateRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    fault = unwrap(
        await services.faults.create(
            actor,
            title=body.title,
            category=body.category,
            component_id=body.component_id,
            priority=body.priority,
            description=body.description,
        )
    )
    return envelope(
        {
            "id": fault.id,
            "reference": fault.reference,
            "title": fault.title,
            "category": fault.category,
            "priority": fault.priority,
            "status": fault.status,
            "component_id": fault.component_id,
        }
    )


@router.get("/stats/summary")
async def fault_stats_summary(
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    stats = await services.metrics.fault_stats()
    return envelope(stats.to_dict())


@router.get("/{fault_id}")
async def get_fault(
    fault_id: int,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    fault = unwrap(await services.faults.get(fault_id))
    return envelope(fault.to_dict())


@router.put("/{fault_id}/assign")
async def assign_fault(
    fault_id: int,
    body: FaultAssignRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    fault = unwrap(
        await services.faults.assign(
            actor, fault_id, body.technician_id, expected_version=body.version
        )
    )
    return envelope(fault.to_dict())


@router.put("/{fault_id}/unassign")
async def unassign_fault(
    fault_id: int,
    body: FaultUnassignRequest | None = None,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    version = body.version if body else None
    fault = unwrap(await services.faults.unassign(actor, fault_id, expected_version=version))
    return envelope(fault.to_dict())


@router.put("/{fault_id}/status")
async def update_fault_status(
    fault_id: int,
    body: FaultStatusRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    fault = unwrap(
        await services.faults.transition_status(
            actor,
            fault_id,
            body.status,
            resolution_notes=body.resolution_notes,
            expected_version=body.version,
        )
    )
    return envelope(
        {
            "status": fault.status,
            "response_time_minutes": fault.response_time_minutes,
            "fault": fault.to_dict(),
        }
    )


@router.put("/{fault_id}/schedule")
async def schedule_fault(
    fault_id: int,
    body: FaultScheduleRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    fault = unwrap(await services.faults.schedule(actor, fault_id, body.scheduled_for))
    return envelope(fault.to_dict())


@router.get("/{fault_id}/comments")
async def list_fault_comments(
    fault_id: int,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    comments = unwrap(await services.faults.list_comments(fault_id))
    return {
        "success": True,
        "data": [comment.to_dict() for comment in comments],
        "count": len(comments),
    }


@router.post("/{fault_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_fault_comment(
    fault_id: int,
    body: FaultCommentRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    comment = unwrap(await services.faults.add_comment(actor, fault_id, body.comment))
    return envelope(comment.to_dict())
