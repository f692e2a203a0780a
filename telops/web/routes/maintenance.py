"""Maintenance logging routes.

Routes:
- POST /maintenance - Record maintenance and consume parts atomically
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from telops.models import Actor
from telops.services import Services
from telops.web.dependencies import envelope, get_actor, get_services, unwrap
from telops.web.models import MaintenanceCreateRequest

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def record_maintenance(
    body: MaintenanceCreateRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    """Any failing part aborts the whole entry; nothing is persisted."""
    parts = [part.model_dump() for part in body.parts_used]
    record = unwrap(
        await services.maintenance.record_maintenance(
            actor,
            component_id=body.component_id,
            action_taken=body.action_taken,
            technician_id=body.technician_id,
            result=body.result,
            duration_minutes=body.duration_minutes,
            activity_date=body.activity_date,
            maintenance_type=body.maintenance_type,
            parts=parts,
        )
    )
    return envelope(
        {
            "id": record.log_id,
            "parts": [
                {
                    "item_id": debit.item_id,
                    "new_quantity": debit.new_quantity,
                    "low_stock": debit.low_stock,
                }
                for debit in record.debits
            ],
        }
    )
