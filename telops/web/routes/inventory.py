"""Inventory consumption routes.

Routes:
- POST /inventory/issue     - Issue stock to a technician
- POST /inventory/{id}/use  - Record field usage
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from telops.inventory.ledger import DebitOutcome
from telops.models import Actor
from telops.services import Services
from telops.web.dependencies import envelope, get_actor, get_services, unwrap
from telops.web.models import InventoryIssueRequest, InventoryUseRequest

router = APIRouter(prefix="/inventory", tags=["inventory"])


def _debit_payload(outcome: DebitOutcome) -> dict:
    return {
        "item_id": outcome.item_id,
        "new_quantity": outcome.new_quantity,
        "low_stock": outcome.low_stock,
    }


@router.post("/issue")
async def issue_item(
    body: InventoryIssueRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    outcome = unwrap(
        await services.inventory.issue_item(
            actor, body.item_id, body.technician_id, body.quantity, notes=body.notes
        )
    )
    return envelope(_debit_payload(outcome))


@router.post("/{item_id}/use")
async def use_item(
    item_id: int,
    body: InventoryUseRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    outcome = unwrap(
        await services.inventory.use_item(actor, item_id, body.quantity, reason=body.reason)
    )
    return envelope(_debit_payload(outcome))
