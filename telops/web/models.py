"""Request models for the telops HTTP API.

Required fields are declared optional so that a missing value reaches the
service and comes back as the same validation error every other caller sees,
instead of a framework-specific 422.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Fault Models
# ============================================================================


class FaultCreateRequest(BaseModel):
    """Used by: POST /faults"""

    title: Optional[str] = None
    category: Optional[str] = None
    component_id: Optional[int] = None
    priority: Optional[str] = "Medium"
    description: Optional[str] = None


class FaultAssignRequest(BaseModel):
    """Used by: PUT /faults/{id}/assign"""

    technician_id: Optional[int] = None
    version: Optional[int] = None


class FaultUnassignRequest(BaseModel):
    """Used by: PUT /faults/{id}/unassign"""

    version: Optional[int] = None


class FaultStatusRequest(BaseModel):
    """Used by: PUT /faults/{id}/status"""

    status: Optional[str] = None
    resolution_notes: Optional[str] = None
    version: Optional[int] = None


class FaultScheduleRequest(BaseModel):
    """Used by: PUT /faults/{id}/schedule"""

    scheduled_for: Optional[datetime] = None


class FaultCommentRequest(BaseModel):
    """Used by: POST /faults/{id}/comments"""

    comment: Optional[str] = None


# ============================================================================
# Maintenance Models
# ============================================================================


class PartUsed(BaseModel):
    item_id: Optional[int] = None
    quantity: Optional[int] = None


class MaintenanceCreateRequest(BaseModel):
    """Used by: POST /maintenance"""

    component_id: Optional[int] = None
    action_taken: Optional[str] = None
    technician_id: Optional[int] = None
    result: Optional[str] = "Success"
    duration_minutes: Optional[int] = None
    activity_date: Optional[datetime] = None
    maintenance_type: Optional[str] = "scheduled"
    parts_used: List[PartUsed] = Field(default_factory=list)


# ============================================================================
# Inventory Models
# ============================================================================


class InventoryUseRequest(BaseModel):
    """Used by: POST /inventory/{id}/use"""

    quantity: Optional[int] = None
    reason: Optional[str] = None


class InventoryIssueRequest(BaseModel):
    """Used by: POST /inventory/issue"""

    item_id: Optional[int] = None
    technician_id: Optional[int] = None
    quantity: Optional[int] = None
    notes: Optional[str] = None
