"""telops domain vocabulary: statuses, priorities, roles and the fault state machine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ComponentStatus(str, Enum):
    """Operational status of a network component."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    MAINTENANCE = "Maintenance"
    FAULTY = "Faulty"


class FaultStatus(str, Enum):
    """Fault ticket lifecycle states."""

    OPEN = "Open"
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class FaultPriority(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class UserRole(str, Enum):
    ADMIN = "Admin"
    MANAGER = "Manager"
    TECHNICIAN = "Technician"
    STAFF = "Staff"


class UserStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class NotificationType(str, Enum):
    FAULT_ASSIGNED = "fault_assigned"
    STATUS_CHANGE = "status_change"
    LOW_STOCK = "low_stock"


class MovementType(str, Enum):
    """Why an inventory quantity changed."""

    USAGE = "usage"
    ISSUANCE = "issuance"
    MAINTENANCE = "maintenance"
    RESTOCK = "restock"


# Closed is terminal; Resolved may regress to Open when the reporter disputes the fix.
ALLOWED_TRANSITIONS: dict[FaultStatus, frozenset[FaultStatus]] = {
    FaultStatus.OPEN: frozenset({FaultStatus.IN_PROGRESS, FaultStatus.PENDING}),
    FaultStatus.PENDING: frozenset({FaultStatus.IN_PROGRESS}),
    FaultStatus.IN_PROGRESS: frozenset({FaultStatus.RESOLVED, FaultStatus.OPEN}),
    FaultStatus.RESOLVED: frozenset({FaultStatus.CLOSED, FaultStatus.OPEN}),
    FaultStatus.CLOSED: frozenset(),
}

# Faults that still hold a component down.
UNRESOLVED_FAULT_STATUSES: tuple[FaultStatus, ...] = (
    FaultStatus.OPEN,
    FaultStatus.IN_PROGRESS,
)

RESOLVED_FAULT_STATUSES: tuple[FaultStatus, ...] = (
    FaultStatus.RESOLVED,
    FaultStatus.CLOSED,
)

TECHNICIAN_ROLES: tuple[UserRole, ...] = (UserRole.TECHNICIAN,)

TIME_RANGES: dict[str, int] = {
    "daily": 1,
    "weekly": 7,
    "monthly": 30,
    "quarterly": 90,
    "yearly": 365,
}

# One hundred years; larger windows overflow datetime arithmetic.
MAX_TIME_RANGE_DAYS = 36500


@dataclass(frozen=True, slots=True)
class Actor:
    """Authenticated caller, injected by the upstream auth layer."""

    id: int
    role: str | None = None
    username: str | None = None
    ip_address: str | None = None

    @property
    def display_name(self) -> str:
        return self.username or f"user #{self.id}"


def can_transition(current: FaultStatus, target: FaultStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def parse_time_range(value: str | int | None, default: str = "monthly") -> int:
    """Convert a ``time_range`` value to a window length in days.

    Accepts the named ranges in ``TIME_RANGES`` or a positive integer up to
    ``MAX_TIME_RANGE_DAYS``.

    Raises:
        ValueError: If the value is neither a known range nor a positive integer
    """
    if value is None or value == "":
        value = default
    if isinstance(value, int):
        days = value
    else:
        named = TIME_RANGES.get(value.strip().lower())
        if named is not None:
            return named
        try:
            days = int(value)
        except ValueError:
            raise ValueError(
                f"Unknown time_range '{value}'. Use one of {', '.join(TIME_RANGES)} "
                "or a number of days"
            ) from None
    if days <= 0:
        raise ValueError("time_range must be a positive number of days")
    if days > MAX_TIME_RANGE_DAYS:
        raise ValueError(f"time_range must be at most {MAX_TIME_RANGE_DAYS} days")
    return days


def fault_reference(fault_id: int) -> str:
    """Human-facing fault code, e.g. FLT-007."""
    return f"FLT-{fault_id:03d}"
