"""Stock ledger and inventory operations."""

from telops.inventory.ledger import DebitOutcome, InventoryLedger
from telops.inventory.service import InventoryService

__all__ = ["DebitOutcome", "InventoryLedger", "InventoryService"]
