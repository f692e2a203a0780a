"""Maintenance logging."""

from telops.maintenance.service import MaintenanceRecord, MaintenanceRecorder, PartUsage

__all__ = ["MaintenanceRecord", "MaintenanceRecorder", "PartUsage"]
