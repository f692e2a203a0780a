"""Fault ticket lifecycle management."""

from telops.faults.service import FaultCommentView, FaultLifecycleManager, FaultView

__all__ = ["FaultCommentView", "FaultLifecycleManager", "FaultView"]
