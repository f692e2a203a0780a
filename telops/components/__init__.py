"""Component status synchronization."""

from telops.components.synchronizer import ComponentStatusSynchronizer

__all__ = ["ComponentStatusSynchronizer"]
