"""telops web route modules.

Each module exports a ``router`` (APIRouter instance) that ``create_app``
includes. Shared dependencies live in ``telops.web.dependencies`` and request
models in ``telops.web.models``.
"""

from telops.web.routes import faults, health, inventory, maintenance, metrics

__all__ = ["faults", "health", "inventory", "maintenance", "metrics"]
