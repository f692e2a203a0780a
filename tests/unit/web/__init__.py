"""Unit tests for telops web route modules.

Structure:
    tests/unit/web/
    ├── test_dependencies.py       # Actor headers and error mapping
    ├── test_routes_faults.py      # Fault lifecycle routes
    ├── test_routes_inventory.py   # Inventory and maintenance routes
    └── test_routes_metrics.py     # KPI and health routes

Testing pattern:
    - httpx AsyncClient over ASGITransport against a throwaway SQLite file
    - TestClient with dependency overrides where the service is mocked
"""
