"""Orderflow FastAPI application.

Processes every operation synchronously inside the request, with the Protean
domain context pushed by middleware.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share it. PROTEAN_ENV selects
# the Protean configuration overlay; ORDERFLOW_* variables tune the simulators.
from orderflow.domain import orderflow
from orderflow.utils.logging import configure_logging

configure_logging()
orderflow.init()

from orderflow.api.app import create_app  # noqa: E402

app = create_app()
