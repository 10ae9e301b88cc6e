"""Orderflow domain — inventory, carts, orders, payments and shipments.

A single Protean domain hosts every aggregate. Persistence, brokers and the
event store come from Protean's configuration (selected by PROTEAN_ENV); with
no configuration the in-memory providers are used.
"""

import structlog
from protean.domain import Domain

orderflow = Domain(name="orderflow")

logger = structlog.get_logger(__name__)
