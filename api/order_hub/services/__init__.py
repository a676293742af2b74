# order_hub/services/__init__.py
"""
Business logic services for Order Hub.
"""
from order_hub.services.catalog import CatalogService
from order_hub.services.clients import ClientService
from order_hub.services.numbering import NumberingService
from order_hub.services.orders import OrderService, Totals, compute_totals
from order_hub.services.order_queries import OrderQueryService

__all__ = [
    "CatalogService",
    "ClientService",
    "NumberingService",
    "OrderService",
    "OrderQueryService",
    "Totals",
    "compute_totals",
]
