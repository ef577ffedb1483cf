from .base import BaseClient
from .catalog_client import CatalogClient
from .orders_client import OrdersClient

__all__ = ["BaseClient", "CatalogClient", "OrdersClient"]
