from .inventory_service import InventoryService
from .sales_service import SalesService
from .reporting_service import ReportingService

__all__ = [
    "InventoryService",
    "SalesService",
    "ReportingService",
]
