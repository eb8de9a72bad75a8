from .models import Product, ProductRef, ProductSales, Sale, SaleItem, Share
from .errors import ValidationError, NotFoundError, BackendUnavailableError

__all__ = [
    "Product",
    "ProductRef",
    "ProductSales",
    "Sale",
    "SaleItem",
    "Share",
    "ValidationError",
    "NotFoundError",
    "BackendUnavailableError",
]
