"""
Catalog Core Module
"""
from .errors import (
    AlreadyExistsError,
    CatalogError,
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    ValidationError,
)
from .events import EventBus, EventKind, ProductEvent
from .models import Product, ProductMetrics, ProductStatus, StockOperation
from .query import PageRequest, ProductFilter, SortSpec, find_products
from .service import CatalogService
from .store import ProductStore

__all__ = [
    "AlreadyExistsError",
    "CatalogError",
    "CatalogService",
    "ConflictError",
    "EventBus",
    "EventKind",
    "InvalidArgumentError",
    "NotFoundError",
    "PageRequest",
    "Product",
    "ProductEvent",
    "ProductFilter",
    "ProductMetrics",
    "ProductStatus",
    "ProductStore",
    "SortSpec",
    "StockOperation",
    "ValidationError",
    "find_products",
]
