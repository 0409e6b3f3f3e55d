"""
Catalog Domain Models

Product records and the value types that flow through the store, the query
engine and the mutation engine.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from catalog.core.errors import InvalidArgumentError


# =============================================================================
# ENUMERATIONS
# =============================================================================

class ProductStatus(str, Enum):
    """Product status enumeration"""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    DISCONTINUED = "DISCONTINUED"
    DRAFT = "DRAFT"
    ARCHIVED = "ARCHIVED"


class StockOperation(str, Enum):
    """Stock adjustment kinds"""
    ADD = "ADD"
    SUBTRACT = "SUBTRACT"
    SET = "SET"


class SortOrder(str, Enum):
    """Sort direction"""
    ASC = "ASC"
    DESC = "DESC"


# =============================================================================
# RECORDS
# =============================================================================

@dataclass
class ProductMetrics:
    """Engagement counters for a product"""
    views_count: int = 0
    sales_count: int = 0
    reviews_count: int = 0
    wishlist_count: int = 0
    average_rating: float = 0.0


@dataclass
class Product:
    """A catalog item. The store owns every instance."""
    id: str
    name: str
    category: str
    sku: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    price: Decimal = Decimal("0")
    currency: str = "USD"
    stock_quantity: int = 0
    status: ProductStatus = ProductStatus.ACTIVE
    image_urls: List[str] = field(default_factory=list)
    attributes: Dict[str, str] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)
    metrics: Optional[ProductMetrics] = None

    @property
    def is_archived(self) -> bool:
        return self.status == ProductStatus.ARCHIVED


def unique_tags(tags: Iterable[str]) -> List[str]:
    """Deduplicate tags keeping first-seen order"""
    return list(dict.fromkeys(tags))


def parse_status(value: Union[str, ProductStatus, None]) -> Optional[ProductStatus]:
    """Status names are accepted in any case"""
    if value is None or value == "":
        return None
    if isinstance(value, ProductStatus):
        return value
    try:
        return ProductStatus(str(value).upper())
    except ValueError:
        raise InvalidArgumentError(f"Invalid product status: {value}")


def normalize_attributes(value: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Free-form attributes as a flat string map"""
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidArgumentError("Product attributes must be an object")
    return {str(k): str(v) for k, v in value.items()}


# =============================================================================
# INPUTS
# =============================================================================

@dataclass
class ProductInput:
    """Fields accepted by create. Optional fields fall back to defaults."""
    name: str
    category: str
    sku: str
    description: Optional[str] = None
    price: Optional[Decimal] = None
    currency: Optional[str] = None
    stock_quantity: Optional[int] = None
    image_urls: Optional[List[str]] = None
    attributes: Optional[Dict[str, str]] = None
    tags: Optional[List[str]] = None


# Fields a partial update may touch. Anything else is ignored.
UPDATABLE_FIELDS: Tuple[str, ...] = (
    "name",
    "description",
    "category",
    "sku",
    "price",
    "currency",
    "stock_quantity",
    "status",
    "image_urls",
    "attributes",
    "tags",
)


@dataclass
class ProductUpdate:
    """Partial update. Only fields that are not None are applied."""
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[Decimal] = None
    currency: Optional[str] = None
    stock_quantity: Optional[int] = None
    status: Union[ProductStatus, str, None] = None
    image_urls: Optional[List[str]] = None
    attributes: Optional[Dict[str, str]] = None
    tags: Optional[List[str]] = None

    def changes(self) -> Dict[str, object]:
        """Supplied fields only"""
        return {
            name: getattr(self, name)
            for name in UPDATABLE_FIELDS
            if getattr(self, name) is not None
        }


@dataclass
class BulkUpdateItem:
    """One entry of a bulk update"""
    product_id: str
    changes: ProductUpdate = field(default_factory=ProductUpdate)


@dataclass
class StockAdjustment:
    """One entry of a bulk stock update"""
    product_id: str
    operation: str
    quantity: int
    reason: Optional[str] = None


# =============================================================================
# RESULTS
# =============================================================================

@dataclass
class PageInfo:
    current_page: int
    total_pages: int
    page_size: int
    total_items: int


@dataclass
class ProductPage:
    """A bounded slice of a filtered and sorted product sequence"""
    items: List[Product]
    total_count: int
    has_more: bool
    pagination: PageInfo


@dataclass
class BulkResult:
    """Outcome of a bulk operation with per-item failures"""
    updated: List[Product] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.updated)

    @property
    def error_count(self) -> int:
        return len(self.failed)

    @property
    def success(self) -> bool:
        return self.success_count > 0


@dataclass
class Availability:
    """Answer to 'can this quantity be bought now'"""
    is_available: bool
    available_quantity: int
    message: str
    restock_date: Optional[datetime] = None
