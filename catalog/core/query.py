"""
Query Engine

Stateless filtering, sorting and pagination over a product snapshot.

Filtering always happens before pagination, so total_count is independent of
limit and offset. Sorting relies on Python's stable sort in both directions,
so records that compare equal keep their insertion order.
"""

import dataclasses
import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import structlog

from catalog.core.errors import InvalidArgumentError
from catalog.core.models import (
    PageInfo,
    Product,
    ProductPage,
    ProductStatus,
    SortOrder,
)

logger = structlog.get_logger(__name__)

DEFAULT_LIMIT = 20
DEFAULT_OFFSET = 0


# =============================================================================
# SPECS
# =============================================================================

@dataclass
class ProductFilter:
    """All supplied criteria must hold (logical AND)"""
    query: Optional[str] = None
    category: Optional[str] = None
    min_price: Optional[Union[Decimal, float, int]] = None
    max_price: Optional[Union[Decimal, float, int]] = None
    tags: Optional[Sequence[str]] = None
    status: Optional[ProductStatus] = None
    ids: Optional[Sequence[str]] = None
    max_stock: Optional[int] = None
    created_after: Optional[datetime] = None


@dataclass
class SortSpec:
    sort_by: Optional[str] = None
    sort_order: Union[SortOrder, str] = SortOrder.ASC


@dataclass
class PageRequest:
    limit: int = DEFAULT_LIMIT
    offset: int = DEFAULT_OFFSET


# =============================================================================
# SORT KEYS
# =============================================================================

def _metric(name: str) -> Callable[[Product], Any]:
    def getter(product: Product) -> Any:
        return getattr(product.metrics, name) if product.metrics else None
    return getter


# normalized field name -> (getter, zero value)
_SORT_KEYS: Dict[str, Tuple[Callable[[Product], Any], Any]] = {
    "id": (lambda p: p.id, ""),
    "name": (lambda p: p.name, ""),
    "description": (lambda p: p.description, ""),
    "category": (lambda p: p.category, ""),
    "sku": (lambda p: p.sku, ""),
    "currency": (lambda p: p.currency, ""),
    "status": (lambda p: p.status.value if p.status else None, ""),
    "price": (lambda p: p.price, Decimal("0")),
    "stockquantity": (lambda p: p.stock_quantity, 0),
    "createdat": (lambda p: p.created_at.timestamp() if p.created_at else None, 0),
    "updatedat": (lambda p: p.updated_at.timestamp() if p.updated_at else None, 0),
    "viewscount": (_metric("views_count"), 0),
    "salescount": (_metric("sales_count"), 0),
    "reviewscount": (_metric("reviews_count"), 0),
    "wishlistcount": (_metric("wishlist_count"), 0),
    "averagerating": (_metric("average_rating"), 0),
}


def _normalize_field(name: str) -> str:
    return name.replace("_", "").lower()


def parse_sort_order(value: Union[SortOrder, str, None]) -> SortOrder:
    """Accept ASC/DESC in any case; None means ASC"""
    if value is None:
        return SortOrder.ASC
    if isinstance(value, SortOrder):
        return value
    try:
        return SortOrder(str(value).upper())
    except ValueError:
        raise InvalidArgumentError(f"Invalid sort order: {value}. Must be 'ASC' or 'DESC'")


def sort_products(products: List[Product], sort: Optional[SortSpec]) -> List[Product]:
    """Stable sort on the named field. Missing values compare as zero."""
    if sort is None or not sort.sort_by:
        return list(products)

    order = parse_sort_order(sort.sort_order)
    entry = _SORT_KEYS.get(_normalize_field(sort.sort_by))
    if entry is None:
        # Every record lacks the field, so every key is the zero value
        logger.debug("Unknown sort field", sort_by=sort.sort_by)
        return list(products)

    getter, zero = entry

    def key(product: Product) -> Any:
        value = getter(product)
        return zero if value is None else value

    return sorted(products, key=key, reverse=order == SortOrder.DESC)


# =============================================================================
# FILTERING
# =============================================================================

def _as_decimal(value: Union[Decimal, float, int]) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def matches(product: Product, criteria: ProductFilter) -> bool:
    """True when the product satisfies every supplied criterion"""
    if criteria.ids is not None and product.id not in criteria.ids:
        return False

    if criteria.query:
        term = criteria.query.lower()
        if term not in product.name.lower() and term not in (product.description or "").lower():
            return False

    if criteria.category and product.category.lower() != criteria.category.lower():
        return False

    if criteria.min_price is not None and product.price < _as_decimal(criteria.min_price):
        return False
    if criteria.max_price is not None and product.price > _as_decimal(criteria.max_price):
        return False

    if criteria.tags:
        if not set(criteria.tags).intersection(product.tags):
            return False

    if criteria.status is not None and product.status != criteria.status:
        return False

    if criteria.max_stock is not None and product.stock_quantity > criteria.max_stock:
        return False

    if criteria.created_after is not None and product.created_at < criteria.created_after:
        return False

    return True


def filter_products(products: Iterable[Product], criteria: Optional[ProductFilter]) -> List[Product]:
    if criteria is None:
        return list(products)
    return [p for p in products if matches(p, criteria)]


# =============================================================================
# PAGINATION
# =============================================================================

def validate_page(page: Optional[PageRequest]) -> PageRequest:
    page = page or PageRequest()
    if page.limit < 0:
        raise InvalidArgumentError(f"limit must not be negative, got {page.limit}")
    if page.offset < 0:
        raise InvalidArgumentError(f"offset must not be negative, got {page.offset}")
    return page


def paginate(products: List[Product], page: Optional[PageRequest]) -> ProductPage:
    """
    Slice [offset, offset + limit) and describe the slice.

    A zero limit yields an empty page on page 1 of 0.
    """
    page = validate_page(page)
    total = len(products)
    end = page.offset + page.limit

    if page.limit == 0:
        current_page, total_pages = 1, 0
    else:
        current_page = page.offset // page.limit + 1
        total_pages = math.ceil(total / page.limit)

    return ProductPage(
        items=products[page.offset:end],
        total_count=total,
        has_more=end < total,
        pagination=PageInfo(
            current_page=current_page,
            total_pages=total_pages,
            page_size=page.limit,
            total_items=total,
        ),
    )


def strip_metrics(product: Product) -> Product:
    return dataclasses.replace(product, metrics=None)


def find_products(
    products: Iterable[Product],
    filter: Optional[ProductFilter] = None,
    sort: Optional[SortSpec] = None,
    page: Optional[PageRequest] = None,
    include_metrics: bool = False,
) -> ProductPage:
    """
    Filter, then sort, then paginate a product sequence.

    Args:
        products: Snapshot in insertion order
        filter: Criteria combined with AND
        sort: Field and direction
        page: Limit and offset
        include_metrics: Keep the metrics of returned records

    Returns:
        ProductPage with the requested slice and page metadata
    """
    page = validate_page(page)
    sort_order = parse_sort_order(sort.sort_order) if sort else None

    selected = filter_products(products, filter)
    if sort is not None:
        selected = sort_products(selected, SortSpec(sort.sort_by, sort_order))

    result = paginate(selected, page)
    if not include_metrics:
        result.items = [strip_metrics(p) for p in result.items]
    return result
