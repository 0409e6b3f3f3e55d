"""
Products API Endpoints

REST API for the product catalog. Field names cross this boundary in
lowerCamelCase; catalog errors are mapped to HTTP status codes by the
application's exception handlers.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from catalog.config import get_settings
from catalog.core import models
from catalog.core.query import ProductFilter, SortSpec
from catalog.core.service import CatalogService
from catalog.serving.api.dependencies import get_catalog


settings = get_settings()
router = APIRouter()

MAX_PAGE_SIZE = settings.catalog.max_page_size


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ProductMetricsResponse(CamelModel):
    views_count: int
    sales_count: int
    reviews_count: int
    wishlist_count: int
    average_rating: float


class ProductResponse(CamelModel):
    """Product record; metrics are omitted unless requested"""
    id: str
    name: str
    description: str
    category: str
    sku: str
    price: float
    currency: str
    stock_quantity: int
    status: models.ProductStatus
    image_urls: List[str]
    attributes: Dict[str, str]
    tags: List[str]
    metrics: Optional[ProductMetricsResponse] = None
    created_at: datetime
    updated_at: datetime


class PaginationResponse(CamelModel):
    current_page: int
    total_pages: int
    page_size: int
    total_items: int


class ProductListResponse(CamelModel):
    """Paginated product list"""
    items: List[ProductResponse]
    total_count: int
    has_more: bool
    pagination: PaginationResponse


class BulkResponse(CamelModel):
    success_count: int
    error_count: int
    updated_products: List[ProductResponse]
    failed_updates: List[str]
    success: bool


class AvailabilityResponse(CamelModel):
    is_available: bool
    available_quantity: int
    message: str
    restock_date: Optional[datetime] = None


class DeleteResponse(CamelModel):
    success: bool
    message: str
    deleted_product_id: str


class ProductCreateRequest(CamelModel):
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

    def to_input(self) -> models.ProductInput:
        return models.ProductInput(**self.model_dump())


class ProductUpdateRequest(CamelModel):
    """Partial update; omitted and null fields are left untouched"""
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[Decimal] = None
    currency: Optional[str] = None
    stock_quantity: Optional[int] = None
    status: Optional[str] = None
    image_urls: Optional[List[str]] = None
    attributes: Optional[Dict[str, str]] = None
    tags: Optional[List[str]] = None

    def to_update(self) -> models.ProductUpdate:
        return models.ProductUpdate(**self.model_dump(include=set(models.UPDATABLE_FIELDS)))


class BulkUpdateEntry(ProductUpdateRequest):
    id: str


class BulkUpdateRequest(CamelModel):
    items: List[BulkUpdateEntry]


class StockUpdateRequest(CamelModel):
    operation: str
    quantity: int
    reason: Optional[str] = None


class StatusUpdateRequest(CamelModel):
    status: str


class DuplicateRequest(CamelModel):
    new_sku: str
    overrides: Optional[ProductUpdateRequest] = None


def _product(product: models.Product) -> ProductResponse:
    return ProductResponse.model_validate(product)


def _list(page: models.ProductPage) -> ProductListResponse:
    return ProductListResponse.model_validate(page)


def _bulk(result: models.BulkResult) -> BulkResponse:
    return BulkResponse(
        success_count=result.success_count,
        error_count=result.error_count,
        updated_products=[_product(p) for p in result.updated],
        failed_updates=result.failed,
        success=result.success,
    )


# =============================================================================
# QUERIES
# =============================================================================

@router.get("", response_model=ProductListResponse, response_model_exclude_none=True)
def search_products(
    q: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[Decimal] = Query(None, alias="minPrice"),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice"),
    tags: Optional[List[str]] = Query(None),
    status: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: str = Query("ASC", alias="sortOrder"),
    limit: Optional[int] = Query(None, le=MAX_PAGE_SIZE),
    offset: int = 0,
    include_metrics: bool = Query(False, alias="includeMetrics"),
    catalog: CatalogService = Depends(get_catalog),
) -> ProductListResponse:
    """
    List products with filtering, sorting and pagination.
    """
    criteria = ProductFilter(
        query=q,
        category=category,
        min_price=min_price,
        max_price=max_price,
        tags=tags,
        status=models.parse_status(status),
    )
    page = catalog.find_products(
        criteria,
        SortSpec(sort_by, sort_order),
        catalog.page(limit, offset),
        include_metrics=include_metrics,
    )
    return _list(page)


@router.get("/low-stock", response_model=ProductListResponse, response_model_exclude_none=True)
def get_low_stock_products(
    threshold: Optional[int] = Query(None, ge=0),
    limit: Optional[int] = Query(None, le=MAX_PAGE_SIZE),
    offset: int = 0,
    catalog: CatalogService = Depends(get_catalog),
) -> ProductListResponse:
    """Active products with stock at or below the threshold."""
    return _list(catalog.low_stock(threshold, catalog.page(limit, offset)))


@router.get("/top-selling", response_model=List[ProductResponse], response_model_exclude_none=True)
def get_top_selling_products(
    limit: int = Query(10, ge=0, le=MAX_PAGE_SIZE),
    catalog: CatalogService = Depends(get_catalog),
) -> List[ProductResponse]:
    """Best selling products with their metrics."""
    return [_product(p) for p in catalog.top_selling(limit)]


@router.get("/recent", response_model=ProductListResponse, response_model_exclude_none=True)
def get_recent_products(
    days: int = Query(7, ge=0),
    limit: Optional[int] = Query(None, le=MAX_PAGE_SIZE),
    offset: int = 0,
    catalog: CatalogService = Depends(get_catalog),
) -> ProductListResponse:
    """Active products created within the last N days."""
    return _list(catalog.recent(days, catalog.page(limit, offset)))


@router.get("/{product_id}", response_model=ProductResponse, response_model_exclude_none=True)
def get_product(
    product_id: str,
    include_metrics: bool = Query(False, alias="includeMetrics"),
    catalog: CatalogService = Depends(get_catalog),
) -> ProductResponse:
    """Get product details."""
    return _product(catalog.get_product(product_id, include_metrics))


@router.get("/{product_id}/availability", response_model=AvailabilityResponse, response_model_exclude_none=True)
def check_availability(
    product_id: str,
    quantity: int = Query(1, ge=0),
    catalog: CatalogService = Depends(get_catalog),
) -> AvailabilityResponse:
    """Check whether a quantity can be fulfilled from stock."""
    return AvailabilityResponse.model_validate(catalog.check_availability(product_id, quantity))


# =============================================================================
# MUTATIONS
# =============================================================================

@router.post("", response_model=ProductResponse, status_code=201)
def create_product(
    request: ProductCreateRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> ProductResponse:
    return _product(catalog.create_product(request.to_input()))


@router.post("/bulk-update", response_model=BulkResponse)
def bulk_update_products(
    request: BulkUpdateRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> BulkResponse:
    items = [models.BulkUpdateItem(entry.id, entry.to_update()) for entry in request.items]
    return _bulk(catalog.bulk_update(items))


@router.patch("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: str,
    request: ProductUpdateRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> ProductResponse:
    return _product(catalog.update_product(product_id, request.to_update()))


@router.post("/{product_id}/stock", response_model=ProductResponse)
def update_stock(
    product_id: str,
    request: StockUpdateRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> ProductResponse:
    product = catalog.update_stock(product_id, request.operation, request.quantity, request.reason)
    return _product(product)


@router.post("/{product_id}/status", response_model=ProductResponse)
def set_status(
    product_id: str,
    request: StatusUpdateRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> ProductResponse:
    return _product(catalog.set_status(product_id, models.parse_status(request.status)))


@router.post("/{product_id}/duplicate", response_model=ProductResponse, status_code=201)
def duplicate_product(
    product_id: str,
    request: DuplicateRequest,
    catalog: CatalogService = Depends(get_catalog),
) -> ProductResponse:
    overrides = request.overrides.to_update() if request.overrides else None
    return _product(catalog.duplicate_product(product_id, request.new_sku, overrides))


@router.delete("/{product_id}", response_model=DeleteResponse)
def delete_product(
    product_id: str,
    soft: bool = True,
    reason: Optional[str] = None,
    catalog: CatalogService = Depends(get_catalog),
) -> DeleteResponse:
    catalog.delete_product(product_id, soft=soft, reason=reason)
    return DeleteResponse(
        success=True,
        message="Product archived successfully" if soft else "Product deleted successfully",
        deleted_product_id=product_id,
    )
