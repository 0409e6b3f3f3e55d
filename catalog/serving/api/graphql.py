"""
GraphQL API

Strawberry GraphQL schema for catalog queries, mutations and live updates.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, AsyncGenerator, Dict, Iterator, List, Optional, Union

import strawberry
import structlog
from fastapi import Depends
from graphql import GraphQLError
from strawberry.fastapi import GraphQLRouter
from strawberry.scalars import JSON
from strawberry.types import Info

from catalog.core import models
from catalog.core.errors import CatalogError, ValidationError
from catalog.core.events import (
    PRODUCT_UPDATED,
    STATUS_CHANGED,
    STOCK_CHANGED,
    category_topic,
    product_topic,
)
from catalog.core.query import PageRequest, ProductFilter, SortSpec
from catalog.core.service import CatalogService
from catalog.serving.api.dependencies import get_catalog
from catalog.serving.subscriptions import below_threshold, watch_products

logger = structlog.get_logger(__name__)

ProductStatus = strawberry.enum(models.ProductStatus, name="ProductStatus")
StockOperation = strawberry.enum(models.StockOperation, name="StockOperation")


# =============================================================================
# TYPES
# =============================================================================

@strawberry.type
class ProductMetrics:
    views_count: int
    sales_count: int
    average_rating: float
    reviews_count: int
    wishlist_count: int


@strawberry.type
class Product:
    id: strawberry.ID
    name: str
    description: Optional[str]
    category: str
    price: float
    currency: str
    stock_quantity: int
    sku: str
    image_urls: List[str]
    status: ProductStatus
    created_at: datetime
    updated_at: datetime
    attributes: Optional[JSON]
    metrics: Optional[ProductMetrics]
    tags: List[str]


@strawberry.type
class ProductAvailability:
    is_available: bool
    available_quantity: int
    message: Optional[str]
    restock_date: Optional[datetime]


@strawberry.type
class PaginationInfo:
    current_page: int
    total_pages: int
    page_size: int
    total_items: int


@strawberry.type
class ProductListResponse:
    products: List[Product]
    total_count: int
    has_more: bool
    pagination: Optional[PaginationInfo]


@strawberry.type
class BulkOperationResponse:
    success_count: int
    error_count: int
    updated_products: List[Product]
    failed_updates: List[str]
    success: bool


# =============================================================================
# INPUTS
# =============================================================================

@strawberry.input
class PaginationInput:
    limit: Optional[int] = None
    offset: Optional[int] = 0


@strawberry.input
class ProductSearchInput:
    query: Optional[str] = None
    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    tags: Optional[List[str]] = None
    status: Optional[ProductStatus] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None


@strawberry.input
class CreateProductInput:
    name: str
    category: str
    price: float
    sku: str
    description: Optional[str] = None
    currency: Optional[str] = "USD"
    stock_quantity: Optional[int] = 0
    image_urls: Optional[List[str]] = None
    attributes: Optional[JSON] = None
    tags: Optional[List[str]] = None


@strawberry.input
class ProductFieldsInput:
    """Optional product fields, used as duplicate overrides"""
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    stock_quantity: Optional[int] = None
    image_urls: Optional[List[str]] = None
    status: Optional[ProductStatus] = None
    attributes: Optional[JSON] = None
    tags: Optional[List[str]] = None


@strawberry.input
class UpdateProductInput:
    id: strawberry.ID
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    stock_quantity: Optional[int] = None
    image_urls: Optional[List[str]] = None
    status: Optional[ProductStatus] = None
    attributes: Optional[JSON] = None
    tags: Optional[List[str]] = None


@strawberry.input
class StockUpdateInput:
    product_id: strawberry.ID
    quantity_change: int
    operation: StockOperation
    reason: Optional[str] = None


# =============================================================================
# CONVERSION
# =============================================================================

def to_graphql(product: models.Product) -> Product:
    metrics = product.metrics
    return Product(
        id=strawberry.ID(product.id),
        name=product.name,
        description=product.description or "",
        category=product.category,
        price=float(product.price),
        currency=product.currency or "USD",
        stock_quantity=product.stock_quantity,
        sku=product.sku,
        image_urls=list(product.image_urls),
        status=product.status,
        created_at=product.created_at,
        updated_at=product.updated_at,
        attributes=dict(product.attributes),
        metrics=ProductMetrics(
            views_count=metrics.views_count,
            sales_count=metrics.sales_count,
            average_rating=metrics.average_rating,
            reviews_count=metrics.reviews_count,
            wishlist_count=metrics.wishlist_count,
        ) if metrics else None,
        tags=list(product.tags),
    )


def to_list_response(page: models.ProductPage) -> ProductListResponse:
    return ProductListResponse(
        products=[to_graphql(p) for p in page.items],
        total_count=page.total_count,
        has_more=page.has_more,
        pagination=PaginationInfo(
            current_page=page.pagination.current_page,
            total_pages=page.pagination.total_pages,
            page_size=page.pagination.page_size,
            total_items=page.pagination.total_items,
        ),
    )


def to_bulk_response(result: models.BulkResult) -> BulkOperationResponse:
    return BulkOperationResponse(
        success_count=result.success_count,
        error_count=result.error_count,
        updated_products=[to_graphql(p) for p in result.updated],
        failed_updates=list(result.failed),
        success=result.success,
    )


def to_product_input(data: CreateProductInput) -> models.ProductInput:
    return models.ProductInput(
        name=data.name,
        category=data.category,
        sku=data.sku,
        description=data.description,
        price=data.price,
        currency=data.currency,
        stock_quantity=data.stock_quantity,
        image_urls=data.image_urls,
        attributes=data.attributes,
        tags=data.tags,
    )


def to_product_update(data: Union[ProductFieldsInput, UpdateProductInput, None]) -> models.ProductUpdate:
    if data is None:
        return models.ProductUpdate()
    return models.ProductUpdate(
        name=data.name,
        description=data.description,
        category=data.category,
        price=data.price,
        currency=data.currency,
        stock_quantity=data.stock_quantity,
        status=data.status,
        image_urls=data.image_urls,
        attributes=data.attributes,
        tags=data.tags,
    )


@contextmanager
def catalog_errors() -> Iterator[None]:
    """Re-raise catalog errors as GraphQL errors carrying an extension code"""
    try:
        yield
    except ValidationError as exc:
        raise GraphQLError(
            "Invalid input provided",
            extensions={"code": exc.code, "validationErrors": exc.errors},
        ) from exc
    except CatalogError as exc:
        raise GraphQLError(exc.message, extensions={"code": exc.code}) from exc


def _catalog(info: Info) -> CatalogService:
    return info.context["catalog"]


def _page(info: Info, pagination: Optional[PaginationInput]) -> PageRequest:
    if pagination is None:
        return _catalog(info).page()
    return _catalog(info).page(pagination.limit, pagination.offset)


# =============================================================================
# QUERIES
# =============================================================================

@strawberry.type
class Query:

    @strawberry.field
    def product(self, info: Info, id: strawberry.ID, include_metrics: bool = False) -> Optional[Product]:
        """Get a single product by ID with optional metrics"""
        with catalog_errors():
            return to_graphql(_catalog(info).get_product(id, include_metrics))

    @strawberry.field
    def products(
        self,
        info: Info,
        ids: Optional[List[strawberry.ID]] = None,
        status_filter: Optional[ProductStatus] = None,
        include_metrics: bool = False,
        pagination: Optional[PaginationInput] = None,
    ) -> ProductListResponse:
        """Get multiple products by IDs with filtering and pagination"""
        with catalog_errors():
            page = _catalog(info).list_products(
                ids=[str(i) for i in ids] if ids else None,
                status=status_filter,
                page=_page(info, pagination),
                include_metrics=include_metrics,
            )
        return to_list_response(page)

    @strawberry.field
    def search_products(
        self,
        info: Info,
        search: ProductSearchInput,
        pagination: Optional[PaginationInput] = None,
    ) -> ProductListResponse:
        """Search products with filtering and sorting"""
        criteria = ProductFilter(
            query=search.query,
            category=search.category,
            min_price=search.min_price,
            max_price=search.max_price,
            tags=search.tags,
            status=search.status,
        )
        sort = SortSpec(search.sort_by or "name", search.sort_order or "ASC")
        with catalog_errors():
            page = _catalog(info).find_products(criteria, sort, _page(info, pagination))
        return to_list_response(page)

    @strawberry.field
    def products_by_category(
        self,
        info: Info,
        category: str,
        include_subcategories: bool = False,
        pagination: Optional[PaginationInput] = None,
        sort_by: Optional[str] = "name",
        sort_order: Optional[str] = "ASC",
    ) -> ProductListResponse:
        """Get products in a category (categories are flat; subcategories are not modelled)"""
        with catalog_errors():
            page = _catalog(info).products_by_category(
                category,
                sort=SortSpec(sort_by, sort_order or "ASC"),
                page=_page(info, pagination),
            )
        return to_list_response(page)

    @strawberry.field
    def product_availability(self, info: Info, product_id: strawberry.ID, quantity: int) -> ProductAvailability:
        """Check product availability for a specific quantity"""
        with catalog_errors():
            availability = _catalog(info).check_availability(product_id, quantity)
        return ProductAvailability(
            is_available=availability.is_available,
            available_quantity=availability.available_quantity,
            message=availability.message,
            restock_date=availability.restock_date,
        )

    @strawberry.field
    def low_stock_products(
        self,
        info: Info,
        threshold: Optional[int] = None,
        pagination: Optional[PaginationInput] = None,
    ) -> ProductListResponse:
        """Active products with stock at or below the threshold"""
        with catalog_errors():
            page = _catalog(info).low_stock(threshold, _page(info, pagination))
        return to_list_response(page)

    @strawberry.field
    def top_selling_products(self, info: Info, limit: int = 10) -> List[Product]:
        """Best selling products, metrics included"""
        with catalog_errors():
            products = _catalog(info).top_selling(limit)
        return [to_graphql(p) for p in products]

    @strawberry.field
    def recent_products(
        self,
        info: Info,
        days: int = 7,
        pagination: Optional[PaginationInput] = None,
    ) -> ProductListResponse:
        """Active products created within the last N days"""
        with catalog_errors():
            page = _catalog(info).recent(days, _page(info, pagination))
        return to_list_response(page)


# =============================================================================
# MUTATIONS
# =============================================================================

@strawberry.type
class Mutation:

    @strawberry.mutation
    def create_product(self, info: Info, input: CreateProductInput) -> Product:
        with catalog_errors():
            return to_graphql(_catalog(info).create_product(to_product_input(input)))

    @strawberry.mutation
    def create_products(self, info: Info, inputs: List[CreateProductInput]) -> BulkOperationResponse:
        result = _catalog(info).bulk_create([to_product_input(i) for i in inputs])
        return to_bulk_response(result)

    @strawberry.mutation
    def update_product(self, info: Info, input: UpdateProductInput) -> Product:
        with catalog_errors():
            product = _catalog(info).update_product(input.id, to_product_update(input))
        return to_graphql(product)

    @strawberry.mutation
    def update_products(self, info: Info, inputs: List[UpdateProductInput]) -> BulkOperationResponse:
        items = [models.BulkUpdateItem(str(i.id), to_product_update(i)) for i in inputs]
        return to_bulk_response(_catalog(info).bulk_update(items))

    @strawberry.mutation
    def update_product_stock(self, info: Info, input: StockUpdateInput) -> Product:
        with catalog_errors():
            product = _catalog(info).update_stock(
                input.product_id, input.operation, input.quantity_change, input.reason
            )
        return to_graphql(product)

    @strawberry.mutation
    def bulk_update_stock(self, info: Info, inputs: List[StockUpdateInput]) -> BulkOperationResponse:
        items = [
            models.StockAdjustment(str(i.product_id), i.operation, i.quantity_change, i.reason)
            for i in inputs
        ]
        return to_bulk_response(_catalog(info).bulk_update_stock(items))

    @strawberry.mutation
    def delete_product(
        self,
        info: Info,
        id: strawberry.ID,
        soft_delete: bool = True,
        reason: Optional[str] = None,
    ) -> bool:
        with catalog_errors():
            return _catalog(info).delete_product(id, soft=soft_delete, reason=reason)

    @strawberry.mutation
    def delete_products(
        self,
        info: Info,
        ids: List[strawberry.ID],
        soft_delete: bool = True,
        reason: Optional[str] = None,
    ) -> BulkOperationResponse:
        result = _catalog(info).bulk_delete([str(i) for i in ids], soft=soft_delete, reason=reason)
        return to_bulk_response(result)

    @strawberry.mutation
    def activate_product(self, info: Info, id: strawberry.ID) -> Product:
        with catalog_errors():
            return to_graphql(_catalog(info).set_status(id, models.ProductStatus.ACTIVE))

    @strawberry.mutation
    def deactivate_product(self, info: Info, id: strawberry.ID) -> Product:
        with catalog_errors():
            return to_graphql(_catalog(info).set_status(id, models.ProductStatus.INACTIVE))

    @strawberry.mutation
    def archive_product(self, info: Info, id: strawberry.ID) -> Product:
        with catalog_errors():
            return to_graphql(_catalog(info).set_status(id, models.ProductStatus.ARCHIVED))

    @strawberry.mutation
    def duplicate_product(
        self,
        info: Info,
        id: strawberry.ID,
        new_sku: str,
        modifications: Optional[ProductFieldsInput] = None,
    ) -> Product:
        with catalog_errors():
            product = _catalog(info).duplicate_product(id, new_sku, to_product_update(modifications))
        return to_graphql(product)


# =============================================================================
# SUBSCRIPTIONS
# =============================================================================

@strawberry.type
class Subscription:

    @strawberry.subscription
    async def product_updated(
        self,
        info: Info,
        product_id: Optional[strawberry.ID] = None,
    ) -> AsyncGenerator[Product, None]:
        topic = product_topic(PRODUCT_UPDATED, product_id)
        async for product in watch_products(_catalog(info).bus, [topic]):
            yield to_graphql(product)

    @strawberry.subscription
    async def stock_level_changed(
        self,
        info: Info,
        product_id: Optional[strawberry.ID] = None,
        threshold: Optional[int] = None,
    ) -> AsyncGenerator[Product, None]:
        topic = product_topic(STOCK_CHANGED, product_id)
        async for product in watch_products(_catalog(info).bus, [topic], below_threshold(threshold)):
            yield to_graphql(product)

    @strawberry.subscription
    async def new_product_in_category(self, info: Info, category: str) -> AsyncGenerator[Product, None]:
        async for product in watch_products(_catalog(info).bus, [category_topic(category)]):
            yield to_graphql(product)

    @strawberry.subscription
    async def product_status_changed(
        self,
        info: Info,
        product_ids: Optional[List[strawberry.ID]] = None,
    ) -> AsyncGenerator[Product, None]:
        if product_ids:
            topics = [product_topic(STATUS_CHANGED, i) for i in product_ids]
        else:
            topics = [STATUS_CHANGED]
        async for product in watch_products(_catalog(info).bus, topics):
            yield to_graphql(product)


# =============================================================================
# SCHEMA & ROUTER
# =============================================================================

async def get_context(catalog: CatalogService = Depends(get_catalog)) -> Dict[str, Any]:
    return {"catalog": catalog}


schema = strawberry.Schema(query=Query, mutation=Mutation, subscription=Subscription)


def create_graphql_router(graphiql: bool = True) -> GraphQLRouter:
    return GraphQLRouter(
        schema,
        path="",
        graphql_ide="graphiql" if graphiql else None,
        context_getter=get_context,
    )
