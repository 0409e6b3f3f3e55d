"""
Catalog Service

Explicitly owned composition of store, query engine, mutation engine and
event bus. One instance per process (created in the app lifespan) or per
test; adapters receive it by injection.
"""

from datetime import timedelta
from typing import List, Optional, Sequence, Union

import structlog

from catalog.config.settings import CatalogSettings
from catalog.core.events import EventBus
from catalog.core.models import (
    Availability,
    BulkResult,
    BulkUpdateItem,
    Product,
    ProductInput,
    ProductPage,
    ProductStatus,
    ProductUpdate,
    SortOrder,
    StockAdjustment,
    StockOperation,
)
from catalog.core.mutations import Clock, ProductMutations, utc_now
from catalog.core.query import (
    PageRequest,
    ProductFilter,
    SortSpec,
    find_products,
    strip_metrics,
)
from catalog.core.store import ProductStore

logger = structlog.get_logger(__name__)


class CatalogService:
    """
    Query and mutation contract of the catalog.

    Queries read a store snapshot taken under the store lock, so a query
    issued after a mutation has returned always observes it.
    """

    def __init__(
        self,
        store: Optional[ProductStore] = None,
        bus: Optional[EventBus] = None,
        settings: Optional[CatalogSettings] = None,
        clock: Clock = utc_now,
    ):
        self.settings = settings or CatalogSettings()
        self.store = store or ProductStore()
        self.bus = bus or EventBus()
        self.clock = clock
        self.mutations = ProductMutations(
            self.store,
            self.bus,
            clock=clock,
            default_currency=self.settings.default_currency,
            enforce_sku_unique_on_update=self.settings.enforce_sku_unique_on_update,
        )

    def page(self, limit: Optional[int] = None, offset: Optional[int] = None) -> PageRequest:
        """PageRequest with configured defaults for missing values"""
        return PageRequest(
            limit=self.settings.default_page_size if limit is None else limit,
            offset=0 if offset is None else offset,
        )

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_product(self, product_id: str, include_metrics: bool = False) -> Product:
        product = self.store.get(product_id)
        return product if include_metrics else strip_metrics(product)

    def find_products(
        self,
        filter: Optional[ProductFilter] = None,
        sort: Optional[SortSpec] = None,
        page: Optional[PageRequest] = None,
        include_metrics: bool = False,
    ) -> ProductPage:
        return find_products(
            self.store.all(),
            filter=filter,
            sort=sort,
            page=page or self.page(),
            include_metrics=include_metrics,
        )

    def list_products(
        self,
        ids: Optional[Sequence[str]] = None,
        status: Optional[ProductStatus] = None,
        page: Optional[PageRequest] = None,
        include_metrics: bool = False,
    ) -> ProductPage:
        criteria = ProductFilter(ids=list(ids) if ids else None, status=status)
        return self.find_products(criteria, page=page, include_metrics=include_metrics)

    def products_by_category(
        self,
        category: str,
        sort: Optional[SortSpec] = None,
        page: Optional[PageRequest] = None,
        include_metrics: bool = False,
    ) -> ProductPage:
        return self.find_products(
            ProductFilter(category=category),
            sort=sort,
            page=page,
            include_metrics=include_metrics,
        )

    def check_availability(self, product_id: str, quantity: int) -> Availability:
        product = self.store.get(product_id)
        available = product.stock_quantity >= quantity
        if available:
            return Availability(
                is_available=True,
                available_quantity=product.stock_quantity,
                message="Product is available",
            )
        return Availability(
            is_available=False,
            available_quantity=product.stock_quantity,
            message=f"Only {product.stock_quantity} items available",
            restock_date=self.clock() + timedelta(days=self.settings.restock_lead_days),
        )

    def low_stock(self, threshold: Optional[int] = None, page: Optional[PageRequest] = None) -> ProductPage:
        """ACTIVE products at or below the threshold, lowest stock first"""
        if threshold is None:
            threshold = self.settings.low_stock_threshold
        return self.find_products(
            ProductFilter(status=ProductStatus.ACTIVE, max_stock=threshold),
            sort=SortSpec("stock_quantity", SortOrder.ASC),
            page=page,
        )

    def top_selling(self, limit: int = 10) -> List[Product]:
        """Best sellers by sales count, metrics included"""
        result = self.find_products(
            sort=SortSpec("sales_count", SortOrder.DESC),
            page=PageRequest(limit=limit, offset=0),
            include_metrics=True,
        )
        return result.items

    def recent(self, days: int = 7, page: Optional[PageRequest] = None) -> ProductPage:
        """ACTIVE products created within the last `days` days, newest first"""
        cutoff = self.clock() - timedelta(days=days)
        return self.find_products(
            ProductFilter(status=ProductStatus.ACTIVE, created_after=cutoff),
            sort=SortSpec("created_at", SortOrder.DESC),
            page=page,
        )

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def create_product(self, data: ProductInput) -> Product:
        return self.mutations.create(data)

    def update_product(self, product_id: str, changes: ProductUpdate) -> Product:
        return self.mutations.update(product_id, changes)

    def update_stock(
        self,
        product_id: str,
        operation: Union[StockOperation, str],
        quantity: int,
        reason: Optional[str] = None,
    ) -> Product:
        return self.mutations.update_stock(product_id, operation, quantity, reason)

    def delete_product(self, product_id: str, soft: bool = True, reason: Optional[str] = None) -> bool:
        self.mutations.delete(product_id, soft=soft, reason=reason)
        return True

    def set_status(self, product_id: str, status: ProductStatus) -> Product:
        return self.mutations.set_status(product_id, status)

    def duplicate_product(
        self,
        product_id: str,
        new_sku: str,
        overrides: Optional[ProductUpdate] = None,
    ) -> Product:
        return self.mutations.duplicate(product_id, new_sku, overrides)

    def bulk_create(self, inputs: List[ProductInput]) -> BulkResult:
        return self.mutations.bulk_create(inputs)

    def bulk_update(self, items: List[BulkUpdateItem]) -> BulkResult:
        return self.mutations.bulk_update(items)

    def bulk_update_stock(self, items: List[StockAdjustment]) -> BulkResult:
        return self.mutations.bulk_update_stock(items)

    def bulk_delete(self, product_ids: List[str], soft: bool = True, reason: Optional[str] = None) -> BulkResult:
        return self.mutations.bulk_delete(product_ids, soft=soft, reason=reason)

    def seed(self, products: List[Product]) -> int:
        """Load pre-built records (demo data); returns the number loaded"""
        loaded = self.mutations.import_products(products)
        logger.info("Catalog seeded", products=loaded, total=len(self.store))
        return loaded
