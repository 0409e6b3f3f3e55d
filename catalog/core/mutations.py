"""
Mutation Engine

Validated state transitions on the ProductStore. Every successful mutation is
announced on the EventBus with the post-mutation record.

Single-item operations raise CatalogError subclasses. Bulk operations run
each item independently and collect per-item failures; they are not
transactional.
"""

import dataclasses
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Union

import structlog

from catalog.core.errors import AlreadyExistsError, CatalogError, InvalidArgumentError
from catalog.core.events import EventBus, EventKind, ProductEvent
from catalog.core.models import (
    BulkResult,
    BulkUpdateItem,
    Product,
    ProductInput,
    ProductMetrics,
    ProductStatus,
    ProductUpdate,
    StockAdjustment,
    StockOperation,
    normalize_attributes,
    parse_status,
    unique_tags,
)
from catalog.core.store import ProductStore
from catalog.core.validation import validate_changes, validate_input

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_stock_operation(operation: Union[StockOperation, str]) -> StockOperation:
    """Accept ADD/SUBTRACT/SET in any case"""
    if isinstance(operation, StockOperation):
        return operation
    try:
        return StockOperation(str(operation).upper())
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid operation: {operation}. Must be 'add', 'subtract', or 'set'"
        )


def apply_stock_operation(current: int, operation: StockOperation, quantity: int) -> int:
    """New stock level, clamped at zero"""
    if operation == StockOperation.ADD:
        return max(0, current + quantity)
    if operation == StockOperation.SUBTRACT:
        return max(0, current - quantity)
    return max(0, quantity)


def _event_kind(before: Product, after: Product) -> EventKind:
    if before.status != after.status:
        return EventKind.STATUS_CHANGED
    if before.stock_quantity != after.stock_quantity:
        return EventKind.STOCK_CHANGED
    return EventKind.UPDATED


def _normalize_changes(changes: dict) -> dict:
    normalized = dict(changes)
    if "price" in normalized:
        normalized["price"] = Decimal(str(normalized["price"]))
    if "status" in normalized:
        normalized["status"] = parse_status(normalized["status"])
    if "tags" in normalized:
        normalized["tags"] = unique_tags(normalized["tags"])
    if "image_urls" in normalized:
        normalized["image_urls"] = list(normalized["image_urls"])
    if "attributes" in normalized:
        normalized["attributes"] = normalize_attributes(normalized["attributes"])
    return normalized


class ProductMutations:
    """
    Validated create/update/stock/delete operations and their bulk variants.

    Each operation holds the store lock for its whole read-modify-write, so
    concurrent callers observe last-write-wins per record and a query issued
    after a mutation returns sees its effects.
    """

    def __init__(
        self,
        store: ProductStore,
        bus: Optional[EventBus] = None,
        clock: Clock = utc_now,
        default_currency: str = "USD",
        enforce_sku_unique_on_update: bool = False,
    ):
        self.store = store
        self.bus = bus or EventBus()
        self.clock = clock
        self.default_currency = default_currency
        self.enforce_sku_unique_on_update = enforce_sku_unique_on_update

    # -------------------------------------------------------------------------
    # helpers
    # -------------------------------------------------------------------------

    def _stamp(self, previous: datetime) -> datetime:
        """Current time, never earlier than the previous stamp"""
        return max(self.clock(), previous)

    def _new_id(self) -> str:
        product_id = str(uuid.uuid4())
        while self.store.was_issued(product_id):
            product_id = str(uuid.uuid4())
        return product_id

    def _ensure_sku_free(self, sku: str, exclude_id: Optional[str] = None) -> None:
        existing = self.store.find_by_sku(sku)
        if existing is not None and existing.id != exclude_id:
            raise AlreadyExistsError(f"Product with SKU {sku} already exists")

    def _commit(self, before: Product, after: Product, kind: Optional[EventKind] = None) -> Product:
        self.store.put(after.id, after)
        self.bus.emit(ProductEvent(
            kind=kind or _event_kind(before, after),
            product=after,
            previous_status=before.status,
            previous_stock=before.stock_quantity,
        ))
        return after

    # -------------------------------------------------------------------------
    # single item operations
    # -------------------------------------------------------------------------

    def create(self, data: ProductInput) -> Product:
        """
        Validate and insert a new ACTIVE product with zeroed metrics.

        Raises:
            ValidationError: One or more field constraints failed
            AlreadyExistsError: The SKU belongs to an active product
        """
        validate_input(data)

        with self.store.lock:
            self._ensure_sku_free(data.sku)

            now = self.clock()
            product = Product(
                id=self._new_id(),
                name=data.name,
                description=data.description or "",
                category=data.category,
                sku=data.sku,
                price=Decimal(str(data.price)) if data.price is not None else Decimal("0"),
                currency=data.currency or self.default_currency,
                stock_quantity=data.stock_quantity or 0,
                status=ProductStatus.ACTIVE,
                image_urls=list(data.image_urls or []),
                attributes=normalize_attributes(data.attributes),
                tags=unique_tags(data.tags or []),
                metrics=ProductMetrics(),
                created_at=now,
                updated_at=now,
            )
            self.store.insert(product)
            self.bus.emit(ProductEvent(kind=EventKind.CREATED, product=product))

        logger.info("Product created", product_id=product.id, sku=product.sku, category=product.category)
        return product

    def update(self, product_id: str, changes: ProductUpdate) -> Product:
        """
        Merge the supplied fields into an existing product.

        Raises:
            NotFoundError: Unknown id
            ValidationError: A supplied field is invalid
            AlreadyExistsError: SKU collision on a changed SKU or on leaving
                ARCHIVED, only when the policy is enabled
        """
        supplied = changes.changes()
        validate_changes(supplied)
        supplied = _normalize_changes(supplied)

        with self.store.lock:
            before = self.store.get(product_id)
            after = dataclasses.replace(before, **supplied, updated_at=self._stamp(before.updated_at))
            # an archived SKU may have been reused while this record was retired
            if self.enforce_sku_unique_on_update and not after.is_archived and (
                after.sku != before.sku or before.is_archived
            ):
                self._ensure_sku_free(after.sku, exclude_id=product_id)

            self._commit(before, after)

        logger.info("Product updated", product_id=product_id, fields=sorted(supplied))
        return after

    def update_stock(
        self,
        product_id: str,
        operation: Union[StockOperation, str],
        quantity: int,
        reason: Optional[str] = None,
    ) -> Product:
        """
        Add to, subtract from, or set the stock level; never below zero.

        Raises:
            NotFoundError: Unknown id
            InvalidArgumentError: Unknown operation
        """
        with self.store.lock:
            before = self.store.get(product_id)
            op = parse_stock_operation(operation)
            after = dataclasses.replace(
                before,
                stock_quantity=apply_stock_operation(before.stock_quantity, op, quantity),
                updated_at=self._stamp(before.updated_at),
            )
            self._commit(before, after, kind=EventKind.STOCK_CHANGED)

        logger.info(
            "Stock updated",
            product_id=product_id,
            operation=op.value,
            quantity=quantity,
            previous=before.stock_quantity,
            current=after.stock_quantity,
            reason=reason,
        )
        return after

    def set_status(self, product_id: str, status: ProductStatus) -> Product:
        return self.update(product_id, ProductUpdate(status=status))

    def activate(self, product_id: str) -> Product:
        return self.set_status(product_id, ProductStatus.ACTIVE)

    def deactivate(self, product_id: str) -> Product:
        return self.set_status(product_id, ProductStatus.INACTIVE)

    def archive(self, product_id: str) -> Product:
        return self.set_status(product_id, ProductStatus.ARCHIVED)

    def delete(self, product_id: str, soft: bool = True, reason: Optional[str] = None) -> Product:
        """
        Archive (soft) or purge (hard) a product.

        Returns the archived record, or the last state of a purged one.

        Raises:
            NotFoundError: Unknown id
        """
        with self.store.lock:
            before = self.store.get(product_id)
            if soft:
                after = dataclasses.replace(
                    before,
                    status=ProductStatus.ARCHIVED,
                    updated_at=self._stamp(before.updated_at),
                )
                self._commit(before, after)
            else:
                self.store.delete(product_id)
                after = before
                self.bus.emit(ProductEvent(
                    kind=EventKind.DELETED,
                    product=before,
                    previous_status=before.status,
                ))

        logger.info("Product deleted", product_id=product_id, soft=soft, reason=reason)
        return after

    def duplicate(
        self,
        source_id: str,
        new_sku: str,
        overrides: Optional[ProductUpdate] = None,
    ) -> Product:
        """
        Create a copy of an existing product under a new SKU.

        Overrides win over the source's values. Stock starts at zero unless
        overridden. Validation and SKU uniqueness apply as for create.
        """
        overrides = overrides or ProductUpdate()
        source = self.store.get(source_id)

        def pick(name: str):
            value = getattr(overrides, name)
            return value if value is not None else getattr(source, name)

        data = ProductInput(
            name=overrides.name if overrides.name is not None else f"{source.name} (Copy)",
            category=pick("category"),
            sku=new_sku,
            description=pick("description"),
            price=pick("price"),
            currency=pick("currency"),
            stock_quantity=overrides.stock_quantity if overrides.stock_quantity is not None else 0,
            image_urls=pick("image_urls"),
            attributes=pick("attributes"),
            tags=pick("tags"),
        )
        product = self.create(data)
        logger.info("Product duplicated", source_id=source_id, product_id=product.id)
        return product

    def import_products(self, products: Iterable[Product]) -> int:
        """
        Insert fully-formed records as they are, without validation or events.

        Used for seeding; ids and timestamps are kept.
        """
        count = 0
        with self.store.lock:
            for product in products:
                self.store.insert(product)
                count += 1
        return count

    # -------------------------------------------------------------------------
    # bulk operations
    # -------------------------------------------------------------------------

    def _run_bulk(self, name: str, items: Iterable, key: Callable, action: Callable) -> BulkResult:
        result = BulkResult()
        for item in items:
            try:
                result.updated.append(action(item))
            except CatalogError as exc:
                result.failed.append(f"{key(item)}: {exc.message}")

        logger.info(
            "Bulk operation finished",
            operation=name,
            success_count=result.success_count,
            error_count=result.error_count,
        )
        return result

    def bulk_create(self, inputs: List[ProductInput]) -> BulkResult:
        return self._run_bulk("create", inputs, lambda i: i.sku, self.create)

    def bulk_update(self, items: List[BulkUpdateItem]) -> BulkResult:
        return self._run_bulk(
            "update",
            items,
            lambda i: i.product_id,
            lambda i: self.update(i.product_id, i.changes),
        )

    def bulk_update_stock(self, items: List[StockAdjustment]) -> BulkResult:
        return self._run_bulk(
            "update_stock",
            items,
            lambda i: i.product_id,
            lambda i: self.update_stock(i.product_id, i.operation, i.quantity, i.reason),
        )

    def bulk_delete(self, product_ids: List[str], soft: bool = True, reason: Optional[str] = None) -> BulkResult:
        return self._run_bulk(
            "delete",
            product_ids,
            lambda i: i,
            lambda i: self.delete(i, soft=soft, reason=reason),
        )
