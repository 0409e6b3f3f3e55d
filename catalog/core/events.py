"""
Catalog Events

Topic based observer registry. Publishing is a synchronous fan-out with a
single delivery attempt per subscriber; a subscriber that raises is logged
and skipped so the remaining subscribers still receive the event.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

import structlog

from catalog.core.models import Product, ProductStatus

logger = structlog.get_logger(__name__)


class EventKind(str, Enum):
    """Nature of a catalog change"""
    CREATED = "created"
    UPDATED = "updated"
    STOCK_CHANGED = "stock_changed"
    STATUS_CHANGED = "status_changed"
    DELETED = "deleted"


@dataclass
class ProductEvent:
    """Post-mutation record plus what it looked like before, where relevant"""
    kind: EventKind
    product: Product
    previous_status: Optional[ProductStatus] = None
    previous_stock: Optional[int] = None

    @property
    def status_changed(self) -> bool:
        return self.previous_status is not None and self.previous_status != self.product.status

    @property
    def stock_changed(self) -> bool:
        return self.previous_stock is not None and self.previous_stock != self.product.stock_quantity


Subscriber = Callable[[ProductEvent], None]


# =============================================================================
# TOPICS
# =============================================================================

PRODUCT_UPDATED = "PRODUCT_UPDATED"
STOCK_CHANGED = "STOCK_CHANGED"
STATUS_CHANGED = "STATUS_CHANGED"
PRODUCT_DELETED = "PRODUCT_DELETED"
NEW_PRODUCT = "NEW_PRODUCT"


def product_topic(base: str, product_id: Optional[str] = None) -> str:
    """Global topic, or the per-product variant when an id is given"""
    return f"{base}_{product_id}" if product_id else base


def category_topic(category: str) -> str:
    return f"{NEW_PRODUCT}_{category.upper()}"


def topics_for(event: ProductEvent) -> List[str]:
    """Topics an event is published on, per-product first"""
    product = event.product
    if event.kind == EventKind.CREATED:
        return [category_topic(product.category), PRODUCT_UPDATED]
    if event.kind == EventKind.DELETED:
        return [product_topic(PRODUCT_DELETED, product.id), PRODUCT_DELETED]

    topics = [product_topic(PRODUCT_UPDATED, product.id), PRODUCT_UPDATED]
    if event.kind == EventKind.STOCK_CHANGED or event.stock_changed:
        topics += [product_topic(STOCK_CHANGED, product.id), STOCK_CHANGED]
    if event.kind == EventKind.STATUS_CHANGED or event.status_changed:
        topics += [product_topic(STATUS_CHANGED, product.id), STATUS_CHANGED]
    return topics


# =============================================================================
# BUS
# =============================================================================

class EventBus:
    """
    Registry of topic -> subscriber callbacks.

    Example:
        bus = EventBus()
        unsubscribe = bus.subscribe(["STOCK_CHANGED"], on_stock)
        bus.publish("STOCK_CHANGED", event)
        unsubscribe()
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topics: Iterable[str], callback: Subscriber) -> Callable[[], None]:
        """Register callback on every topic; returns an unsubscribe handle"""
        topics = list(topics)
        with self._lock:
            for topic in topics:
                self._subscribers.setdefault(topic, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                for topic in topics:
                    callbacks = self._subscribers.get(topic, [])
                    if callback in callbacks:
                        callbacks.remove(callback)
                    if not callbacks:
                        self._subscribers.pop(topic, None)

        return unsubscribe

    def subscriber_count(self, topic: Optional[str] = None) -> int:
        """Subscribers on one topic, or registrations across all topics"""
        with self._lock:
            if topic is None:
                return sum(len(callbacks) for callbacks in self._subscribers.values())
            return len(self._subscribers.get(topic, []))

    def publish(self, topic: str, event: ProductEvent) -> int:
        """Deliver to every current subscriber; returns the number delivered"""
        with self._lock:
            callbacks = list(self._subscribers.get(topic, []))

        delivered = 0
        for callback in callbacks:
            try:
                callback(event)
                delivered += 1
            except Exception:
                logger.exception(
                    "Subscriber failed",
                    topic=topic,
                    kind=event.kind.value,
                    product_id=event.product.id,
                )
        return delivered

    def emit(self, event: ProductEvent) -> None:
        """Publish an event on all of its topics"""
        for topic in topics_for(event):
            self.publish(topic, event)
