"""
Live Update Streams

Bridges EventBus callbacks into async iterators for GraphQL subscriptions.
Callbacks may fire on any thread, so events are handed to the subscriber's
event loop with call_soon_threadsafe.
"""

import asyncio
from typing import AsyncGenerator, Callable, Iterable, Optional

import structlog

from catalog.core.events import EventBus, ProductEvent
from catalog.core.models import Product

logger = structlog.get_logger(__name__)

EventFilter = Callable[[ProductEvent], bool]

# pending events per subscriber; a slow client loses the overflow
MAX_PENDING_EVENTS = 256


async def watch_products(
    bus: EventBus,
    topics: Iterable[str],
    accept: Optional[EventFilter] = None,
    max_pending: int = MAX_PENDING_EVENTS,
) -> AsyncGenerator[Product, None]:
    """
    Yield the product of every event published on any of the topics.

    The bus subscription lives exactly as long as the generator; closing the
    generator (client disconnect) unsubscribes. Delivery is best-effort: once
    `max_pending` events are waiting, newer ones are dropped.
    """
    topics = list(topics)
    loop = asyncio.get_running_loop()
    queue: "asyncio.Queue[ProductEvent]" = asyncio.Queue(maxsize=max_pending)

    def deliver(event: ProductEvent) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Subscription event dropped", topics=topics, product_id=event.product.id)

    def on_event(event: ProductEvent) -> None:
        loop.call_soon_threadsafe(deliver, event)

    unsubscribe = bus.subscribe(topics, on_event)
    logger.debug("Subscription opened", topics=topics)
    try:
        while True:
            event = await queue.get()
            if accept is None or accept(event):
                yield event.product
    finally:
        unsubscribe()
        logger.debug("Subscription closed", topics=topics)


def below_threshold(threshold: Optional[int]) -> Optional[EventFilter]:
    """Only pass products whose stock is under the threshold, when one is set"""
    if not threshold:
        return None
    return lambda event: event.product.stock_quantity < threshold
