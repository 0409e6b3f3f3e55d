"""
RPC Wire Codec

Translates between catalog records and the snake_case message shape used by
binary RPC transports, where timestamps travel as epoch-second integers.
"""

import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Union

from catalog.core.errors import InvalidArgumentError
from catalog.core.models import (
    Product,
    ProductMetrics,
    ProductStatus,
    normalize_attributes,
    parse_status,
    unique_tags,
)

Timestamp = Union[int, float, str, datetime]


# =============================================================================
# TIMESTAMPS
# =============================================================================

def to_epoch_seconds(value: datetime) -> int:
    """Whole seconds since the epoch; fractional seconds are truncated"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return math.floor(value.timestamp())


def from_epoch_seconds(seconds: Union[int, float]) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def parse_timestamp(value: Timestamp) -> datetime:
    """
    Accept an epoch-seconds number, a numeric string, an ISO-8601 string or
    a datetime. Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        raise InvalidArgumentError(f"Invalid timestamp: {value!r}")
    elif isinstance(value, (int, float)):
        return from_epoch_seconds(value)
    elif isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return from_epoch_seconds(int(text))
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidArgumentError(f"Invalid timestamp: {value!r}")
    else:
        raise InvalidArgumentError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with a trailing Z"""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# =============================================================================
# PRODUCTS
# =============================================================================

def metrics_to_rpc(metrics: ProductMetrics) -> Dict[str, Any]:
    return {
        "views_count": metrics.views_count,
        "sales_count": metrics.sales_count,
        "average_rating": metrics.average_rating,
        "reviews_count": metrics.reviews_count,
        "wishlist_count": metrics.wishlist_count,
    }


def metrics_from_rpc(data: Dict[str, Any]) -> ProductMetrics:
    return ProductMetrics(
        views_count=int(data.get("views_count") or 0),
        sales_count=int(data.get("sales_count") or 0),
        reviews_count=int(data.get("reviews_count") or 0),
        wishlist_count=int(data.get("wishlist_count") or 0),
        average_rating=min(5.0, max(0.0, float(data.get("average_rating") or 0))),
    )


def product_to_rpc(product: Product) -> Dict[str, Any]:
    """Product -> RPC message; metrics are left out entirely when absent"""
    message = {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "category": product.category,
        "price": float(product.price),
        "currency": product.currency,
        "stock_quantity": product.stock_quantity,
        "sku": product.sku,
        "image_urls": list(product.image_urls),
        "status": product.status.value,
        "created_at": to_epoch_seconds(product.created_at),
        "updated_at": to_epoch_seconds(product.updated_at),
        "attributes": dict(product.attributes),
        "tags": list(product.tags),
    }
    if product.metrics is not None:
        message["metrics"] = metrics_to_rpc(product.metrics)
    return message


def product_from_rpc(message: Dict[str, Any]) -> Product:
    """RPC message -> Product; timestamps may be epoch seconds or ISO strings"""
    metrics = message.get("metrics")
    created_at = parse_timestamp(message["created_at"])
    updated_at = parse_timestamp(message.get("updated_at") or message["created_at"])
    return Product(
        id=str(message["id"]),
        name=message["name"],
        description=message.get("description") or "",
        category=message["category"],
        sku=message["sku"],
        price=Decimal(str(message.get("price") or 0)),
        currency=message.get("currency") or "USD",
        stock_quantity=max(0, int(message.get("stock_quantity") or 0)),
        status=parse_status(message.get("status")) or ProductStatus.ACTIVE,
        image_urls=list(message.get("image_urls") or []),
        attributes=normalize_attributes(message.get("attributes")),
        tags=unique_tags(message.get("tags") or []),
        metrics=metrics_from_rpc(metrics) if metrics is not None else None,
        created_at=created_at,
        updated_at=max(created_at, updated_at),
    )
