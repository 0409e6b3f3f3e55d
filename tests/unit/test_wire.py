"""
Unit Tests - RPC Wire Codec
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from catalog.core.errors import InvalidArgumentError
from catalog.core.models import ProductMetrics, ProductStatus
from catalog.serving.wire import (
    format_timestamp,
    metrics_from_rpc,
    parse_status,
    parse_timestamp,
    product_from_rpc,
    product_to_rpc,
    to_epoch_seconds,
)


class TestTimestamps:
    """Tests for timestamp conversion"""

    def test_fractional_seconds_truncated(self):
        value = datetime(2024, 1, 1, 0, 0, 10, 999999, tzinfo=timezone.utc)

        assert to_epoch_seconds(value) == 1704067210

    def test_naive_datetimes_are_utc(self):
        assert to_epoch_seconds(datetime(1970, 1, 1, 0, 1)) == 60

    @pytest.mark.parametrize("value", [
        1704067200,
        1704067200.0,
        "1704067200",
        "2024-01-01T00:00:00Z",
        "2024-01-01T01:00:00+01:00",
        "2024-01-01T00:00:00",
        datetime(2024, 1, 1, tzinfo=timezone.utc),
    ])
    def test_parse_accepts_all_forms(self, value):
        assert parse_timestamp(value) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["yesterday", True, None, [1]])
    def test_parse_rejects_garbage(self, value):
        with pytest.raises(InvalidArgumentError):
            parse_timestamp(value)

    def test_format_uses_z_suffix(self):
        value = datetime(2024, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_timestamp(value) == "2024-01-01T00:00:00Z"


class TestEnums:
    """Tests for status parsing"""

    def test_any_case(self):
        assert parse_status("out_of_stock") == ProductStatus.OUT_OF_STOCK
        assert parse_status(ProductStatus.DRAFT) == ProductStatus.DRAFT

    def test_empty_means_unset(self):
        assert parse_status(None) is None
        assert parse_status("") is None

    def test_unknown_status(self):
        with pytest.raises(InvalidArgumentError):
            parse_status("SOLD")


class TestProductCodec:
    """Tests for product message conversion"""

    def test_to_rpc_uses_snake_case_and_epoch_seconds(self, make_product, clock):
        message = product_to_rpc(make_product("1", price="19.99", tags=["a"]))

        assert message["stock_quantity"] == 5
        assert message["price"] == 19.99
        assert message["status"] == "ACTIVE"
        assert message["created_at"] == to_epoch_seconds(clock())
        assert message["metrics"]["views_count"] == 0

    def test_to_rpc_omits_absent_metrics(self, make_product):
        product = make_product("1")
        product.metrics = None

        assert "metrics" not in product_to_rpc(product)

    def test_round_trip(self, make_product):
        product = make_product("1", price="19.99", tags=["a", "b"],
                               metrics=ProductMetrics(views_count=3, average_rating=4.5))

        assert product_from_rpc(product_to_rpc(product)) == product

    def test_from_rpc_normalizes(self):
        """Test defaults, deduplicated tags and clamped values"""
        product = product_from_rpc({
            "id": 7,
            "name": "Lens",
            "category": "cameras",
            "sku": "L-7",
            "price": 249.5,
            "stock_quantity": -4,
            "status": "draft",
            "created_at": "2024-01-02T00:00:00Z",
            "updated_at": 1704067200,
            "tags": ["glass", "glass"],
            "attributes": {"mount": "E", "weight": 450},
            "metrics": {"average_rating": 7.2},
        })

        assert product.id == "7"
        assert product.price == Decimal("249.5")
        assert product.currency == "USD"
        assert product.stock_quantity == 0
        assert product.status == ProductStatus.DRAFT
        assert product.tags == ["glass"]
        assert product.attributes == {"mount": "E", "weight": "450"}
        assert product.metrics.average_rating == 5.0
        assert product.updated_at == product.created_at

    def test_metrics_defaults(self):
        metrics = metrics_from_rpc({})

        assert metrics == ProductMetrics()
