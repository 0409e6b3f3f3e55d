"""
Unit Tests - Demo and Generated Data
"""
from catalog.core.models import ProductInput, ProductStatus
from catalog.core.validation import collect_input_errors
from catalog.data import ProductGenerator, demo_messages, demo_products


class TestDemoCatalog:
    """Tests for the built-in demo products"""

    def test_four_products(self, clock):
        products = demo_products(clock())

        assert [p.id for p in products] == ["1", "2", "3", "4"]
        assert [p.category for p in products] == ["smartphones", "laptops", "headphones", "tablets"]
        assert all(p.status == ProductStatus.ACTIVE for p in products)
        assert all(p.metrics is not None for p in products)

    def test_timestamps_relative_to_now(self, clock):
        products = demo_products(clock())

        assert products[0].updated_at == clock()
        assert all(p.created_at < clock() for p in products)

    def test_messages_use_wire_shape(self, clock):
        message = demo_messages(clock())[3]

        assert message["sku"] == "IPAD-AIR-M1-64"
        assert message["stock_quantity"] == 5
        assert isinstance(message["created_at"], int)


class TestProductGenerator:
    """Tests for ProductGenerator"""

    def test_generates_valid_products(self, clock):
        products = ProductGenerator(seed=42).generate(25, clock())

        assert len(products) == 25
        assert len({p.id for p in products}) == 25
        assert len({p.sku for p in products}) == 25
        for product in products:
            errors = collect_input_errors(ProductInput(
                name=product.name,
                category=product.category,
                sku=product.sku,
                price=product.price,
                stock_quantity=product.stock_quantity,
            ))
            assert errors == []
            assert 0.0 <= product.metrics.average_rating <= 5.0
            assert product.updated_at >= product.created_at

    def test_generated_products_can_be_seeded(self, catalog, clock):
        loaded = catalog.seed(ProductGenerator(seed=7).generate(10, clock()))

        assert loaded == 10
        assert catalog.find_products().total_count == 10
