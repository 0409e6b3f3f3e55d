"""
Unit Tests - Product Store
"""
import pytest

from catalog.core.errors import ConflictError, NotFoundError
from catalog.core.models import ProductStatus
from catalog.core.store import ProductStore


class TestProductStore:
    """Tests for ProductStore"""

    def test_insert_and_get(self, make_product):
        """Test a stored product can be read back by id"""
        store = ProductStore()
        store.insert(make_product("p1", name="Console"))

        assert len(store) == 1
        assert "p1" in store
        assert store.get("p1").name == "Console"

    def test_get_unknown_id(self):
        """Test reading an unknown id fails with NotFound"""
        store = ProductStore()

        with pytest.raises(NotFoundError) as exc_info:
            store.get("missing")

        assert "missing" in exc_info.value.message

    def test_reads_are_copies(self, make_product):
        """Test mutating a returned record leaves the store untouched"""
        store = ProductStore()
        store.insert(make_product("p1", tags=["a"]))

        product = store.get("p1")
        product.name = "Changed"
        product.tags.append("b")

        stored = store.get("p1")
        assert stored.name == "Widget"
        assert stored.tags == ["a"]

    def test_writes_are_copies(self, make_product):
        """Test mutating the inserted object afterwards has no effect"""
        store = ProductStore()
        product = make_product("p1")
        store.insert(product)

        product.stock_quantity = 999

        assert store.get("p1").stock_quantity == 5

    def test_all_keeps_insertion_order(self, make_product):
        """Test snapshots list records in insertion order"""
        store = ProductStore()
        for product_id in ["b", "a", "c"]:
            store.insert(make_product(product_id))

        assert [p.id for p in store.all()] == ["b", "a", "c"]

    def test_put_replaces_in_place(self, make_product):
        """Test replacing a record keeps its position"""
        store = ProductStore()
        store.insert(make_product("a"))
        store.insert(make_product("b"))

        store.put("a", make_product("a", name="Renamed"))

        assert [p.name for p in store.all()] == ["Renamed", "Widget"]

    def test_put_unknown_id(self, make_product):
        """Test replacing an unknown id fails"""
        store = ProductStore()

        with pytest.raises(NotFoundError):
            store.put("x", make_product("x"))

    def test_delete(self, make_product):
        """Test delete removes the record"""
        store = ProductStore()
        store.insert(make_product("p1"))

        store.delete("p1")

        assert "p1" not in store
        with pytest.raises(NotFoundError):
            store.get("p1")
        with pytest.raises(NotFoundError):
            store.delete("p1")

    def test_duplicate_id_rejected(self, make_product):
        """Test an id already present cannot be inserted again"""
        store = ProductStore()
        store.insert(make_product("p1"))

        with pytest.raises(ConflictError):
            store.insert(make_product("p1"))

    def test_purged_id_never_reused(self, make_product):
        """Test an id stays claimed after its record is purged"""
        store = ProductStore()
        store.insert(make_product("p1"))
        store.delete("p1")

        assert store.was_issued("p1")
        with pytest.raises(ConflictError):
            store.insert(make_product("p1"))


class TestFindBySku:
    """Tests for SKU lookup"""

    def test_finds_active_product(self, make_product):
        store = ProductStore()
        store.insert(make_product("p1", sku="ABC"))

        assert store.find_by_sku("ABC").id == "p1"
        assert store.find_by_sku("XYZ") is None

    def test_skips_archived_unless_asked(self, make_product):
        """Test archived records do not claim their SKU"""
        store = ProductStore()
        store.insert(make_product("p1", sku="ABC", status=ProductStatus.ARCHIVED))

        assert store.find_by_sku("ABC") is None
        assert store.find_by_sku("ABC", include_archived=True).id == "p1"
