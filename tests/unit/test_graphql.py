"""
Unit Tests - GraphQL API
"""
import pytest

from catalog.core.models import ProductStatus
from catalog.serving.api.graphql import schema


@pytest.fixture
def execute(seeded_catalog):
    """Run a GraphQL document against the seeded catalog"""
    def run(document, variables=None):
        return schema.execute_sync(
            document,
            variable_values=variables,
            context_value={"catalog": seeded_catalog},
        )
    return run


class TestQueries:
    """Tests for query fields"""

    def test_product_with_metrics(self, execute):
        result = execute("""
            query {
                product(id: "1", includeMetrics: true) {
                    id name stockQuantity status createdAt
                    metrics { salesCount averageRating }
                }
            }
        """)

        assert result.errors is None
        product = result.data["product"]
        assert product["name"] == "iPhone 15 Pro"
        assert product["stockQuantity"] == 50
        assert product["status"] == "ACTIVE"
        assert product["metrics"] == {"salesCount": 45, "averageRating": 4.8}

    def test_metrics_null_when_not_requested(self, execute):
        result = execute('query { product(id: "1") { id metrics { salesCount } } }')

        assert result.data["product"]["metrics"] is None

    def test_unknown_product(self, execute):
        result = execute('query { product(id: "99") { id } }')

        assert result.data == {"product": None}
        assert result.errors[0].extensions["code"] == "NOT_FOUND"

    def test_products_by_ids(self, execute):
        result = execute("""
            query {
                products(ids: ["4", "2"], pagination: {limit: 1}) {
                    products { id }
                    totalCount hasMore
                }
            }
        """)

        assert result.data["products"] == {"products": [{"id": "2"}], "totalCount": 2, "hasMore": True}

    def test_search_products(self, execute):
        result = execute("""
            query Search($search: ProductSearchInput!) {
                searchProducts(search: $search) {
                    products { id price }
                    totalCount
                    pagination { currentPage totalPages pageSize totalItems }
                }
            }
        """, {"search": {"tags": ["apple"], "sortBy": "price", "sortOrder": "DESC"}})

        assert result.errors is None
        data = result.data["searchProducts"]
        assert [p["id"] for p in data["products"]] == ["2", "1", "4"]
        assert data["pagination"] == {"currentPage": 1, "totalPages": 1, "pageSize": 20, "totalItems": 3}

    def test_negative_offset_rejected(self, execute):
        result = execute('query { products(pagination: {offset: -1}) { totalCount } }')

        assert result.errors[0].extensions["code"] == "INVALID_ARGUMENT"

    def test_products_by_category(self, execute):
        result = execute('query { productsByCategory(category: "LAPTOPS") { products { id } } }')

        assert result.data["productsByCategory"]["products"] == [{"id": "2"}]

    def test_availability(self, execute):
        result = execute("""
            query {
                productAvailability(productId: "4", quantity: 10) {
                    isAvailable availableQuantity message restockDate
                }
            }
        """)

        availability = result.data["productAvailability"]
        assert availability["isAvailable"] is False
        assert availability["message"] == "Only 5 items available"
        assert availability["restockDate"] is not None

    def test_reports(self, execute):
        result = execute("""
            query {
                lowStockProducts { products { id } }
                topSellingProducts(limit: 1) { id metrics { salesCount } }
                recentProducts(days: 2) { products { id } }
            }
        """)

        assert result.errors is None
        assert result.data["lowStockProducts"]["products"] == [{"id": "4"}]
        assert result.data["topSellingProducts"] == [{"id": "3", "metrics": {"salesCount": 156}}]
        assert result.data["recentProducts"]["products"] == [{"id": "1"}, {"id": "2"}]


class TestMutations:
    """Tests for mutation fields"""

    def test_create_product(self, execute, seeded_catalog):
        result = execute("""
            mutation {
                createProduct(input: {
                    name: "Galaxy S24", category: "smartphones", price: 799.0, sku: "GS24-128",
                    attributes: {color: "Onyx Black"}, tags: ["android", "android"]
                }) { id status stockQuantity currency attributes tags }
            }
        """)

        assert result.errors is None
        product = result.data["createProduct"]
        assert product["status"] == "ACTIVE"
        assert product["stockQuantity"] == 0
        assert product["currency"] == "USD"
        assert product["attributes"] == {"color": "Onyx Black"}
        assert product["tags"] == ["android"]
        assert seeded_catalog.get_product(product["id"]).sku == "GS24-128"

    def test_create_product_validation(self, execute):
        result = execute("""
            mutation {
                createProduct(input: {name: "X", category: "", price: -1.0, sku: "S"}) { id }
            }
        """)

        error = result.errors[0]
        assert error.message == "Invalid input provided"
        assert error.extensions["code"] == "BAD_USER_INPUT"
        assert error.extensions["validationErrors"] == [
            "Product name must be at least 2 characters long",
            "Product category is required",
            "Product price cannot be negative",
        ]

    def test_create_duplicate_sku(self, execute):
        result = execute("""
            mutation {
                createProduct(input: {name: "Clone", category: "phones", price: 1.0, sku: "IPHONE-15-PRO-128"}) { id }
            }
        """)

        assert result.errors[0].extensions["code"] == "ALREADY_EXISTS"

    def test_update_product(self, execute):
        result = execute("""
            mutation {
                updateProduct(input: {id: "3", price: 349.99, status: INACTIVE}) { id price status name }
            }
        """)

        assert result.data["updateProduct"] == {
            "id": "3", "price": 349.99, "status": "INACTIVE", "name": "Sony WH-1000XM5",
        }

    def test_update_products_reports_failures(self, execute):
        result = execute("""
            mutation {
                updateProducts(inputs: [{id: "1", price: 10.0}, {id: "missing", price: 5.0}, {id: "2", name: "MBP"}]) {
                    successCount errorCount failedUpdates success
                }
            }
        """)

        data = result.data["updateProducts"]
        assert data["successCount"] == 2
        assert data["errorCount"] == 1
        assert data["failedUpdates"] == ["missing: Product with ID missing not found"]
        assert data["success"] is True

    def test_update_products_bad_attributes_fail_only_their_item(self, execute, seeded_catalog):
        original = seeded_catalog.get_product("2").attributes
        result = execute("""
            mutation {
                updateProducts(inputs: [{id: "1", price: 10.0}, {id: "2", attributes: "oops"}]) {
                    successCount failedUpdates
                }
            }
        """)

        assert result.errors is None
        assert result.data["updateProducts"] == {
            "successCount": 1,
            "failedUpdates": ["2: Product attributes must be an object"],
        }
        assert seeded_catalog.get_product("2").attributes == original

    def test_create_products_bad_attributes_fail_only_their_item(self, execute):
        result = execute("""
            mutation {
                createProducts(inputs: [
                    {name: "Switch", category: "gaming", price: 299.0, sku: "SW-1", attributes: {ports: 4}},
                    {name: "Deck", category: "gaming", price: 399.0, sku: "SD-1", attributes: [1, 2]}
                ]) { successCount failedUpdates updatedProducts { sku attributes } }
            }
        """)

        assert result.errors is None
        data = result.data["createProducts"]
        assert data["updatedProducts"] == [{"sku": "SW-1", "attributes": {"ports": "4"}}]
        assert data["failedUpdates"] == ["SD-1: Product attributes must be an object"]

    def test_update_stock(self, execute):
        result = execute("""
            mutation {
                updateProductStock(input: {productId: "4", quantityChange: 20, operation: SUBTRACT}) {
                    stockQuantity
                }
            }
        """)

        assert result.data["updateProductStock"]["stockQuantity"] == 0

    def test_bulk_update_stock(self, execute):
        result = execute("""
            mutation {
                bulkUpdateStock(inputs: [
                    {productId: "1", quantityChange: 5, operation: ADD},
                    {productId: "nope", quantityChange: 5, operation: SET}
                ]) { successCount errorCount updatedProducts { stockQuantity } }
            }
        """)

        data = result.data["bulkUpdateStock"]
        assert data["updatedProducts"] == [{"stockQuantity": 55}]
        assert data["errorCount"] == 1

    def test_delete_product(self, execute, seeded_catalog):
        result = execute('mutation { deleteProduct(id: "2") }')

        assert result.data == {"deleteProduct": True}
        assert seeded_catalog.get_product("2").status == ProductStatus.ARCHIVED

    def test_hard_delete_products(self, execute, seeded_catalog):
        result = execute('mutation { deleteProducts(ids: ["1", "2"], softDelete: false) { successCount } }')

        assert result.data["deleteProducts"]["successCount"] == 2
        assert len(seeded_catalog.store) == 2

    def test_status_shortcuts(self, execute):
        result = execute("""
            mutation {
                deactivateProduct(id: "1") { status }
                archiveProduct(id: "2") { status }
                activateProduct(id: "1") { status }
            }
        """)

        assert result.data == {
            "deactivateProduct": {"status": "INACTIVE"},
            "archiveProduct": {"status": "ARCHIVED"},
            "activateProduct": {"status": "ACTIVE"},
        }

    def test_duplicate_product(self, execute):
        result = execute("""
            mutation {
                duplicateProduct(id: "1", newSku: "IPHONE-15-PRO-256", modifications: {price: 1099.99}) {
                    name sku price stockQuantity
                }
            }
        """)

        assert result.data["duplicateProduct"] == {
            "name": "iPhone 15 Pro (Copy)",
            "sku": "IPHONE-15-PRO-256",
            "price": 1099.99,
            "stockQuantity": 0,
        }
