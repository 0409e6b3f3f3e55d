"""
Product Store

Keyed, insertion-ordered storage for Product records. The store hands out
copies on every read and keeps copies on every write, so nothing outside
the store can mutate a stored record or disturb an in-flight snapshot.
"""

import copy
import threading
from typing import Dict, List, Optional, Set

import structlog

from catalog.core.errors import ConflictError, NotFoundError
from catalog.core.models import Product

logger = structlog.get_logger(__name__)


class ProductStore:
    """
    In-memory product storage for the lifetime of the process.

    Example:
        store = ProductStore()
        store.insert(product)
        store.get(product.id)
    """

    def __init__(self):
        self._products: Dict[str, Product] = {}
        # Every id ever inserted, so a purged id is never handed out again
        self._issued: Set[str] = set()
        # Reentrant so the mutation engine can hold it across read-modify-write
        self.lock = threading.RLock()

    def __len__(self) -> int:
        with self.lock:
            return len(self._products)

    def __contains__(self, product_id: object) -> bool:
        with self.lock:
            return product_id in self._products

    def was_issued(self, product_id: str) -> bool:
        with self.lock:
            return product_id in self._issued

    def insert(self, product: Product) -> None:
        with self.lock:
            if product.id in self._issued:
                raise ConflictError(f"Product with ID {product.id} already exists")
            self._products[product.id] = copy.deepcopy(product)
            self._issued.add(product.id)

    def get(self, product_id: str) -> Product:
        with self.lock:
            product = self._products.get(product_id)
            if product is None:
                raise NotFoundError(f"Product with ID {product_id} not found")
            return copy.deepcopy(product)

    def put(self, product_id: str, product: Product) -> None:
        with self.lock:
            if product_id not in self._products:
                raise NotFoundError(f"Product with ID {product_id} not found")
            self._products[product_id] = copy.deepcopy(product)

    def delete(self, product_id: str) -> None:
        with self.lock:
            if product_id not in self._products:
                raise NotFoundError(f"Product with ID {product_id} not found")
            del self._products[product_id]
        logger.debug("Product purged", product_id=product_id)

    def all(self) -> List[Product]:
        """Snapshot of every record in insertion order"""
        with self.lock:
            return [copy.deepcopy(p) for p in self._products.values()]

    def find_by_sku(self, sku: str, include_archived: bool = False) -> Optional[Product]:
        with self.lock:
            for product in self._products.values():
                if product.sku != sku:
                    continue
                if product.is_archived and not include_archived:
                    continue
                return copy.deepcopy(product)
        return None
