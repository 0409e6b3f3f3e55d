"""
Catalog Data Generators

Demo and synthetic product data for development and testing.
Includes:
- The four fixed demo products the service ships with
- Random products across categories via Faker
"""

import random
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from faker import Faker

from catalog.core.models import Product
from catalog.serving.wire import product_from_rpc, to_epoch_seconds


# =============================================================================
# CONFIGURATION
# =============================================================================

CATEGORIES = [
    ("smartphones", ["Phone", "Handset", "Mini"]),
    ("laptops", ["Notebook", "Ultrabook", "Workstation"]),
    ("tablets", ["Tablet", "Slate", "Reader"]),
    ("headphones", ["Headphones", "Earbuds", "Headset"]),
    ("cameras", ["Camera", "Lens", "Action Cam"]),
    ("gaming", ["Console", "Controller", "Headset"]),
]

CURRENCIES = ["USD", "EUR", "GBP"]


# =============================================================================
# DEMO CATALOG
# =============================================================================

def demo_messages(now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Demo products in RPC wire shape, timestamped relative to now"""
    now = now or datetime.now(timezone.utc)
    ts = to_epoch_seconds(now)
    return [
        {
            "id": "1",
            "name": "iPhone 15 Pro",
            "description": "Latest iPhone with advanced camera system and A17 Pro chip",
            "category": "smartphones",
            "price": 999.99,
            "currency": "USD",
            "stock_quantity": 50,
            "sku": "IPHONE-15-PRO-128",
            "image_urls": [
                "https://example.com/iphone15pro1.jpg",
                "https://example.com/iphone15pro2.jpg",
            ],
            "status": "ACTIVE",
            "created_at": ts - 86400,
            "updated_at": ts,
            "attributes": {"color": "Natural Titanium", "storage": "128GB"},
            "metrics": {
                "views_count": 1250,
                "sales_count": 45,
                "average_rating": 4.8,
                "reviews_count": 32,
                "wishlist_count": 89,
            },
            "tags": ["premium", "flagship", "apple", "smartphone"],
        },
        {
            "id": "2",
            "name": 'MacBook Pro 16"',
            "description": "Professional laptop with M3 Pro chip for developers and creators",
            "category": "laptops",
            "price": 2399.99,
            "currency": "USD",
            "stock_quantity": 25,
            "sku": "MBP-16-M3PRO-512",
            "image_urls": ["https://example.com/macbook16pro1.jpg"],
            "status": "ACTIVE",
            "created_at": ts - 172800,
            "updated_at": ts - 3600,
            "attributes": {"processor": "M3 Pro", "memory": "18GB", "storage": "512GB"},
            "metrics": {
                "views_count": 890,
                "sales_count": 23,
                "average_rating": 4.9,
                "reviews_count": 18,
                "wishlist_count": 156,
            },
            "tags": ["professional", "laptop", "apple", "developer"],
        },
        {
            "id": "3",
            "name": "Sony WH-1000XM5",
            "description": "Premium noise-canceling wireless headphones",
            "category": "headphones",
            "price": 399.99,
            "currency": "USD",
            "stock_quantity": 100,
            "sku": "SONY-WH1000XM5-BLACK",
            "image_urls": ["https://example.com/sony-headphones1.jpg"],
            "status": "ACTIVE",
            "created_at": ts - 259200,
            "updated_at": ts - 7200,
            "attributes": {"color": "Black", "connectivity": "Bluetooth 5.2"},
            "metrics": {
                "views_count": 2100,
                "sales_count": 156,
                "average_rating": 4.7,
                "reviews_count": 89,
                "wishlist_count": 234,
            },
            "tags": ["audio", "wireless", "noise-canceling", "sony"],
        },
        {
            "id": "4",
            "name": "iPad Air",
            "description": "Powerful and versatile tablet with M1 chip",
            "category": "tablets",
            "price": 599.99,
            "currency": "USD",
            "stock_quantity": 5,  # low stock
            "sku": "IPAD-AIR-M1-64",
            "image_urls": ["https://example.com/ipadair1.jpg"],
            "status": "ACTIVE",
            "created_at": ts - 345600,
            "updated_at": ts - 1800,
            "attributes": {"processor": "M1", "storage": "64GB", "color": "Space Gray"},
            "metrics": {
                "views_count": 1560,
                "sales_count": 78,
                "average_rating": 4.6,
                "reviews_count": 45,
                "wishlist_count": 123,
            },
            "tags": ["tablet", "apple", "productivity", "creative"],
        },
    ]


def demo_products(now: Optional[datetime] = None) -> List[Product]:
    return [product_from_rpc(message) for message in demo_messages(now)]


# =============================================================================
# GENERATORS
# =============================================================================

class ProductGenerator:
    """Generate a random but realistic product catalog"""

    def __init__(self, seed: Optional[int] = None):
        self.fake = Faker()
        self.random = random.Random(seed)
        if seed is not None:
            self.fake.seed_instance(seed)
        self.brands = [
            "TechPro", "Nimbus", "Voltix", "Aurora", "Kestrel",
            "Lumen", "GenericCo", "PremiumPlus", "ValueChoice", "EcoFriendly",
        ]

    def message(self, now: datetime) -> Dict[str, Any]:
        """One product in RPC wire shape"""
        category, kinds = self.random.choice(CATEGORIES)
        brand = self.random.choice(self.brands)
        created = now - timedelta(days=self.random.randint(0, 730))
        views = self.random.randint(0, 5000)

        return {
            "id": str(uuid.uuid4()),
            "name": f"{brand} {self.fake.word().title()} {self.random.choice(kinds)}",
            "description": self.fake.sentence(nb_words=12),
            "category": category,
            "price": round(self.random.uniform(10, 2500), 2),
            "currency": self.random.choice(CURRENCIES),
            "stock_quantity": self.random.randint(0, 500),
            "sku": f"SKU-{self.fake.unique.random_number(digits=10, fix_len=True)}",
            "image_urls": [self.fake.image_url() for _ in range(self.random.randint(0, 3))],
            "status": self.random.choices(
                ["ACTIVE", "INACTIVE", "OUT_OF_STOCK", "DRAFT"],
                weights=[0.8, 0.05, 0.1, 0.05],
            )[0],
            "created_at": to_epoch_seconds(created),
            "updated_at": to_epoch_seconds(min(now, created + timedelta(hours=self.random.randint(0, 48)))),
            "attributes": {"brand": brand, "color": self.fake.color_name()},
            "metrics": {
                "views_count": views,
                "sales_count": self.random.randint(0, views // 10 + 1),
                "average_rating": round(self.random.uniform(3.0, 5.0), 1),
                "reviews_count": self.random.randint(0, 500),
                "wishlist_count": self.random.randint(0, 300),
            },
            "tags": self.fake.words(nb=self.random.randint(1, 4), unique=True),
        }

    def generate(self, n: int = 100, now: Optional[datetime] = None) -> List[Product]:
        """Generate n products"""
        now = now or datetime.now(timezone.utc)
        return [product_from_rpc(self.message(now)) for _ in range(n)]
