"""
Serving Module
"""
from .subscriptions import below_threshold, watch_products
from .wire import product_from_rpc, product_to_rpc

__all__ = [
    "below_threshold",
    "watch_products",
    "product_from_rpc",
    "product_to_rpc",
]
