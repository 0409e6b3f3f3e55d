"""
Data Generation Module
"""
from .generators import ProductGenerator, demo_messages, demo_products

__all__ = [
    "ProductGenerator",
    "demo_messages",
    "demo_products",
]
