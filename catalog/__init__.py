"""
Product Catalog Service

In-memory product catalog with filtering, pagination, validated mutations
and change events, served over GraphQL and REST.
"""

__version__ = "1.0.0"
