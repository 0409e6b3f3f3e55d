"""
Product Catalog Service
Configuration Module
"""
from .settings import CatalogSettings, MonitoringSettings, Settings, get_settings

__all__ = ["CatalogSettings", "MonitoringSettings", "Settings", "get_settings"]
