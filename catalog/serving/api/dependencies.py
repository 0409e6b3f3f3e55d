"""
API Dependencies

The catalog service is created once in the application lifespan and kept on
app.state; handlers receive it through these dependencies.
"""

from starlette.requests import HTTPConnection

from catalog.core.service import CatalogService


def get_catalog(connection: HTTPConnection) -> CatalogService:
    """Catalog service for HTTP and WebSocket handlers alike"""
    return connection.app.state.catalog
