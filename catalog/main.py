"""
FastAPI Application

Main entry point for the Product Catalog API: REST under /api/v1 and
GraphQL (queries, mutations and subscriptions) under /graphql.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import structlog

from catalog.config import Settings, get_settings
from catalog.config.logging import configure_logging
from catalog.core.service import CatalogService
from catalog.data import ProductGenerator, demo_products
from catalog.serving.api.errors import register_error_handlers
from catalog.serving.api.graphql import create_graphql_router
from catalog.serving.api.middleware import RequestLoggingMiddleware
from catalog.serving.api.routes import health_router, products_router

logger = structlog.get_logger(__name__)


def build_catalog(settings: Settings) -> CatalogService:
    """Create the process-wide catalog and load the configured seed data"""
    catalog = CatalogService(settings=settings.catalog)
    if settings.catalog.seed_demo_data:
        catalog.seed(demo_products(catalog.clock()))
    if settings.catalog.seed_random_products:
        generator = ProductGenerator()
        catalog.seed(generator.generate(settings.catalog.seed_random_products, catalog.clock()))
    return catalog


def create_app(settings: Optional[Settings] = None, catalog: Optional[CatalogService] = None) -> FastAPI:
    """
    Build the application.

    A pre-built catalog (tests) is used as is; otherwise one is created and
    seeded when the application starts.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        logger.info("Starting Product Catalog API", environment=settings.app_env)

        if getattr(app.state, "catalog", None) is None:
            app.state.catalog = build_catalog(settings)
        logger.info("Catalog ready", products=len(app.state.catalog.store))

        yield

        logger.info("Shutting down...")

    app = FastAPI(
        title="Product Catalog API",
        description="Product catalog with search, stock management and live updates",
        version=settings.version,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.catalog = catalog

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Custom middleware
    app.add_middleware(RequestLoggingMiddleware)

    register_error_handlers(app)

    # API routes
    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(products_router, prefix="/api/v1/products", tags=["Products"])

    # GraphQL
    app.include_router(
        create_graphql_router(graphiql=not settings.is_production),
        prefix="/graphql",
        tags=["GraphQL"],
    )

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
            "graphql": "/graphql",
        }

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn using the configured host and port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "catalog.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.monitoring.log_level.lower(),
    )


if __name__ == "__main__":
    run()
