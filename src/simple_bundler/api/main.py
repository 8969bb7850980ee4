"""FastAPI application factory and configuration."""

from fastapi import FastAPI

from simple_bundler import __version__
from simple_bundler.api.routes import bundles, cart_transform, products, webhooks


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="simple-bundler API",
        description="Two-product bundles with variant mapping and cart expansion",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.include_router(bundles.router, prefix="/api/bundles", tags=["bundles"])
    app.include_router(products.router, prefix="/api/products", tags=["products"])
    app.include_router(
        cart_transform.router, prefix="/api/cart-transform", tags=["cart-transform"]
    )
    app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


# Create app instance for uvicorn
app = create_app()
