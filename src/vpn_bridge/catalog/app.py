"""FastAPI application serving the provider catalog."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from ..common.logging import get_logger, setup_logging
from ..config import CatalogSettings
from .routes import router

logger = get_logger(__name__)


def create_app(settings: CatalogSettings | None = None) -> FastAPI:
    """Build the catalog application.

    Args:
        settings: Catalog settings (defaults if None)

    Returns:
        Configured FastAPI app
    """
    settings = settings or CatalogSettings()

    app = FastAPI(
        title="VPN Provider Catalog",
        description="Static VPNGate, Cloudflare WARP and Outline provider data",
        version="0.1.0",
    )
    app.state.catalog_settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    app.include_router(router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "vpn-catalog"}

    logger.info("Catalog app created", csv_path=str(settings.csv_path))
    return app


def main() -> None:
    """Main entry point for running the catalog server."""
    setup_logging(level="INFO", json_format=True)
    uvicorn.run(
        create_app(),
        host="0.0.0.0",
        port=8000,
        log_level="info",
        log_config=None,
        access_log=True,
    )


if __name__ == "__main__":
    main()
