"""API route handlers for the static provider data endpoints."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from ..common.exceptions import InvalidDataError, NotFoundError
from ..common.logging import get_logger
from ..config import CatalogSettings
from .providers import cloudflare_warp, outline_vpn, unified_summary
from .vpngate import find_config, parse_servers, read_csv_text, server_count

logger = get_logger(__name__)

router = APIRouter(prefix="/api")

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def get_settings(request: Request) -> CatalogSettings:
    """Catalog settings stored on the application."""
    return request.app.state.catalog_settings


def _cache_headers(max_age: int) -> dict[str, str]:
    return {"Cache-Control": f"public, max-age={max_age}"}


def _internal_error() -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@router.get("/vpngate")
def get_vpngate_csv(settings: CatalogSettings = Depends(get_settings)) -> Response:
    """GET /api/vpngate - VPNGate relay list, passed through as CSV."""
    try:
        csv_text = read_csv_text(settings.csv_path)
    except OSError as e:
        logger.error("Error serving VPN data", error=str(e))
        return _internal_error()

    return Response(
        content=csv_text,
        media_type=CSV_MEDIA_TYPE,
        headers=_cache_headers(settings.cache_max_age),
    )


@router.get("/vpngate-config")
def get_vpngate_config(
    host: str = "", settings: CatalogSettings = Depends(get_settings)
) -> JSONResponse:
    """GET /api/vpngate-config?host= - OpenVPN profile for one relay.

    Response format (success):
        {"host": "public-vpn-1.opengw.net", "ovpnBase64": "..."}

    Errors: 400 without host, 404 when the relay or its profile is missing,
    502 when the CSV has no header row.
    """
    wanted = host.strip()
    if not wanted:
        return JSONResponse(status_code=400, content={"error": "host is required"})

    try:
        servers = parse_servers(read_csv_text(settings.csv_path))
        config = find_config(servers, wanted)
    except InvalidDataError:
        return JSONResponse(status_code=502, content={"error": "Invalid CSV"})
    except NotFoundError as e:
        return JSONResponse(status_code=404, content={"error": str(e)})
    except OSError as e:
        logger.error("Error reading VPN data", error=str(e))
        return JSONResponse(
            status_code=500, content={"error": "Server error", "message": str(e)}
        )

    return JSONResponse(content=config.model_dump(by_alias=True))


@router.get("/cloudflare-warp")
def get_cloudflare_warp(
    settings: CatalogSettings = Depends(get_settings),
) -> JSONResponse:
    """GET /api/cloudflare-warp - Cloudflare WARP descriptor."""
    return JSONResponse(
        content=cloudflare_warp().to_json(),
        headers=_cache_headers(settings.cache_max_age),
    )


@router.get("/outline-vpn")
def get_outline_vpn(settings: CatalogSettings = Depends(get_settings)) -> JSONResponse:
    """GET /api/outline-vpn - Outline descriptor."""
    return JSONResponse(
        content=outline_vpn().to_json(),
        headers=_cache_headers(settings.cache_max_age),
    )


@router.get("/vpn-unified")
def get_vpn_unified(
    type: str | None = None, settings: CatalogSettings = Depends(get_settings)
) -> Response:
    """GET /api/vpn-unified?type= - Summary of every provider.

    ``type`` narrows the response to one provider: ``vpngate`` returns the raw
    CSV, ``cloudflare-warp`` and ``outline-vpn`` return their summary entry.
    """
    try:
        csv_text = read_csv_text(settings.csv_path)
    except OSError as e:
        logger.error("Error serving unified VPN data", error=str(e))
        return _internal_error()

    summary = unified_summary(server_count(csv_text))

    if type == "vpngate":
        return Response(content=csv_text, media_type=CSV_MEDIA_TYPE)
    if type == "cloudflare-warp":
        return JSONResponse(content=summary.services["cloudflareWarp"].to_json())
    if type == "outline-vpn":
        return JSONResponse(content=summary.services["outlineVpn"].to_json())

    return JSONResponse(
        content=summary.to_json(),
        headers=_cache_headers(settings.unified_cache_max_age),
    )
