"""Fixed descriptors for the WireGuard and Shadowsocks providers."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEVELOPER = "Aiks - Aikya Naskar"


class _AliasedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_json(self) -> dict[str, Any]:
        """Dump with the wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class WireGuardServer(_AliasedModel):
    name: str
    endpoint: str
    public_key: str = Field(alias="publicKey")
    allowed_ips: list[str] = Field(alias="allowedIPs")
    dns: list[str]
    mtu: int
    persistent_keepalive: int = Field(alias="persistentKeepalive")


class ShadowsocksServer(_AliasedModel):
    name: str
    hostname: str
    port: int = Field(ge=1, le=65535)
    method: str
    password: str = Field(repr=False)
    description: str


class ProviderDescriptor(_AliasedModel):
    """Static provider description served as JSON."""

    name: str
    provider_type: str = Field(alias="type")
    servers: list[WireGuardServer] | list[ShadowsocksServer]
    description: str
    features: list[str]
    setup_instructions: dict[str, str] | None = Field(
        default=None, alias="setupInstructions"
    )


class ServiceSummary(_AliasedModel):
    """One provider entry in the unified summary."""

    name: str
    provider_type: str = Field(alias="type")
    servers: int = Field(ge=0)
    description: str
    endpoint: str
    features: list[str]


class UnifiedSummary(_AliasedModel):
    timestamp: str
    total_servers: int = Field(alias="totalServers", ge=0)
    services: dict[str, ServiceSummary]
    recommendations: dict[str, str]
    developer: str = DEVELOPER


_WARP_SERVER_DEFAULTS: dict[str, Any] = {
    "endpoint": "engage.cloudflareclient.com:2408",
    "publicKey": "bmXOC+F1FxEMF9dyiK2H5/1SUtzH0JuVo51h2wPfgyo=",
    "allowedIPs": ["0.0.0.0/0", "::/0"],
    "dns": ["1.1.1.1", "1.0.0.1"],
    "mtu": 1280,
    "persistentKeepalive": 25,
}


def cloudflare_warp() -> ProviderDescriptor:
    """Cloudflare WARP descriptor."""
    return ProviderDescriptor(
        name="Cloudflare WARP",
        type="wireguard",
        servers=[
            WireGuardServer(name="Cloudflare WARP US", **_WARP_SERVER_DEFAULTS),
            WireGuardServer(name="Cloudflare WARP EU", **_WARP_SERVER_DEFAULTS),
        ],
        description=(
            "Cloudflare WARP - Fast and secure VPN powered by Cloudflare's global network"
        ),
        features=[
            "Fastest speeds",
            "Global CDN",
            "Privacy focused",
            "Free tier available",
        ],
    )


def outline_vpn() -> ProviderDescriptor:
    """Outline (Shadowsocks) descriptor."""
    return ProviderDescriptor(
        name="Outline VPN",
        type="shadowsocks",
        servers=[
            ShadowsocksServer(
                name="Outline Server 1",
                hostname="outline-server-1.example.com",
                port=443,
                method="chacha20-ietf-poly1305",
                password="outline-password-1",
                description="High-speed Outline server",
            ),
            ShadowsocksServer(
                name="Outline Server 2",
                hostname="outline-server-2.example.com",
                port=443,
                method="chacha20-ietf-poly1305",
                password="outline-password-2",
                description="Reliable Outline server",
            ),
        ],
        description="Outline VPN - Secure and fast VPN powered by Shadowsocks",
        features=["Shadowsocks protocol", "High performance", "Easy setup", "Open source"],
        setup_instructions={
            "step1": "Download Outline client",
            "step2": "Add server configuration",
            "step3": "Connect and enjoy secure browsing",
        },
    )


def unified_summary(
    vpngate_servers: int, now: datetime | None = None
) -> UnifiedSummary:
    """Summary of all providers.

    Args:
        vpngate_servers: Number of VPNGate relays in the CSV
        now: Timestamp to report (current UTC time if None)
    """
    now = now or datetime.now(timezone.utc)
    return UnifiedSummary(
        timestamp=now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        totalServers=vpngate_servers,
        services={
            "vpngate": ServiceSummary(
                name="VPNGate",
                type="openvpn",
                servers=vpngate_servers,
                description="Free OpenVPN servers provided by VPNGate community",
                endpoint="/api/vpngate",
                features=["Free", "OpenVPN", "Community-driven", "No registration"],
            ),
            "cloudflareWarp": ServiceSummary(
                name="Cloudflare WARP",
                type="wireguard",
                servers=2,
                description="Fast and secure VPN powered by Cloudflare's global network",
                endpoint="/api/cloudflare-warp",
                features=["Fastest speeds", "Global CDN", "Privacy focused", "Free tier"],
            ),
            "outlineVpn": ServiceSummary(
                name="Outline VPN",
                type="shadowsocks",
                servers=2,
                description="Secure and fast VPN powered by Shadowsocks protocol",
                endpoint="/api/outline-vpn",
                features=["Shadowsocks", "High performance", "Easy setup", "Open source"],
            ),
        },
        recommendations={
            "fastest": "cloudflareWarp",
            "mostSecure": "outlineVpn",
            "mostServers": "vpngate",
            "bestForMobile": "cloudflareWarp",
        },
    )
