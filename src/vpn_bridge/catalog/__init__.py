"""Static provider data: VPNGate relays and fixed provider descriptors."""

from .providers import (
    ProviderDescriptor,
    ServiceSummary,
    UnifiedSummary,
    cloudflare_warp,
    outline_vpn,
    unified_summary,
)
from .vpngate import (
    OvpnConfig,
    ServerList,
    ServerRecord,
    find_config,
    load_servers,
    parse_servers,
    server_count,
)

__all__ = [
    "ServerRecord",
    "ServerList",
    "OvpnConfig",
    "parse_servers",
    "load_servers",
    "find_config",
    "server_count",
    "ProviderDescriptor",
    "ServiceSummary",
    "UnifiedSummary",
    "cloudflare_warp",
    "outline_vpn",
    "unified_summary",
]
