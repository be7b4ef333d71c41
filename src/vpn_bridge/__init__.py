"""VPN bridge - connection-stage bridge between a UI shell and platform VPN primitives."""

from .api import VpnBridge, create_bridge, managed_bridge
from .bridge import (
    ChannelError,
    ChannelResult,
    ControlChannel,
    KeepAliveService,
    NotificationActions,
    StageEventStream,
    StageStore,
)
from .common.exceptions import (
    EstablishFailedError,
    ErrorKind,
    InvalidDataError,
    NotFoundError,
    PermissionDeniedError,
    UnavailableError,
    VpnBridgeError,
)
from .common.logging import get_logger, setup_logging
from .config import BridgeConfig, CatalogSettings
from .models import (
    ConnectionRequest,
    Credentials,
    PermissionState,
    SessionState,
    Stage,
    TunnelSettings,
)
from .tunnel import (
    AppLifecycle,
    PacketForwarder,
    SettingsNavigator,
    TunnelHandle,
    TunnelPlatform,
    TunnelSession,
)

# Setup logging on package initialization
setup_logging(level="INFO")

# Package level logger
logger = get_logger(__name__)

__version__ = "0.1.0"


__all__ = [
    # High-level API
    "create_bridge",
    "managed_bridge",
    "VpnBridge",
    # Stage plumbing
    "StageStore",
    "StageEventStream",
    "ControlChannel",
    "ChannelResult",
    "ChannelError",
    "NotificationActions",
    "KeepAliveService",
    # Tunnel
    "TunnelSession",
    "PacketForwarder",
    "TunnelHandle",
    "TunnelPlatform",
    "SettingsNavigator",
    "AppLifecycle",
    # Models
    "Stage",
    "SessionState",
    "PermissionState",
    "Credentials",
    "ConnectionRequest",
    "TunnelSettings",
    # Configuration
    "BridgeConfig",
    "CatalogSettings",
    # Exceptions
    "ErrorKind",
    "VpnBridgeError",
    "PermissionDeniedError",
    "EstablishFailedError",
    "UnavailableError",
    "NotFoundError",
    "InvalidDataError",
    # Logging
    "get_logger",
    "setup_logging",
]
