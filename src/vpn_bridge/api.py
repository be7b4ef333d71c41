"""High-level API for the VPN bridge.

This module wires the stage store, tunnel session and channels together.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from .bridge.channel import ControlChannel, Dispatcher
from .bridge.notifications import KeepAliveService, NotificationActions
from .bridge.store import StageStore
from .common.logging import get_logger
from .config import BridgeConfig
from .tunnel.forwarder import PacketHandler
from .tunnel.interfaces import AppLifecycle, SettingsNavigator, TunnelPlatform
from .tunnel.session import TunnelSession

logger = get_logger(__name__)


@dataclass
class VpnBridge:
    """Wired bridge components sharing one stage store."""

    store: StageStore
    session: TunnelSession
    channel: ControlChannel
    notifications: NotificationActions
    keepalive: KeepAliveService

    def close(self) -> None:
        """Stop background work and tear down any live tunnel."""
        self.keepalive.stop()
        self.channel.close()
        self.store.unsubscribe()


def create_bridge(
    platform: TunnelPlatform,
    navigator: SettingsNavigator,
    config: BridgeConfig | None = None,
    *,
    dispatcher: Dispatcher | None = None,
    packet_handler: PacketHandler | None = None,
    lifecycle: AppLifecycle | None = None,
) -> VpnBridge:
    """Create a bridge around platform VPN primitives.

    Args:
        platform: Platform permission/establish/close primitives
        navigator: Opens platform settings surfaces
        config: Bridge configuration (defaults if None)
        dispatcher: Runs connect work (single-worker executor if None)
        packet_handler: Handler for forwarded packets (echo if None)
        lifecycle: App hooks used by the bringToForeground notification action

    Returns:
        VpnBridge with every component wired to the same stage store

    Example:
        >>> bridge = create_bridge(platform, navigator)
        >>> bridge.store.subscribe(lambda stage: print(stage.value))
        disconnected
        >>> bridge.channel.handle("connect", {"server": "vpn.example.com"})
    """
    config = config or BridgeConfig()
    store = StageStore()
    session = TunnelSession(platform, store, config, packet_handler=packet_handler)
    channel = ControlChannel(store, session, navigator, config, dispatcher=dispatcher)
    keepalive = KeepAliveService(store, interval=config.keepalive_interval)
    notifications = NotificationActions(
        channel, keepalive, lifecycle=lifecycle
    )

    logger.info(
        "Bridge created",
        connect_timeout=config.connect_timeout,
        commands=channel.commands,
    )
    return VpnBridge(
        store=store,
        session=session,
        channel=channel,
        notifications=notifications,
        keepalive=keepalive,
    )


@contextmanager
def managed_bridge(
    platform: TunnelPlatform,
    navigator: SettingsNavigator,
    config: BridgeConfig | None = None,
    **kwargs: Any,
) -> Iterator[VpnBridge]:
    """Context manager that closes the bridge and any live tunnel on exit.

    Example:
        >>> with managed_bridge(platform, navigator) as bridge:
        ...     bridge.channel.handle("start", {"server": "vpn.example.com"})
        # Tunnel is torn down here
    """
    bridge = create_bridge(platform, navigator, config, **kwargs)
    try:
        yield bridge
    finally:
        bridge.close()
