"""Tunnel session and its platform collaborators."""

from .forwarder import PacketForwarder, PacketHandler, echo_packets
from .interfaces import AppLifecycle, SettingsNavigator, TunnelHandle, TunnelPlatform
from .session import TunnelSession

__all__ = [
    "TunnelSession",
    "PacketForwarder",
    "PacketHandler",
    "echo_packets",
    "TunnelHandle",
    "TunnelPlatform",
    "SettingsNavigator",
    "AppLifecycle",
]
