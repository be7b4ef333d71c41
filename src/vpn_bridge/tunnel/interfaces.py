"""Protocol interfaces for the platform collaborators the bridge drives."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..models import ConnectionRequest, PermissionState, TunnelSettings


class TunnelHandle(Protocol):
    """OS-owned tunnel interface exclusively held by a tunnel session."""

    @property
    def closed(self) -> bool:
        """Whether the interface has been torn down."""
        ...

    def read(self, size: int, timeout: float) -> bytes:
        """Read up to size bytes, returning b"" if nothing arrived in time."""
        ...

    def write(self, data: bytes) -> None:
        """Write a packet back to the interface."""
        ...

    def close(self) -> None:
        """Release the interface."""
        ...


class TunnelPlatform(Protocol):
    """Platform VPN primitives (permission, establish, close)."""

    def prepare(self) -> PermissionState:
        """Check whether tunnel permission is already granted."""
        ...

    def establish(
        self, settings: TunnelSettings, request: ConnectionRequest
    ) -> TunnelHandle | None:
        """Create the tunnel interface; None or an exception means failure."""
        ...

    def close(self, handle: TunnelHandle) -> None:
        """Tear down a tunnel interface."""
        ...


class SettingsNavigator(Protocol):
    """Opens platform settings surfaces."""

    def open(self, target: str) -> None:
        """Navigate to target; raises if the surface cannot be opened."""
        ...


class AppLifecycle(Protocol):
    """Hooks into the hosting app for notification actions."""

    def bring_to_foreground(self) -> None:
        """Bring the UI shell to the foreground."""
        ...
