"""Pydantic configuration for the bridge and the static data catalog."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import TunnelSettings

PRIMARY_KILL_SWITCH_TARGET = "android.settings.VPN_SETTINGS"
FALLBACK_KILL_SWITCH_TARGET = "android.settings.SETTINGS"


class BridgeConfig(BaseModel):
    """Configuration for the control channel and tunnel session."""

    model_config = ConfigDict(
        str_strip_whitespace=True, validate_assignment=True, extra="forbid"
    )

    connect_timeout: float = Field(
        default=20.0, ge=1.0, le=120.0, description="Tunnel establish timeout in seconds"
    )
    disconnect_timeout: float = Field(
        default=5.0, ge=0.1, le=30.0, description="Forwarder join timeout in seconds"
    )
    forward_poll_interval: float = Field(
        default=0.5, ge=0.01, le=5.0, description="Packet read poll interval"
    )
    packet_forwarding: bool = Field(
        default=True, description="Run the packet forwarder while connected"
    )
    packet_buffer_size: int = Field(default=32767, ge=1500, le=65535)
    keepalive_interval: float = Field(
        default=30.0, ge=0.01, le=3600.0, description="Keep-alive re-emit interval"
    )

    default_username: str = Field(default="vpn", min_length=1)
    default_password: str = Field(default="vpn", min_length=1, repr=False)

    kill_switch_targets: list[str] = Field(
        default_factory=lambda: [
            PRIMARY_KILL_SWITCH_TARGET,
            FALLBACK_KILL_SWITCH_TARGET,
        ],
        description="Settings surfaces tried in order by kill_switch",
    )

    tunnel: TunnelSettings = Field(default_factory=TunnelSettings)

    @field_validator("kill_switch_targets")
    @classmethod
    def validate_targets(cls, v: list[str]) -> list[str]:
        """Require at least one non-empty settings target."""
        targets = [target.strip() for target in v if target and target.strip()]
        if not targets:
            raise ValueError("At least one kill switch target is required")
        return targets


class CatalogSettings(BaseModel):
    """Configuration for the static provider data endpoints."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    csv_path: Path = Field(default=Path("vpngate.csv"), description="VPNGate CSV file")
    cors_origin: str = Field(default="*")
    cache_max_age: int = Field(default=3600, ge=0)
    unified_cache_max_age: int = Field(default=1800, ge=0)
