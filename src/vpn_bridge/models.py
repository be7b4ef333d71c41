"""Core models for the VPN connection bridge.

Stages are what the UI observes; session states are what the tunnel session
tracks internally. The two overlap but are not the same: a session passes
through ``failed`` on its way back to ``idle`` while the stage stays ``failed``.
"""

import ipaddress
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common.utils import PLACEHOLDER_CREDENTIAL, default_if_blank


class Stage(str, Enum):
    """Externally observable connection stage."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    PERMISSION_REQUIRED = "permission_required"
    DENIED = "denied"
    FAILED = "failed"


class SessionState(str, Enum):
    """Tunnel session state.

    State transitions:
    idle → connecting → connected → disconnecting → idle
              ↓    ↓         ↓
              ↓  failed ←────┘ → idle
              ↓
    permission_required
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"
    PERMISSION_REQUIRED = "permission_required"
    FAILED = "failed"


class PermissionState(str, Enum):
    """Result of asking the platform whether tunnels may be created."""

    GRANTED = "granted"
    REQUIRED = "required"


class Credentials(BaseModel):
    """Tunnel credentials; blank values fall back to placeholders."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(default=PLACEHOLDER_CREDENTIAL)
    password: str = Field(default=PLACEHOLDER_CREDENTIAL, repr=False)
    shared_secret: str | None = Field(default=None, repr=False)

    @field_validator("username", "password", mode="before")
    @classmethod
    def fill_placeholder(cls, v: Any) -> str:
        """Replace missing or blank credentials with the placeholder."""
        return default_if_blank(v)


class ConnectionRequest(BaseModel):
    """One-shot connection request built per start/connect call."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    target: str = Field(default="", description="Server hostname or IP")
    credentials: Credentials = Field(default_factory=Credentials)
    country: str | None = Field(default=None)
    config: str | None = Field(
        default=None, repr=False, description="OpenVPN profile text"
    )

    @classmethod
    def from_arguments(
        cls,
        arguments: dict[str, Any] | None,
        default_username: str = PLACEHOLDER_CREDENTIAL,
        default_password: str = PLACEHOLDER_CREDENTIAL,
    ) -> "ConnectionRequest":
        """Build a request from loosely-typed channel arguments.

        Args:
            arguments: Method-call arguments as sent by the UI shell
            default_username: Username used when none is supplied
            default_password: Password used when none is supplied

        Returns:
            Connection request
        """
        args = arguments or {}
        target = args.get("target") or args.get("server") or args.get("host") or ""
        shared_secret = (
            args.get("shared_secret")
            or args.get("sharedSecret")
            or args.get("sharedKey")
        )
        return cls(
            target=str(target),
            credentials=Credentials(
                username=default_if_blank(args.get("username"), default_username),
                password=default_if_blank(args.get("password"), default_password),
                shared_secret=shared_secret or None,
            ),
            country=args.get("country") or None,
            config=args.get("config") or None,
        )


class TunnelSettings(BaseModel):
    """Virtual interface parameters handed to the platform on establish."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    session_name: str = Field(default="VPN", min_length=1)
    address: str = Field(default="10.0.0.2", description="Virtual interface address")
    prefix_length: int = Field(default=32, ge=0, le=128)
    dns_servers: list[str] = Field(default_factory=lambda: ["8.8.8.8", "8.8.4.4"])
    routes: list[str] = Field(
        default_factory=lambda: ["0.0.0.0/0"], description="Routes in CIDR form"
    )
    mtu: int | None = Field(default=None, ge=576, le=65535)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Validate interface address."""
        ipaddress.ip_address(v)
        return v

    @field_validator("dns_servers")
    @classmethod
    def validate_dns_servers(cls, v: list[str]) -> list[str]:
        """Validate DNS server addresses."""
        for server in v:
            ipaddress.ip_address(server)
        return v

    @field_validator("routes")
    @classmethod
    def validate_routes(cls, v: list[str]) -> list[str]:
        """Validate and normalize routes."""
        if not v:
            raise ValueError("At least one route is required")
        return [str(ipaddress.ip_network(route, strict=False)) for route in v]
