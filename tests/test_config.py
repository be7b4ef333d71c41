"""Tests for configuration and request models."""

import pytest
from pydantic import ValidationError

from vpn_bridge.config import (
    FALLBACK_KILL_SWITCH_TARGET,
    PRIMARY_KILL_SWITCH_TARGET,
    BridgeConfig,
    CatalogSettings,
)
from vpn_bridge.models import ConnectionRequest, Credentials, TunnelSettings


class TestBridgeConfig:
    """Test BridgeConfig validation."""

    def test_defaults(self):
        config = BridgeConfig()

        assert config.connect_timeout == 20.0
        assert config.packet_forwarding is True
        assert config.kill_switch_targets == [
            PRIMARY_KILL_SWITCH_TARGET,
            FALLBACK_KILL_SWITCH_TARGET,
        ]
        assert config.tunnel.session_name == "VPN"

    def test_connect_timeout_bounds(self):
        with pytest.raises(ValidationError):
            BridgeConfig(connect_timeout=0)
        with pytest.raises(ValidationError):
            BridgeConfig(connect_timeout=600)

    def test_kill_switch_targets_required(self):
        with pytest.raises(ValidationError, match="At least one kill switch target"):
            BridgeConfig(kill_switch_targets=["", "  "])

    def test_kill_switch_targets_are_stripped(self):
        config = BridgeConfig(kill_switch_targets=[" custom.SETTINGS ", ""])
        assert config.kill_switch_targets == ["custom.SETTINGS"]

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            BridgeConfig(autoconnect=True)

    def test_assignment_is_validated(self):
        config = BridgeConfig()
        with pytest.raises(ValidationError):
            config.keepalive_interval = -1


class TestTunnelSettings:
    """Test TunnelSettings validation."""

    def test_routes_are_normalized(self):
        settings = TunnelSettings(routes=["10.1.2.3/8", "::/0"])
        assert settings.routes == ["10.0.0.0/8", "::/0"]

    def test_routes_required(self):
        with pytest.raises(ValidationError, match="At least one route"):
            TunnelSettings(routes=[])

    def test_invalid_address(self):
        with pytest.raises(ValidationError):
            TunnelSettings(address="not-an-ip")

    def test_invalid_dns(self):
        with pytest.raises(ValidationError):
            TunnelSettings(dns_servers=["8.8.8.8", "dns.google"])


class TestCatalogSettings:
    def test_defaults(self):
        settings = CatalogSettings()
        assert settings.cache_max_age == 3600
        assert settings.unified_cache_max_age == 1800
        assert settings.cors_origin == "*"


class TestConnectionRequest:
    """Test request construction from channel arguments."""

    def test_blank_credentials_use_placeholders(self):
        request = ConnectionRequest.from_arguments(
            {"target": "vpn.example.com", "username": "", "password": "  "}
        )

        assert request.credentials.username == "vpn"
        assert request.credentials.password == "vpn"

    def test_configured_default_credentials(self):
        request = ConnectionRequest.from_arguments(
            {"server": "vpn.example.com"}, default_username="guest", default_password="pw"
        )

        assert request.credentials == Credentials(username="guest", password="pw")

    @pytest.mark.parametrize("key", ["target", "server", "host"])
    def test_target_aliases(self, key):
        assert ConnectionRequest.from_arguments({key: "10.1.1.1"}).target == "10.1.1.1"

    @pytest.mark.parametrize("key", ["shared_secret", "sharedSecret", "sharedKey"])
    def test_shared_secret_aliases(self, key):
        request = ConnectionRequest.from_arguments({"server": "vpn", key: "psk"})
        assert request.credentials.shared_secret == "psk"

    def test_missing_arguments(self):
        request = ConnectionRequest.from_arguments(None)

        assert request.target == ""
        assert request.country is None
        assert request.credentials.shared_secret is None

    def test_secrets_hidden_from_repr(self):
        request = ConnectionRequest.from_arguments(
            {"server": "vpn", "password": "hunter22", "config": "client"}
        )

        assert "hunter22" not in repr(request)
        assert "client" not in repr(request)

    def test_request_is_frozen(self):
        request = ConnectionRequest(target="vpn")
        with pytest.raises(ValidationError):
            request.target = "other"
