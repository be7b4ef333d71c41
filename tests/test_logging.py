"""Test logging configuration."""

import json
import logging
from pathlib import Path

import structlog
from structlog.testing import LogCapture

from vpn_bridge.common.logging import get_logger, mask_credentials, setup_logging


class TestLogging:
    """Test logging functionality."""

    def setup_method(self) -> None:
        """Setup before each test - reset logging configuration."""
        structlog.reset_defaults()
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

    def teardown_method(self) -> None:
        """Restore the package default configuration."""
        setup_logging(level="INFO")

    def test_setup_logging_default(self) -> None:
        """Test default logging setup."""
        setup_logging()
        logger = get_logger("test")
        assert logger is not None
        assert hasattr(logger, "info")
        assert hasattr(logger, "error")

    def test_setup_logging_with_level(self) -> None:
        """Test logging setup with custom level."""
        setup_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_replaces_handlers(self) -> None:
        """Repeated setup keeps a single console handler."""
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_setup_logging_json_format(self) -> None:
        """Test logging setup with JSON format."""
        setup_logging(json_format=True)
        logger = get_logger("test")

        cap = LogCapture()
        structlog.configure(processors=[cap])

        logger.info("stage changed", stage="connected")

        assert len(cap.entries) == 1
        assert cap.entries[0]["event"] == "stage changed"
        assert cap.entries[0]["stage"] == "connected"

    def test_json_renderer_output(self, capsys) -> None:
        """JSON output is one object per line."""
        setup_logging(json_format=True)
        structlog.get_logger("vpn_bridge.test").info("tunnel connected", target="vpn")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "tunnel connected"
        assert record["target"] == "vpn"
        assert record["level"] == "info"

    def test_setup_logging_with_file(self, tmp_path: Path) -> None:
        """Test logging setup with file output."""
        log_file = tmp_path / "bridge.log"
        setup_logging(log_file=str(log_file))

        python_logger = logging.getLogger("test_file")
        python_logger.info("test message")

        for handler in logging.getLogger().handlers:
            handler.flush()

        assert log_file.exists()
        assert "test message" in log_file.read_text()

    def test_json_output_masks_credentials(self, capsys) -> None:
        """Credential keys never reach the rendered output."""
        setup_logging(json_format=True)
        structlog.get_logger("vpn_bridge.test").info(
            "connect requested", server="vpn.example.com", password="hunter22"
        )

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["server"] == "vpn.example.com"
        assert record["password"] == "******22"
        assert "hunter22" not in line


class TestMaskCredentials:
    """Test the credential masking processor."""

    def test_masks_sensitive_keys(self) -> None:
        event = {"event": "start", "sharedKey": "psk-value", "target": "vpn"}

        result = mask_credentials(None, "info", event)

        assert result["event"] == "start"
        assert result["target"] == "vpn"
        assert result["sharedKey"] == "*******ue"

    def test_event_text_is_never_masked(self) -> None:
        result = mask_credentials(None, "info", {"event": "password rotated"})

        assert result == {"event": "password rotated"}
