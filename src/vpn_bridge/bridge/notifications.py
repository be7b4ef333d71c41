"""Notification action pass-through and the keep-alive background worker."""

import logging
import threading
from collections.abc import Callable
from typing import Any

from ..common.exceptions import ErrorKind
from ..tunnel.interfaces import AppLifecycle
from .channel import ChannelResult, ControlChannel
from .store import StageStore

logger = logging.getLogger(__name__)


class KeepAliveService:
    """Background worker that re-emits the current stage while it runs.

    Stands in for the platform foreground service that keeps the app alive
    while a tunnel is up.
    """

    def __init__(self, store: StageStore, interval: float = 30.0):
        self._store = store
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.beats = 0

    def start(self) -> bool:
        """Start the worker; a second start while running is a no-op."""
        if self.is_running():
            return True
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="vpn-keepalive", daemon=True
        )
        self._thread.start()
        logger.info("Keep-alive service started")
        return True

    def stop(self, timeout: float = 5.0) -> bool:
        """Stop the worker and wait for it to exit."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Keep-alive service did not stop within timeout")
                return False
            self._thread = None
            logger.info("Keep-alive service stopped")
        return True

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self._store.events.push(self._store.get_stage())
            self.beats += 1


class NotificationActions:
    """Routes notification actions to the control channel and app hooks."""

    def __init__(
        self,
        channel: ControlChannel,
        keepalive: KeepAliveService,
        lifecycle: AppLifecycle | None = None,
    ):
        self._channel = channel
        self._keepalive = keepalive
        self._lifecycle = lifecycle
        self._actions: dict[str, Callable[[], Any]] = {
            "disconnect": self._disconnect,
            "bringToForeground": self._foreground,
            "startBackgroundService": self._keepalive.start,
            "stopBackgroundService": self._keepalive.stop,
        }

    def handle(self, method: str) -> ChannelResult:
        """Run a notification action by name.

        Args:
            method: Action name

        Returns:
            ``ChannelResult(ok=True, value=True)`` on success
        """
        action = self._actions.get(method)
        if action is None:
            return ChannelResult.failure(
                ErrorKind.NOT_IMPLEMENTED, f"Unknown action '{method}'"
            )

        logger.debug(f"Notification action {method}")
        try:
            action()
        except Exception as e:
            logger.error(f"Notification action {method} failed: {e}")
            return ChannelResult.failure(ErrorKind.UNAVAILABLE, f"{method} failed", str(e))
        return ChannelResult.accepted()

    def _disconnect(self) -> None:
        result = self._channel.stop()
        if not result.ok and result.error is not None:
            raise RuntimeError(result.error.message)

    def _foreground(self) -> None:
        if self._lifecycle is None:
            raise RuntimeError("No app lifecycle registered")
        self._lifecycle.bring_to_foreground()
