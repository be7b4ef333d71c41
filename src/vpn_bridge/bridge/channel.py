"""Request/response control channel in front of the tunnel session."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from types import TracebackType
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationError

from ..common.exceptions import (
    ErrorKind,
    PermissionDeniedError,
    UnavailableError,
    VpnBridgeError,
)
from ..common.logging import get_logger
from ..common.utils import sanitize_log_data
from ..config import BridgeConfig
from ..models import ConnectionRequest, SessionState, Stage
from .store import StageStore

if TYPE_CHECKING:
    from ..tunnel.interfaces import SettingsNavigator
    from ..tunnel.session import TunnelSession

logger = get_logger(__name__)

Dispatcher = Callable[[Callable[[], Any]], Any]

# Command vocabularies by version. Both start/stop and connect/disconnect
# have been used by UI shells, so they are kept as aliases.
COMMANDS_V1: dict[str, str] = {
    "start": "_cmd_start",
    "connect": "_cmd_start",
    "stop": "_cmd_stop",
    "disconnect": "_cmd_stop",
    "refresh": "_cmd_refresh",
    "kill_switch": "_cmd_kill_switch",
    "permission_result": "_cmd_permission_result",
}

COMMAND_SETS: dict[int, dict[str, str]] = {1: COMMANDS_V1}


class ChannelError(BaseModel):
    """Structured error returned by a channel call."""

    kind: ErrorKind
    message: str
    details: str | None = None


class ChannelResult(BaseModel):
    """Outcome of a channel call."""

    ok: bool
    value: Any = None
    error: ChannelError | None = Field(default=None)

    @classmethod
    def accepted(cls, value: Any = True) -> "ChannelResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(
        cls, kind: ErrorKind, message: str, details: str | None = None
    ) -> "ChannelResult":
        return cls(
            ok=False, error=ChannelError(kind=kind, message=message, details=details)
        )

    @classmethod
    def from_error(
        cls, error: VpnBridgeError, details: str | None = None
    ) -> "ChannelResult":
        """Failure result carrying the kind of a bridge error."""
        return cls.failure(error.kind, str(error), details)


class ControlChannel:
    """Accepts connection commands and converts every failure into a result.

    ``start`` reports ``connecting`` immediately and hands the actual connect
    to a dispatcher. The default dispatcher is a single-worker executor, so
    connect attempts never overlap.
    """

    def __init__(
        self,
        store: StageStore,
        session: TunnelSession,
        navigator: SettingsNavigator,
        config: BridgeConfig | None = None,
        dispatcher: Dispatcher | None = None,
        command_version: int = 1,
    ):
        """Initialize control channel.

        Args:
            store: Stage store shared with the session
            session: Tunnel session commands are delegated to
            navigator: Opens platform settings for the kill switch
            config: Bridge configuration (defaults if None)
            dispatcher: Runs connect work off the caller's thread
            command_version: Command vocabulary used by :meth:`handle`
        """
        if command_version not in COMMAND_SETS:
            raise ValueError(f"Unknown command set version: {command_version}")

        self.config = config or BridgeConfig()
        self._store = store
        self._session = session
        self._navigator = navigator
        self._executor: ThreadPoolExecutor | None = None
        if dispatcher is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="vpn-control"
            )
            dispatcher = self._executor.submit
        self._dispatch = dispatcher
        self._commands = COMMAND_SETS[command_version]

    @property
    def commands(self) -> list[str]:
        """Command names understood by :meth:`handle`."""
        return sorted(self._commands)

    def start(self, request: ConnectionRequest) -> ChannelResult:
        """Start connecting to ``request.target``.

        Args:
            request: Connection request

        Returns:
            Accepted unless the connect could not be dispatched
        """
        state = self._session.state
        if state in (SessionState.CONNECTING, SessionState.CONNECTED):
            logger.warning("Ignoring start while session is busy", state=state.value)
            return ChannelResult.accepted(value=False)

        ticket = self._session.ticket()
        self._store.set_stage(Stage.CONNECTING)
        try:
            self._dispatch(partial(self._guarded_connect, request, ticket))
        except Exception as e:
            logger.error("Failed to dispatch connect", error=str(e))
            self._store.set_stage(Stage.FAILED)
            return ChannelResult.from_error(
                UnavailableError("Tunnel service unavailable"), str(e)
            )
        return ChannelResult.accepted()

    def stop(self) -> ChannelResult:
        """Tear down the tunnel, reporting ``disconnected`` right away."""
        self._store.set_stage(Stage.DISCONNECTED)
        try:
            self._session.disconnect()
        except Exception as e:
            logger.error("Failed to stop tunnel", error=str(e))
            return ChannelResult.from_error(
                UnavailableError("Unable to stop tunnel"), str(e)
            )
        return ChannelResult.accepted()

    def refresh(self) -> Stage:
        """Return the current stage without side effects."""
        return self._store.get_stage()

    def kill_switch(self) -> ChannelResult:
        """Open the "block connections without VPN" settings surface.

        Each configured target is tried in order; the first one that opens
        wins.
        """
        last_error: Exception | None = None
        for target in self.config.kill_switch_targets:
            try:
                self._navigator.open(target)
                logger.info("Opened kill switch settings", target=target)
                return ChannelResult.accepted(value=None)
            except Exception as e:
                logger.warning("Settings target unavailable", target=target, error=str(e))
                last_error = e

        return ChannelResult.from_error(
            UnavailableError("Unable to open settings"),
            str(last_error) if last_error else None,
        )

    def permission_result(self, granted: bool) -> ChannelResult:
        """Resume or abandon a connect parked on the permission dialog.

        Args:
            granted: Whether the user granted tunnel permission

        Returns:
            The start result when a parked request is retried, a
            PERMISSION_DENIED error when permission was declined
        """
        if not granted:
            self._session.cancel_pending()
            self._store.set_stage(Stage.DENIED)
            logger.info("Tunnel permission denied")
            return ChannelResult.from_error(PermissionDeniedError("VPN permission denied"))

        request = self._session.pending_request
        if request is None:
            return ChannelResult.accepted(value=False)
        logger.info("Tunnel permission granted, retrying connect", target=request.target)
        return self.start(request)

    def handle(
        self, method: str, arguments: dict[str, Any] | None = None
    ) -> ChannelResult:
        """Dispatch a method call by name.

        Args:
            method: Command name
            arguments: Command arguments

        Returns:
            Command result; unknown commands yield NOT_IMPLEMENTED
        """
        handler_name = self._commands.get(method)
        if handler_name is None:
            return ChannelResult.failure(
                ErrorKind.NOT_IMPLEMENTED, f"Unknown method '{method}'"
            )

        handler: Callable[[dict[str, Any]], ChannelResult] = getattr(self, handler_name)
        try:
            return handler(arguments or {})
        except ValidationError as e:
            logger.warning("Invalid arguments", method=method, error=str(e))
            return ChannelResult.failure(ErrorKind.INVALID, "Invalid arguments", str(e))
        except VpnBridgeError as e:
            logger.warning("Command failed", method=method, error=str(e))
            return ChannelResult.from_error(e)
        except Exception as e:
            logger.error("Command failed", method=method, error=str(e))
            return ChannelResult.failure(ErrorKind.UNAVAILABLE, f"{method} failed", str(e))

    def close(self) -> None:
        """Shut down the dispatcher and the session."""
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
        self._session.close()

    def __enter__(self) -> "ControlChannel":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _guarded_connect(self, request: ConnectionRequest, ticket: int) -> None:
        try:
            self._session.connect(request, ticket=ticket)
        except Exception as e:
            logger.error("Unexpected connect failure", error=str(e))
            self._store.set_stage(Stage.FAILED)

    def _cmd_start(self, arguments: dict[str, Any]) -> ChannelResult:
        logger.info("Start requested", arguments=sanitize_log_data(arguments))
        request = ConnectionRequest.from_arguments(
            arguments,
            default_username=self.config.default_username,
            default_password=self.config.default_password,
        )
        return self.start(request)

    def _cmd_stop(self, arguments: dict[str, Any]) -> ChannelResult:
        return self.stop()

    def _cmd_refresh(self, arguments: dict[str, Any]) -> ChannelResult:
        stage = self.refresh()
        self._store.events.push(stage)
        return ChannelResult.accepted(value=stage.value)

    def _cmd_kill_switch(self, arguments: dict[str, Any]) -> ChannelResult:
        return self.kill_switch()

    def _cmd_permission_result(self, arguments: dict[str, Any]) -> ChannelResult:
        return self.permission_result(bool(arguments.get("granted", False)))
