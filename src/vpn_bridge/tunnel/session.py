"""Tunnel session state machine."""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future
from functools import partial
from types import TracebackType
from typing import TYPE_CHECKING

from ..common.exceptions import EstablishFailedError, UnavailableError, VpnBridgeError
from ..common.logging import get_logger
from ..config import BridgeConfig
from ..models import ConnectionRequest, PermissionState, SessionState, Stage
from .forwarder import PacketForwarder, PacketHandler
from .interfaces import TunnelHandle, TunnelPlatform

if TYPE_CHECKING:
    from ..bridge.store import StageStore

logger = get_logger(__name__)

_CONNECTABLE = (SessionState.IDLE, SessionState.PERMISSION_REQUIRED)
_RESTING = (SessionState.IDLE, SessionState.PERMISSION_REQUIRED, SessionState.FAILED)
_STAGE_FOR_BUSY_STATE = {
    SessionState.CONNECTING: Stage.CONNECTING,
    SessionState.CONNECTED: Stage.CONNECTED,
}


class TunnelSession:
    """Owns at most one tunnel handle and reports its transitions as stages.

    Only one connect or disconnect sequence is in flight at a time. Every
    in-flight sequence carries a generation number; a sequence whose generation
    has been superseded (by a disconnect or a link loss) may not touch the
    session state and must release any handle it ends up with.

    At most one ``platform.establish`` call runs at a time, even across a
    disconnect or a timeout: a new attempt waits (bounded by the connect
    timeout) until the previous call has returned and its handle is settled.

    The session shares the store's lock, so stage delivery and session state
    are always guarded by the same lock.
    """

    def __init__(
        self,
        platform: TunnelPlatform,
        store: StageStore,
        config: BridgeConfig | None = None,
        packet_handler: PacketHandler | None = None,
    ):
        """Initialize tunnel session.

        Args:
            platform: Platform VPN primitives
            store: Stage store transitions are reported to
            config: Bridge configuration (defaults if None)
            packet_handler: Handler for forwarded packets (echo if None)
        """
        self.config = config or BridgeConfig()
        self._platform = platform
        self._store = store
        self._packet_handler = packet_handler
        self._lock = store.lock
        self._state = SessionState.IDLE
        self._generation = 0
        self._handle: TunnelHandle | None = None
        self._forwarder: PacketForwarder | None = None
        self._pending_request: ConnectionRequest | None = None
        self._last_error: VpnBridgeError | None = None
        self._establish_settled = threading.Event()
        self._establish_settled.set()

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def handle(self) -> TunnelHandle | None:
        with self._lock:
            return self._handle

    @property
    def pending_request(self) -> ConnectionRequest | None:
        """Request parked while waiting for the user to grant permission."""
        with self._lock:
            return self._pending_request

    @property
    def last_error(self) -> VpnBridgeError | None:
        """Error behind the most recent ``failed`` stage, cleared on connect."""
        with self._lock:
            return self._last_error

    def is_connected(self) -> bool:
        return self.state == SessionState.CONNECTED

    def ticket(self) -> int:
        """Return a token that a later :meth:`disconnect` invalidates.

        A connect scheduled with this ticket is dropped if the session was
        disconnected before it got to run.
        """
        with self._lock:
            return self._generation

    def connect(
        self, request: ConnectionRequest, ticket: int | None = None
    ) -> SessionState:
        """Bring the tunnel up.

        Permission is checked first; without it the session parks in
        ``permission_required`` and no handle is created. Establishing is
        bounded by ``config.connect_timeout``.

        Args:
            request: Connection request
            ticket: Value of :meth:`ticket` taken when the connect was
                scheduled; a stale ticket drops the call

        Returns:
            Outcome of the attempt. FAILED means the session is back to idle
            with the ``failed`` stage reported. A call made while another
            sequence is active is rejected and returns the current state.
        """
        with self._lock:
            if ticket is not None and ticket != self._generation:
                logger.info(
                    "Dropping connect cancelled before it started",
                    target=request.target,
                )
                self._restore_busy_stage()
                return self._state
            if self._state not in _CONNECTABLE:
                logger.warning(
                    "Rejecting connect while session is busy",
                    state=self._state.value,
                    target=request.target,
                )
                self._restore_busy_stage()
                return self._state
            self._generation += 1
            generation = self._generation
            self._state = SessionState.CONNECTING
            self._pending_request = None
            self._store.advance(Stage.CONNECTING)

        logger.info("Connecting", target=request.target, country=request.country)

        try:
            permission = self._platform.prepare()
        except Exception as e:
            logger.error("Permission check failed", error=str(e))
            return self._fail(generation, UnavailableError(f"Permission check failed: {e}"))

        if permission != PermissionState.GRANTED:
            with self._lock:
                if generation != self._generation:
                    return self._state
                self._state = SessionState.PERMISSION_REQUIRED
                self._pending_request = request
                self._store.advance(Stage.PERMISSION_REQUIRED)
            logger.info("Tunnel permission required", target=request.target)
            return SessionState.PERMISSION_REQUIRED

        try:
            establish = self._begin_establish(generation, request)
        except TimeoutError:
            logger.error("Previous tunnel establish still in flight", target=request.target)
            return self._fail(
                generation, EstablishFailedError("Previous establish still in flight")
            )
        if establish is None:
            logger.info("Connect superseded before establish", target=request.target)
            return self.state
        future, settled = establish

        try:
            handle = future.result(timeout=self.config.connect_timeout)
        except TimeoutError:
            future.add_done_callback(partial(self._discard_late_handle, settled))
            logger.error(
                "Tunnel establish timed out",
                target=request.target,
                timeout=self.config.connect_timeout,
            )
            return self._fail(generation, EstablishFailedError("Tunnel establish timed out"))
        except Exception as e:
            settled.set()
            logger.error("Tunnel establish failed", target=request.target, error=str(e))
            error = e if isinstance(e, VpnBridgeError) else EstablishFailedError(str(e))
            return self._fail(generation, error)

        try:
            if handle is None:
                logger.error("Platform returned no tunnel interface", target=request.target)
                return self._fail(
                    generation, EstablishFailedError("Platform returned no tunnel interface")
                )
            return self._adopt(generation, handle, request)
        finally:
            settled.set()

    def disconnect(self) -> SessionState:
        """Tear the tunnel down.

        Safe to call in any state; when nothing is active it only confirms
        ``disconnected`` if the stage says otherwise. Connects scheduled
        before this call are cancelled.

        Returns:
            Session state after the call
        """
        with self._lock:
            self._generation += 1
            if self._state in _RESTING:
                self._state = SessionState.IDLE
                self._pending_request = None
                self._store.advance(Stage.DISCONNECTED)
                return SessionState.IDLE
            if self._state == SessionState.DISCONNECTING:
                return SessionState.DISCONNECTING

            logger.info("Disconnecting", state=self._state.value)
            self._state = SessionState.DISCONNECTING
            handle, self._handle = self._handle, None
            forwarder, self._forwarder = self._forwarder, None

        if forwarder is not None:
            forwarder.stop(timeout=self.config.disconnect_timeout)
        if handle is not None:
            self._release(handle)

        with self._lock:
            self._state = SessionState.IDLE
            self._store.advance(Stage.DISCONNECTED)

        logger.info("Tunnel disconnected")
        return SessionState.IDLE

    def cancel_pending(self) -> ConnectionRequest | None:
        """Drop a request parked in ``permission_required`` without reporting a stage.

        Returns:
            The dropped request, if any
        """
        with self._lock:
            request, self._pending_request = self._pending_request, None
            if self._state == SessionState.PERMISSION_REQUIRED:
                self._state = SessionState.IDLE
            return request

    def link_lost(self) -> None:
        """Report that the OS tore the tunnel down underneath the session."""
        with self._lock:
            generation = self._generation
        self._on_link_lost(generation)

    def close(self) -> None:
        """Tear down any live tunnel."""
        if self.state not in _RESTING:
            self.disconnect()

    def __enter__(self) -> "TunnelSession":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _restore_busy_stage(self) -> None:
        # A caller may have optimistically reported another stage
        busy_stage = _STAGE_FOR_BUSY_STATE.get(self._state)
        if busy_stage is not None:
            self._store.advance(busy_stage)

    def _begin_establish(
        self, generation: int, request: ConnectionRequest
    ) -> tuple["Future[TunnelHandle | None]", threading.Event] | None:
        """Start the establish worker once the previous one has settled.

        Returns:
            The worker's future and its settled event, or None if the
            sequence was superseded while waiting

        Raises:
            TimeoutError: If the previous establish did not settle in time
        """
        deadline = time.monotonic() + self.config.connect_timeout
        while True:
            with self._lock:
                if generation != self._generation:
                    return None
                previous = self._establish_settled
                if previous.is_set():
                    settled = threading.Event()
                    self._establish_settled = settled
                    future: Future[TunnelHandle | None] = Future()
                    threading.Thread(
                        target=self._run_establish,
                        args=(future, request),
                        name="vpn-establish",
                        daemon=True,
                    ).start()
                    return future, settled

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError("previous establish still in flight")
            logger.debug("Waiting for previous establish to settle")
            previous.wait(remaining)

    def _adopt(
        self, generation: int, handle: TunnelHandle, request: ConnectionRequest
    ) -> SessionState:
        with self._lock:
            superseded = (
                generation != self._generation or self._state != SessionState.CONNECTING
            )
            if not superseded:
                self._handle = handle
                self._state = SessionState.CONNECTED
                self._last_error = None
                self._store.advance(Stage.CONNECTED)
                if self.config.packet_forwarding:
                    self._forwarder = PacketForwarder(
                        handle,
                        on_link_lost=partial(self._on_link_lost, generation),
                        handler=self._packet_handler,
                        poll_interval=self.config.forward_poll_interval,
                        buffer_size=self.config.packet_buffer_size,
                    )
                    self._forwarder.start()

        if superseded:
            logger.info("Connect superseded, releasing late tunnel handle")
            self._release(handle)
            return self.state

        logger.info("Tunnel connected", target=request.target)
        return SessionState.CONNECTED

    def _on_link_lost(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._state != SessionState.CONNECTED:
                return
            logger.warning("Tunnel link lost")
            self._generation += 1
            self._state = SessionState.FAILED
            self._last_error = UnavailableError("Tunnel link lost")
            handle, self._handle = self._handle, None
            forwarder, self._forwarder = self._forwarder, None

        if forwarder is not None:
            forwarder.stop(timeout=self.config.disconnect_timeout)
        if handle is not None:
            self._release(handle)

        with self._lock:
            self._store.advance(Stage.FAILED)
            self._state = SessionState.IDLE

    def _fail(self, generation: int, error: VpnBridgeError) -> SessionState:
        with self._lock:
            if generation != self._generation:
                return self._state
            self._state = SessionState.FAILED
            self._last_error = error
            self._store.advance(Stage.FAILED)
            self._state = SessionState.IDLE
        logger.info("Connect attempt failed", reason=str(error), kind=error.kind.value)
        return SessionState.FAILED

    def _run_establish(
        self, future: "Future[TunnelHandle | None]", request: ConnectionRequest
    ) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(self._platform.establish(self.config.tunnel, request))
        except Exception as e:
            future.set_exception(e)

    def _discard_late_handle(
        self, settled: threading.Event, future: "Future[TunnelHandle | None]"
    ) -> None:
        try:
            if future.exception() is not None:
                return
            handle = future.result()
            if handle is not None:
                logger.warning("Releasing tunnel handle that arrived after timeout")
                self._release(handle)
        finally:
            settled.set()

    def _release(self, handle: TunnelHandle) -> None:
        try:
            self._platform.close(handle)
        except Exception as e:
            logger.error("Failed to close tunnel handle", error=str(e))
