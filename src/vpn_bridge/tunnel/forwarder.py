"""Cancellable packet forwarding worker bound to a live tunnel."""

import logging
import threading
from collections.abc import Callable

from .interfaces import TunnelHandle

logger = logging.getLogger(__name__)

PacketHandler = Callable[[bytes], bytes | None]


def echo_packets(packet: bytes) -> bytes:
    """Default handler: write every packet straight back."""
    return packet


class PacketForwarder:
    """Reads packets from a tunnel handle on a background thread.

    The loop polls with a bounded read timeout and checks a stop event between
    reads, so :meth:`stop` always returns within roughly one poll interval.
    """

    def __init__(
        self,
        handle: TunnelHandle,
        on_link_lost: Callable[[], None],
        handler: PacketHandler | None = None,
        poll_interval: float = 0.5,
        buffer_size: int = 32767,
    ):
        """Initialize packet forwarder.

        Args:
            handle: Tunnel handle to read from and write to
            on_link_lost: Called once if the handle fails or closes underneath us
            handler: Packet handler returning bytes to write back, or None
            poll_interval: Maximum seconds a single read may block
            buffer_size: Maximum packet size to read
        """
        self._handle = handle
        self._on_link_lost = on_link_lost
        self._handler = handler or echo_packets
        self._poll_interval = poll_interval
        self._buffer_size = buffer_size
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.packets_forwarded = 0

    def start(self) -> None:
        """Start the forwarding thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name="vpn-packet-forwarder", daemon=True
        )
        self._thread.start()
        logger.debug("Packet forwarder started")

    def stop(self, timeout: float = 5.0) -> bool:
        """Signal the loop to exit and wait for it.

        Args:
            timeout: Seconds to wait for the thread to finish

        Returns:
            True if the thread is no longer running
        """
        self._stop_event.set()
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning("Packet forwarder did not stop within timeout")
            return False
        logger.debug(f"Packet forwarder stopped after {self.packets_forwarded} packets")
        return True

    def is_running(self) -> bool:
        """Check if the forwarding thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        try:
            while not self._stop_event.is_set():
                if self._handle.closed:
                    raise OSError("Tunnel handle closed")
                packet = self._handle.read(self._buffer_size, self._poll_interval)
                if not packet or self._stop_event.is_set():
                    continue
                reply = self._handler(packet)
                if reply:
                    self._handle.write(reply)
                    self.packets_forwarded += 1
        except OSError as e:
            if self._stop_event.is_set():
                return
            logger.error(f"Packet forwarding error: {e}")
            self._stop_event.set()
            self._on_link_lost()
