"""Shared pytest fixtures for VPN bridge tests."""

import queue
import threading
import time

import pytest

from vpn_bridge.bridge.channel import ControlChannel
from vpn_bridge.bridge.store import StageStore
from vpn_bridge.config import BridgeConfig
from vpn_bridge.models import PermissionState, Stage
from vpn_bridge.tunnel.session import TunnelSession

SAMPLE_CSV = """*vpn_servers
#HostName,IP,Score,Ping,Speed,CountryLong,CountryShort,NumVpnSessions,Uptime,TotalUsers,TotalTraffic,LogType,Operator,Message,OpenVPN_ConfigData_Base64
public-vpn-1,219.100.37.1,1234567,12,98000000,Japan,JP,10,100,1000,5000,2weeks,op-a,,Y2xpZW50Cg==
public-vpn-2,219.100.37.2,2000,-,5000,Korea Republic of,KR,1,1,1,1,2weeks,op-b,,
short,row
*
"""


class FakeHandle:
    """In-memory tunnel handle fed through :meth:`inject`."""

    def __init__(self) -> None:
        self._packets: queue.Queue[bytes] = queue.Queue()
        self._closed = threading.Event()
        self.written: list[bytes] = []
        self.fail_reads = False

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def inject(self, packet: bytes) -> None:
        self._packets.put(packet)

    def read(self, size: int, timeout: float) -> bytes:
        if self.fail_reads:
            raise OSError("interface revoked")
        try:
            return self._packets.get(timeout=timeout)[:size]
        except queue.Empty:
            return b""

    def write(self, data: bytes) -> None:
        self.written.append(data)

    def close(self) -> None:
        self._closed.set()


class FakePlatform:
    """Platform double that records every handle it hands out."""

    def __init__(
        self,
        permission: PermissionState = PermissionState.GRANTED,
        establish_error: Exception | None = None,
        return_none: bool = False,
        gate: threading.Event | None = None,
    ) -> None:
        self.permission = permission
        self.establish_error = establish_error
        self.return_none = return_none
        self.gate = gate
        self.prepare_calls = 0
        self.establish_calls = 0
        self.handles: list[FakeHandle] = []
        self.open_handles: list[FakeHandle] = []
        self.max_open = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.last_settings = None
        self.establish_started = threading.Event()
        self._lock = threading.Lock()

    def prepare(self) -> PermissionState:
        self.prepare_calls += 1
        return self.permission

    def establish(self, settings, request):
        with self._lock:
            self.establish_calls += 1
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.establish_started.set()
        try:
            if self.gate is not None:
                self.gate.wait(timeout=10)
            if self.establish_error is not None:
                raise self.establish_error
            if self.return_none:
                return None
            handle = FakeHandle()
            with self._lock:
                self.last_settings = settings
                self.handles.append(handle)
                self.open_handles.append(handle)
                self.max_open = max(self.max_open, len(self.open_handles))
            return handle
        finally:
            with self._lock:
                self.in_flight -= 1

    def close(self, handle: FakeHandle) -> None:
        handle.close()
        with self._lock:
            if handle in self.open_handles:
                self.open_handles.remove(handle)


class FakeNavigator:
    """Settings navigator that fails for the targets listed in ``broken``."""

    def __init__(self, broken: set[str] | None = None) -> None:
        self.broken = broken or set()
        self.opened: list[str] = []
        self.attempts: list[str] = []

    def open(self, target: str) -> None:
        self.attempts.append(target)
        if target in self.broken:
            raise RuntimeError(f"No activity found for {target}")
        self.opened.append(target)


class FakeLifecycle:
    """App lifecycle double counting foreground requests."""

    def __init__(self) -> None:
        self.foreground_calls = 0

    def bring_to_foreground(self) -> None:
        self.foreground_calls += 1


class RecordingListener:
    """Stage listener that records deliveries and lets tests wait for one."""

    def __init__(self) -> None:
        self.stages: list[Stage] = []
        self._cond = threading.Condition()

    def __call__(self, stage: Stage) -> None:
        with self._cond:
            self.stages.append(stage)
            self._cond.notify_all()

    def wait_for(self, stage: Stage, timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        with self._cond:
            while stage not in self.stages:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True


def inline_dispatcher(fn):
    """Run dispatched work synchronously on the caller's thread."""
    return fn()


def wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def config():
    """Bridge config without the packet forwarder."""
    return BridgeConfig(packet_forwarding=False, connect_timeout=5.0)


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def navigator():
    return FakeNavigator()


@pytest.fixture
def store():
    return StageStore()


@pytest.fixture
def listener(store):
    """Listener subscribed to the store, with the replayed stage cleared."""
    recorder = RecordingListener()
    store.subscribe(recorder)
    recorder.stages.clear()
    return recorder


@pytest.fixture
def session(platform, store, config):
    session = TunnelSession(platform, store, config)
    yield session
    session.close()


@pytest.fixture
def channel(store, session, navigator, config):
    return ControlChannel(
        store, session, navigator, config, dispatcher=inline_dispatcher
    )


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "vpngate.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path
