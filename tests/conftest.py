"""Shared fakes and fixtures for the bridge tests."""

import pytest

from warema_bridge.dedup import DedupCache
from warema_bridge.gateway import HardwareGateway
from warema_bridge.reconciler import EventReconciler
from warema_bridge.registry import DeviceRegistry
from warema_bridge.translator import CommandTranslator
from warema_mqtt import DiscoveryPublisher, StatePublisher, TopicLayout, create_logger


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGateway(HardwareGateway):
    """Records every call made to the radio driver."""

    def __init__(self):
        self.calls = []
        self.last_weather = None
        self.closed = False

    def scan_devices(self, auto_assign_blinds=False):
        self.calls.append(("scan_devices", auto_assign_blinds))

    def add_blind(self, serial, name):
        self.calls.append(("add_blind", serial, name))

    def set_position(self, serial, position, tilt=None):
        self.calls.append(("set_position", serial, position, tilt))

    def stop(self, serial):
        self.calls.append(("stop", serial))

    def get_position(self, serial):
        self.calls.append(("get_position", serial))

    def get_last_weather_broadcast(self):
        return self.last_weather

    def set_poll_interval(self, interval_ms):
        self.calls.append(("set_poll_interval", interval_ms))

    def set_move_watch_interval(self, interval_ms):
        self.calls.append(("set_move_watch_interval", interval_ms))

    def close(self):
        self.closed = True

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]


class FakeBus:
    """In-memory bus; records (topic, payload, retain) triples."""

    def __init__(self, connected: bool = True):
        self.connected = connected
        self.messages = []
        self.subscriptions = []
        self.on_message = None
        self.on_connected = None
        self.disconnected = False

    def connect(self, timeout=10.0):
        if self.connected and self.on_connected is not None:
            self.on_connected()
        return self.connected

    def go_online(self):
        """Broker becomes reachable (the client reconnected)."""
        self.connected = True
        if self.on_connected is not None:
            self.on_connected()

    def disconnect(self):
        self.disconnected = True
        self.connected = False

    def publish(self, topic, payload, retain=True):
        if not self.connected:
            return False
        self.messages.append((topic, payload, retain))
        return True

    def is_connected(self):
        return self.connected

    def subscribe(self, pattern):
        self.subscriptions.append(pattern)

    def topics(self):
        return [m[0] for m in self.messages]

    def last(self, topic):
        values = [payload for t, payload, _ in self.messages if t == topic]
        return values[-1] if values else None

    def count(self, topic):
        return sum(1 for t, _, _ in self.messages if t == topic)


class FakeScheduler:
    """Collects call_later requests; run_all() fires them."""

    def __init__(self):
        self.scheduled = []

    def call_later(self, delay, fn, *args, **kwargs):
        self.scheduled.append((delay, fn, args, kwargs))

    def run_all(self):
        scheduled, self.scheduled = self.scheduled, []
        for _, fn, args, kwargs in scheduled:
            fn(*args, **kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def layout():
    return TopicLayout()


@pytest.fixture
def bus():
    return FakeBus()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def registry(clock):
    return DeviceRegistry(clock=clock)


@pytest.fixture
def discovery(bus, layout):
    return DiscoveryPublisher(bus, layout, create_logger("test_discovery"))


@pytest.fixture
def state_publisher(bus, layout):
    return StatePublisher(bus, layout, create_logger("test_state"))


@pytest.fixture
def reconciler(registry, gateway, discovery, state_publisher, clock):
    return EventReconciler(
        registry=registry,
        gateway=gateway,
        discovery=discovery,
        state=state_publisher,
        weather_cache=DedupCache(10.0, 60.0, clock=clock),
        raw_cache=DedupCache(1.0, 10.0, clock=clock),
    )


@pytest.fixture
def translator(registry, gateway, scheduler, clock):
    return CommandTranslator(
        registry=registry,
        gateway=gateway,
        scheduler=scheduler,
        clock=clock,
    )


def scan_message(*devices):
    """Gateway scan-results message for (serial, type) pairs."""
    return {
        "topic": "wms-vb-scanned-devices",
        "payload": {"devices": [{"snr": snr, "type": type_code} for snr, type_code in devices]},
    }


def position_message(serial, position=None, angle=None, moving=None):
    payload = {"snr": serial}
    if position is not None:
        payload["position"] = position
    if angle is not None:
        payload["angle"] = angle
    if moving is not None:
        payload["moving"] = moving
    return {"topic": "wms-vb-blind-position-update", "payload": payload}


def weather_message(serial, temp=21.5, wind=3, lumen=12000, rain=False):
    return {
        "topic": "wms-vb-weather-broadcast",
        "payload": {"weather": {"snr": serial, "temp": temp, "wind": wind, "lumen": lumen, "rain": rain}},
    }


INIT_MESSAGE = {"topic": "wms-vb-init-completion", "payload": {}}
