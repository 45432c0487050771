"""Tests for BridgeService wiring and lifecycle."""

import pytest

from warema_bridge.config import BridgeConfig, WMSConfig
from warema_bridge.gateway import GatewayLoadError
from warema_bridge.loop import EventLoop
from warema_bridge.service import BridgeService

from conftest import INIT_MESSAGE, FakeBus, FakeGateway, position_message, scan_message


class RecordingLoader:
    """Stands in for load_gateway; keeps the callback the service registers."""

    def __init__(self):
        self.gateway = FakeGateway()
        self.callback = None
        self.calls = []

    def __call__(self, factory_path, config, callback):
        self.calls.append((factory_path, config))
        self.callback = callback
        return self.gateway


def _config(pan_id="A1B2", factory="drivers.wms:create"):
    return BridgeConfig(wms=WMSConfig(pan_id=pan_id, gateway_factory=factory))


@pytest.fixture
def loader():
    return RecordingLoader()


@pytest.fixture
def service(loader):
    service = BridgeService(_config(), bus=FakeBus(), gateway_loader=loader, loop=EventLoop())
    service.setup()
    return service


def test_setup_without_factory_fails(loader):
    service = BridgeService(_config(factory=None), bus=FakeBus(), gateway_loader=loader)
    with pytest.raises(GatewayLoadError):
        service.setup()
    assert loader.calls == []


def test_setup_passes_wms_config(service, loader):
    factory_path, config = loader.calls[0]
    assert factory_path == "drivers.wms:create"
    assert config is service.config.wms


def test_gateway_events_run_on_loop(service, loader):
    loader.callback(None, INIT_MESSAGE)
    # Nothing happens until the loop runs the queued handler
    assert loader.gateway.calls == []

    service.loop.run_pending()
    assert ("scan_devices", False) in loader.gateway.calls


def test_end_to_end_command(service, loader):
    bus = service.bus
    service.control_plane.start()

    loader.callback(None, INIT_MESSAGE)
    loader.callback(None, scan_message(("AABBCC", "21")))
    loader.callback(None, position_message("AABBCC", position=30, angle=20, moving=False))
    service.loop.run_pending()

    assert bus.last("warema/AABBCC/position") == "30"
    assert bus.last("warema/AABBCC/state") == "stopped"

    bus.on_message("warema/AABBCC/set_position", "80")
    service.loop.run_pending()
    assert loader.gateway.calls[-1] == ("set_position", "AABBCC", 80, 20)


def test_command_before_ready_dropped(service, loader):
    service.control_plane.start()
    service.registry.upsert("AABBCC", "21")
    service.bus.on_message("warema/AABBCC/set", "OPEN")
    service.loop.run_pending()
    assert loader.gateway.calls_named("set_position") == []


def test_start_and_stop(service, loader):
    assert service.start(connect_timeout=0.1)
    assert service.bus.subscriptions == ["warema/+/set", "warema/+/set_position", "warema/+/set_tilt"]
    assert service.loop.pending_timers == 1  # weather poll

    service.stop()
    assert loader.gateway.closed
    assert service.bus.disconnected
    assert service.wait(timeout=0)
    assert service.loop.pending_timers == 0


def test_late_broker_connect_announces_devices(loader):
    bus = FakeBus(connected=False)
    service = BridgeService(_config(), bus=bus, gateway_loader=loader, loop=EventLoop())
    service.setup()

    loader.callback(None, INIT_MESSAGE)
    loader.callback(None, scan_message(("AABBCC", "21")))
    service.loop.run_pending()
    assert service.registry.is_known("AABBCC")
    assert bus.count("homeassistant/cover/AABBCC/config") == 0

    bus.go_online()
    service.loop.run_pending()
    assert bus.count("homeassistant/cover/AABBCC/config") == 1
    assert bus.last("warema/AABBCC/availability") == "online"

    # A later reconnect does not announce it again
    bus.go_online()
    service.loop.run_pending()
    assert bus.count("homeassistant/cover/AABBCC/config") == 1


def test_broker_connected_before_queued_events_run(service, loader):
    loop_running_at_connect = []
    connect = service.bus.connect

    def recording_connect(timeout=10.0):
        loop_running_at_connect.append(service.loop.is_running())
        return connect(timeout)

    service.bus.connect = recording_connect
    loader.callback(None, INIT_MESSAGE)
    loader.callback(None, scan_message(("AABBCC", "21")))

    assert service.start(connect_timeout=0.1)
    service.stop()

    assert loop_running_at_connect == [False]
    assert service.bus.count("homeassistant/cover/AABBCC/config") == 1


def test_start_requires_setup():
    service = BridgeService(_config(), bus=FakeBus())
    with pytest.raises(RuntimeError):
        service.start()


class TestJoinMode:

    @pytest.fixture
    def join_service(self, loader):
        service = BridgeService(_config(pan_id="FFFF"), gateway_loader=loader, loop=EventLoop())
        service.setup()
        return service

    def test_no_broker_and_no_reconciler(self, join_service):
        assert join_service.join_mode
        assert join_service.bus is None
        assert join_service.reconciler is None

    def test_gateway_messages_only_logged(self, join_service, loader):
        loader.callback(None, {"topic": "wms-vb-network-found", "payload": {"panId": "A1B2"}})
        assert join_service.loop.run_pending() == 0

    def test_start_stop(self, join_service, loader):
        assert join_service.start()
        join_service.stop()
        assert loader.gateway.closed
