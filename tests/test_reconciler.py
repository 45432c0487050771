"""Tests for EventReconciler: lifecycle, positions, weather and dedup."""

import pytest

from warema_bridge.dedup import DedupCache
from warema_bridge.reconciler import EventReconciler, GatewayState, derive_state, round_half_up
from warema_bridge.registry import DeviceRegistry
from warema_mqtt import Category

from conftest import INIT_MESSAGE, position_message, scan_message, weather_message


def _ready(reconciler, *devices):
    reconciler.on_gateway_message(None, INIT_MESSAGE)
    reconciler.on_gateway_message(None, scan_message(*devices))


class TestHelpers:

    @pytest.mark.parametrize("value,expected", [(2.5, 3), (2.4, 2), (-0.5, 0), (-1.5, -1), (99.5, 100)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    @pytest.mark.parametrize("position,state", [(0, "open"), (-3, "open"), (100, "closed"), (40, "stopped")])
    def test_derive_state(self, position, state):
        assert derive_state(position) == state

    @pytest.mark.parametrize("category", [Category.SWITCH, Category.LIGHT])
    @pytest.mark.parametrize("position,state", [(100, "ON"), (0, "OFF"), (40, "OFF")])
    def test_derive_state_on_off(self, category, position, state):
        assert derive_state(position, category) == state


class TestLifecycle:
    """UNINITIALIZED -> SCANNING -> READY."""

    def test_init_configures_and_scans(self, reconciler, gateway):
        assert reconciler.state is GatewayState.UNINITIALIZED
        reconciler.on_gateway_message(None, INIT_MESSAGE)

        assert gateway.calls == [
            ("set_poll_interval", 30000),
            ("set_move_watch_interval", 1000),
            ("scan_devices", False),
        ]
        assert reconciler.state is GatewayState.SCANNING
        assert not reconciler.is_ready

    def test_scan_registers_and_announces(self, reconciler, registry, gateway, bus):
        _ready(reconciler, ("AABBCC", "21"))

        assert reconciler.is_ready
        assert registry.is_known("AABBCC")
        assert bus.count("homeassistant/cover/AABBCC/config") == 1
        assert bus.last("warema/AABBCC/availability") == "online"
        assert ("add_blind", "AABBCC", "Warema AABBCC") in gateway.calls

    def test_rescan_does_not_republish(self, reconciler, gateway, bus):
        _ready(reconciler, ("AABBCC", "21"))
        reconciler.on_gateway_message(None, scan_message(("AABBCC", "21"), ("242424", "24")))

        assert bus.count("homeassistant/cover/AABBCC/config") == 1
        assert bus.count("warema/AABBCC/availability") == 1
        assert bus.count("homeassistant/switch/242424/config") == 1
        assert len(gateway.calls_named("add_blind")) == 1

    def test_switches_are_not_added_as_blinds(self, reconciler, gateway):
        _ready(reconciler, ("242424", "24"), ("A1B2C3", "63"))
        assert gateway.calls_named("add_blind") == []

    def test_ignored_device_not_announced(self, gateway, discovery, state_publisher, bus, clock):
        reconciler = EventReconciler(
            registry=DeviceRegistry(ignored=["112233"], clock=clock),
            gateway=gateway,
            discovery=discovery,
            state=state_publisher,
            weather_cache=DedupCache(10.0, 60.0, clock=clock),
        )
        _ready(reconciler, ("112233", "21"))
        assert bus.messages == []
        assert reconciler.is_ready

    def test_forced_devices_registered_at_init(self, registry, gateway, discovery, state_publisher, bus, clock):
        reconciler = EventReconciler(
            registry=registry,
            gateway=gateway,
            discovery=discovery,
            state=state_publisher,
            weather_cache=DedupCache(10.0, 60.0, clock=clock),
            forced_devices=[("aabbcc", "25")],
        )
        reconciler.on_gateway_message(None, INIT_MESSAGE)

        assert registry.get("AABBCC").device_class == "awning"
        assert bus.count("homeassistant/cover/AABBCC/config") == 1
        # Forced devices are added before the scan request
        names = [c[0] for c in gateway.calls]
        assert names.index("add_blind") < names.index("scan_devices")

    def test_discovery_dropped_while_offline_is_retried(self, reconciler, registry, bus):
        bus.connected = False
        _ready(reconciler, ("AABBCC", "21"))
        assert registry.is_known("AABBCC")
        assert reconciler.unannounced == {"AABBCC"}

        bus.connected = True
        assert reconciler.announce_pending() == 1
        assert bus.count("homeassistant/cover/AABBCC/config") == 1
        assert bus.last("warema/AABBCC/availability") == "online"

        assert reconciler.announce_pending() == 0
        assert bus.count("homeassistant/cover/AABBCC/config") == 1

    def test_announced_devices_not_pending(self, reconciler):
        _ready(reconciler, ("AABBCC", "21"))
        assert reconciler.unannounced == set()
        assert reconciler.announce_pending() == 0

    def test_gateway_error_is_dropped(self, reconciler, bus):
        reconciler.on_gateway_message(RuntimeError("stick unplugged"), None)
        assert reconciler.state is GatewayState.UNINITIALIZED
        assert bus.messages == []

    def test_malformed_event_is_dropped(self, reconciler, registry, bus):
        _ready(reconciler, ("AABBCC", "21"))
        before = len(bus.messages)
        reconciler.on_gateway_message(None, {"topic": "wms-vb-blind-position-update", "payload": {"snr": "AABBCC"}})
        assert len(bus.messages) == before
        assert registry.get("AABBCC").position == 0

    def test_unknown_topic_is_ignored(self, reconciler, bus):
        reconciler.on_gateway_message(None, {"topic": "wms-vb-something-else", "payload": {}})
        assert bus.messages == []


class TestPositionUpdates:
    """Registry writes and state publishes."""

    def test_settled_position_publishes_state(self, reconciler, registry, bus):
        _ready(reconciler, ("AABBCC", "21"))
        reconciler.on_gateway_message(None, position_message("AABBCC", position=40.4, angle=10, moving=False))

        assert registry.get("AABBCC").position == 40
        assert registry.get("AABBCC").tilt == 10
        assert bus.last("warema/AABBCC/position") == "40"
        assert bus.last("warema/AABBCC/tilt") == "10"
        assert bus.last("warema/AABBCC/state") == "stopped"

    def test_moving_update_omits_state(self, reconciler, bus):
        _ready(reconciler, ("AABBCC", "21"))
        reconciler.on_gateway_message(None, position_message("AABBCC", position=60, moving=True))

        assert bus.last("warema/AABBCC/position") == "60"
        assert bus.last("warema/AABBCC/state") is None

    def test_closed_and_open_states(self, reconciler, bus, clock):
        _ready(reconciler, ("AABBCC", "21"))
        reconciler.on_gateway_message(None, position_message("AABBCC", position=100, moving=False))
        assert bus.last("warema/AABBCC/state") == "closed"

        clock.advance(2)
        reconciler.on_gateway_message(None, position_message("AABBCC", position=0, moving=False))
        assert bus.last("warema/AABBCC/state") == "open"

    def test_switch_and_light_report_on_off(self, reconciler, bus):
        _ready(reconciler, ("242424", "24"), ("C0FFEE", "28"))
        reconciler.on_gateway_message(None, position_message("242424", position=100, moving=False))
        reconciler.on_gateway_message(None, position_message("C0FFEE", position=0, moving=False))

        assert bus.last("warema/242424/state") == "ON"
        assert bus.last("warema/C0FFEE/state") == "OFF"

    def test_injected_empty_cache_is_used(self, registry, gateway, discovery, state_publisher, clock):
        raw_cache = DedupCache(1.0, 10.0, clock=clock)
        reconciler = EventReconciler(
            registry=registry,
            gateway=gateway,
            discovery=discovery,
            state=state_publisher,
            weather_cache=DedupCache(10.0, 60.0, clock=clock),
            raw_cache=raw_cache,
        )
        assert len(raw_cache) == 0
        assert reconciler.raw_cache is raw_cache

    def test_update_before_init_dropped(self, reconciler, registry, bus):
        registry.upsert("AABBCC", "21")
        reconciler.on_gateway_message(None, position_message("AABBCC", position=50, moving=False))
        assert registry.get("AABBCC").position == 0
        assert bus.messages == []

    def test_update_for_unknown_device_dropped(self, reconciler, registry, bus):
        _ready(reconciler, ("AABBCC", "21"))
        before = len(bus.messages)
        reconciler.on_gateway_message(None, position_message("ZZZZZZ", position=50))
        assert not registry.is_known("ZZZZZZ")
        assert len(bus.messages) == before

    def test_duplicate_within_one_second_suppressed(self, reconciler, registry, bus, clock):
        _ready(reconciler, ("AABBCC", "21"))
        reconciler.on_gateway_message(None, position_message("AABBCC", position=40))
        clock.advance(0.5)
        reconciler.on_gateway_message(None, position_message("AABBCC", position=45))

        assert registry.get("AABBCC").position == 40
        assert bus.count("warema/AABBCC/position") == 1

        clock.advance(0.6)
        reconciler.on_gateway_message(None, position_message("AABBCC", position=45))
        assert registry.get("AABBCC").position == 45
        assert bus.count("warema/AABBCC/position") == 2

    def test_dedup_is_per_device(self, reconciler, bus):
        _ready(reconciler, ("AABBCC", "21"), ("DDEEFF", "21"))
        reconciler.on_gateway_message(None, position_message("AABBCC", position=40))
        reconciler.on_gateway_message(None, position_message("DDEEFF", position=40))
        assert bus.count("warema/AABBCC/position") == 1
        assert bus.count("warema/DDEEFF/position") == 1

    def test_dedup_entries_expire(self, reconciler, clock):
        _ready(reconciler, ("AABBCC", "21"))
        reconciler.on_gateway_message(None, position_message("AABBCC", position=40))
        assert len(reconciler.raw_cache) == 1
        clock.advance(11)
        assert len(reconciler.raw_cache) == 0


class TestWeatherBroadcasts:
    """Station registration and fingerprint dedup."""

    def test_first_broadcast_registers_station(self, reconciler, registry, bus):
        _ready(reconciler)
        reconciler.on_gateway_message(None, weather_message("A1B2C3", temp=21.5, wind=3, lumen=12000, rain=True))

        assert registry.get("A1B2C3").type_code == "63"
        assert bus.count("homeassistant/sensor/A1B2C3_temperature/config") == 1
        assert bus.last("warema/A1B2C3/temperature/state") == "21.5"
        assert bus.last("warema/A1B2C3/wind_speed/state") == "3"
        assert bus.last("warema/A1B2C3/illuminance/state") == "12000"
        assert bus.last("warema/A1B2C3/rain/state") == "ON"

    def test_identical_broadcast_suppressed_then_changed_published(self, reconciler, bus, clock):
        _ready(reconciler)
        reconciler.on_gateway_message(None, weather_message("A1B2C3", temp=20))
        clock.advance(2)
        reconciler.on_gateway_message(None, weather_message("A1B2C3", temp=20))
        assert bus.count("warema/A1B2C3/temperature/state") == 1

        clock.advance(2)
        reconciler.on_gateway_message(None, weather_message("A1B2C3", temp=21))
        assert bus.count("warema/A1B2C3/temperature/state") == 2
        assert bus.last("warema/A1B2C3/temperature/state") == "21"

    def test_identical_broadcast_refreshed_after_min_interval(self, reconciler, bus, clock):
        _ready(reconciler)
        reconciler.on_gateway_message(None, weather_message("A1B2C3"))
        clock.advance(10)
        reconciler.on_gateway_message(None, weather_message("A1B2C3"))
        assert bus.count("warema/A1B2C3/rain/state") == 2

    def test_ignored_station(self, gateway, discovery, state_publisher, bus, clock):
        reconciler = EventReconciler(
            registry=DeviceRegistry(ignored=["A1B2C3"], clock=clock),
            gateway=gateway,
            discovery=discovery,
            state=state_publisher,
            weather_cache=DedupCache(10.0, 60.0, clock=clock),
        )
        _ready(reconciler)
        reconciler.on_gateway_message(None, weather_message("A1B2C3"))
        assert bus.messages == []

    def test_broadcast_before_init_dropped(self, reconciler, registry, bus):
        reconciler.on_gateway_message(None, weather_message("A1B2C3"))
        assert not registry.is_known("A1B2C3")
        assert bus.messages == []
