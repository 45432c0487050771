"""Tests for DeviceRegistry and the device type catalogue."""

import pytest

from warema_bridge.device_types import normalize_type_code, profile_for
from warema_bridge.registry import DeviceRegistry, normalize_serial
from warema_mqtt import Category


class TestDeviceTypes:
    """Type code to capability mapping."""

    @pytest.mark.parametrize("code,category,device_class,tilt_range", [
        ("20", Category.COVER, "shutter", (0, 100)),
        ("21", Category.COVER, "shutter", (0, 100)),
        ("25", Category.COVER, "awning", None),
        ("2A", Category.COVER, "shutter", (-100, 100)),
        ("24", Category.SWITCH, None, None),
        ("28", Category.LIGHT, None, None),
        ("06", Category.SENSOR, None, None),
        ("63", Category.SENSOR, None, None),
    ])
    def test_known_profiles(self, code, category, device_class, tilt_range):
        profile = profile_for(code)
        assert profile.category is category
        assert profile.device_class == device_class
        assert profile.tilt_range == tilt_range

    def test_unknown_code_is_plain_cover(self):
        profile = profile_for("7f")
        assert profile.type_code == "7F"
        assert profile.category is Category.COVER
        assert profile.tilt_range is None
        assert "7F" in profile.model

    def test_type_code_normalization(self):
        assert normalize_type_code("6") == "06"
        assert normalize_type_code(" 2a ") == "2A"
        assert profile_for("2a").tilt_range == (-100, 100)


class TestRegistry:
    """Record creation, lookup and updates."""

    def test_upsert_creates_record(self, registry):
        record = registry.upsert("aabbcc", "21")
        assert record.serial == "AABBCC"
        assert record.category is Category.COVER
        assert record.has_tilt
        assert record.position == 0
        assert record.tilt == 0
        assert "AABBCC" in registry
        assert len(registry) == 1

    def test_upsert_is_idempotent(self, registry):
        registry.upsert("AABBCC", "21")
        registry.set_position("AABBCC", 40)

        again = registry.upsert("AABBCC", "25")
        assert again.type_code == "21"
        assert again.position == 40
        assert len(registry) == 1

    def test_ignored_serial_never_registered(self, clock):
        registry = DeviceRegistry(ignored=["112233", ""], clock=clock)
        assert registry.upsert("112233", "21") is None
        assert not registry.is_known("112233")
        assert registry.is_ignored("112233")
        assert len(registry) == 0

    def test_get_returns_copy(self, registry):
        registry.upsert("AABBCC", "21")
        snapshot = registry.get("AABBCC")
        snapshot.position = 99
        assert registry.get("AABBCC").position == 0

    def test_get_unknown(self, registry):
        assert registry.get("ZZZZZZ") is None

    def test_setters_on_unknown_are_noops(self, registry):
        assert registry.set_position("ZZZZZZ", 10) is False
        assert registry.set_tilt("ZZZZZZ", 10) is False
        assert not registry.is_known("ZZZZZZ")

    def test_setters_update_last_seen(self, registry, clock):
        registry.upsert("AABBCC", "21")
        clock.advance(5)
        assert registry.set_position("aabbcc", 60)
        assert registry.set_tilt("AABBCC", 20)

        record = registry.get("AABBCC")
        assert record.position == 60
        assert record.tilt == 20
        assert record.last_seen == clock.now

    def test_touch_keeps_state(self, registry, clock):
        registry.upsert("AABBCC", "63")
        clock.advance(30)
        registry.touch("AABBCC")
        record = registry.get("AABBCC")
        assert record.last_seen == clock.now
        assert record.position == 0

    def test_devices_sorted(self, registry):
        registry.upsert("CCCCCC", "21")
        registry.upsert("AAAAAA", "24")
        assert [d.serial for d in registry.devices()] == ["AAAAAA", "CCCCCC"]

    def test_normalize_serial(self):
        assert normalize_serial(" aabbcc ") == "AABBCC"
        assert normalize_serial(123456) == "123456"
