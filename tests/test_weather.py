"""Tests for WeatherSample and WeatherPoller."""

import pytest

from warema_bridge.dedup import DedupCache
from warema_bridge.weather import WeatherPoller
from warema_mqtt import WeatherSample

from conftest import INIT_MESSAGE, scan_message


class TestWeatherSample:

    def test_from_dict(self):
        sample = WeatherSample.from_dict({"snr": "a1b2c3", "temp": "21.5", "wind": 3, "lumen": 12000, "rain": "1"})
        assert sample.serial == "A1B2C3"
        assert sample.temperature == 21.5
        assert sample.rain is True

    def test_fingerprint_ignores_timestamp(self):
        a = WeatherSample("A1", 20.0, 3.0, 100.0, False, timestamp=1.0)
        b = WeatherSample("A1", 20.0, 3.0, 100.0, False, timestamp=2.0)
        assert a == b
        assert a.fingerprint == b.fingerprint

    def test_fingerprint_changes_with_content(self):
        a = WeatherSample("A1", 20.0, 3.0, 100.0, False)
        b = WeatherSample("A1", 20.0, 3.0, 100.0, True)
        assert a.fingerprint != b.fingerprint

    def test_state_values(self):
        sample = WeatherSample("A1", 20.25, 4.0, 800.0, False)
        assert sample.state_values() == {
            "temperature": "20.25",
            "illuminance": "800",
            "wind_speed": "4",
            "rain": "OFF",
        }

    @pytest.mark.parametrize("data", [
        {"temp": 1, "wind": 1, "lumen": 1, "rain": 0},
        {"snr": "A1", "temp": "warm", "wind": 1, "lumen": 1, "rain": 0},
        {"snr": "A1", "temp": 1, "wind": 1, "lumen": 1, "rain": "maybe"},
    ])
    def test_invalid(self, data):
        with pytest.raises(ValueError):
            WeatherSample.from_dict(data)


@pytest.fixture
def poller(gateway, reconciler, clock):
    reconciler.on_gateway_message(None, INIT_MESSAGE)
    reconciler.on_gateway_message(None, scan_message())
    return WeatherPoller(gateway, reconciler, DedupCache(10.0, 60.0, clock=clock), interval=30.0)


class TestWeatherPoller:

    def test_nothing_received_yet(self, poller, bus):
        assert not poller.poll()
        assert bus.messages == []

    def test_publishes_nested_sample(self, poller, gateway, bus):
        gateway.last_weather = {"weather": {"snr": "A1B2C3", "temp": 5, "wind": 1, "lumen": 50, "rain": False}}
        assert poller.poll()
        assert bus.last("warema/A1B2C3/temperature/state") == "5"
        assert bus.count("homeassistant/sensor/A1B2C3_rain/config") == 1

    def test_unchanged_sample_suppressed_until_refresh(self, poller, gateway, bus, clock):
        gateway.last_weather = {"snr": "A1B2C3", "temp": 5, "wind": 1, "lumen": 50, "rain": False}
        assert poller.poll()
        clock.advance(5)
        assert not poller.poll()
        clock.advance(5)
        assert poller.poll()
        assert bus.count("warema/A1B2C3/temperature/state") == 2

    def test_malformed_sample_dropped(self, poller, gateway, bus):
        gateway.last_weather = {"snr": "A1B2C3", "temp": 5}
        assert not poller.poll()
        assert bus.messages == []

    def test_invalid_interval(self, gateway, reconciler, clock):
        with pytest.raises(ValueError):
            WeatherPoller(gateway, reconciler, DedupCache(10.0, 60.0, clock=clock), interval=0)
