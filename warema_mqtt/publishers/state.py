"""
State Publisher
===============

Bounded Context: Retained Device State

Publishes plain-text retained state topics: position, tilt, derived
open/closed/stopped state and the four weather sensor states.
"""

from typing import Any

from .base import BasePublisher
from ..logging import LogEvent
from ..schemas.discovery import WEATHER_SENSORS
from ..schemas.weather import WeatherSample


class StatePublisher(BasePublisher):
    """Publisher for retained device state."""

    def format_message(self, value: Any) -> str:
        if isinstance(value, bool):
            return 'ON' if value else 'OFF'
        return str(value)

    def publish_position(self, serial: str, position: int) -> bool:
        published = self.publish(self.layout.position(serial), self.format_message(position))
        if published:
            self.logger.debug(
                event=LogEvent.STATE_PUBLISHED,
                message="Position published",
                metadata={'serial': serial, 'position': position}
            )
        return published

    def publish_state(self, serial: str, state: str) -> bool:
        return self.publish(self.layout.state(serial), self.format_message(state))

    def publish_tilt(self, serial: str, tilt: int) -> bool:
        published = self.publish(self.layout.tilt(serial), self.format_message(tilt))
        if published:
            self.logger.debug(
                event=LogEvent.STATE_PUBLISHED,
                message="Tilt published",
                metadata={'serial': serial, 'tilt': tilt}
            )
        return published

    def publish_weather(self, sample: WeatherSample) -> bool:
        """
        Publish all four sensor states of a weather sample.

        The sample is atomic, so every sensor topic is written even when only
        one value changed.

        Returns:
            True if all four topics were published
        """
        values = sample.state_values()
        results = [
            self.publish(self.layout.sensor_state(sample.serial, spec.key), values[spec.key])
            for spec in WEATHER_SENSORS
        ]
        if all(results):
            self.logger.debug(
                event=LogEvent.WEATHER_PUBLISHED,
                message="Weather published",
                metadata={'serial': sample.serial, **values}
            )
        return all(results)
