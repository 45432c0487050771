"""
Warema MQTT Schemas
===================

Bounded Context: Data Structures

Immutable, typed data structures for what the bridge puts on the broker.

Public API
----------
Common Types:
    DeviceInfo: Home Assistant device block
    Availability: Availability binding

Discovery Types:
    Category: Enum (COVER, SWITCH, LIGHT, SENSOR)
    CoverDiscovery, SwitchDiscovery, LightDiscovery, SensorDiscovery
    SensorSpec, WEATHER_SENSORS
    build_descriptors: Device → descriptor list

Weather Types:
    WeatherSample: Atomic weather station sample with fingerprint
"""

from .common import Availability, DeviceInfo
from .discovery import (
    Category,
    CoverDiscovery,
    SwitchDiscovery,
    LightDiscovery,
    SensorDiscovery,
    SensorSpec,
    WEATHER_SENSORS,
    build_descriptors,
)
from .weather import WeatherSample

__all__ = [
    # Common types
    'Availability',
    'DeviceInfo',
    # Discovery types
    'Category',
    'CoverDiscovery',
    'SwitchDiscovery',
    'LightDiscovery',
    'SensorDiscovery',
    'SensorSpec',
    'WEATHER_SENSORS',
    'build_descriptors',
    # Weather types
    'WeatherSample',
]
