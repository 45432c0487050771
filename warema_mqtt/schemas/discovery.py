"""
Discovery Descriptor Schema
===========================

Bounded Context: Home Assistant MQTT Discovery

This module defines the retained JSON descriptors announced for each device.

Design:
- One frozen dataclass per entity kind (cover, switch, light, sensor)
- Each descriptor knows its config topic and serializes with to_dict()
- build_descriptors() maps a registry device to its descriptor(s)

Every descriptor binds availability to two topics, the bridge liveness topic
and the per-device availability topic, with availability_mode "all": the
entity is available only while both report "online".

Message Flow:
    DeviceRecord → build_descriptors() → DiscoveryPublisher → MQTT Broker
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Protocol, Tuple, Union

from ..topics import TopicLayout
from .common import Availability, DeviceInfo, availability_list


class Category(str, Enum):
    """Discovery category (Home Assistant component)."""
    COVER = "cover"
    SWITCH = "switch"
    LIGHT = "light"
    SENSOR = "sensor"


class DeviceLike(Protocol):
    """What a descriptor needs to know about a registered device."""
    serial: str
    category: Category
    model: str
    device_class: Optional[str]
    has_tilt: bool
    tilt_range: Optional[Tuple[int, int]]


@dataclass(frozen=True)
class SensorSpec:
    """
    One weather sub-entity.

    Attributes:
        key: Sub-entity key, used in topics and unique ids
        name: Display name suffix
        unit: Unit of measurement (None for unitless)
        device_class: Home Assistant device class (None when not applicable)
        icon: MDI icon
    """
    key: str
    name: str
    unit: Optional[str]
    device_class: Optional[str]
    icon: str


WEATHER_SENSORS: Tuple[SensorSpec, ...] = (
    SensorSpec("temperature", "Temperature", "°C", "temperature", "mdi:thermometer"),
    SensorSpec("illuminance", "Illuminance", "lx", "illuminance", "mdi:brightness-5"),
    SensorSpec("wind_speed", "Wind speed", "m/s", "wind_speed", "mdi:weather-windy"),
    SensorSpec("rain", "Rain", None, None, "mdi:weather-rainy"),
)


def _availability(layout: TopicLayout, serial: str) -> List[Dict[str, str]]:
    return availability_list([
        Availability(topic=layout.bridge_state),
        Availability(topic=layout.availability(serial)),
    ])


@dataclass(frozen=True)
class CoverDiscovery:
    """
    Cover descriptor (blinds, awnings, slat roofs).

    Position 0 is fully open, 100 fully closed. Tilt topics are present only
    when tilt_range is set; the range is family specific.

    Example:
        >>> d = CoverDiscovery(DeviceInfo("AABBCC", "WMS Aktor UP"), TopicLayout(),
        ...                    tilt_range=(0, 100))
        >>> d.topic
        'homeassistant/cover/AABBCC/config'
    """
    category: ClassVar[Category] = Category.COVER

    device: DeviceInfo
    layout: TopicLayout
    device_class: Optional[str] = "shutter"
    tilt_range: Optional[Tuple[int, int]] = None

    def __post_init__(self):
        """Validate invariants."""
        if self.tilt_range is not None:
            low, high = self.tilt_range
            if low >= high:
                raise ValueError(f"Invalid tilt range: {self.tilt_range}")

    @property
    def topic(self) -> str:
        return self.layout.discovery(self.category.value, self.device.serial)

    @property
    def unique_id(self) -> str:
        return f"warema_{self.device.serial}_cover"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        serial = self.device.serial
        payload: Dict[str, Any] = {
            'name': None,
            'unique_id': self.unique_id,
            'device': self.device.to_dict(),
            'state_topic': self.layout.state(serial),
            'command_topic': self.layout.command(serial, 'set'),
            'position_topic': self.layout.position(serial),
            'set_position_topic': self.layout.command(serial, 'set_position'),
            'payload_open': 'OPEN',
            'payload_close': 'CLOSE',
            'payload_stop': 'STOP',
            'state_open': 'open',
            'state_closed': 'closed',
            'state_stopped': 'stopped',
            'position_open': 0,
            'position_closed': 100,
            'availability': _availability(self.layout, serial),
            'availability_mode': 'all',
        }
        if self.device_class:
            payload['device_class'] = self.device_class
        if self.tilt_range is not None:
            payload['tilt_status_topic'] = self.layout.tilt(serial)
            payload['tilt_command_topic'] = self.layout.command(serial, 'set_tilt')
            payload['tilt_min'] = self.tilt_range[0]
            payload['tilt_max'] = self.tilt_range[1]
            payload['tilt_opened_value'] = 0
            payload['tilt_closed_value'] = 100
        return payload


@dataclass(frozen=True)
class SwitchDiscovery:
    """On/off descriptor for plug receivers; also used for lights."""
    category: ClassVar[Category] = Category.SWITCH

    device: DeviceInfo
    layout: TopicLayout

    @property
    def topic(self) -> str:
        return self.layout.discovery(self.category.value, self.device.serial)

    @property
    def unique_id(self) -> str:
        return f"warema_{self.device.serial}_{self.category.value}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        serial = self.device.serial
        return {
            'name': None,
            'unique_id': self.unique_id,
            'device': self.device.to_dict(),
            'state_topic': self.layout.state(serial),
            'command_topic': self.layout.command(serial, 'set'),
            'payload_on': 'ON',
            'payload_off': 'OFF',
            'state_on': 'ON',
            'state_off': 'OFF',
            'availability': _availability(self.layout, serial),
            'availability_mode': 'all',
        }


@dataclass(frozen=True)
class LightDiscovery(SwitchDiscovery):
    """Light descriptor; same on/off vocabulary as a switch."""
    category: ClassVar[Category] = Category.LIGHT


@dataclass(frozen=True)
class SensorDiscovery:
    """One weather sub-entity descriptor."""
    category: ClassVar[Category] = Category.SENSOR

    device: DeviceInfo
    layout: TopicLayout
    sensor: SensorSpec

    @property
    def topic(self) -> str:
        return self.layout.discovery(self.category.value, self.device.serial, self.sensor.key)

    @property
    def unique_id(self) -> str:
        return f"warema_{self.device.serial}_{self.sensor.key}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        serial = self.device.serial
        payload: Dict[str, Any] = {
            'name': self.sensor.name,
            'unique_id': self.unique_id,
            'device': self.device.to_dict(),
            'state_topic': self.layout.sensor_state(serial, self.sensor.key),
            'icon': self.sensor.icon,
            'availability': _availability(self.layout, serial),
            'availability_mode': 'all',
        }
        if self.sensor.unit:
            payload['unit_of_measurement'] = self.sensor.unit
        if self.sensor.device_class:
            payload['device_class'] = self.sensor.device_class
            payload['state_class'] = 'measurement'
        return payload


Descriptor = Union[CoverDiscovery, SwitchDiscovery, LightDiscovery, SensorDiscovery]


def build_descriptors(device: DeviceLike, layout: TopicLayout) -> List[Descriptor]:
    """
    Map a registered device to its discovery descriptor(s).

    Returns:
        One descriptor for covers, switches and lights; four for weather
        stations (one per WEATHER_SENSORS entry).
    """
    info = DeviceInfo(serial=device.serial, model=device.model)
    category = Category(device.category)

    if category is Category.SENSOR:
        return [SensorDiscovery(info, layout, spec) for spec in WEATHER_SENSORS]
    if category is Category.SWITCH:
        return [SwitchDiscovery(info, layout)]
    if category is Category.LIGHT:
        return [LightDiscovery(info, layout)]
    return [
        CoverDiscovery(
            info,
            layout,
            device_class=device.device_class,
            tilt_range=device.tilt_range if device.has_tilt else None,
        )
    ]
