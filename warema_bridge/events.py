"""
Gateway events - decoded once at the hardware boundary.

The radio driver reports everything as {topic, payload} dictionaries. This
module turns them into one of four immutable event types so the reconciler
dispatches on types instead of probing optional keys:

    InitComplete       wms-vb-init-completion
    ScanResults        wms-vb-scanned-devices
    PositionUpdate     wms-vb-blind-position-update
    WeatherBroadcast   wms-vb-weather-broadcast (aliases: wms-vb-weather-update,
                       wms-vb-rcv-weather-broadcast)

Topics the bridge does not consume decode to None. Known topics with a
malformed payload raise EventDecodeError.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from warema_mqtt.schemas import WeatherSample

from .registry import normalize_serial

TOPIC_INIT_COMPLETION = "wms-vb-init-completion"
TOPIC_SCANNED_DEVICES = "wms-vb-scanned-devices"
TOPIC_POSITION_UPDATE = "wms-vb-blind-position-update"
TOPIC_WEATHER_BROADCAST = "wms-vb-weather-broadcast"
WEATHER_TOPIC_ALIASES = (
    TOPIC_WEATHER_BROADCAST,
    "wms-vb-weather-update",
    "wms-vb-rcv-weather-broadcast",
)


class EventDecodeError(ValueError):
    """A known gateway event carried a payload that cannot be decoded."""


@dataclass(frozen=True)
class ScannedDevice:
    serial: str
    type_code: str


@dataclass(frozen=True)
class InitComplete:
    kind = "init-completion"


@dataclass(frozen=True)
class ScanResults:
    kind = "scan-results"

    devices: Tuple[ScannedDevice, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PositionUpdate:
    """
    Position and/or tilt report of one device.

    moving is None when the driver did not say; only an explicit False marks
    the device as settled.
    """
    kind = "position-update"

    serial: str
    position: Optional[float] = None
    angle: Optional[float] = None
    moving: Optional[bool] = None


@dataclass(frozen=True)
class WeatherBroadcast:
    kind = "weather-broadcast"

    sample: WeatherSample


GatewayEvent = Union[InitComplete, ScanResults, PositionUpdate, WeatherBroadcast]


def decode_event(message: Dict[str, Any]) -> Optional[GatewayEvent]:
    """
    Decode one gateway message.

    Args:
        message: {"topic": str, "payload": dict}

    Returns:
        The typed event, or None for topics the bridge does not consume

    Raises:
        EventDecodeError: If the payload of a known topic is malformed
    """
    if not isinstance(message, dict) or "topic" not in message:
        raise EventDecodeError(f"Gateway message without topic: {message!r}")

    topic = message["topic"]
    payload = message.get("payload") or {}
    if not isinstance(payload, dict):
        raise EventDecodeError(f"{topic}: payload must be an object, got {type(payload).__name__}")

    if topic == TOPIC_INIT_COMPLETION:
        return InitComplete()
    if topic == TOPIC_SCANNED_DEVICES:
        return _decode_scan(payload)
    if topic == TOPIC_POSITION_UPDATE:
        return _decode_position(payload)
    if topic in WEATHER_TOPIC_ALIASES:
        return _decode_weather(payload)
    return None


def _decode_scan(payload: Dict[str, Any]) -> ScanResults:
    devices = payload.get("devices")
    if not isinstance(devices, list):
        raise EventDecodeError("scan results without device list")

    scanned = []
    for entry in devices:
        if not isinstance(entry, dict) or entry.get("snr") in (None, "") or "type" not in entry:
            raise EventDecodeError(f"invalid scanned device entry: {entry!r}")
        scanned.append(ScannedDevice(normalize_serial(entry["snr"]), str(entry["type"]).strip().upper()))
    return ScanResults(devices=tuple(scanned))


def _decode_position(payload: Dict[str, Any]) -> PositionUpdate:
    serial = payload.get("snr")
    if serial in (None, ""):
        raise EventDecodeError("position update without serial number")

    position = _optional_number(payload, "position")
    angle = _optional_number(payload, "angle")
    if position is None and angle is None:
        raise EventDecodeError(f"position update for {serial} carries neither position nor angle")

    moving = payload.get("moving")
    return PositionUpdate(
        serial=normalize_serial(serial),
        position=position,
        angle=angle,
        moving=None if moving is None else bool(moving),
    )


def _decode_weather(payload: Dict[str, Any]) -> WeatherBroadcast:
    # Broadcasts nest the sample under "weather"; older drivers send it flat
    data = payload.get("weather", payload)
    if not isinstance(data, dict):
        raise EventDecodeError("weather broadcast without sample")
    try:
        return WeatherBroadcast(sample=WeatherSample.from_dict(data))
    except ValueError as e:
        raise EventDecodeError(str(e)) from e


def _optional_number(payload: Dict[str, Any], key: str) -> Optional[float]:
    value = payload.get(key)
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise EventDecodeError(f"{key} is not numeric: {value!r}")
    if math.isnan(number) or math.isinf(number):
        raise EventDecodeError(f"{key} is not finite: {value!r}")
    return number
