"""
Weather Sample Schema
=====================

Bounded Context: Weather Station Data

A weather station broadcasts temperature, wind speed, illuminance and rain as
one atomic sample. The fingerprint identifies the content of a sample so
repeated broadcasts can be suppressed.
"""

import hashlib
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class WeatherSample:
    """
    Immutable weather sample.

    Attributes:
        serial: Weather station serial number (uppercase)
        temperature: Temperature in °C
        wind: Wind speed in m/s
        lumen: Illuminance in lx
        rain: Rain detected
        timestamp: Observation time (seconds, time.time())

    Example:
        >>> s = WeatherSample.from_dict({'snr': 'a1b2c3', 'temp': 21.5,
        ...                              'wind': 3, 'lumen': 12000, 'rain': False})
        >>> s.serial
        'A1B2C3'
        >>> s.state_values()['rain']
        'OFF'
    """
    serial: str
    temperature: float
    wind: float
    lumen: float
    rain: bool
    timestamp: float = field(default_factory=time.time, compare=False)

    def __post_init__(self):
        """Validate invariants."""
        if not self.serial:
            raise ValueError("WeatherSample serial cannot be empty")

    @property
    def fingerprint(self) -> str:
        """Content hash over the four measured values (timestamp excluded)."""
        content = f"{self.temperature!r}|{self.wind!r}|{self.lumen!r}|{int(self.rain)}"
        return hashlib.sha1(content.encode('utf-8')).hexdigest()

    def state_values(self) -> Dict[str, str]:
        """State payloads keyed by sensor sub-entity key."""
        return {
            'temperature': _format_number(self.temperature),
            'illuminance': _format_number(self.lumen),
            'wind_speed': _format_number(self.wind),
            'rain': 'ON' if self.rain else 'OFF',
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict (gateway field names)."""
        return {
            'snr': self.serial,
            'temp': self.temperature,
            'wind': self.wind,
            'lumen': self.lumen,
            'rain': self.rain,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], timestamp: Optional[float] = None) -> 'WeatherSample':
        """Deserialize from a gateway weather payload.

        Accepts the field names used by the radio driver (snr, temp, wind,
        lumen, rain); "lumi" is accepted as an alias of "lumen".

        Raises:
            ValueError: If required keys missing or values not numeric
        """
        try:
            lumen = data['lumen'] if 'lumen' in data else data['lumi']
            return cls(
                serial=str(data['snr']).strip().upper(),
                temperature=float(data['temp']),
                wind=float(data['wind']),
                lumen=float(lumen),
                rain=_parse_rain(data['rain']),
                timestamp=time.time() if timestamp is None else timestamp,
            )
        except KeyError as e:
            raise ValueError(f"Missing required weather field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid weather data: {e}")


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _parse_rain(value: Any) -> bool:
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in ('1', 'true', 'on', 'yes'):
            return True
        if normalized in ('0', 'false', 'off', 'no', ''):
            return False
        raise ValueError(f"Invalid rain value: {value!r}")
    return bool(value)
