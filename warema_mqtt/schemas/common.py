"""
Common Schema Types
==================

Bounded Context: Shared Data Structures

Types shared by every discovery descriptor.

Design Principles:
- Immutability: frozen=True prevents accidental mutation
- Serialization: to_dict() for JSON export
- Validation: Constructor validates invariants

Types:
- DeviceInfo: Home Assistant device block (identifiers, manufacturer, model)
- Availability: One availability binding (topic + payloads)
"""

from dataclasses import dataclass
from typing import Dict, Any, List


MANUFACTURER = "Warema"


@dataclass(frozen=True)
class DeviceInfo:
    """
    Immutable Home Assistant device block.

    Every entity of one physical device carries the same DeviceInfo so the
    consumer groups them under a single device.

    Attributes:
        serial: Device serial number (uppercase)
        model: Human-readable model label
        name: Display name (default: "Warema <serial>")
        manufacturer: Manufacturer label

    Example:
        >>> DeviceInfo(serial="AABBCC", model="WMS Aktor UP").to_dict()
        {'identifiers': ['AABBCC'], 'manufacturer': 'Warema', 'model': 'WMS Aktor UP', 'name': 'Warema AABBCC'}
    """
    serial: str
    model: str
    name: str = ""
    manufacturer: str = MANUFACTURER

    def __post_init__(self):
        """Validate invariants."""
        if not self.serial:
            raise ValueError("DeviceInfo serial cannot be empty")

    @property
    def display_name(self) -> str:
        return self.name or f"{self.manufacturer} {self.serial}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'identifiers': [self.serial],
            'manufacturer': self.manufacturer,
            'model': self.model,
            'name': self.display_name,
        }


@dataclass(frozen=True)
class Availability:
    """
    One availability binding of a discovery descriptor.

    Attributes:
        topic: Topic carrying the availability payload
        payload_available: Payload meaning "available"
        payload_not_available: Payload meaning "not available"
    """
    topic: str
    payload_available: str = "online"
    payload_not_available: str = "offline"

    def to_dict(self) -> Dict[str, str]:
        """Serialize to JSON-compatible dict."""
        return {
            'topic': self.topic,
            'payload_available': self.payload_available,
            'payload_not_available': self.payload_not_available,
        }


def availability_list(bindings: List[Availability]) -> List[Dict[str, str]]:
    """Serialize a list of availability bindings."""
    return [binding.to_dict() for binding in bindings]
