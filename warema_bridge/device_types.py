"""
WMS device type catalogue.

Maps the two-character type code reported by a device scan to the discovery
category and capabilities of the device. Unknown codes fall back to a plain
cover without tilt.

Tilt ranges are family specific: plug receivers and UP actuators (20, 21)
report 0..100, the slat roof (2A) reports -100..100.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from warema_mqtt.schemas import Category


@dataclass(frozen=True)
class DeviceProfile:
    """Capabilities derived from a WMS type code."""

    type_code: str
    category: Category
    model: str
    device_class: Optional[str] = None
    tilt_range: Optional[Tuple[int, int]] = None

    @property
    def has_tilt(self) -> bool:
        return self.tilt_range is not None


WEATHER_STATION_TYPE = "63"

DEVICE_PROFILES: Dict[str, DeviceProfile] = {
    "20": DeviceProfile("20", Category.COVER, "WMS Plug receiver (venetian blind)", "shutter", (0, 100)),
    "21": DeviceProfile("21", Category.COVER, "WMS Actuator UP (venetian blind)", "shutter", (0, 100)),
    "25": DeviceProfile("25", Category.COVER, "WMS Awning actuator", "awning"),
    "2A": DeviceProfile("2A", Category.COVER, "WMS Slat roof", "shutter", (-100, 100)),
    "24": DeviceProfile("24", Category.SWITCH, "WMS Socket / switch"),
    "28": DeviceProfile("28", Category.LIGHT, "WMS Light actuator"),
    "06": DeviceProfile("06", Category.SENSOR, "WMS Weather station eco"),
    "63": DeviceProfile("63", Category.SENSOR, "WMS Weather station plus"),
}


def normalize_type_code(type_code) -> str:
    """Canonical type code: upper-case hex, two characters ("6" -> "06")."""
    code = str(type_code).strip().upper()
    if len(code) == 1:
        code = "0" + code
    return code


def profile_for(type_code) -> DeviceProfile:
    """Look up the profile of a type code; unknown codes become a plain cover."""
    code = normalize_type_code(type_code)
    profile = DEVICE_PROFILES.get(code)
    if profile is None:
        return DeviceProfile(code, Category.COVER, f"WMS device (type {code})", "shutter")
    return profile
