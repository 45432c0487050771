"""
Device Registry - canonical view of every known WMS device.

The registry maps serial numbers to DeviceRecords and is the single source of
truth for device type, capabilities and last confirmed position/tilt.

Invariants:
- A record exists iff the serial was scanned (or force-registered) and is not
  on the ignore list
- Serial numbers are canonical upper-case strings and never change
- Position and tilt are replaced whole on each confirmed update; setters on
  unknown serials are no-ops and never create a record

Thread Safety:
- All mutation happens on the bridge's event loop thread; the lock only
  guards snapshot reads from other threads (stats, CLI handlers)
- get() and devices() return copies, so callers cannot write fields directly
"""

import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from warema_mqtt.schemas import Category

from .device_types import profile_for


def normalize_serial(serial) -> str:
    """Canonical serial number: stripped, upper-case string."""
    return str(serial).strip().upper()


@dataclass
class DeviceRecord:
    """
    Registered device.

    Attributes:
        serial: Serial number (canonical upper-case)
        type_code: WMS type code from the scan
        category: Discovery category
        model: Human-readable model label
        device_class: Cover device class (shutter/awning), None otherwise
        tilt_range: (min, max) tilt for tilt-capable covers, None otherwise
        position: Last confirmed position, 0 = open, 100 = closed
        tilt: Last confirmed tilt
        last_seen: Time of the last accepted update (time.time())
    """
    serial: str
    type_code: str
    category: Category
    model: str
    device_class: Optional[str] = None
    tilt_range: Optional[Tuple[int, int]] = None
    position: int = 0
    tilt: int = 0
    last_seen: Optional[float] = None

    @property
    def has_tilt(self) -> bool:
        return self.tilt_range is not None

    @property
    def name(self) -> str:
        return f"Warema {self.serial}"


class DeviceRegistry:
    """
    Registry of known devices keyed by serial number.

    Usage:
        registry = DeviceRegistry(ignored=["112233"])
        record = registry.upsert("aabbcc", "21")
        registry.set_position("AABBCC", 40)
        registry.get("AABBCC").position  # 40
    """

    def __init__(
        self,
        ignored: Iterable[str] = (),
        clock: Callable[[], float] = time.time,
    ):
        self._devices: Dict[str, DeviceRecord] = {}
        self._ignored = {normalize_serial(s) for s in ignored if str(s).strip()}
        self._clock = clock
        self._lock = threading.Lock()

    def upsert(self, serial, type_code) -> Optional[DeviceRecord]:
        """
        Register a device on first sight.

        Returns:
            The new record, the existing record if the serial is already known
            (unchanged), or None if the serial is ignored.
        """
        serial = normalize_serial(serial)
        if serial in self._ignored:
            return None

        with self._lock:
            existing = self._devices.get(serial)
            if existing is not None:
                return replace(existing)

            profile = profile_for(type_code)
            record = DeviceRecord(
                serial=serial,
                type_code=profile.type_code,
                category=profile.category,
                model=profile.model,
                device_class=profile.device_class,
                tilt_range=profile.tilt_range,
                last_seen=self._clock(),
            )
            self._devices[serial] = record
            return replace(record)

    def get(self, serial) -> Optional[DeviceRecord]:
        """Snapshot of a record, or None if unknown."""
        with self._lock:
            record = self._devices.get(normalize_serial(serial))
            return replace(record) if record is not None else None

    def is_known(self, serial) -> bool:
        return normalize_serial(serial) in self._devices

    def is_ignored(self, serial) -> bool:
        return normalize_serial(serial) in self._ignored

    def set_position(self, serial, position: int) -> bool:
        """Replace the confirmed position. Returns False for unknown serials."""
        with self._lock:
            record = self._devices.get(normalize_serial(serial))
            if record is None:
                return False
            record.position = int(position)
            record.last_seen = self._clock()
            return True

    def set_tilt(self, serial, tilt: int) -> bool:
        """Replace the confirmed tilt. Returns False for unknown serials."""
        with self._lock:
            record = self._devices.get(normalize_serial(serial))
            if record is None:
                return False
            record.tilt = int(tilt)
            record.last_seen = self._clock()
            return True

    def touch(self, serial) -> None:
        """Record that a device was heard from without changing its state."""
        with self._lock:
            record = self._devices.get(normalize_serial(serial))
            if record is not None:
                record.last_seen = self._clock()

    def devices(self) -> List[DeviceRecord]:
        """Snapshot of all records, ordered by serial."""
        with self._lock:
            return [replace(self._devices[s]) for s in sorted(self._devices)]

    def __contains__(self, serial) -> bool:
        return self.is_known(serial)

    def __len__(self) -> int:
        return len(self._devices)
