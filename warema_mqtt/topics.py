"""
Topic Layout
============

Bounded Context: MQTT Topic Naming

Single place that knows how bridge topics are spelled.

Layout (defaults base="warema", discovery_prefix="homeassistant"):

    homeassistant/<category>/<serial>[_<sub>]/config   discovery descriptors
    warema/bridge/state                                bridge liveness
    warema/<serial>/availability                       per-device availability
    warema/<serial>/{state,position,tilt}              cover/switch state
    warema/<serial>/<sensor>/state                     weather sensor state
    warema/<serial>/{set,set_position,set_tilt}        inbound commands
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple


COMMAND_KINDS = ("set", "set_position", "set_tilt")

PAYLOAD_ONLINE = "online"
PAYLOAD_OFFLINE = "offline"


@dataclass(frozen=True)
class TopicLayout:
    """
    Immutable topic naming scheme.

    Attributes:
        base: Root of all bridge topics
        discovery_prefix: Home Assistant discovery prefix
    """
    base: str = "warema"
    discovery_prefix: str = "homeassistant"

    def __post_init__(self):
        """Validate invariants."""
        for name in ("base", "discovery_prefix"):
            value = getattr(self, name)
            if not value or "/" in value or "+" in value or "#" in value:
                raise ValueError(f"Invalid {name} for topic layout: {value!r}")

    @property
    def bridge_state(self) -> str:
        """Bridge liveness topic (online on connect, offline as last will)."""
        return f"{self.base}/bridge/state"

    def availability(self, serial: str) -> str:
        return f"{self.base}/{serial}/availability"

    def state(self, serial: str) -> str:
        return f"{self.base}/{serial}/state"

    def position(self, serial: str) -> str:
        return f"{self.base}/{serial}/position"

    def tilt(self, serial: str) -> str:
        return f"{self.base}/{serial}/tilt"

    def sensor_state(self, serial: str, sensor: str) -> str:
        return f"{self.base}/{serial}/{sensor}/state"

    def command(self, serial: str, kind: str) -> str:
        return f"{self.base}/{serial}/{kind}"

    def discovery(self, category: str, serial: str, sub: Optional[str] = None) -> str:
        object_id = f"{serial}_{sub}" if sub else serial
        return f"{self.discovery_prefix}/{category}/{object_id}/config"

    def command_subscriptions(self) -> List[str]:
        """Wildcard patterns the bridge subscribes to for commands."""
        return [f"{self.base}/+/{kind}" for kind in COMMAND_KINDS]

    def parse_command(self, topic: str) -> Optional[Tuple[str, str]]:
        """
        Split a command topic into (serial, kind).

        Returns:
            (serial, kind) with the serial upper-cased, or None when the topic
            is not a command topic of this layout.

        Example:
            >>> TopicLayout().parse_command("warema/aabbcc/set_position")
            ('AABBCC', 'set_position')
        """
        parts = topic.split("/")
        if len(parts) != 3 or parts[0] != self.base:
            return None
        serial, kind = parts[1], parts[2]
        if not serial or serial == "bridge" or kind not in COMMAND_KINDS:
            return None
        return serial.strip().upper(), kind
