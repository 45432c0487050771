"""
warema_control - Control Plane for the Warema bridge

Bounded Context: MQTT-based device commands
Responsibilities:
  - Command topic subscription (Control Plane)
  - Command registration and validation
  - Command execution delegation

Architecture:
  - CommandRegistry: Explicit registration of set / set_position / set_tilt
  - MQTTControlPlane: Topic parsing + hand-off to the event loop
"""

from .registry import CommandRegistry, CommandNotAvailableError
from .plane import MQTTControlPlane

__all__ = [
    "CommandRegistry",
    "CommandNotAvailableError",
    "MQTTControlPlane",
]
