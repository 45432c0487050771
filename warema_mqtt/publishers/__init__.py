"""
Warema MQTT Publishers
======================

Bounded Context: Message Production

Publishers:
    BasePublisher: Abstract base (shared bus, retained publishes, stats)
    DiscoveryPublisher: Home Assistant discovery descriptors + availability
    StatePublisher: Position, tilt, derived state and weather sensor states
"""

from .base import BasePublisher, MessageBus
from .discovery import DiscoveryPublisher
from .state import StatePublisher

__all__ = [
    'BasePublisher',
    'MessageBus',
    'DiscoveryPublisher',
    'StatePublisher',
]
