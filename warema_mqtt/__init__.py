"""
Warema MQTT Communication Package
=================================

Bounded Context: Communication with the Home Assistant MQTT broker

This package holds everything the bridge puts on (or takes from) the broker:
topic layout, discovery descriptors, retained state and the shared broker
connection.

Architecture:
- topics.py: TopicLayout (single place for topic spelling)
- schemas/: Immutable descriptors and weather samples
- publishers/: DiscoveryPublisher, StatePublisher
- client.py: MQTTBusClient (connection, last will, subscriptions)
- logging/: Structured JSON logging for observability

Public API
----------
Topics:
    TopicLayout, COMMAND_KINDS, PAYLOAD_ONLINE, PAYLOAD_OFFLINE

Schemas:
    Category, DeviceInfo, WeatherSample, build_descriptors

Publishers:
    BasePublisher, DiscoveryPublisher, StatePublisher

Client:
    MQTTBusClient

Logging:
    LogEvent, StructuredLogger, create_logger

Example:
    >>> from warema_mqtt import (MQTTBusClient, DiscoveryPublisher,
    ...                          TopicLayout, create_logger)
    >>> layout = TopicLayout(base="warema", discovery_prefix="homeassistant")
    >>> bus = MQTTBusClient("localhost", 1883, "warema_bridge", layout,
    ...                     logger=create_logger("bus"))
    >>> bus.connect()
    >>> discovery = DiscoveryPublisher(bus, layout, create_logger("discovery"))
    >>> discovery.publish_device(record)
"""

__version__ = "1.0.0"

from .topics import COMMAND_KINDS, PAYLOAD_OFFLINE, PAYLOAD_ONLINE, TopicLayout

from .schemas import (
    Category,
    DeviceInfo,
    WeatherSample,
    build_descriptors,
)

from .publishers import (
    BasePublisher,
    DiscoveryPublisher,
    StatePublisher,
)

from .client import MQTTBusClient

from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

__all__ = [
    '__version__',
    # Topics
    'COMMAND_KINDS',
    'PAYLOAD_OFFLINE',
    'PAYLOAD_ONLINE',
    'TopicLayout',
    # Schemas
    'Category',
    'DeviceInfo',
    'WeatherSample',
    'build_descriptors',
    # Publishers
    'BasePublisher',
    'DiscoveryPublisher',
    'StatePublisher',
    # Client
    'MQTTBusClient',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
