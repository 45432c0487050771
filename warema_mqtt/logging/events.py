"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

This module defines typed event names for structured logging.

Design:
- Enum-based (prevents typos, enables autocomplete)
- Hierarchical naming (namespace.category.action)
- Searchable in log aggregators (Loki, Elasticsearch)

Event Naming Convention:
    <component>.<category>.<action>

    component: mqtt, discovery, state, error
    category: connected, publish, received
    action: success, failed, dropped

Example Log Query (Loki):
    {job="warema-bridge"} | json | event = "discovery.published"
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - mqtt.*: MQTT broker interactions
    - discovery.*: Home Assistant discovery descriptors
    - state.*: Retained device state topics
    - error.*: Error conditions
    """

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully handed to the broker client."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed or was dropped."""

    MQTT_SUBSCRIBED = "mqtt.subscribed"
    """Subscribed to a topic pattern."""

    # ========== Discovery Events ==========
    DISCOVERY_PUBLISHED = "discovery.published"
    """Discovery descriptor(s) published for a device."""

    AVAILABILITY_PUBLISHED = "discovery.availability"
    """Per-device availability published."""

    # ========== State Events ==========
    STATE_PUBLISHED = "state.published"
    """Device position/tilt/state published."""

    WEATHER_PUBLISHED = "state.weather.published"
    """Weather sensor states published."""

    # ========== Error Events ==========
    DESERIALIZATION_ERROR = "error.deserialization"
    """Failed to decode an inbound message."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Error during message publication."""
