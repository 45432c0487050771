"""
Structured Logging for the Warema MQTT layer
============================================

Bounded Context: Observability

JSON-structured logging for everything that touches the broker.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from warema_mqtt.logging import StructuredLogger, LogEvent
    >>> logger = StructuredLogger(component="bus")
    >>> logger.info(
    ...     event=LogEvent.MQTT_CONNECTED,
    ...     message="Connected to broker",
    ...     metadata={'broker': 'core-mosquitto:1883'}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
