"""
Base Publisher
==============

Bounded Context: MQTT Infrastructure

Abstract base class for the bridge's publishers.

Design:
- Publishers share one bus connection (MQTTBusClient or anything exposing
  publish(topic, payload, retain) and is_connected())
- Every bridge topic is retained: the consumer treats it as ground truth
- Structured logging integration

Architecture:
    BasePublisher (abstract)
        ↓
    DiscoveryPublisher, StatePublisher (concrete)

Responsibilities:
- Delegating publishes to the bus
- Counting publishes
- NOT responsible for: topic naming (TopicLayout), payload shape (subclasses)
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Protocol, Union

from ..logging import StructuredLogger
from ..topics import TopicLayout


class MessageBus(Protocol):
    """Minimal bus interface consumed by publishers."""

    def publish(self, topic: str, payload: Union[str, Dict[str, Any]], retain: bool = True) -> bool: ...

    def is_connected(self) -> bool: ...


class BasePublisher(ABC):
    """
    Abstract base class for bridge publishers.

    Subclasses must implement format_message() for message-specific logic.

    Attributes:
        bus: Shared message bus
        layout: Topic layout
        logger: Structured logger instance
    """

    def __init__(
        self,
        bus: MessageBus,
        layout: TopicLayout,
        logger: StructuredLogger,
    ):
        self.bus = bus
        self.layout = layout
        self.logger = logger
        self._message_count = 0
        self._stats_lock = threading.Lock()

    @abstractmethod
    def format_message(self, *args, **kwargs) -> Union[str, Dict[str, Any]]:
        """
        Format message for publication.

        Returns:
            Plain-text payload or dictionary ready for JSON serialization
        """
        raise NotImplementedError("Subclasses must implement format_message()")

    def publish(self, topic: str, payload: Union[str, Dict[str, Any]], retain: bool = True) -> bool:
        """
        Publish one message through the shared bus.

        Returns:
            True if published, False if the bus dropped it
        """
        published = self.bus.publish(topic, payload, retain=retain)
        if published:
            with self._stats_lock:
                self._message_count += 1
        return published

    def get_stats(self) -> Dict[str, Any]:
        """Get publisher statistics."""
        with self._stats_lock:
            return {
                'message_count': self._message_count,
                'connected': self.bus.is_connected(),
            }
