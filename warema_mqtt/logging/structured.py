"""
Structured JSON Logger
=====================

Bounded Context: Observability Infrastructure

JSON log lines for the broker side of the bridge. Every line carries the
component, a typed event and optional metadata; bound context (e.g. the
broker address of a connection) is merged into the metadata of each line.

The entry travels on the LogRecord (``record.structured``) and is serialized
by JSONFormatter, so the same handler can format plain stdlib records too.

Example:
    >>> logger = create_logger("bus").bind(broker="localhost:1883")
    >>> logger.info(
    ...     event=LogEvent.MQTT_CONNECTED,
    ...     message="Connected to MQTT broker",
    ...     metadata={'client_id': 'warema_bridge'}
    ... )

Output:
    {"timestamp": "2026-10-19T15:30:45.123456+00:00", "level": "INFO",
     "component": "bus", "event": "mqtt.connected",
     "message": "Connected to MQTT broker",
     "metadata": {"broker": "localhost:1883", "client_id": "warema_bridge"}}
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .events import LogEvent


class StructuredLogger:
    """
    Typed-event logger on top of a stdlib logger.

    Attributes:
        component: Component name (e.g., "bus", "discovery")
        context: Metadata merged into every entry
        logger: Underlying Python logger instance
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.component = component
        self.context: Dict[str, Any] = dict(context or {})
        self.logger = logging.getLogger(logger_name or f"warema_mqtt.{component}")
        self.logger.setLevel(level)

        # Own handler only; root handlers would print each line twice
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False

    def bind(self, **context: Any) -> "StructuredLogger":
        """Child logger sharing the stdlib logger, with extra bound metadata."""
        child = StructuredLogger.__new__(StructuredLogger)
        child.component = self.component
        child.context = {**self.context, **context}
        child.logger = self.logger
        return child

    def _log(
        self,
        level: int,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        entry: Dict[str, Any] = {
            'component': self.component,
            'event': event.value,
        }
        merged = {**self.context, **(metadata or {})}
        if merged:
            entry['metadata'] = merged
        if exc_info is not None:
            entry['exception'] = {'type': type(exc_info).__name__, 'message': str(exc_info)}

        self.logger.log(
            level,
            message,
            exc_info=exc_info if level >= logging.ERROR else None,
            extra={'structured': entry},
        )

    def debug(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, event, message, metadata)

    def info(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, event, message, metadata)

    def warning(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """
        Log a degraded but recoverable condition.

        Example:
            >>> logger.warning(
            ...     event=LogEvent.MQTT_PUBLISH_FAILED,
            ...     message="Discovery publish dropped",
            ...     metadata={'serial': 'AABBCC'}
            ... )
        """
        self._log(logging.WARNING, event, message, metadata)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None,
    ) -> None:
        """
        Log a failure; exc_info adds the exception type and text to the entry
        and the traceback to the record.
        """
        self._log(logging.ERROR, event, message, metadata, exc_info)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Records from StructuredLogger contribute their entry; plain records get
    the logger name as component.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
        }
        structured = getattr(record, 'structured', None)
        if structured is None:
            entry['component'] = record.name
            entry['message'] = record.getMessage()
        else:
            entry['component'] = structured['component']
            entry['event'] = structured['event']
            entry['message'] = record.getMessage()
            for key in ('metadata', 'exception'):
                if key in structured:
                    entry[key] = structured[key]
        return json.dumps(entry, default=str)


def create_logger(component: str, level: int = logging.INFO) -> StructuredLogger:
    """
    Factory for a StructuredLogger writing JSON to stderr.

    Example:
        >>> logger = create_logger("bus", level=logging.DEBUG)
    """
    return StructuredLogger(component=component, level=level)
