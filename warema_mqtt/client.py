"""
MQTT Bus Client
===============

Bounded Context: MQTT Infrastructure

This module provides the single broker connection the bridge uses for
everything: retained publishes, command subscriptions and the liveness
last-will.

Design:
- Connection management (connect, disconnect, automatic reconnect by paho)
- Last will: "<base>/bridge/state" = "offline" (retained)
- On every (re)connect: publish "online", re-subscribe all patterns
- Publishes while disconnected are dropped with a warning, never queued
- Structured logging integration

Threading:
- paho-mqtt runs its own network thread (loop_start/loop_stop)
- on_message is invoked in that thread; the bridge only enqueues work there

Example:
    >>> from warema_mqtt import MQTTBusClient, TopicLayout, create_logger
    >>> bus = MQTTBusClient(
    ...     broker_host="core-mosquitto",
    ...     broker_port=1883,
    ...     client_id="warema_bridge",
    ...     layout=TopicLayout(),
    ...     logger=create_logger("bus"),
    ... )
    >>> bus.subscribe("warema/+/set")
    >>> bus.on_message = lambda topic, payload: print(topic, payload)
    >>> bus.connect()
    >>> bus.publish("warema/AABBCC/position", "40", retain=True)
"""

import json
import threading
from typing import Any, Callable, Dict, Optional, Set, Union

import paho.mqtt.client as mqtt

from .logging import StructuredLogger, LogEvent
from .topics import PAYLOAD_OFFLINE, PAYLOAD_ONLINE, TopicLayout


MessageCallback = Callable[[str, str], None]


class MQTTBusClient:
    """
    MQTT connection shared by publishers and the control plane.

    Attributes:
        broker_host: MQTT broker hostname
        broker_port: MQTT broker port
        client_id: MQTT client identifier
        layout: Topic layout (bridge liveness topic for online/last will)
        logger: Structured logger instance
        qos: Quality of Service for publishes and subscriptions
        on_message: Callback(topic, payload) for inbound messages
        on_connected: Callback() after every successful (re)connect, run in the
            MQTT thread once liveness is published

    Thread Safety:
        Thread-safe via paho-mqtt's loop_start() and threading.Event
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        client_id: str,
        layout: TopicLayout,
        logger: StructuredLogger,
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1,
        keepalive: int = 60,
    ):
        """
        Initialize MQTT bus client.

        Args:
            broker_host: MQTT broker hostname
            broker_port: MQTT broker port
            client_id: Unique client identifier
            layout: Topic layout
            logger: Structured logger for observability
            username: MQTT authentication username (optional)
            password: MQTT authentication password (optional)
            qos: Quality of Service (default 1, retained state must arrive)
            keepalive: Keepalive interval in seconds
        """
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.client_id = client_id
        self.layout = layout
        self.logger = logger.bind(broker=f"{broker_host}:{broker_port}")
        self.qos = qos
        self.keepalive = keepalive
        self.on_message: Optional[MessageCallback] = None
        self.on_connected: Optional[Callable[[], None]] = None

        self.client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
        )
        if username:
            self.client.username_pw_set(username, password)
        self.client.will_set(layout.bridge_state, PAYLOAD_OFFLINE, qos=qos, retain=True)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

        self._connected = threading.Event()
        self._subscriptions: Set[str] = set()
        self._stats_lock = threading.Lock()
        self._published = 0
        self._dropped = 0
        self._received = 0

    @property
    def broker(self) -> str:
        return f"{self.broker_host}:{self.broker_port}"

    # ===== paho callbacks (run in MQTT thread) =====

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        """
        Callback when connection established.

        Publishes bridge liveness and (re)subscribes all patterns, then
        notifies on_connected.
        """
        if reason_code.is_failure:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Failed to connect to broker ({reason_code})"
            )
            return

        self._connected.set()
        client.publish(self.layout.bridge_state, PAYLOAD_ONLINE, qos=self.qos, retain=True)
        for pattern in sorted(self._subscriptions):
            client.subscribe(pattern, qos=self.qos)

        self.logger.info(
            event=LogEvent.MQTT_CONNECTED,
            message="Connected to MQTT broker",
            metadata={
                'client_id': self.client_id,
                'subscriptions': sorted(self._subscriptions),
            }
        )
        if self.on_connected is not None:
            self.on_connected()

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None) -> None:
        self._connected.clear()
        self.logger.warning(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from MQTT broker",
            metadata={'reason_code': str(reason_code)}
        )

    def _on_message(self, client, userdata, msg: mqtt.MQTTMessage) -> None:
        """Decode payload and hand (topic, text) to the registered callback."""
        try:
            payload = msg.payload.decode('utf-8')
        except UnicodeDecodeError as e:
            self.logger.error(
                event=LogEvent.DESERIALIZATION_ERROR,
                message="Failed to decode message payload",
                exc_info=e,
                metadata={'topic': msg.topic}
            )
            return

        with self._stats_lock:
            self._received += 1

        if self.on_message is None:
            return
        try:
            self.on_message(msg.topic, payload)
        except Exception as e:
            self.logger.error(
                event=LogEvent.DESERIALIZATION_ERROR,
                message="Error handling inbound message",
                exc_info=e,
                metadata={'topic': msg.topic}
            )

    # ===== lifecycle =====

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Connect to MQTT broker and start the network loop.

        The network loop keeps retrying in the background when the broker is
        not reachable yet; on_connected fires once it is.

        Args:
            timeout: Connection timeout in seconds

        Returns:
            True if connected successfully, False otherwise
        """
        try:
            self.client.reconnect_delay_set(min_delay=1, max_delay=60)
            self.client.connect_async(self.broker_host, self.broker_port, keepalive=self.keepalive)
            self.client.loop_start()

            if self._connected.wait(timeout=timeout):
                return True
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Connection timeout",
                metadata={'timeout': timeout}
            )
            return False

        except (OSError, ValueError) as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Failed to connect to broker",
                exc_info=e
            )
            return False

    def disconnect(self) -> None:
        """
        Publish bridge "offline" and disconnect gracefully.

        The explicit offline publish is needed because a clean disconnect does
        not fire the last will.
        """
        try:
            if self._connected.is_set():
                info = self.client.publish(
                    self.layout.bridge_state, PAYLOAD_OFFLINE, qos=self.qos, retain=True
                )
                info.wait_for_publish(timeout=2.0)
            self.client.disconnect()
            self.client.loop_stop()
            self._connected.clear()
            self.logger.info(
                event=LogEvent.MQTT_DISCONNECTED,
                message="Disconnected from broker",
                metadata=self.get_stats()
            )
        except (OSError, RuntimeError, ValueError) as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Error during disconnect",
                exc_info=e
            )

    def is_connected(self) -> bool:
        """Check if currently connected to broker."""
        return self._connected.is_set()

    # ===== messaging =====

    def subscribe(self, pattern: str) -> None:
        """
        Register a subscription pattern.

        Patterns are (re)subscribed on every connect; if already connected the
        subscription is issued immediately.
        """
        self._subscriptions.add(pattern)
        if self._connected.is_set():
            self.client.subscribe(pattern, qos=self.qos)
        self.logger.info(
            event=LogEvent.MQTT_SUBSCRIBED,
            message="Subscription registered",
            metadata={'pattern': pattern}
        )

    def publish(
        self,
        topic: str,
        payload: Union[str, Dict[str, Any]],
        retain: bool = True
    ) -> bool:
        """
        Publish message to MQTT broker.

        Args:
            topic: Destination topic
            payload: Plain text, or a dict serialized as JSON
            retain: MQTT retain flag (default: True, the bridge's topics are state)

        Returns:
            True if handed to the client successfully, False if dropped
        """
        if not self._connected.is_set():
            with self._stats_lock:
                self._dropped += 1
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message="Cannot publish: not connected to broker",
                metadata={'topic': topic}
            )
            return False

        try:
            if isinstance(payload, dict):
                payload = json.dumps(payload)

            result = self.client.publish(topic=topic, payload=payload, qos=self.qos, retain=retain)

            if result.rc == mqtt.MQTT_ERR_SUCCESS:
                with self._stats_lock:
                    self._published += 1
                self.logger.debug(
                    event=LogEvent.MQTT_PUBLISH_SUCCESS,
                    message="Published message",
                    metadata={'topic': topic, 'retain': retain}
                )
                return True

            with self._stats_lock:
                self._dropped += 1
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message=f"Publish failed (rc={result.rc})",
                metadata={'topic': topic}
            )
            return False

        except (TypeError, ValueError) as e:
            self.logger.error(
                event=LogEvent.MQTT_PUBLISH_ERROR,
                message="Error publishing message",
                exc_info=e,
                metadata={'topic': topic}
            )
            return False

    def get_stats(self) -> Dict[str, Any]:
        """
        Get client statistics.

        Returns:
            Dictionary with message counts and connection status
        """
        with self._stats_lock:
            return {
                'published': self._published,
                'dropped': self._dropped,
                'received': self._received,
                'connected': self._connected.is_set(),
            }
