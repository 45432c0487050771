"""
MQTT client wrapper for sending commands to the Warema bridge.

Handles MQTT connection, publishing, and disconnection.
"""

import paho.mqtt.client as mqtt
from typing import Optional


class MQTTCommandClient:
    """
    One-shot MQTT client for bridge command topics.

    Command payloads are plain text (OPEN, 40, -20), published with QoS 1 and
    without retain so a restarted bridge never replays them.
    """

    def __init__(
        self,
        broker: str = "localhost",
        port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None
    ):
        """
        Initialize MQTT command client.

        Args:
            broker: MQTT broker host
            port: MQTT broker port
            username: Optional MQTT username
            password: Optional MQTT password
        """
        self.broker = broker
        self.port = port
        self.username = username
        self.password = password

        self.client = mqtt.Client(callback_api_version=mqtt.CallbackAPIVersion.VERSION2)

        if username and password:
            self.client.username_pw_set(username, password)

    def send_command(self, topic: str, payload: str, qos: int = 1) -> None:
        """
        Send a command payload to a topic.

        Args:
            topic: MQTT topic (e.g., "warema/AABBCC/set_position")
            payload: Command text
            qos: Quality of Service (default: 1 for commands)

        Raises:
            ConnectionError: If unable to connect to MQTT broker
            RuntimeError: If publishing fails
        """
        try:
            self.client.connect(self.broker, self.port, keepalive=60)
        except (ConnectionRefusedError, OSError) as e:
            raise ConnectionError(
                f"Unable to connect to MQTT broker at {self.broker}:{self.port}: {e}"
            ) from e

        self.client.loop_start()
        try:
            result = self.client.publish(topic, payload, qos=qos, retain=False)
            result.wait_for_publish(timeout=10)
            if result.rc != mqtt.MQTT_ERR_SUCCESS or not result.is_published():
                raise RuntimeError(f"Failed to publish to {topic} (rc={result.rc})")
        finally:
            self.client.disconnect()
            self.client.loop_stop()

        print(f"✅ Command sent: {topic} = {payload}")
