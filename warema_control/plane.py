"""
MQTTControlPlane - command reception for the Warema bridge

Bounded Context: MQTT command topics
Responsibilities:
  - Subscribe to <base>/+/set, <base>/+/set_position, <base>/+/set_tilt
  - Parse command topics into (serial, kind)
  - Hand commands to the bridge's event loop, where the CommandRegistry
    executes them

Threading:
  - _on_message runs in the paho network thread and only parses + enqueues
  - Command handlers run on the event loop thread (never concurrently with
    gateway events)
"""

import logging
from typing import Callable, Optional

from warema_mqtt import MQTTBusClient, TopicLayout

from .registry import CommandRegistry, CommandNotAvailableError

logger = logging.getLogger(__name__)

Dispatcher = Callable[..., None]


def _run_inline(fn, *args, **kwargs) -> None:
    fn(*args, **kwargs)


class MQTTControlPlane:
    """
    Routes inbound command messages to registered handlers.

    Example:
        control_plane = MQTTControlPlane(bus, layout, dispatch=loop.submit)
        translator.register_commands(control_plane.command_registry)
        control_plane.start()
    """

    def __init__(
        self,
        bus: MQTTBusClient,
        layout: TopicLayout,
        dispatch: Optional[Dispatcher] = None,
    ):
        """
        Args:
            bus: Shared bus connection
            layout: Topic layout (command topic patterns)
            dispatch: How to run a command, e.g. EventLoop.submit
                (default: run inline in the calling thread)
        """
        self.bus = bus
        self.layout = layout
        self.dispatch = dispatch or _run_inline
        self.command_registry = CommandRegistry()

    def start(self) -> None:
        """Attach to the bus and register the command subscriptions."""
        self.bus.on_message = self._on_message
        for pattern in self.layout.command_subscriptions():
            self.bus.subscribe(pattern)
        logger.info(f"📥 Listening for commands on {self.layout.base}/+/<command>")
        for command, description in sorted(self.command_registry.get_help().items()):
            logger.info(f"   {command}: {description}")

    # ===== MQTT callback (runs in MQTT thread) =====

    def _on_message(self, topic: str, payload: str) -> None:
        parsed = self.layout.parse_command(topic)
        if parsed is None:
            logger.debug(f"Ignoring message on {topic}")
            return

        serial, kind = parsed
        if not self.command_registry.is_available(kind):
            logger.warning(f"⚠️ No handler for command '{kind}' ({topic})")
            return

        logger.debug(f"📦 Command received: {topic} = {payload!r}")
        self.dispatch(self._execute, kind, serial, payload)

    def _execute(self, kind: str, serial: str, payload: str) -> None:
        try:
            self.command_registry.execute(kind, serial, payload)
        except CommandNotAvailableError as e:
            logger.warning(f"⚠️ {e}")
