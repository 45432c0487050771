"""
Bridge Service - wires gateway, registry, reconciler and broker together.

Architecture:
    HardwareGateway ──callback──▶ EventLoop ──▶ EventReconciler ──▶ DeviceRegistry
                                     ▲                 │
    MQTTBusClient ──on_message──▶ MQTTControlPlane     └──▶ Discovery/State publishers ──▶ MQTTBusClient
                                     │
                                     └──▶ CommandTranslator ──▶ HardwareGateway
                                                   └── call_later(confirm_delay) ──▶ get_position

Threading Model:
- Driver thread: gateway callbacks, enqueue only
- paho-mqtt network thread: command messages, enqueue only
- Timer threads: weather poll and confirmation polls, enqueue only
- Event loop thread: every registry read/write and every publish

Join mode:
    With an unset or FFFF PAN ID the stick searches for networks instead of
    joining one. The service then runs the gateway only, logs what it reports
    and does not connect to the broker.
"""

import logging
import threading
from typing import Callable, Optional

from warema_control import MQTTControlPlane
from warema_mqtt import (
    DiscoveryPublisher,
    MQTTBusClient,
    StatePublisher,
    TopicLayout,
    create_logger,
)

from .config import BridgeConfig
from .dedup import DedupCache
from .gateway import GatewayLoadError, HardwareGateway, load_gateway
from .loop import EventLoop
from .reconciler import EventReconciler
from .registry import DeviceRegistry
from .translator import CommandTranslator
from .weather import WeatherPoller

logger = logging.getLogger(__name__)

GatewayLoader = Callable[..., HardwareGateway]


class BridgeService:
    """
    Main bridge service.

    Usage:
        config = BridgeConfig.load(yaml_path)
        service = BridgeService(config)
        service.setup()
        service.start()
        service.wait()     # blocks until stop()
        service.stop()
    """

    def __init__(
        self,
        config: BridgeConfig,
        bus: Optional[MQTTBusClient] = None,
        gateway_loader: GatewayLoader = load_gateway,
        loop: Optional[EventLoop] = None,
    ):
        """
        Args:
            config: Resolved bridge configuration
            bus: Broker connection (created from config when None)
            gateway_loader: Callable(factory_path, wms_config, callback)
            loop: Event loop (created when None)
        """
        self.config = config
        self.layout = TopicLayout(
            base=config.mqtt.base_topic,
            discovery_prefix=config.mqtt.discovery_prefix,
        )
        self.loop = loop if loop is not None else EventLoop()
        self.registry = DeviceRegistry(ignored=config.wms.ignored_devices)
        self.bus = bus
        self.gateway_loader = gateway_loader

        # Components (initialized in setup())
        self.gateway: Optional[HardwareGateway] = None
        self.reconciler: Optional[EventReconciler] = None
        self.translator: Optional[CommandTranslator] = None
        self.weather_poller: Optional[WeatherPoller] = None
        self.control_plane: Optional[MQTTControlPlane] = None

        self._stopped = threading.Event()

    @property
    def join_mode(self) -> bool:
        return self.config.wms.join_mode

    def setup(self) -> None:
        """
        Create all components.

        Raises:
            GatewayLoadError: If no driver is configured or it cannot be opened
        """
        factory = self.config.wms.gateway_factory
        if not factory:
            raise GatewayLoadError("No gateway driver configured (wms.gateway_factory)")
        self.gateway = self.gateway_loader(factory, self.config.wms, self._on_gateway_callback)

        if self.join_mode:
            logger.warning(
                "⚠️ PAN ID not set (join mode): the stick searches for WMS networks, "
                "MQTT stays disconnected. Set wms.pan_id to the reported network."
            )
            return

        mqtt_config = self.config.mqtt
        if self.bus is None:
            self.bus = MQTTBusClient(
                broker_host=mqtt_config.broker,
                broker_port=mqtt_config.port,
                client_id=mqtt_config.client_id,
                layout=self.layout,
                logger=create_logger("bus", _level(self.config.log_level)),
                username=mqtt_config.username,
                password=mqtt_config.password,
                qos=mqtt_config.qos,
            )

        polling = self.config.polling
        discovery = DiscoveryPublisher(self.bus, self.layout, create_logger("discovery", _level(self.config.log_level)))
        state = StatePublisher(self.bus, self.layout, create_logger("state", _level(self.config.log_level)))

        self.reconciler = EventReconciler(
            registry=self.registry,
            gateway=self.gateway,
            discovery=discovery,
            state=state,
            weather_cache=DedupCache(polling.weather_min_refresh, _weather_retention(polling)),
            poll_interval_ms=self.config.wms.poll_interval_ms,
            move_watch_interval_ms=self.config.wms.move_watch_interval_ms,
            forced_devices=self.config.wms.forced_devices,
        )
        self.translator = CommandTranslator(
            registry=self.registry,
            gateway=self.gateway,
            scheduler=self.loop,
            is_ready=lambda: self.reconciler.is_ready,
            confirm_delay=polling.confirm_delay,
        )
        self.weather_poller = WeatherPoller(
            gateway=self.gateway,
            reconciler=self.reconciler,
            cache=DedupCache(polling.weather_min_refresh, _weather_retention(polling)),
            interval=polling.weather_poll_interval,
        )
        self.control_plane = MQTTControlPlane(self.bus, self.layout, dispatch=self.loop.submit)
        self.translator.register_commands(self.control_plane.command_registry)
        self.bus.on_connected = lambda: self.loop.submit(self.reconciler.announce_pending)

    def start(self, connect_timeout: float = 10.0) -> bool:
        """
        Start the broker connection (outside join mode), then the event loop.

        Gateway events queued since setup() are handled only after the
        first connect attempt, so their publishes are not dropped on a
        reachable broker.

        Returns:
            True once running; False if the broker could not be reached (the
            client keeps retrying in the background)
        """
        if self.gateway is None:
            raise RuntimeError("Service not initialized. Call setup() first.")

        if self.join_mode:
            self.loop.start()
            return True

        self.control_plane.start()
        connected = self.bus.connect(timeout=connect_timeout)
        if not connected:
            logger.warning("⚠️ MQTT broker not reachable yet, devices are announced once it is")
        self.loop.start()
        self.loop.call_every(self.weather_poller.interval, self.weather_poller.poll)
        logger.info(f"✅ Bridge running ({self.layout.base} ⇄ {self.config.wms.serial_port})")
        return connected

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until stop() is called."""
        return self._stopped.wait(timeout)

    def stop(self) -> None:
        """Stop timers, finish queued work, close gateway and broker."""
        if self._stopped.is_set():
            return
        self.loop.stop()
        self.loop.run_pending()

        if self.gateway is not None:
            try:
                self.gateway.close()
            except Exception as e:
                logger.error(f"❌ Error closing gateway: {e}")

        if self.bus is not None:
            self.bus.disconnect()
        self._stopped.set()

    def _on_gateway_callback(self, error, message) -> None:
        """Driver callback (driver thread): enqueue only."""
        if self.reconciler is None:
            # Join mode, or events before setup finished wiring
            if error is not None:
                logger.warning(f"⚠️ Gateway error: {error}")
            elif message:
                logger.info(f"📡 {message.get('topic')}: {message.get('payload')}")
            return
        self.loop.submit(self.reconciler.on_gateway_message, error, message)


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def _weather_retention(polling) -> float:
    # Keep the last sample at least one poll period past the refresh interval
    return max(polling.weather_min_refresh, polling.weather_poll_interval) * 2
