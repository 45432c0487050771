"""
EventReconciler - turns gateway events into registry updates and publishes.

Lifecycle (per gateway session):

    UNINITIALIZED --init-completion--> SCANNING --scan-results--> READY

  - init-completion: configure poll/move-watch intervals, register forced
    devices, request a full scan
  - scan-results: register every new device (discovery + availability)
  - broker (re)connect: announce devices whose discovery was dropped
  - position-update: dedup, write registry, publish position, tilt and,
    once the device reports it stopped moving, the derived state
  - weather-broadcast: register the station if needed, fingerprint dedup,
    publish the four sensor states

All handlers run on the EventLoop thread. Errors reported by the driver and
undecodable events are logged and dropped; an event either applies fully or
not at all.
"""

import logging
import math
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Set, Tuple

from warema_mqtt import Category, DiscoveryPublisher, StatePublisher, WeatherSample

from .dedup import DedupCache
from .device_types import WEATHER_STATION_TYPE
from .events import (
    EventDecodeError,
    GatewayEvent,
    InitComplete,
    PositionUpdate,
    ScanResults,
    WeatherBroadcast,
    decode_event,
)
from .gateway import HardwareGateway
from .registry import DeviceRecord, DeviceRegistry, normalize_serial

logger = logging.getLogger(__name__)

RAW_DEDUP_INTERVAL = 1.0
RAW_DEDUP_RETENTION = 10.0


class GatewayState(str, Enum):
    UNINITIALIZED = "uninitialized"
    SCANNING = "scanning"
    READY = "ready"


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def derive_state(position: int, category: Category = Category.COVER) -> str:
    """Display state of a settled device; switches and lights report ON/OFF."""
    if category in (Category.SWITCH, Category.LIGHT):
        return "ON" if position >= 100 else "OFF"
    if position <= 0:
        return "open"
    if position >= 100:
        return "closed"
    return "stopped"


class EventReconciler:
    """
    Consumes decoded gateway events and keeps registry and broker in sync.

    Args:
        registry: Device registry (the only mutable shared state)
        gateway: Radio driver
        discovery: Publisher for discovery descriptors and availability
        state: Publisher for retained state topics
        weather_cache: Dedup cache for broadcast-sourced weather samples
        poll_interval_ms: Driver position poll interval
        move_watch_interval_ms: Driver move-watch interval
        forced_devices: (serial, type_code) pairs registered without a scan
        raw_cache: Dedup cache for raw position updates (default 1 s / 10 s)
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        gateway: HardwareGateway,
        discovery: DiscoveryPublisher,
        state: StatePublisher,
        weather_cache: DedupCache,
        poll_interval_ms: int = 30000,
        move_watch_interval_ms: int = 1000,
        forced_devices: Iterable[Tuple[str, str]] = (),
        raw_cache: Optional[DedupCache] = None,
    ):
        self.registry = registry
        self.gateway = gateway
        self.discovery = discovery
        self.state_publisher = state
        self.weather_cache = weather_cache
        self.poll_interval_ms = poll_interval_ms
        self.move_watch_interval_ms = move_watch_interval_ms
        self.forced_devices = [(normalize_serial(s), t) for s, t in forced_devices]
        if raw_cache is None:
            raw_cache = DedupCache(RAW_DEDUP_INTERVAL, RAW_DEDUP_RETENTION)
        self.raw_cache = raw_cache
        self.state = GatewayState.UNINITIALIZED
        # Registered while the broker was unreachable; retried on reconnect
        self._unannounced: Set[str] = set()

    @property
    def is_ready(self) -> bool:
        return self.state is GatewayState.READY

    # ===== entry point =====

    def on_gateway_message(self, error: Optional[Exception], message: Optional[Dict[str, Any]]) -> None:
        """Handle one raw (error, message) pair from the driver callback."""
        if error is not None:
            logger.warning(f"⚠️ Gateway reported an error: {error}")
            return
        if not message:
            return

        try:
            event = decode_event(message)
        except EventDecodeError as e:
            logger.warning(f"⚠️ Dropping malformed gateway event: {e}")
            return

        if event is None:
            logger.debug(f"Ignoring gateway topic {message.get('topic')}")
            return
        self.handle(event)

    def handle(self, event: GatewayEvent) -> None:
        """Dispatch a decoded event."""
        if isinstance(event, InitComplete):
            self._on_init_complete()
        elif isinstance(event, ScanResults):
            self._on_scan_results(event)
        elif isinstance(event, PositionUpdate):
            self._on_position_update(event)
        elif isinstance(event, WeatherBroadcast):
            self._on_weather_broadcast(event)
        else:
            raise TypeError(f"Unsupported gateway event: {event!r}")

    # ===== registration =====

    def register_device(self, serial, type_code) -> Optional[DeviceRecord]:
        """
        Register a device and announce it, once.

        If the broker drops the announcement, announce_pending() retries it
        after the next connect.

        Returns:
            The new record, or None if the serial was already known or ignored
            (nothing is published in either case)
        """
        serial = normalize_serial(serial)
        if self.registry.is_known(serial):
            return None

        record = self.registry.upsert(serial, type_code)
        if record is None:
            logger.info(f"🙈 Ignoring device {serial} (type {type_code})")
            return None

        logger.info(f"➕ Registered {record.category.value} {serial} ({record.model})")
        if not self.discovery.publish_device(record):
            self._unannounced.add(serial)
        if record.category is Category.COVER:
            self.gateway.add_blind(serial, record.name)
        return record

    def announce_pending(self) -> int:
        """
        Publish discovery for devices registered while the broker was down.

        Called after every broker (re)connect. Devices announced earlier are
        not republished; their descriptors are retained.

        Returns:
            Number of devices announced
        """
        announced = 0
        for serial in sorted(self._unannounced):
            record = self.registry.get(serial)
            if record is None:
                self._unannounced.discard(serial)
            elif self.discovery.publish_device(record):
                self._unannounced.discard(serial)
                announced += 1
        if announced:
            logger.info(f"📣 Announced {announced} device(s) registered while offline")
        return announced

    @property
    def unannounced(self) -> Set[str]:
        return set(self._unannounced)

    # ===== handlers =====

    def _on_init_complete(self) -> None:
        logger.info("📡 Gateway initialized, configuring intervals and scanning")
        self.gateway.set_poll_interval(self.poll_interval_ms)
        self.gateway.set_move_watch_interval(self.move_watch_interval_ms)
        for serial, type_code in self.forced_devices:
            self.register_device(serial, type_code)
        self.gateway.scan_devices(auto_assign_blinds=False)
        self.state = GatewayState.SCANNING

    def _on_scan_results(self, event: ScanResults) -> None:
        created = [d for d in event.devices if self.register_device(d.serial, d.type_code)]
        logger.info(
            f"🔎 Scan finished: {len(event.devices)} reported, {len(created)} new, "
            f"{len(self.registry)} known"
        )
        self.state = GatewayState.READY

    def _on_position_update(self, event: PositionUpdate) -> None:
        if self.state is GatewayState.UNINITIALIZED:
            logger.debug(f"Position update for {event.serial} before init, dropped")
            return
        if not self.registry.is_known(event.serial):
            logger.debug(f"Position update for unknown device {event.serial}, dropped")
            return
        if not self.raw_cache.accept((event.serial, event.kind)):
            logger.debug(f"Duplicate position update for {event.serial} suppressed")
            return

        if event.position is not None:
            position = round_half_up(event.position)
            self.registry.set_position(event.serial, position)
            self.state_publisher.publish_position(event.serial, position)
            record = self.registry.get(event.serial)
            # While moving the label would flap; publish it once settled
            if record is not None and event.moving is False:
                self.state_publisher.publish_state(event.serial, derive_state(position, record.category))

        if event.angle is not None:
            tilt = round_half_up(event.angle)
            self.registry.set_tilt(event.serial, tilt)
            self.state_publisher.publish_tilt(event.serial, tilt)

    def _on_weather_broadcast(self, event: WeatherBroadcast) -> None:
        if self.state is GatewayState.UNINITIALIZED:
            logger.debug(f"Weather broadcast from {event.sample.serial} before init, dropped")
            return
        self.publish_weather(event.sample, self.weather_cache)

    def publish_weather(self, sample: WeatherSample, cache: DedupCache) -> bool:
        """
        Register the station if needed and publish the sample unless duplicate.

        Returns:
            True if the sample was published
        """
        if self.registry.is_ignored(sample.serial):
            return False
        if not self.registry.is_known(sample.serial):
            self.register_device(sample.serial, WEATHER_STATION_TYPE)

        if not cache.accept(sample.serial, sample.fingerprint):
            logger.debug(f"Unchanged weather sample from {sample.serial} suppressed")
            return False

        self.registry.touch(sample.serial)
        return self.state_publisher.publish_weather(sample)
