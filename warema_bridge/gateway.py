"""
Hardware Gateway interface.

The radio driver (USB stick speaking the WMS protocol) is an external
collaborator. The bridge consumes it through the abstract HardwareGateway
below; a concrete driver adapter is loaded at startup from a
"package.module:factory" path given in the configuration.

Commands are fire-and-forget: results come back asynchronously through the
event callback the factory receives, as (error, {"topic": ..., "payload": ...}).

Factory contract:

    def create_gateway(config: WMSConfig, callback: EventCallback) -> HardwareGateway
"""

import importlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

EventCallback = Callable[[Optional[Exception], Optional[Dict[str, Any]]], None]


class GatewayLoadError(RuntimeError):
    """The configured gateway driver could not be imported or opened."""


class HardwareGateway(ABC):
    """Operations the bridge needs from the WMS radio driver."""

    @abstractmethod
    def scan_devices(self, auto_assign_blinds: bool = False) -> None:
        """Request a network scan; results arrive as wms-vb-scanned-devices."""

    @abstractmethod
    def add_blind(self, serial: str, name: str) -> None:
        """Add a blind to the driver's poll list."""

    @abstractmethod
    def set_position(self, serial: str, position: int, tilt: Optional[int] = None) -> None:
        """Move a device to position (0 open .. 100 closed) and optional tilt."""

    @abstractmethod
    def stop(self, serial: str) -> None:
        """Stop a moving device."""

    @abstractmethod
    def get_position(self, serial: str) -> None:
        """Request a position report; arrives as wms-vb-blind-position-update."""

    @abstractmethod
    def get_last_weather_broadcast(self) -> Optional[Dict[str, Any]]:
        """Most recent weather broadcast payload, or None if none received yet."""

    @abstractmethod
    def set_poll_interval(self, interval_ms: int) -> None:
        """Interval at which the driver polls blind positions."""

    @abstractmethod
    def set_move_watch_interval(self, interval_ms: int) -> None:
        """Interval at which the driver watches moving blinds."""

    def close(self) -> None:
        """Release the radio device."""


def load_gateway(factory_path: str, config, callback: EventCallback) -> HardwareGateway:
    """
    Import and call a gateway factory.

    Args:
        factory_path: "package.module:callable"
        config: WMSConfig handed to the factory
        callback: Event callback handed to the factory

    Raises:
        GatewayLoadError: On a bad path, import failure or factory failure
    """
    module_name, sep, attr = factory_path.partition(":")
    if not sep or not module_name or not attr:
        raise GatewayLoadError(
            f"Invalid gateway factory '{factory_path}', expected 'package.module:callable'"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise GatewayLoadError(f"Cannot import gateway module '{module_name}': {e}") from e

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise GatewayLoadError(f"Gateway factory '{factory_path}' is not callable")

    try:
        gateway = factory(config, callback)
    except Exception as e:
        raise GatewayLoadError(f"Gateway factory '{factory_path}' failed: {e}") from e

    logger.info(f"📡 Gateway loaded from {factory_path} ({type(gateway).__name__})")
    return gateway
