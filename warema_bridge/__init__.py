"""
warema_bridge - WMS radio network to Home Assistant MQTT bridge

Bounded Context: Device state reconciliation
Responsibilities:
  - Device registry (serial -> type, capabilities, last confirmed state)
  - Gateway event decoding and reconciliation (scan, positions, weather)
  - Command translation (MQTT command topics -> gateway calls)
  - Service lifecycle (event loop, timers, broker connection)

Architecture:
  - HardwareGateway: Abstract radio driver, loaded from a factory path
  - EventLoop: Single serialized timeline for every handler
  - EventReconciler: Gateway events -> registry -> publishers
  - CommandTranslator: Commands -> gateway calls + confirmation polls
  - BridgeService: Wires everything together
"""

__version__ = "1.0.0"

from .config import BridgeConfig, MQTTConfig, PollingConfig, WMSConfig
from .dedup import DedupCache
from .device_types import DEVICE_PROFILES, DeviceProfile, profile_for
from .events import EventDecodeError, decode_event
from .gateway import GatewayLoadError, HardwareGateway, load_gateway
from .loop import EventLoop
from .reconciler import EventReconciler, GatewayState
from .registry import DeviceRecord, DeviceRegistry
from .service import BridgeService
from .translator import CommandTranslator
from .weather import WeatherPoller

__all__ = [
    '__version__',
    # Config
    'BridgeConfig',
    'MQTTConfig',
    'PollingConfig',
    'WMSConfig',
    # Devices
    'DEVICE_PROFILES',
    'DeviceProfile',
    'DeviceRecord',
    'DeviceRegistry',
    'profile_for',
    # Gateway
    'EventDecodeError',
    'GatewayLoadError',
    'HardwareGateway',
    'decode_event',
    'load_gateway',
    # Runtime
    'BridgeService',
    'CommandTranslator',
    'DedupCache',
    'EventLoop',
    'EventReconciler',
    'GatewayState',
    'WeatherPoller',
]
