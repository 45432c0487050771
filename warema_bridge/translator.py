"""
CommandTranslator - inbound MQTT commands to gateway calls.

Handled command kinds (third topic segment):

    set            OPEN -> (0, 0)   CLOSE -> (100, 0)   STOP -> stop
                   ON   -> (100, 0) OFF   -> (0, 0)
    set_position   (payload, last known tilt)
    set_tilt       (last known position, payload)

Position and tilt travel together in one radio command, so changing one must
carry the other's last confirmed value instead of resetting it.

Every accepted command schedules a one-shot confirmation poll after a settle
delay. Newer commands do not cancel older polls; a redundant poll is harmless.
Commands never write the registry, only confirmed reports do.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from .gateway import HardwareGateway
from .reconciler import round_half_up
from .registry import DeviceRecord, DeviceRegistry, normalize_serial

logger = logging.getLogger(__name__)

DEFAULT_CONFIRM_DELAY = 15.0

SET_PAYLOAD_POSITIONS = {
    "OPEN": 0,
    "CLOSE": 100,
    "ON": 100,
    "OFF": 0,
}


class MalformedCommandError(ValueError):
    """Command payload cannot be turned into a gateway call."""


class Scheduler(Protocol):
    def call_later(self, delay: float, fn: Callable, *args, **kwargs): ...


@dataclass(frozen=True)
class PendingCommand:
    """A forwarded command waiting for its confirmation poll."""
    serial: str
    position: Optional[int]
    tilt: Optional[int]
    issued_at: float


class CommandTranslator:
    """
    Translates command topics into HardwareGateway calls.

    Args:
        registry: Device registry (read only here)
        gateway: Radio driver
        scheduler: Anything with call_later(delay, fn, *args) (EventLoop)
        is_ready: Returns True once the gateway finished its initial scan
        confirm_delay: Seconds between a command and its confirmation poll
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        gateway: HardwareGateway,
        scheduler: Scheduler,
        is_ready: Callable[[], bool] = lambda: True,
        confirm_delay: float = DEFAULT_CONFIRM_DELAY,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.gateway = gateway
        self.scheduler = scheduler
        self.is_ready = is_ready
        self.confirm_delay = confirm_delay
        self._clock = clock
        self._pending: Dict[str, PendingCommand] = {}

    def register_commands(self, command_registry) -> None:
        """Register the command kinds with a control-plane CommandRegistry."""
        command_registry.register('set', self.handle_set, "OPEN/CLOSE/STOP/ON/OFF")
        command_registry.register('set_position', self.handle_set_position, "Move to position 0..100")
        command_registry.register('set_tilt', self.handle_set_tilt, "Move slats to tilt value")

    @property
    def pending(self) -> Dict[str, PendingCommand]:
        return dict(self._pending)

    # ===== command handlers =====

    def handle_set(self, serial: str, payload: str) -> bool:
        record = self._lookup(serial)
        if record is None:
            return False

        word = payload.strip().upper()
        if word == "STOP":
            self.gateway.stop(record.serial)
            self._schedule_confirmation(record.serial, None, None)
            logger.info(f"⏹️ {record.serial}: stop")
            return True

        if word not in SET_PAYLOAD_POSITIONS:
            logger.warning(f"⚠️ {record.serial}: unsupported set payload {payload!r}")
            return False

        return self._move(record, SET_PAYLOAD_POSITIONS[word], 0)

    def handle_set_position(self, serial: str, payload: str) -> bool:
        record = self._lookup(serial)
        if record is None:
            return False
        try:
            position = self._parse_position(payload)
        except MalformedCommandError as e:
            logger.warning(f"⚠️ {record.serial}: rejected set_position: {e}")
            return False
        return self._move(record, position, record.tilt)

    def handle_set_tilt(self, serial: str, payload: str) -> bool:
        record = self._lookup(serial)
        if record is None:
            return False
        try:
            tilt = self._parse_tilt(record, payload)
        except MalformedCommandError as e:
            logger.warning(f"⚠️ {record.serial}: rejected set_tilt: {e}")
            return False
        return self._move(record, record.position, tilt)

    # ===== helpers =====

    def _lookup(self, serial: str) -> Optional[DeviceRecord]:
        record = self.registry.get(normalize_serial(serial))
        if record is None:
            logger.debug(f"Command for unknown device {serial} ignored")
            return None
        if not self.is_ready():
            logger.warning(f"⚠️ Gateway not ready, command for {record.serial} dropped")
            return None
        return record

    def _move(self, record: DeviceRecord, position: int, tilt: int) -> bool:
        self.gateway.set_position(record.serial, position, tilt)
        self._schedule_confirmation(record.serial, position, tilt)
        logger.info(f"↕️ {record.serial}: position={position} tilt={tilt}")
        return True

    def _schedule_confirmation(self, serial: str, position: Optional[int], tilt: Optional[int]) -> None:
        command = PendingCommand(serial, position, tilt, self._clock())
        self._pending[serial] = command
        self.scheduler.call_later(self.confirm_delay, self._confirm, command)

    def _confirm(self, command: PendingCommand) -> None:
        """Confirmation poll: ask the device where it actually is."""
        if self._pending.get(command.serial) == command:
            del self._pending[command.serial]
        if not self.registry.is_known(command.serial):
            return
        logger.debug(f"Confirmation poll for {command.serial}")
        self.gateway.get_position(command.serial)

    @staticmethod
    def _parse_number(payload: str) -> int:
        text = payload.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            raise MalformedCommandError(f"not a number: {payload!r}")
        if value != value or value in (float("inf"), float("-inf")):
            raise MalformedCommandError(f"not a finite number: {payload!r}")
        return round_half_up(value)

    def _parse_position(self, payload: str) -> int:
        position = self._parse_number(payload)
        if not 0 <= position <= 100:
            raise MalformedCommandError(f"position {position} outside 0..100")
        return position

    def _parse_tilt(self, record: DeviceRecord, payload: str) -> int:
        if not record.has_tilt:
            raise MalformedCommandError(f"device type {record.type_code} has no tilt")
        tilt = self._parse_number(payload)
        low, high = record.tilt_range
        if not low <= tilt <= high:
            raise MalformedCommandError(f"tilt {tilt} outside {low}..{high}")
        return tilt
