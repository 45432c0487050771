"""
WeatherPoller - periodic sampling of the gateway's last weather broadcast.

Weather stations broadcast on their own schedule; the driver keeps the most
recent broadcast. Each poll reads it and publishes when the content changed
or when the cached entry is older than the minimum refresh interval, so a
value that never changes is still refreshed.

The poll cache is independent of the reconciler's broadcast cache; both use
the same DedupCache algorithm.
"""

import logging
from typing import Optional

from warema_mqtt import WeatherSample

from .dedup import DedupCache
from .gateway import HardwareGateway
from .reconciler import EventReconciler

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0
DEFAULT_MIN_REFRESH = 10.0


class WeatherPoller:
    """
    Polls HardwareGateway.get_last_weather_broadcast() on the event loop.

    Usage:
        poller = WeatherPoller(gateway, reconciler, DedupCache(10.0, 60.0))
        loop.call_every(poller.interval, poller.poll)
    """

    def __init__(
        self,
        gateway: HardwareGateway,
        reconciler: EventReconciler,
        cache: DedupCache,
        interval: float = DEFAULT_POLL_INTERVAL,
    ):
        if interval <= 0:
            raise ValueError(f"weather poll interval must be > 0, got {interval}")
        self.gateway = gateway
        self.reconciler = reconciler
        self.cache = cache
        self.interval = interval

    def poll(self) -> bool:
        """
        One poll tick.

        Returns:
            True if a sample was published
        """
        sample = self._read_sample()
        if sample is None:
            return False
        return self.reconciler.publish_weather(sample, self.cache)

    def _read_sample(self) -> Optional[WeatherSample]:
        raw = self.gateway.get_last_weather_broadcast()
        if not raw:
            return None
        # Same nesting tolerance as broadcast events
        data = raw.get("weather", raw) if isinstance(raw, dict) else None
        if not isinstance(data, dict):
            logger.warning(f"⚠️ Unexpected weather sample shape: {raw!r}")
            return None
        try:
            return WeatherSample.from_dict(data)
        except ValueError as e:
            logger.warning(f"⚠️ Dropping malformed weather sample: {e}")
            return None
