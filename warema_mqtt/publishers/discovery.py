"""
Discovery Publisher
===================

Bounded Context: Home Assistant Discovery

Announces a newly registered device: one retained descriptor per entity,
followed by the per-device availability "online".

Message Flow:
    DeviceRecord → build_descriptors() → DiscoveryPublisher → MQTT Broker

Ordering:
    All descriptors are published before availability, so the consumer never
    sees an available device without a matching entity.
"""

from typing import Any, Dict, List

from .base import BasePublisher
from ..schemas.discovery import Descriptor, DeviceLike, build_descriptors
from ..logging import LogEvent
from ..topics import PAYLOAD_ONLINE


class DiscoveryPublisher(BasePublisher):
    """
    Publisher for discovery descriptors and per-device availability.

    Callers publish a device only once per registration; the registry is the
    gate (see EventReconciler).
    """

    def format_message(self, descriptor: Descriptor) -> Dict[str, Any]:
        return descriptor.to_dict()

    def publish_device(self, device: DeviceLike) -> bool:
        """
        Publish all descriptors of a device, then its availability.

        Args:
            device: Registered device

        Returns:
            True if every descriptor and the availability were published.
            Availability is published only after all descriptors succeeded.
        """
        descriptors: List[Descriptor] = build_descriptors(device, self.layout)

        for descriptor in descriptors:
            if not self.publish(descriptor.topic, self.format_message(descriptor), retain=True):
                self.logger.warning(
                    event=LogEvent.MQTT_PUBLISH_FAILED,
                    message="Discovery publish dropped",
                    metadata={'serial': device.serial, 'topic': descriptor.topic}
                )
                return False

        self.logger.info(
            event=LogEvent.DISCOVERY_PUBLISHED,
            message=f"Published {descriptors[0].category.value} discovery",
            metadata={
                'serial': device.serial,
                'model': device.model,
                'entities': [d.unique_id for d in descriptors],
            }
        )
        return self.publish_availability(device.serial)

    def publish_availability(self, serial: str, payload: str = PAYLOAD_ONLINE) -> bool:
        """Publish the per-device availability topic (retained)."""
        published = self.publish(self.layout.availability(serial), payload, retain=True)
        if published:
            self.logger.info(
                event=LogEvent.AVAILABILITY_PUBLISHED,
                message=f"Device {payload}",
                metadata={'serial': serial}
            )
        return published
