"""
Warema CLI - Command-line interface for the bridge's command topics.

This package sends the same MQTT commands Home Assistant sends, which is
handy for testing a stick and a device without a Home Assistant instance.

Usage:
    warema-cli open AABBCC
    warema-cli position AABBCC 40
    warema-cli tilt AABBCC -20
    warema-cli stop AABBCC
"""

__version__ = "1.0.0"
