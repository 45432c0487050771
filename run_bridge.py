#!/usr/bin/env python3
"""
Warema Bridge Service - Entry Point
====================================

This script starts the Warema bridge, which:
- Talks to the WMS radio network through a USB stick driver
- Announces every scanned device to Home Assistant via MQTT discovery
- Publishes positions, tilt and weather readings as retained state
- Turns Home Assistant commands into radio commands

Usage:
    python run_bridge.py --config config/warema_bridge/bridge_config.yaml

Architecture:
    - BridgeService: Main orchestrator (warema_bridge)
    - MQTTControlPlane: Command handler (warema_control)
    - DiscoveryPublisher / StatePublisher: Broker side (warema_mqtt)

Lifecycle:
    1. Resolve configuration (YAML, environment, add-on options)
    2. Setup logging (console + file)
    3. Load the gateway driver and create the service
    4. Start service (non-blocking)
    5. Wait for stop signal (Ctrl+C or SIGTERM)
    6. Graceful shutdown (bridge availability goes offline)

Signals:
    - SIGTERM: Graceful shutdown
    - SIGINT (Ctrl+C): Graceful shutdown

Logs:
    - Console: configured level (default INFO)
    - File: logs/bridge.log
"""

import argparse
import signal
import sys
import logging
from pathlib import Path
from typing import Optional

from warema_bridge import BridgeConfig, BridgeService, GatewayLoadError


# ─────────────────────────────────────────────────────────────────────────────
# Logging Setup
# ─────────────────────────────────────────────────────────────────────────────

def setup_logging(log_file: Optional[Path] = None, level: str = "INFO") -> logging.Logger:
    """
    Setup logging for the bridge service.

    Args:
        log_file: Optional path to log file (default: logs/bridge.log)
        level: Root log level name

    Returns:
        Logger instance for the bridge
    """
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ],
        force=True,
    )

    return logging.getLogger("warema_bridge.app")


# ─────────────────────────────────────────────────────────────────────────────
# Main Service
# ─────────────────────────────────────────────────────────────────────────────

class BridgeApp:
    """
    Main application wrapper for BridgeService.

    Handles:
    - Configuration loading
    - Signal handling (SIGTERM, SIGINT)
    - Graceful shutdown
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        log_file: Optional[Path] = None,
        log_level: Optional[str] = None,
    ):
        """
        Args:
            config_path: Optional bridge configuration YAML
            log_file: Optional path to log file
            log_level: Overrides the configured log level
        """
        self.config_path = config_path
        self.log_file = log_file
        self.log_level = log_level
        self.logger = setup_logging(log_file, log_level or "INFO")

        # Components (initialized in setup())
        self.config: Optional[BridgeConfig] = None
        self.service: Optional[BridgeService] = None

        self._shutdown_requested = False

    def setup(self):
        """
        Setup all components.

        Steps:
        1. Resolve configuration
        2. Create BridgeService
        3. Load gateway driver and wire components
        """
        self.logger.info("=" * 80)
        self.logger.info("🚀 Warema Bridge - Starting")
        self.logger.info("=" * 80)

        source = self.config_path or "environment / add-on options"
        self.logger.info(f"📄 Loading configuration: {source}")
        self.config = BridgeConfig.load(self.config_path)
        if self.log_level is None:
            setup_logging(self.log_file, self.config.log_level)
        self.logger.info(
            f"✅ Configuration loaded (stick={self.config.wms.serial_port}, "
            f"channel={self.config.wms.channel}, pan_id={self.config.wms.pan_id or '-'}, "
            f"broker={self.config.mqtt.broker}:{self.config.mqtt.port})"
        )

        self.logger.info("🏗️  Creating bridge service")
        self.service = BridgeService(self.config)
        self.service.setup()
        self.logger.info("✅ Service created")
        self.logger.info("=" * 80)

    def run(self):
        """
        Run the bridge service.

        Blocks until shutdown is requested (via signal or exception).
        """
        if not self.service:
            raise RuntimeError("Service not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        try:
            self.service.start()

            self.logger.info("✅ Service started successfully")
            self.logger.info("Press Ctrl+C to stop")
            self.logger.info("=" * 80)

            self.service.wait()

        except KeyboardInterrupt:
            self.logger.info("\n⚠️  KeyboardInterrupt received")
            self.shutdown()

        except Exception as e:
            self.logger.error(f"❌ Service error: {e}", exc_info=True)
            self.shutdown()
            sys.exit(1)

    def shutdown(self):
        """Graceful shutdown of all components."""
        if self._shutdown_requested:
            self.logger.warning("⚠️  Shutdown already in progress")
            return

        self._shutdown_requested = True

        self.logger.info("=" * 80)
        self.logger.info("🛑 Shutting down bridge service")
        self.logger.info("=" * 80)

        if self.service:
            try:
                self.service.stop()
                self.logger.info("✅ Service stopped")
            except Exception as e:
                self.logger.error(f"❌ Error stopping service: {e}")

        self.logger.info("✅ Shutdown complete")

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals (SIGTERM, SIGINT)."""
        signal_name = signal.Signals(signum).name
        self.logger.info(f"\n⚠️  Received signal {signal_name} ({signum})")
        self.shutdown()
        sys.exit(0)


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Warema Bridge - WMS radio network <-> Home Assistant MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start with a config file
  python run_bridge.py --config config/warema_bridge/bridge_config.yaml

  # Home Assistant add-on: environment + /data/options.json only
  python run_bridge.py --no-log-file

  # Debug logging to a custom file
  python run_bridge.py --config bridge.yaml --log-level DEBUG --log-file logs/debug.log
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='Path to bridge configuration YAML file (optional)'
    )

    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/bridge.log'),
        help='Path to log file (default: logs/bridge.log)'
    )

    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Override the configured log level'
    )

    return parser.parse_args(argv)


def main(argv=None):
    """
    Main entry point.

    Exit codes:
        0: Clean shutdown
        1: Missing/invalid configuration or gateway driver failure
    """
    args = parse_args(argv)

    log_file = None if args.no_log_file else args.log_file

    if args.config is not None and not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    app = BridgeApp(
        config_path=args.config,
        log_file=log_file,
        log_level=args.log_level,
    )

    try:
        app.setup()
    except GatewayLoadError as e:
        print(f"❌ Gateway error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    app.run()


if __name__ == '__main__':
    main()
