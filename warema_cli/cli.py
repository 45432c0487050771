"""
Warema CLI - Main entry point.

Provides command-line interface for sending MQTT commands to the bridge.
"""

import argparse
import sys
from typing import Tuple

from warema_mqtt import TopicLayout

from .mqtt_client import MQTTCommandClient

# subcommand -> (command kind, fixed payload)
SIMPLE_COMMANDS = {
    'open': ('set', 'OPEN'),
    'close': ('set', 'CLOSE'),
    'stop': ('set', 'STOP'),
    'on': ('set', 'ON'),
    'off': ('set', 'OFF'),
}


def build_command(args: argparse.Namespace) -> Tuple[str, str]:
    """
    Turn parsed arguments into (topic, payload).

    Raises:
        ValueError: If the command or its value is invalid
    """
    layout = TopicLayout(base=args.base_topic)
    serial = args.serial.strip().upper()
    if not serial:
        raise ValueError("serial number cannot be empty")

    if args.command in SIMPLE_COMMANDS:
        kind, payload = SIMPLE_COMMANDS[args.command]
        return layout.command(serial, kind), payload

    if args.command == 'position':
        if not 0 <= args.value <= 100:
            raise ValueError(f"position must be in [0, 100], got {args.value}")
        return layout.command(serial, 'set_position'), str(args.value)

    if args.command == 'tilt':
        if not -100 <= args.value <= 100:
            raise ValueError(f"tilt must be in [-100, 100], got {args.value}")
        return layout.command(serial, 'set_tilt'), str(args.value)

    raise ValueError(f"Unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Warema CLI - Send MQTT commands to the Warema bridge",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Open / close / stop a blind
  warema-cli open AABBCC
  warema-cli close AABBCC
  warema-cli stop AABBCC

  # Switch a socket or light actuator
  warema-cli on 112233
  warema-cli off 112233

  # Move to position (0 = open, 100 = closed) and tilt slats
  warema-cli position AABBCC 40
  warema-cli tilt AABBCC -20
"""
    )

    # Global arguments
    parser.add_argument(
        "--broker",
        default="localhost",
        help="MQTT broker host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=1883,
        help="MQTT broker port (default: 1883)"
    )
    parser.add_argument("--username", default=None, help="MQTT username")
    parser.add_argument("--password", default=None, help="MQTT password")
    parser.add_argument(
        "--base-topic",
        default="warema",
        help="Bridge base topic (default: warema)"
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    for name, (_, payload) in SIMPLE_COMMANDS.items():
        sub = subparsers.add_parser(name, help=f"Send {payload}")
        sub.add_argument('serial', help='Device serial number')

    position = subparsers.add_parser('position', help='Move to position 0..100')
    position.add_argument('serial', help='Device serial number')
    position.add_argument('value', type=int, help='Target position (0 = open)')

    tilt = subparsers.add_parser('tilt', help='Set slat tilt')
    tilt.add_argument('serial', help='Device serial number')
    tilt.add_argument('value', type=int, help='Target tilt')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        topic, payload = build_command(args)
        client = MQTTCommandClient(
            broker=args.broker,
            port=args.port,
            username=args.username,
            password=args.password,
        )
        client.send_command(topic, payload, qos=1)
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
