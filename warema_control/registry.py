"""
CommandRegistry - Explicit command registration pattern

Bounded Context: Command registration and validation
Responsibilities:
  - Register command kinds (set, set_position, set_tilt) with handlers
  - Validate command existence before execution
  - Provide introspection (available_commands, get_help for the startup log)

Threading: Thread-safe (uses lock for write operations)
Pattern: Registry with explicit registration
"""

from typing import Callable, Dict, Set
import threading


CommandHandler = Callable[[str, str], object]


class CommandNotAvailableError(Exception):
    """Raised when attempting to execute an unregistered command"""
    pass


class CommandRegistry:
    """
    Registry for device commands with explicit registration.

    Handlers take (serial, payload) where payload is the decoded text of the
    MQTT message.

    Example:
        registry = CommandRegistry()
        registry.register('set_position', translator.handle_set_position,
                          "Move to position 0..100")

        try:
            registry.execute('set_position', 'AABBCC', '40')
        except CommandNotAvailableError as e:
            print(f"Command not available: {e}")
    """

    def __init__(self):
        self._commands: Dict[str, CommandHandler] = {}
        self._descriptions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, command: str, handler: CommandHandler, description: str) -> None:
        """
        Register a command with its handler function.

        Args:
            command: Command kind (topic segment, lowercase)
            handler: Callable(serial, payload)
            description: Human-readable description for help text

        Raises:
            ValueError: If command already registered (double registration)
        """
        with self._lock:
            if command in self._commands:
                raise ValueError(f"Command '{command}' already registered")

            self._commands[command] = handler
            self._descriptions[command] = description

    def execute(self, command: str, serial: str, payload: str):
        """
        Execute a registered command.

        Raises:
            CommandNotAvailableError: If command not registered
        """
        if command not in self._commands:
            raise CommandNotAvailableError(
                f"Command '{command}' not available. "
                f"Available commands: {', '.join(sorted(self.available_commands))}"
            )

        return self._commands[command](serial, payload)

    def is_available(self, command: str) -> bool:
        return command in self._commands

    @property
    def available_commands(self) -> Set[str]:
        """Snapshot of all registered commands."""
        return set(self._commands.keys())

    def get_help(self) -> Dict[str, str]:
        """Snapshot of commands with descriptions."""
        return dict(self._descriptions)
