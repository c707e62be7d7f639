"""The interactive control loop.

The loop is a small state machine. `transition` is a pure function of the current state and the event
the last step produced; `ControlLoop` performs the I/O for each state and feeds the resulting events
back in.

    START -> CONNECTION_CHECK -> INTERACTIVE_COPY -> EXIT
                   ^      |
                   |      v
                 RECOVERY_MENU -> EXIT
"""

import logging
from enum import Enum

from typing_extensions import assert_never

from key_copier.connections import ConnectionManager
from key_copier.errors import ConfigurationError, InvalidTransitionError, StoreConnectionError
from key_copier.migration import MigrationEngine
from key_copier.terminal import Terminal
from key_copier.types import CopyOutcome, CopyResult

logger = logging.getLogger(__name__)

EXIT_TOKEN = "exit"

HELP_TEXT = """
=== Redis Key Copier - Help ===

DESCRIPTION:
  Copies a Redis key from a source database to a destination database,
  preserving its data type and TTL.

USAGE:
  redis-key-copier [OPTIONS]

OPTIONS:
  --key=<key>        Copy the specified key from source to destination and exit
  --config=<path>    Use a configuration file (overrides the built-in defaults)
  --verbose, -v      Log diagnostics to stderr
  --help, -h         Show this help message

EXAMPLES:
  # Copy a specific key
  redis-key-copier --key=user:1001

  # Use a configuration file
  redis-key-copier --config=/path/to/redis-config.properties --key=user:1001

  # Interactive mode with a custom configuration
  redis-key-copier --config=./my-redis.properties

CONFIGURATION:
  Default: source localhost:6379/0, destination localhost:6380/0
  A configuration file may set any of these properties:

  # Source Redis Database
  redis.source.host=localhost
  redis.source.port=6379
  redis.source.database=0
  redis.source.password=
  redis.source.timeout=2000

  # Destination Redis Database
  redis.destination.host=localhost
  redis.destination.port=6380
  redis.destination.database=0
  redis.destination.password=
  redis.destination.timeout=2000

SUPPORTED DATA TYPES:
  - String: Simple key-value pairs
  - List: Ordered collections of strings
  - Set: Unordered collections of unique strings
  - ZSet: Ordered collections with scores
  - Hash: Maps between string fields and string values
"""

RECOVERY_MENU_TEXT = """
=== Redis Connection Failed ===
Unable to connect to one or more Redis databases with current configuration.

Options:
1. Provide path to configuration file
2. Show help
3. Exit application"""


class State(Enum):
    START = "start"
    CONNECTION_CHECK = "connection-check"
    INTERACTIVE_COPY = "interactive-copy"
    RECOVERY_MENU = "recovery-menu"
    EXIT = "exit"


class Event(Enum):
    BEGIN = "begin"
    CONNECTED = "connected"
    UNREACHABLE = "unreachable"
    RELOADED = "reloaded"
    RELOAD_FAILED = "reload-failed"
    HELP = "help"
    INVALID_CHOICE = "invalid-choice"
    TERMINATE = "terminate"
    KEY_ENTERED = "key-entered"
    EMPTY_INPUT = "empty-input"
    EXIT_REQUESTED = "exit-requested"


class MenuChoice(Enum):
    RELOAD = "1"
    HELP = "2"
    TERMINATE = "3"
    INVALID = ""


_TRANSITIONS: dict[tuple[State, Event], State] = {
    (State.START, Event.BEGIN): State.CONNECTION_CHECK,
    (State.CONNECTION_CHECK, Event.CONNECTED): State.INTERACTIVE_COPY,
    (State.CONNECTION_CHECK, Event.UNREACHABLE): State.RECOVERY_MENU,
    (State.RECOVERY_MENU, Event.RELOADED): State.CONNECTION_CHECK,
    (State.RECOVERY_MENU, Event.RELOAD_FAILED): State.RECOVERY_MENU,
    (State.RECOVERY_MENU, Event.HELP): State.RECOVERY_MENU,
    (State.RECOVERY_MENU, Event.INVALID_CHOICE): State.RECOVERY_MENU,
    (State.RECOVERY_MENU, Event.TERMINATE): State.EXIT,
    (State.INTERACTIVE_COPY, Event.KEY_ENTERED): State.INTERACTIVE_COPY,
    (State.INTERACTIVE_COPY, Event.EMPTY_INPUT): State.INTERACTIVE_COPY,
    (State.INTERACTIVE_COPY, Event.EXIT_REQUESTED): State.EXIT,
}


def transition(state: State, event: Event, *, single_shot: bool = False) -> State:
    """Return the state that follows `state` once `event` has happened.

    In single-shot mode the one copy requested on the command line ends the loop.
    """
    if single_shot and state is State.INTERACTIVE_COPY and event is Event.KEY_ENTERED:
        return State.EXIT

    try:
        return _TRANSITIONS[state, event]
    except KeyError:
        raise InvalidTransitionError(state=state.value, event=event.value) from None


def classify_key_input(line: str | None) -> tuple[Event, str]:
    """Turn a line typed at the copy prompt into an event and the key name it carries."""
    if line is None:
        return Event.EXIT_REQUESTED, ""

    key = line.strip()

    if not key:
        return Event.EMPTY_INPUT, ""

    if key.lower() == EXIT_TOKEN:
        return Event.EXIT_REQUESTED, ""

    return Event.KEY_ENTERED, key


def classify_menu_choice(line: str | None) -> MenuChoice:
    if line is None:
        return MenuChoice.TERMINATE

    try:
        return MenuChoice(line.strip())
    except ValueError:
        return MenuChoice.INVALID


def describe(result: CopyResult) -> list[str]:
    """Operator-facing lines reporting the outcome of a copy; the last line states the outcome."""
    key = result.key
    lines: list[str] = []

    if result.type_name is not None:
        lines.append(f"Found key '{key}' of type '{result.type_name}'.")

    match result.outcome:
        case CopyOutcome.COPIED:
            if result.ttl is not None:
                lines.append(f"TTL copied: {result.ttl} seconds")
            lines.append(f"✓ Successfully copied key '{key}' from source to destination Redis.")
        case CopyOutcome.SKIPPED_NOT_FOUND:
            lines.append(f"Key '{key}' does not exist in source Redis database.")
        case CopyOutcome.SKIPPED_UNSUPPORTED_KIND:
            lines.append(f"Unsupported key type: {result.type_name}")
        case CopyOutcome.SKIPPED_EMPTY:
            lines.append(f"Key '{key}' is an empty {result.type_name}; destination left unchanged.")
        case CopyOutcome.FAILED:
            lines.append(f"✗ Error copying key '{key}': {result.reason}")
        case _:
            assert_never(result.outcome)

    return lines


class ControlLoop:
    """Drives the connection check, the recovery menu and the copy prompt until the operator exits."""

    def __init__(
        self,
        manager: ConnectionManager,
        *,
        engine: MigrationEngine | None = None,
        terminal: Terminal | None = None,
    ) -> None:
        self._manager = manager
        self._engine = engine or MigrationEngine()
        self._terminal = terminal or Terminal()
        self._single_shot_key: str | None = None
        self._reloaded = False
        self.last_result: CopyResult | None = None

    def run(self, key: str | None = None) -> int:
        """Run until the exit state; returns the process exit status.

        With `key`, the loop copies that one key as soon as both endpoints are reachable and exits.
        """
        self._single_shot_key = key
        single_shot = key is not None
        state = State.START

        try:
            while state is not State.EXIT:
                event = self._step(state)
                logger.debug("%s --%s-->", state.value, event.value)
                state = transition(state, event, single_shot=single_shot)
        finally:
            self._manager.close()

        if single_shot and self.last_result is not None and not self.last_result.ok:
            return 1

        return 0

    def _step(self, state: State) -> Event:
        match state:
            case State.START:
                return Event.BEGIN
            case State.CONNECTION_CHECK:
                return self._check_connections()
            case State.RECOVERY_MENU:
                return self._recovery_menu()
            case State.INTERACTIVE_COPY:
                return self._interactive_copy()
            case State.EXIT:
                raise InvalidTransitionError(state=state.value, event="step")
            case _:
                assert_never(state)

    def _check_connections(self) -> Event:
        verification = self._manager.verify_current()

        if self._reloaded:
            if verification.ok:
                self._terminal.echo("✓ Successfully connected with new configuration!")
            else:
                self._terminal.error("✗ Still unable to connect with the provided configuration.")
            self._reloaded = False

        return Event.CONNECTED if verification.ok else Event.UNREACHABLE

    def _recovery_menu(self) -> Event:
        self._terminal.echo(RECOVERY_MENU_TEXT)
        choice = classify_menu_choice(self._terminal.prompt("\nChoose option (1-3): "))

        match choice:
            case MenuChoice.RELOAD:
                return self._reload()
            case MenuChoice.HELP:
                self._terminal.echo(HELP_TEXT)
                return Event.HELP
            case MenuChoice.TERMINATE:
                self._terminal.echo("Application terminated by user.")
                return Event.TERMINATE
            case MenuChoice.INVALID:
                self._terminal.echo("Invalid option. Please choose 1, 2, or 3.")
                return Event.INVALID_CHOICE
            case _:
                assert_never(choice)

    def _reload(self) -> Event:
        path = self._terminal.prompt("Enter path to configuration file: ")

        if not path:
            self._terminal.echo("No configuration file path provided.")
            return Event.RELOAD_FAILED

        try:
            self._manager.profiles.reload(path)
        except ConfigurationError as e:
            logger.debug("Reloading configuration from %s failed", path, exc_info=True)
            self._terminal.error(str(e))
            return Event.RELOAD_FAILED

        self._terminal.echo(f"✓ External configuration loaded from: {path}")
        self._reloaded = True
        return Event.RELOADED

    def _interactive_copy(self) -> Event:
        if self._single_shot_key is not None:
            self.copy(self._single_shot_key)
            return Event.KEY_ENTERED

        event, key = classify_key_input(self._terminal.prompt("\nEnter the key to copy (or 'exit' to quit): "))

        match event:
            case Event.KEY_ENTERED:
                self.copy(key)
            case Event.EMPTY_INPUT:
                self._terminal.echo("Please enter a valid key.")
            case Event.EXIT_REQUESTED:
                logger.info("Application terminated by user.")
            case _:
                raise InvalidTransitionError(state=State.INTERACTIVE_COPY.value, event=event.value)

        return event

    def copy(self, key: str) -> CopyResult:
        """Copy one key between freshly built endpoints and report the outcome."""
        try:
            source, destination = self._manager.open()
        except StoreConnectionError as e:
            result = CopyResult.failed(key=key, reason=str(e))
        else:
            try:
                result = self._engine.copy(source, destination, key)
            finally:
                self._manager.close()

        *context, outcome = describe(result)
        for line in context:
            self._terminal.echo(line)

        if result.ok:
            self._terminal.echo(outcome)
        else:
            self._terminal.error(outcome)

        self.last_result = result
        return result
