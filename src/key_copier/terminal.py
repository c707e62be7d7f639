"""Line-oriented operator I/O, kept apart from the logic that decides what to say."""

import sys
from typing import TextIO


class Terminal:
    """Reads trimmed lines from the operator and writes status lines back.

    Streams default to the process's standard streams; tests pass `io.StringIO` objects instead.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None, stderr: TextIO | None = None) -> None:
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._stderr = stderr if stderr is not None else sys.stderr

    def echo(self, message: str = "") -> None:
        print(message, file=self._stdout, flush=True)

    def error(self, message: str) -> None:
        print(message, file=self._stderr, flush=True)

    def prompt(self, message: str) -> str | None:
        """Show `message` and read one line, trimmed; None once the input is exhausted."""
        print(message, end="", file=self._stdout, flush=True)

        line = self._stdin.readline()
        if not line:
            return None

        return line.strip()
