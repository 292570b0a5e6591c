"""Operator-facing output.

Progress and diagnostics go to stderr; command headers and captured output
go to stdout so they can be piped.
"""

from __future__ import annotations

from rich.console import Console
from rich.text import Text

from ec2exec.api.model import CommandResult, Instance


class RunConsole:
    def __init__(self, out: Console | None = None, err: Console | None = None) -> None:
        self._out = out or Console(highlight=False)
        self._err = err or Console(stderr=True, highlight=False)

    def status(self, message: str) -> None:
        self._err.print(Text(message, style="cyan"))

    def using(self, instance: Instance) -> None:
        self._err.print(
            Text.assemble(
                ("Using instance ", "cyan"),
                (instance.id, "bold"),
                (f" ({instance.public_ip})", "cyan"),
            )
        )

    def retry(self, attempt: int, max_attempts: int, error: BaseException, delay: float) -> None:
        self._err.print(
            Text(f"{error} ({attempt}/{max_attempts}), trying again in {delay:g}s...", style="yellow")
        )

    def result(self, result: CommandResult) -> None:
        self._out.print()
        self._out.print(Text(f"> {result.command}", style="bold"))
        if result.output:
            self._out.out(result.output, end="", highlight=False)
        if not result.success:
            if result.signal:
                status = f"signal {result.signal}"
            elif result.exit_status is None:
                status = "no exit status"
            else:
                status = f"exit status {result.exit_status}"
            self._err.print(Text(f"command failed ({status})", style="red"))
            if result.stderr:
                self._err.out(result.stderr, end="", highlight=False)

    def error(self, error: BaseException | str) -> None:
        self._err.print(Text(f"error: {error}", style="bold red"))
