"""Blocking external command execution behind a narrow interface.

The git and container clients only see :class:`CommandRunner`, so tests can
substitute a fake runner and dry runs can swap in :class:`DryRunRunner`.
"""

from __future__ import annotations

import dataclasses
import shlex
import sys
import typing as typ

from plumbum import local
from plumbum.commands import CommandNotFound

from .errors import CommandError

__all__ = [
    "CommandResult",
    "CommandRunner",
    "DryRunRunner",
    "PlumbumRunner",
    "render_command",
]


@dataclasses.dataclass(frozen=True, slots=True)
class CommandResult:
    """Exit status and captured output of a finished command."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(typ.Protocol):
    """Run one external command to completion."""

    def run(
        self,
        argv: typ.Sequence[str],
        *,
        stdin: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        """Run ``argv`` and return its result without raising on failure.

        ``stdin`` is piped to the process. ``stream`` forwards the process
        output to the terminal instead of capturing it.
        """
        ...


def render_command(argv: typ.Sequence[str]) -> str:
    """Return ``argv`` as a copy-pasteable shell command."""
    return shlex.join(argv)


class PlumbumRunner:
    """Execute commands on the local machine with :mod:`plumbum`."""

    def run(
        self,
        argv: typ.Sequence[str],
        *,
        stdin: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        executable, *args = argv
        try:
            command = local[executable][tuple(args)]
        except CommandNotFound as exc:
            message = f"{executable} is not available in PATH"
            raise CommandError(message) from exc
        if stdin is not None:
            command = command << stdin

        if stream:
            print("→", render_command(argv), file=sys.stderr)
        try:
            if stream:
                returncode, stdout, stderr = command.run(
                    retcode=None, stdout=None, stderr=None
                )
            else:
                returncode, stdout, stderr = command.run(retcode=None)
        except OSError as exc:
            message = f"{executable} could not be executed: {exc}"
            raise CommandError(message) from exc
        return CommandResult(
            argv=tuple(argv),
            returncode=int(returncode),
            stdout=stdout or "",
            stderr=stderr or "",
        )


@dataclasses.dataclass(slots=True)
class DryRunRunner:
    """Print planned commands instead of running them.

    Every command reports success. ``planned`` keeps the printed commands in
    order.
    """

    planned: list[tuple[str, ...]] = dataclasses.field(default_factory=list)

    def run(
        self,
        argv: typ.Sequence[str],
        *,
        stdin: str | None = None,  # noqa: ARG002 - matches CommandRunner
        stream: bool = False,  # noqa: ARG002 - matches CommandRunner
    ) -> CommandResult:
        self.planned.append(tuple(argv))
        print(f"[dry-run] {render_command(argv)}")
        return CommandResult(argv=tuple(argv), returncode=0)
