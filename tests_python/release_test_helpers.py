"""Fake collaborators shared by the release pipeline tests."""

from __future__ import annotations

import dataclasses
import typing as typ
from pathlib import Path
from textwrap import dedent

from exporter_release.commands import CommandResult

__all__ = ["FakeGitClient", "FakeRunner", "RunnerCall", "write_manifest"]


def write_manifest(path: Path, version: str = "1.2.3", name: str = "exporter") -> Path:
    """Write a minimal ``Cargo.toml`` declaring ``name`` and ``version``."""
    path.write_text(
        dedent(
            f"""
            [package]
            name = "{name}"
            version = "{version}"
            edition = "2021"

            [dependencies]
            hyper = {{ version = "0.14", features = ["full"] }}
            """
        ),
        encoding="utf-8",
    )
    return path


@dataclasses.dataclass(frozen=True, slots=True)
class RunnerCall:
    """Arguments received by :class:`FakeRunner`."""

    argv: tuple[str, ...]
    stdin: str | None
    stream: bool


@dataclasses.dataclass(slots=True)
class FakeRunner:
    """Record commands and fail those whose argv starts with a given prefix.

    Attributes
    ----------
    failures : dict[tuple[str, ...], int]
        Exit codes keyed by argv prefix; unmatched commands succeed.
    calls : list[RunnerCall]
        Every command received, in order.
    """

    failures: dict[tuple[str, ...], int] = dataclasses.field(default_factory=dict)
    stderr: str = ""
    calls: list[RunnerCall] = dataclasses.field(default_factory=list)

    def run(
        self,
        argv: typ.Sequence[str],
        *,
        stdin: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        argv = tuple(argv)
        self.calls.append(RunnerCall(argv=argv, stdin=stdin, stream=stream))
        for prefix, code in self.failures.items():
            if argv[: len(prefix)] == prefix:
                return CommandResult(argv=argv, returncode=code, stderr=self.stderr)
        return CommandResult(argv=argv, returncode=0)

    @property
    def argvs(self) -> list[tuple[str, ...]]:
        return [call.argv for call in self.calls]


@dataclasses.dataclass(slots=True)
class FakeGitClient:
    """In-memory git repository exposing the tagger's client protocol."""

    clean: bool = True
    tags: set[str] = dataclasses.field(default_factory=set)
    reject_create: bool = False
    reject_push: bool = False
    calls: list[str] = dataclasses.field(default_factory=list)
    pushed: list[tuple[str, str]] = dataclasses.field(default_factory=list)
    messages: dict[str, str] = dataclasses.field(default_factory=dict)

    def is_clean(self) -> bool:
        self.calls.append("is_clean")
        return self.clean

    def tag_exists(self, tag: str) -> bool:
        self.calls.append("tag_exists")
        return tag in self.tags

    def create_tag(self, tag: str, message: str) -> CommandResult:
        self.calls.append("create_tag")
        if self.reject_create:
            return CommandResult(
                argv=("git", "tag", tag),
                returncode=128,
                stderr=f"fatal: '{tag}' is not a valid tag name.",
            )
        self.tags.add(tag)
        self.messages[tag] = message
        return CommandResult(argv=("git", "tag", tag), returncode=0)

    def push_tag(self, remote: str, tag: str) -> CommandResult:
        self.calls.append("push_tag")
        if self.reject_push:
            return CommandResult(
                argv=("git", "push", remote, tag),
                returncode=1,
                stderr="! [remote rejected] (permission denied)",
            )
        self.pushed.append((remote, tag))
        return CommandResult(argv=("git", "push", remote, tag), returncode=0)
