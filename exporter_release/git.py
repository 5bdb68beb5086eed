"""Source-control client used by the release tagger."""

from __future__ import annotations

import dataclasses
import typing as typ

from .commands import CommandResult, CommandRunner, DryRunRunner, PlumbumRunner

__all__ = ["CommandGitClient", "DryRunGitClient", "GitClient"]


class GitClient(typ.Protocol):
    """Queries and mutations the tagger performs against git."""

    def is_clean(self) -> bool: ...

    def tag_exists(self, tag: str) -> bool: ...

    def create_tag(self, tag: str, message: str) -> CommandResult: ...

    def push_tag(self, remote: str, tag: str) -> CommandResult: ...


@dataclasses.dataclass(slots=True)
class CommandGitClient:
    """:class:`GitClient` backed by the ``git`` executable."""

    runner: CommandRunner = dataclasses.field(default_factory=PlumbumRunner)
    git: str = "git"

    def is_clean(self) -> bool:
        """Return ``True`` when tracked files match ``HEAD``."""
        result = self.runner.run([self.git, "diff-index", "--quiet", "HEAD", "--"])
        return result.ok

    def tag_exists(self, tag: str) -> bool:
        result = self.runner.run(
            [self.git, "rev-parse", "--quiet", "--verify", f"refs/tags/{tag}"]
        )
        return result.ok

    def create_tag(self, tag: str, message: str) -> CommandResult:
        """Create an annotated tag pointing at ``HEAD``."""
        return self.runner.run([self.git, "tag", tag, "-m", message])

    def push_tag(self, remote: str, tag: str) -> CommandResult:
        return self.runner.run([self.git, "push", remote, tag])


@dataclasses.dataclass(slots=True)
class DryRunGitClient:
    """Run read-only queries for real and print mutations instead.

    Examples
    --------
    >>> client = DryRunGitClient(CommandGitClient())  # doctest: +SKIP
    >>> client.create_tag("v1.2.3", "Release v1.2.3")  # doctest: +SKIP
    [dry-run] git tag v1.2.3 -m 'Release v1.2.3'
    """

    inner: CommandGitClient
    planner: CommandGitClient = dataclasses.field(init=False)

    def __post_init__(self) -> None:
        self.planner = CommandGitClient(runner=DryRunRunner(), git=self.inner.git)

    def is_clean(self) -> bool:
        return self.inner.is_clean()

    def tag_exists(self, tag: str) -> bool:
        return self.inner.tag_exists(tag)

    def create_tag(self, tag: str, message: str) -> CommandResult:
        return self.planner.create_tag(tag, message)

    def push_tag(self, remote: str, tag: str) -> CommandResult:
        return self.planner.push_tag(remote, tag)
