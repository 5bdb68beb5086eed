"""Idempotent release tagging.

:class:`ReleaseTagger` is a small finite-state machine. Each run starts in
``CHECK_CLEAN`` and walks the transitions below until it reaches a terminal
state. Nothing is persisted between runs; git is queried afresh every time::

    CHECK_CLEAN --dirty--> ABORTED_DIRTY
         |
         v
    CHECK_TAG_EXISTS --exists--> SKIPPED_EXISTS
         |
         v
    CREATE_TAG --rejected--> FAILED_CREATE
         |
         v
    PUSH_TAG --rejected--> FAILED_PUSH
         |
         v
       DONE

``DONE`` and ``SKIPPED_EXISTS`` are successful outcomes. No transition is
retried.
"""

from __future__ import annotations

import dataclasses
import enum
import sys
import typing as typ

from .manifest import resolve_version, tag_for

if typ.TYPE_CHECKING:
    from .commands import CommandResult
    from .config import ReleaseConfig
    from .git import GitClient

__all__ = ["ReleaseResult", "ReleaseTagger", "TagState", "release"]


class TagState(enum.Enum):
    """States visited by :class:`ReleaseTagger`."""

    CHECK_CLEAN = "check-clean"
    CHECK_TAG_EXISTS = "check-tag-exists"
    CREATE_TAG = "create-tag"
    PUSH_TAG = "push-tag"
    DONE = "done"
    SKIPPED_EXISTS = "skipped-exists"
    ABORTED_DIRTY = "aborted-dirty"
    FAILED_CREATE = "failed-create"
    FAILED_PUSH = "failed-push"

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL_STATES

    @property
    def succeeded(self) -> bool:
        return self in _SUCCESS_STATES


_SUCCESS_STATES = frozenset({TagState.DONE, TagState.SKIPPED_EXISTS})
_TERMINAL_STATES = _SUCCESS_STATES | {
    TagState.ABORTED_DIRTY,
    TagState.FAILED_CREATE,
    TagState.FAILED_PUSH,
}


@dataclasses.dataclass(frozen=True, slots=True)
class ReleaseResult:
    """Terminal state of a tagging run and the path that led to it."""

    tag: str
    state: TagState
    history: tuple[TagState, ...]
    message: str

    @property
    def succeeded(self) -> bool:
        return self.state.succeeded

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1


_Transition = tuple[TagState, str]


class ReleaseTagger:
    """Create and push the ``v<version>`` tag at most once.

    Parameters
    ----------
    version:
        Version read from the manifest.
    git:
        Client used for every source-control query and mutation.
    remote:
        Remote receiving the new tag.
    manifest_name:
        Manifest named in the message asking for a version bump.
    """

    def __init__(
        self,
        version: str,
        git: GitClient,
        *,
        remote: str = "origin",
        manifest_name: str = "Cargo.toml",
    ) -> None:
        self.version = version
        self.tag = tag_for(version)
        self.git = git
        self.remote = remote
        self.manifest_name = manifest_name

    def run(self) -> ReleaseResult:
        """Walk the state machine from ``CHECK_CLEAN`` to a terminal state."""
        state = TagState.CHECK_CLEAN
        history = [state]
        message = ""
        while not state.terminal:
            state, message = self._transitions[state](self)
            history.append(state)
        return ReleaseResult(
            tag=self.tag, state=state, history=tuple(history), message=message
        )

    def check_clean(self) -> _Transition:
        if not self.git.is_clean():
            return TagState.ABORTED_DIRTY, "First commit all changes"
        return TagState.CHECK_TAG_EXISTS, ""

    def check_tag_exists(self) -> _Transition:
        if self.git.tag_exists(self.tag):
            message = (
                f"tag {self.tag} exists. Update version in {self.manifest_name}"
            )
            return TagState.SKIPPED_EXISTS, message
        return TagState.CREATE_TAG, ""

    def create_tag(self) -> _Transition:
        print(f"Creating tag {self.tag}", file=sys.stderr)
        result = self.git.create_tag(self.tag, f"Release {self.tag}")
        if not result.ok:
            return TagState.FAILED_CREATE, _failure(
                f"Creating tag {self.tag} failed", result
            )
        return TagState.PUSH_TAG, ""

    def push_tag(self) -> _Transition:
        result = self.git.push_tag(self.remote, self.tag)
        if not result.ok:
            return TagState.FAILED_PUSH, _failure(
                f"Pushing tag {self.tag} to {self.remote} was rejected", result
            )
        return TagState.DONE, f"Released {self.tag}"

    _transitions: typ.ClassVar[
        dict[TagState, typ.Callable[[ReleaseTagger], _Transition]]
    ] = {
        TagState.CHECK_CLEAN: check_clean,
        TagState.CHECK_TAG_EXISTS: check_tag_exists,
        TagState.CREATE_TAG: create_tag,
        TagState.PUSH_TAG: push_tag,
    }


def _failure(summary: str, result: CommandResult) -> str:
    detail = result.stderr.strip()
    suffix = f": {detail}" if detail else f" (exit {result.returncode})"
    return f"{summary}{suffix}"


def release(config: ReleaseConfig, *, git: GitClient) -> ReleaseResult:
    """Resolve the manifest version and run :class:`ReleaseTagger`.

    Raises
    ------
    ManifestError
        If the version cannot be resolved from ``config.manifest``.
    """
    version = resolve_version(config.manifest)
    tagger = ReleaseTagger(
        version, git, remote=config.remote, manifest_name=config.manifest.name
    )
    return tagger.run()
