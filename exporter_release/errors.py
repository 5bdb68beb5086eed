"""Exception hierarchy shared by the release pipeline."""

from __future__ import annotations

__all__ = [
    "AuthError",
    "BuildError",
    "CommandError",
    "ConfigError",
    "InvalidVersionError",
    "ManifestError",
    "ManifestFieldError",
    "ManifestReadError",
    "PushError",
    "ReleaseError",
    "VersionNotFound",
]


class ReleaseError(RuntimeError):
    """Base class for failures raised by the release pipeline."""

    #: Stage name reported in workflow annotations.
    stage = "Release"


class ConfigError(ReleaseError):
    """Raised when ``release.toml`` is malformed."""

    stage = "Configuration"


class ManifestError(ReleaseError):
    """Raised when the Cargo manifest cannot provide a value."""

    stage = "Manifest"


class ManifestReadError(ManifestError):
    """Raised when the manifest is missing, unreadable or invalid TOML."""


class ManifestFieldError(ManifestError):
    """Raised when a ``[package]`` field is absent or blank."""


class VersionNotFound(ManifestFieldError):
    """Raised when ``package.version`` is absent or blank."""


class InvalidVersionError(ManifestError):
    """Raised when the version cannot be used as a git or image tag."""


class CommandError(ReleaseError):
    """Raised when an external executable cannot be found."""

    stage = "Command"


class AuthError(ReleaseError):
    """Raised when registry credentials are missing or rejected."""

    stage = "Registry Login"


class BuildError(ReleaseError):
    """Raised when a container build stage exits non-zero."""

    stage = "Image Build"


class PushError(ReleaseError):
    """Raised when one or more image pushes fail."""

    stage = "Image Push"

    def __init__(self, message: str, failed: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.failed = failed
