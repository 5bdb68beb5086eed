"""Release tagging and container image publishing for the podman exporter."""

from .config import ReleaseConfig, load_config
from .environment import (
    Credential,
    CredentialProvider,
    EnvironmentCredentialProvider,
    StaticCredentialProvider,
)
from .errors import (
    AuthError,
    BuildError,
    CommandError,
    ConfigError,
    InvalidVersionError,
    ManifestError,
    ManifestFieldError,
    ManifestReadError,
    PushError,
    ReleaseError,
    VersionNotFound,
)
from .images import ImagePublisher, ImageReference, image_references
from .manifest import resolve_version, tag_for
from .registry import RegistryAuthenticator
from .tagger import ReleaseResult, ReleaseTagger, TagState, release

__all__ = [
    "AuthError",
    "BuildError",
    "CommandError",
    "ConfigError",
    "Credential",
    "CredentialProvider",
    "EnvironmentCredentialProvider",
    "ImagePublisher",
    "ImageReference",
    "InvalidVersionError",
    "ManifestError",
    "ManifestFieldError",
    "ManifestReadError",
    "PushError",
    "RegistryAuthenticator",
    "ReleaseConfig",
    "ReleaseError",
    "ReleaseResult",
    "ReleaseTagger",
    "StaticCredentialProvider",
    "TagState",
    "VersionNotFound",
    "image_references",
    "load_config",
    "release",
    "resolve_version",
    "tag_for",
]
