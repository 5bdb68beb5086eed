"""Configuration model and loader for the release pipeline.

The loader reads an optional ``release.toml`` file whose ``[release]`` table
overrides the defaults below. The defaults publish
``ghcr.io/vpikulik/prometheus_podman_exporter`` from the ``Cargo.toml`` in the
current directory.

Usage
-----
Load the configuration used by the CLI::

    from pathlib import Path
    from exporter_release.config import load_config

    config = load_config(Path("release.toml"))
    print(config.registry_repository("prometheus_podman_exporter"))

Example ``release.toml``::

    [release]
    namespace = "example"
    image_name = "podman_exporter"
    build_packages = ["musl-dev", "pkgconf"]
"""

from __future__ import annotations

import dataclasses
import os
import tomllib
import typing as typ
from pathlib import Path

from .errors import ConfigError

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DOCKER_ENV",
    "ReleaseConfig",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("release.toml")
DOCKER_ENV = "DOCKER"

_PATH_KEYS = frozenset({"manifest", "context", "dockerfile"})


@dataclasses.dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Settings shared by the tagger and the image publisher.

    Attributes
    ----------
    manifest : Path
        Cargo manifest holding ``package.version``.
    remote : str
        Git remote receiving release tags.
    git : str
        Git executable name.
    docker : str
        Container build tool executable (``docker`` or ``podman``).
    registry : str
        Registry host used for login and qualified image names.
    namespace : str
        Registry namespace (owner) of the image repository.
    image_name : str | None
        Short repository name. ``None`` uses ``package.name``.
    bin_name : str | None
        Executable copied into the runtime image. ``None`` uses
        ``package.name``.
    context : Path
        Build context passed to the container build tool.
    dockerfile : Path | None
        Dockerfile to build. ``None`` or a missing file selects the
        generated two-stage Dockerfile.
    source_url : str
        Value of the ``org.opencontainers.image.source`` label.
    builder_image : str
        Base image of the build stage.
    runtime_image : str
        Base image of the runtime stage.
    build_packages : tuple[str, ...]
        ``apk`` packages installed in the build stage.
    user : int
        Numeric non-root user the runtime image runs as.
    """

    manifest: Path = Path("Cargo.toml")
    remote: str = "origin"
    git: str = "git"
    docker: str = "docker"
    registry: str = "ghcr.io"
    namespace: str = "vpikulik"
    image_name: str | None = None
    bin_name: str | None = None
    context: Path = Path(".")
    dockerfile: Path | None = Path("Dockerfile")
    source_url: str = "https://github.com/vpikulik/prometheus_podman_exporter_rs"
    builder_image: str = "rust:1.63-alpine3.16"
    runtime_image: str = "alpine:3.16"
    build_packages: tuple[str, ...] = ("musl-dev",)
    user: int = 1000

    def registry_repository(self, image_name: str) -> str:
        """Return ``image_name`` qualified with the registry and namespace."""
        parts = [self.registry, self.namespace, image_name]
        return "/".join(part.strip("/") for part in parts if part)


def load_config(
    config_file: Path | None = None,
    environ: typ.Mapping[str, str] | None = None,
) -> ReleaseConfig:
    """Load :class:`ReleaseConfig` from ``config_file`` and the environment.

    Parameters
    ----------
    config_file : Path | None
        TOML file with a ``[release]`` table. ``None`` reads
        ``release.toml`` when it exists and falls back to defaults otherwise.
    environ : Mapping[str, str] | None
        Environment consulted for the ``DOCKER`` override. Defaults to
        :data:`os.environ`.

    Returns
    -------
    ReleaseConfig
        Frozen configuration with relative paths resolved against the
        directory holding ``config_file``.

    Raises
    ------
    ConfigError
        Raised when an explicitly requested file is absent, the TOML is
        invalid, or the ``[release]`` table holds unknown or mistyped keys.
    """
    environ = os.environ if environ is None else environ
    values: dict[str, typ.Any] = {}

    if config_file is None:
        if DEFAULT_CONFIG_PATH.is_file():
            values = _read_release_table(DEFAULT_CONFIG_PATH)
    else:
        config_file = Path(config_file)
        if not config_file.is_file():
            message = f"Configuration file not found at {config_file}"
            raise ConfigError(message)
        values = _read_release_table(config_file)
        values = _anchor_paths(values, config_file.parent)

    if docker := (environ.get(DOCKER_ENV) or "").strip():
        values["docker"] = docker
    return ReleaseConfig(**values)


def _read_release_table(path: Path) -> dict[str, typ.Any]:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        message = f"Cannot read configuration {path}: {exc}"
        raise ConfigError(message) from exc

    table = data.get("release", {})
    if not isinstance(table, dict):
        message = f"[release] in {path} must be a table"
        raise ConfigError(message)
    return _coerce_values(table, path)


def _coerce_values(table: dict[str, typ.Any], path: Path) -> dict[str, typ.Any]:
    fields = {field.name for field in dataclasses.fields(ReleaseConfig)}
    if unknown := sorted(set(table) - fields):
        joined = ", ".join(unknown)
        message = f"Unknown key(s) {joined} in [release] section of {path}"
        raise ConfigError(message)

    values: dict[str, typ.Any] = {}
    for key, value in table.items():
        if key in _PATH_KEYS:
            values[key] = Path(_require_str(key, value, path))
        elif key == "build_packages":
            values[key] = _require_str_list(key, value, path)
        elif key == "user":
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                message = f"'user' must be a positive integer in {path}"
                raise ConfigError(message)
            values[key] = value
        else:
            values[key] = _require_str(key, value, path)
    return values


def _require_str(key: str, value: object, path: Path) -> str:
    if not isinstance(value, str) or not value.strip():
        message = f"'{key}' must be a non-empty string in {path}"
        raise ConfigError(message)
    return value.strip()


def _require_str_list(key: str, value: object, path: Path) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        message = f"'{key}' must be a list of strings in {path}"
        raise ConfigError(message)
    return tuple(item.strip() for item in value if item.strip())


def _anchor_paths(values: dict[str, typ.Any], base: Path) -> dict[str, typ.Any]:
    """Resolve relative path values against ``base``."""
    anchored = dict(values)
    for key in _PATH_KEYS & anchored.keys():
        path = anchored[key]
        if not path.is_absolute():
            anchored[key] = base / path
    return anchored
