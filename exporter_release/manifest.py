"""Resolve release metadata from a Cargo manifest.

Only the top-level ``[package]`` table is consulted, so ``version`` keys in
dependency tables or ``[workspace.package]`` never shadow the package version.
"""

from __future__ import annotations

import re
import tomllib
import typing as typ
from pathlib import Path

from .errors import (
    InvalidVersionError,
    ManifestFieldError,
    ManifestReadError,
    VersionNotFound,
)

__all__ = [
    "get_field",
    "read_manifest",
    "resolve_package_name",
    "resolve_version",
    "tag_for",
    "validate_version",
]

# Docker tag grammar; git accepts the same characters in a ref name.
_VERSION_PATTERN = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_.-]{0,126}")


def read_manifest(path: Path) -> dict[str, typ.Any]:
    """
    Load and return the parsed Cargo manifest as a dictionary.

    Parameters
    ----------
    path : Path
        Path to the ``Cargo.toml`` file.

    Returns
    -------
    dict[str, Any]
        Parsed manifest fields keyed by section.

    Raises
    ------
    ManifestReadError
        If the file does not exist, cannot be read, or is not valid UTF-8 TOML.

    Examples
    --------
    >>> from pathlib import Path
    >>> data = read_manifest(Path("Cargo.toml"))  # doctest: +SKIP
    >>> "package" in data  # doctest: +SKIP
    True
    """
    if not path.is_file():
        message = f"Manifest {path} does not exist"
        raise ManifestReadError(message)
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except OSError as exc:
        message = f"Manifest {path} is not readable: {exc}"
        raise ManifestReadError(message) from exc
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        message = f"Manifest {path} is not valid TOML: {exc}"
        raise ManifestReadError(message) from exc


def get_field(manifest: typ.Mapping[str, typ.Any], field: str) -> str:
    """
    Extract a package field from the manifest, raising if it is missing.

    Parameters
    ----------
    manifest : Mapping[str, Any]
        The parsed Cargo manifest dictionary.
    field : str
        The package field to extract, such as ``"name"`` or ``"version"``.

    Returns
    -------
    str
        The field value with surrounding whitespace removed.

    Raises
    ------
    VersionNotFound
        If ``field`` is ``"version"`` and the value is absent or blank.
    ManifestFieldError
        If any other field is absent or blank, or the package table is
        missing.

    Examples
    --------
    >>> manifest = {"package": {"name": "exporter", "version": " 1.2.3 "}}
    >>> get_field(manifest, "version")
    '1.2.3'
    """
    error = VersionNotFound if field == "version" else ManifestFieldError
    package = manifest.get("package")
    if not isinstance(package, dict):
        message = "package table missing from manifest"
        raise error(message)
    value = package.get(field, "")
    if not isinstance(value, str) or not value.strip():
        message = f"package.{field} is missing"
        raise error(message)
    return value.strip()


def validate_version(version: str) -> str:
    """Return ``version`` when it is safe to embed in git and image tags.

    Raises
    ------
    InvalidVersionError
        If ``version`` holds characters a tag cannot carry.

    Examples
    --------
    >>> validate_version("1.2.3-rc.1")
    '1.2.3-rc.1'
    """
    if not _VERSION_PATTERN.fullmatch(version):
        message = (
            f"version {version!r} cannot be used as a tag; allowed characters "
            "are letters, digits, '_', '.' and '-' (max 127, no leading '.' or '-')"
        )
        raise InvalidVersionError(message)
    return version


def resolve_version(path: Path) -> str:
    """Return the validated ``package.version`` declared in ``path``."""
    manifest = read_manifest(path)
    return validate_version(get_field(manifest, "version"))


def resolve_package_name(path: Path) -> str:
    """Return ``package.name`` declared in ``path``."""
    return get_field(read_manifest(path), "name")


def tag_for(version: str) -> str:
    """Return the git tag naming the release of ``version``."""
    return f"v{version}"
