"""Command-line entry point for the release pipeline.

Examples
--------
Tag the current manifest version and push the tag::

    exporter-release release

Build the image, then log in and push it::

    export GITHUB_USER=octocat CR_PAT=...
    exporter-release build-image
    exporter-release push-image --login

Use ``podman`` instead of ``docker``::

    DOCKER=podman exporter-release build-image --dry-run
"""

from __future__ import annotations

import contextlib
import sys
import typing as typ
from pathlib import Path

import cyclopts

from .commands import CommandRunner, DryRunRunner, PlumbumRunner
from .config import ReleaseConfig, load_config
from .dockerfile import render_dockerfile
from .environment import EnvironmentCredentialProvider
from .errors import ReleaseError
from .git import CommandGitClient, DryRunGitClient
from .images import ImagePublisher
from .manifest import resolve_package_name, resolve_version
from .registry import RegistryAuthenticator
from .tagger import release

app = cyclopts.App(
    name="exporter-release",
    help="Tag releases and publish the exporter container image.",
)


@contextlib.contextmanager
def _reported_failures() -> typ.Iterator[None]:
    """Turn :class:`ReleaseError` into a workflow annotation and exit 1."""
    try:
        yield
    except ReleaseError as exc:
        print(f"::error title={exc.stage} Failure::{exc}", file=sys.stderr)
        raise SystemExit(1) from exc


def _runner(*, dry_run: bool) -> CommandRunner:
    return DryRunRunner() if dry_run else PlumbumRunner()


@app.command(name="resolve-version")
def resolve_version_command(
    *, manifest: Path | None = None, config: Path | None = None
) -> None:
    """Print the version declared in the Cargo manifest.

    Parameters
    ----------
    manifest:
        Manifest to read instead of the configured one.
    config:
        Optional ``release.toml`` file.
    """
    with _reported_failures():
        path = manifest or load_config(config).manifest
        version = resolve_version(path)
    print(version, end="")


@app.command(name="release")
def release_command(*, dry_run: bool = False, config: Path | None = None) -> None:
    """Create and push the ``v<version>`` tag unless it already exists.

    Exits 0 when the tag was pushed or already existed, 1 when the working
    tree is dirty or git rejects the tag.

    Parameters
    ----------
    dry_run:
        Print the tag and push commands instead of running them.
    config:
        Optional ``release.toml`` file.
    """
    with _reported_failures():
        settings = load_config(config)
        client = CommandGitClient(runner=PlumbumRunner(), git=settings.git)
        result = release(settings, git=DryRunGitClient(client) if dry_run else client)

    if not result.succeeded:
        print(f"::error title=Release Failure::{result.message}", file=sys.stderr)
        raise SystemExit(result.exit_code)
    print(result.message, file=sys.stderr)


@app.command(name="authenticate")
def authenticate_command(*, config: Path | None = None) -> None:
    """Log into the registry using ``GITHUB_USER`` and ``CR_PAT``.

    Parameters
    ----------
    config:
        Optional ``release.toml`` file.
    """
    with _reported_failures():
        _authenticator(load_config(config)).authenticate()


def _authenticator(settings: ReleaseConfig) -> RegistryAuthenticator:
    return RegistryAuthenticator(
        registry=settings.registry,
        docker=settings.docker,
        credentials=EnvironmentCredentialProvider(),
        runner=PlumbumRunner(),
    )


@app.command(name="build-image")
def build_image_command(*, dry_run: bool = False, config: Path | None = None) -> None:
    """Build the image and apply the version and ``latest`` tags.

    Parameters
    ----------
    dry_run:
        Print the build commands instead of running them.
    config:
        Optional ``release.toml`` file.
    """
    with _reported_failures():
        settings = load_config(config)
        publisher = ImagePublisher(settings, runner=_runner(dry_run=dry_run))
        plan = publisher.build()
    for ref in plan.references:
        print(f"Tagged {ref}", file=sys.stderr)


@app.command(name="push-image")
def push_image_command(
    *, login: bool = False, dry_run: bool = False, config: Path | None = None
) -> None:
    """Push the registry-qualified version and ``latest`` tags.

    Requires a prior ``authenticate`` unless ``--login`` is given.

    Parameters
    ----------
    login:
        Authenticate against the registry before pushing.
    dry_run:
        Print the push commands instead of running them.
    config:
        Optional ``release.toml`` file.
    """
    with _reported_failures():
        settings = load_config(config)
        if login and not dry_run:
            _authenticator(settings).authenticate()
        publisher = ImagePublisher(settings, runner=_runner(dry_run=dry_run))
        pushed = publisher.push()
    for ref in pushed:
        print(f"Pushed {ref}", file=sys.stderr)


@app.command(name="render-dockerfile")
def render_dockerfile_command(*, config: Path | None = None) -> None:
    """Print the generated two-stage Dockerfile.

    Parameters
    ----------
    config:
        Optional ``release.toml`` file.
    """
    with _reported_failures():
        settings = load_config(config)
        bin_name = settings.bin_name or resolve_package_name(settings.manifest)
    print(render_dockerfile(settings, bin_name), end="")


if __name__ == "__main__":
    app()
