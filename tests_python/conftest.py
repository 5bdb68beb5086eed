"""Shared fixtures for the release pipeline test suite."""

from __future__ import annotations

from pathlib import Path

import pytest
from release_test_helpers import FakeGitClient, FakeRunner, write_manifest

from exporter_release.config import ReleaseConfig


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an isolated checkout and make it the working directory."""
    root = tmp_path / "workspace"
    root.mkdir()
    monkeypatch.chdir(root)
    monkeypatch.delenv("DOCKER", raising=False)
    return root


@pytest.fixture
def manifest(workspace: Path) -> Path:
    """Write a ``Cargo.toml`` declaring version ``1.2.3``."""
    return write_manifest(workspace / "Cargo.toml")


@pytest.fixture
def config(workspace: Path, manifest: Path) -> ReleaseConfig:
    """Configuration pointing at the workspace manifest and no Dockerfile."""
    return ReleaseConfig(
        manifest=manifest,
        image_name="prometheus_podman_exporter",
        bin_name="prometheus_podman_exporter",
        context=workspace,
        dockerfile=None,
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def git() -> FakeGitClient:
    return FakeGitClient()
