"""Tests for building and pushing the release image."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest
from release_test_helpers import FakeRunner, write_manifest

from exporter_release.commands import DryRunRunner
from exporter_release.config import ReleaseConfig
from exporter_release.errors import BuildError, ManifestFieldError, PushError
from exporter_release.images import ImagePublisher, image_references

EXPECTED_TAGS = [
    "prometheus_podman_exporter:1.2.3",
    "ghcr.io/vpikulik/prometheus_podman_exporter:1.2.3",
    "prometheus_podman_exporter:latest",
    "ghcr.io/vpikulik/prometheus_podman_exporter:latest",
]


def _tags(argv: tuple[str, ...]) -> list[str]:
    return [argv[index + 1] for index, arg in enumerate(argv) if arg == "-t"]


def test_image_references_are_exactly_four() -> None:
    refs = image_references(ReleaseConfig(), "prometheus_podman_exporter", "1.2.3")
    assert [str(ref) for ref in refs] == EXPECTED_TAGS
    assert [ref.qualified for ref in refs] == [False, True, False, True]


def test_build_runs_artefact_stage_then_tags_runtime_image(
    config: ReleaseConfig, runner: FakeRunner
) -> None:
    plan = ImagePublisher(config, runner=runner).build()

    first, second = runner.calls
    assert first.argv[:4] == ("docker", "build", "--target", "build")
    assert not _tags(first.argv), "the artefact stage must not tag anything"
    assert _tags(second.argv) == EXPECTED_TAGS
    assert plan.version == "1.2.3"
    assert [str(ref) for ref in plan.references] == EXPECTED_TAGS


def test_build_pipes_rendered_dockerfile_when_none_configured(
    config: ReleaseConfig, runner: FakeRunner, workspace: Path
) -> None:
    ImagePublisher(config, runner=runner).build()

    for call in runner.calls:
        assert call.argv[-3:] == ("-f", "-", str(workspace))
        assert call.stdin is not None
        assert "COPY --from=build" in call.stdin
        assert call.stream is True


def test_build_uses_existing_dockerfile(
    config: ReleaseConfig, runner: FakeRunner, workspace: Path
) -> None:
    dockerfile = workspace / "Dockerfile"
    dockerfile.write_text("FROM scratch AS build\n", encoding="utf-8")
    config = dataclasses.replace(config, dockerfile=dockerfile)

    ImagePublisher(config, runner=runner).build()

    for call in runner.calls:
        assert call.argv[-3:] == ("-f", str(dockerfile), str(workspace))
        assert call.stdin is None


def test_missing_configured_dockerfile_falls_back_with_notice(
    config: ReleaseConfig,
    runner: FakeRunner,
    workspace: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """A configured but absent Dockerfile is reported before falling back."""
    missing = workspace / "Dockerfile"
    config = dataclasses.replace(config, dockerfile=missing)

    plan = ImagePublisher(config, runner=runner).plan()

    assert plan.dockerfile is None
    assert plan.dockerfile_arg() == "-"
    err = capsys.readouterr().err
    assert f"Dockerfile {missing} not found; using the generated Dockerfile" in err


def test_unset_dockerfile_renders_without_notice(
    config: ReleaseConfig, runner: FakeRunner, capsys: pytest.CaptureFixture[str]
) -> None:
    plan = ImagePublisher(config, runner=runner).plan()
    assert plan.dockerfile_text is not None
    assert "not found" not in capsys.readouterr().err




def test_artefact_stage_failure_skips_runtime_stage(config: ReleaseConfig) -> None:
    runner = FakeRunner(failures={("docker", "build", "--target"): 101})

    with pytest.raises(BuildError, match="artefact build stage failed with exit 101"):
        ImagePublisher(config, runner=runner).build()

    assert len(runner.calls) == 1, "the tagging stage must not run"


def test_runtime_stage_failure_raises(config: ReleaseConfig) -> None:
    runner = FakeRunner(failures={("docker", "build", "-t"): 1})
    with pytest.raises(BuildError, match="runtime image stage failed"):
        ImagePublisher(config, runner=runner).build()
    assert len(runner.calls) == 2


def test_image_and_binary_names_default_to_package_name(
    tmp_path: Path, runner: FakeRunner
) -> None:
    manifest = write_manifest(tmp_path / "Cargo.toml", version="0.9.0", name="exp")
    config = ReleaseConfig(manifest=manifest, dockerfile=None, namespace="team")

    plan = ImagePublisher(config, runner=runner).build()

    assert plan.bin_name == "exp"
    assert _tags(runner.argvs[1]) == [
        "exp:0.9.0",
        "ghcr.io/team/exp:0.9.0",
        "exp:latest",
        "ghcr.io/team/exp:latest",
    ]
    assert "/target/release/exp /app/" in (plan.dockerfile_text or "")


def test_missing_package_name_is_reported(tmp_path: Path, runner: FakeRunner) -> None:
    manifest = tmp_path / "Cargo.toml"
    manifest.write_text('[package]\nversion = "1.0.0"\n', encoding="utf-8")
    with pytest.raises(ManifestFieldError, match="package.name"):
        ImagePublisher(ReleaseConfig(manifest=manifest), runner=runner).build()
    assert not runner.calls


def test_push_sends_registry_qualified_tags(
    config: ReleaseConfig, runner: FakeRunner
) -> None:
    pushed = ImagePublisher(config, runner=runner).push()

    assert runner.argvs == [
        ("docker", "push", "ghcr.io/vpikulik/prometheus_podman_exporter:1.2.3"),
        ("docker", "push", "ghcr.io/vpikulik/prometheus_podman_exporter:latest"),
    ]
    assert [str(ref) for ref in pushed] == EXPECTED_TAGS[1::2]


def test_push_failure_does_not_stop_other_push(config: ReleaseConfig) -> None:
    failing = "ghcr.io/vpikulik/prometheus_podman_exporter:1.2.3"
    runner = FakeRunner(failures={("docker", "push", failing): 1})

    with pytest.raises(PushError) as exc:
        ImagePublisher(config, runner=runner).push()

    assert len(runner.calls) == 2, "the latest tag must still be pushed"
    assert exc.value.failed == (failing,)
    assert f"{failing} was not pushed" in str(exc.value)


def test_docker_override_is_used_for_every_command(
    config: ReleaseConfig, runner: FakeRunner
) -> None:
    config = dataclasses.replace(config, docker="podman")
    publisher = ImagePublisher(config, runner=runner)
    publisher.build()
    publisher.push()
    assert {argv[0] for argv in runner.argvs} == {"podman"}


def test_dry_run_prints_planned_commands(
    config: ReleaseConfig, capsys: pytest.CaptureFixture[str]
) -> None:
    runner = DryRunRunner()

    ImagePublisher(config, runner=runner).build()

    assert len(runner.planned) == 2
    out = capsys.readouterr().out
    assert "[dry-run] docker build --target build -f -" in out
    assert "-t ghcr.io/vpikulik/prometheus_podman_exporter:latest" in out
