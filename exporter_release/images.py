"""Build and publish the release container image.

Every build applies four tags at once::

    <image>:<version>
    <registry>/<namespace>/<image>:<version>
    <image>:latest
    <registry>/<namespace>/<image>:latest

Only the two registry-qualified tags are pushed.
"""

from __future__ import annotations

import dataclasses
import sys
import typing as typ
from pathlib import Path

from .commands import CommandRunner, PlumbumRunner
from .dockerfile import BUILD_STAGE, render_dockerfile
from .errors import BuildError, PushError
from .manifest import get_field, read_manifest, validate_version

if typ.TYPE_CHECKING:
    from .config import ReleaseConfig

__all__ = [
    "LATEST",
    "BuildPlan",
    "ImagePublisher",
    "ImageReference",
    "image_references",
]

LATEST = "latest"


@dataclasses.dataclass(frozen=True, slots=True)
class ImageReference:
    """Repository and tag naming one image variant."""

    repository: str
    tag: str
    qualified: bool = False

    def __str__(self) -> str:
        return f"{self.repository}:{self.tag}"


def image_references(
    config: ReleaseConfig, image_name: str, version: str
) -> tuple[ImageReference, ...]:
    """Return the four references applied to a build of ``version``.

    Examples
    --------
    >>> from exporter_release.config import ReleaseConfig
    >>> [str(ref) for ref in image_references(ReleaseConfig(), "exp", "1.2.3")]
    ['exp:1.2.3', 'ghcr.io/vpikulik/exp:1.2.3', 'exp:latest', 'ghcr.io/vpikulik/exp:latest']
    """
    qualified = config.registry_repository(image_name)
    return tuple(
        ImageReference(repository, tag, qualified=repository == qualified)
        for tag in (version, LATEST)
        for repository in (image_name, qualified)
    )


@dataclasses.dataclass(frozen=True, slots=True)
class BuildPlan:
    """Inputs resolved before any container command runs."""

    version: str
    image_name: str
    bin_name: str
    references: tuple[ImageReference, ...]
    dockerfile: Path | None
    dockerfile_text: str | None = dataclasses.field(default=None, repr=False)

    @property
    def pushed_references(self) -> tuple[ImageReference, ...]:
        return tuple(ref for ref in self.references if ref.qualified)

    def dockerfile_arg(self) -> str:
        """Return the ``-f`` argument; ``-`` reads the rendered text on stdin."""
        return "-" if self.dockerfile is None else str(self.dockerfile)


@dataclasses.dataclass(slots=True)
class ImagePublisher:
    """Build the release image and push its registry-qualified tags."""

    config: ReleaseConfig
    runner: CommandRunner = dataclasses.field(default_factory=PlumbumRunner)

    def plan(self) -> BuildPlan:
        """Resolve the version, names and Dockerfile from the manifest.

        Raises
        ------
        ManifestError
            If the manifest is unreadable or lacks the required fields.
        """
        manifest = read_manifest(self.config.manifest)
        version = validate_version(get_field(manifest, "version"))
        image_name = self.config.image_name or get_field(manifest, "name")
        bin_name = self.config.bin_name or get_field(manifest, "name")

        dockerfile = self.config.dockerfile
        text = None
        if dockerfile is not None and not dockerfile.is_file():
            print(
                f"Dockerfile {dockerfile} not found; using the generated Dockerfile",
                file=sys.stderr,
            )
            dockerfile = None
        if dockerfile is None:
            text = render_dockerfile(self.config, bin_name)
        return BuildPlan(
            version=version,
            image_name=image_name,
            bin_name=bin_name,
            references=image_references(self.config, image_name, version),
            dockerfile=dockerfile,
            dockerfile_text=text,
        )

    def build(self) -> BuildPlan:
        """Run the build stage, then the tagged runtime build.

        Raises
        ------
        BuildError
            If either stage exits non-zero. The runtime stage, which applies
            the tags, is skipped when the build stage fails.
        """
        plan = self.plan()
        print(f"Build image: {plan.version}", file=sys.stderr)
        context = str(self.config.context)

        artefact_stage = [
            self.config.docker,
            "build",
            "--target",
            BUILD_STAGE,
            "-f",
            plan.dockerfile_arg(),
            context,
        ]
        self._build_stage("artefact build", artefact_stage, plan)

        tag_args = [arg for ref in plan.references for arg in ("-t", str(ref))]
        runtime_stage = [
            self.config.docker,
            "build",
            *tag_args,
            "-f",
            plan.dockerfile_arg(),
            context,
        ]
        self._build_stage("runtime image", runtime_stage, plan)
        return plan

    def _build_stage(self, label: str, argv: list[str], plan: BuildPlan) -> None:
        result = self.runner.run(argv, stdin=plan.dockerfile_text, stream=True)
        if not result.ok:
            message = f"{label} stage failed with exit {result.returncode}"
            raise BuildError(message)

    def push(self) -> tuple[ImageReference, ...]:
        """Push the registry-qualified ``:<version>`` and ``:latest`` tags.

        Each push runs even if the other fails; nothing is rolled back.

        Raises
        ------
        PushError
            If any push exits non-zero; ``failed`` lists those references.
        """
        plan = self.plan()
        failures: list[str] = []
        for ref in plan.pushed_references:
            result = self.runner.run([self.config.docker, "push", str(ref)], stream=True)
            if not result.ok:
                print(
                    f"push of {ref} failed (exit {result.returncode})",
                    file=sys.stderr,
                )
                failures.append(str(ref))
        if failures:
            message = "; ".join(f"{ref} was not pushed" for ref in failures)
            raise PushError(message, failed=tuple(failures))
        return plan.pushed_references
