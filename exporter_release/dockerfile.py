"""Render the two-stage Dockerfile wrapping the release binary."""

from __future__ import annotations

import json
import typing as typ

if typ.TYPE_CHECKING:
    from .config import ReleaseConfig

__all__ = ["BUILD_STAGE", "SOURCE_LABEL", "render_dockerfile"]

#: Name of the stage that runs ``cargo build``; custom Dockerfiles must use it.
BUILD_STAGE = "build"
SOURCE_LABEL = "org.opencontainers.image.source"

_BUILD_DIR = "/usr/src/exporter"
_APP_DIR = "/app"


def render_dockerfile(config: ReleaseConfig, bin_name: str) -> str:
    """Return a Dockerfile that builds ``bin_name`` and ships it alone.

    The build stage compiles the crate with ``cargo build --release``. The
    runtime stage copies only the executable, drops to ``config.user`` and
    records ``config.source_url`` as the provenance label.

    Examples
    --------
    >>> from exporter_release.config import ReleaseConfig
    >>> text = render_dockerfile(ReleaseConfig(), "prometheus_podman_exporter")
    >>> text.splitlines()[0]
    'FROM rust:1.63-alpine3.16 AS build'
    """
    lines = [
        f"FROM {config.builder_image} AS {BUILD_STAGE}",
        f"COPY . {_BUILD_DIR}/",
        f"WORKDIR {_BUILD_DIR}",
    ]
    if config.build_packages:
        lines.append(f"RUN apk add --no-cache {' '.join(config.build_packages)}")
    lines.extend(
        [
            "RUN cargo build --release",
            "",
            f"FROM {config.runtime_image}",
            f"COPY --from={BUILD_STAGE} {_BUILD_DIR}/target/release/{bin_name} {_APP_DIR}/",
            f"WORKDIR {_APP_DIR}",
            f"USER {config.user}",
            f"LABEL {SOURCE_LABEL}={json.dumps(config.source_url)}",
            f"ENTRYPOINT {json.dumps([f'{_APP_DIR}/{bin_name}'])}",
        ]
    )
    return "\n".join(lines) + "\n"
