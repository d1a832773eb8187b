"""Guess which image a Dockerfile produces from its neighbouring files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from podman_compose_mgr.domain.models import DockerfileInference, InferenceSource


@dataclass(slots=True)
class DirInfo:
    """Per-directory files collected during a scan."""

    dockerfiles: list[Path] = field(default_factory=list)
    compose_images: list[str | None] = field(default_factory=list)
    quadlets: list[tuple[Path, str | None]] = field(default_factory=list)

    @property
    def neighbor_count(self) -> int:
        return len(self.compose_images) + len(self.quadlets)


def _note_for(info: DirInfo) -> str | None:
    if len(info.dockerfiles) > 1:
        return f"{len(info.dockerfiles)} Dockerfiles share this directory"
    if info.neighbor_count == 0:
        return "no compose or quadlet file next to it"
    if info.neighbor_count > 1:
        return f"{info.neighbor_count} compose/quadlet files next to it"
    return "neighbouring file names no image"


def infer_dockerfiles(dir_info: dict[Path, DirInfo]) -> tuple[DockerfileInference, ...]:
    """Build one inference per Dockerfile, sorted by basename then path.

    An image is only inferred when the Dockerfile is alone in its directory
    and exactly one compose or quadlet file sits next to it; a quadlet wins
    over a compose file.
    """

    rows: list[DockerfileInference] = []
    for directory, info in dir_info.items():
        if not info.dockerfiles:
            continue
        for dockerfile in info.dockerfiles:
            image: str | None = None
            source = InferenceSource.UNKNOWN
            quadlet_name: str | None = None
            if len(info.dockerfiles) == 1 and info.neighbor_count == 1:
                if info.quadlets:
                    quadlet_path, quadlet_image = info.quadlets[0]
                    if quadlet_image:
                        image = quadlet_image
                        source = InferenceSource.QUADLET
                        quadlet_name = quadlet_path.name
                elif info.compose_images[0]:
                    image = info.compose_images[0]
                    source = InferenceSource.COMPOSE
            rows.append(
                DockerfileInference(
                    dockerfile_path=dockerfile,
                    source_dir=directory,
                    basename=dockerfile.name,
                    inferred_image=image,
                    inference_source=source,
                    quadlet_basename=quadlet_name,
                    total_dockerfiles_in_dir=len(info.dockerfiles),
                    neighbor_file_count=info.neighbor_count,
                    note=None if image else _note_for(info),
                )
            )
    rows.sort(key=lambda row: (row.basename, str(row.dockerfile_path)))
    return tuple(rows)
