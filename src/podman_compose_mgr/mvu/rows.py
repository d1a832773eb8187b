"""Project discovery results into list rows for each view mode."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from podman_compose_mgr.domain.models import (
    DiscoveredImage,
    DockerfileInference,
    JobAction,
    RebuildJobSpec,
)
from podman_compose_mgr.mvu.model import Row, RowKind, Settings, ViewMode


def relative_parts(path: Path, root: Path) -> tuple[str, ...]:
    try:
        return path.relative_to(root).parts
    except ValueError:
        return path.parts


def _image_rows(images: Sequence[DiscoveredImage]) -> tuple[Row, ...]:
    rows: list[Row] = []
    seen: set[str] = set()
    for item in images:
        if item.image in seen:
            continue
        seen.add(item.image)
        rows.append(
            Row(key=f"image:{item.image}", kind=RowKind.IMAGE, label=item.image, image=item.image, item=item)
        )
    return tuple(rows)


def _item_row(item: DiscoveredImage) -> Row:
    container = item.container or "-"
    return Row(
        key=f"container:{item.entry_path}:{container}:{item.image}",
        kind=RowKind.CONTAINER,
        label=f"{container}  {item.image}",
        image=item.image,
        item=item,
    )


def _folder_rows(
    images: Sequence[DiscoveredImage],
    root: Path,
    current_path: tuple[str, ...],
) -> tuple[Row, ...]:
    depth = len(current_path)
    folders: set[str] = set()
    here: list[DiscoveredImage] = []
    for item in images:
        parts = relative_parts(item.source_dir, root)
        if parts[:depth] != current_path:
            continue
        if len(parts) == depth:
            here.append(item)
        else:
            folders.add(parts[depth])

    rows = [
        Row(
            key=f"folder:{'/'.join(current_path + (name,))}",
            kind=RowKind.FOLDER,
            label=f"{name}/",
            folder=name,
        )
        for name in sorted(folders)
    ]
    rows.extend(_item_row(item) for item in here)
    return tuple(rows)


def _dockerfile_rows(dockerfiles: Sequence[DockerfileInference], root: Path) -> tuple[Row, ...]:
    rows = []
    for inference in dockerfiles:
        rel = "/".join(relative_parts(inference.dockerfile_path, root))
        target = inference.inferred_image or "?"
        rows.append(
            Row(
                key=f"dockerfile:{inference.dockerfile_path}",
                kind=RowKind.DOCKERFILE,
                label=f"{rel} -> {target}",
                image=inference.inferred_image,
                dockerfile=inference,
            )
        )
    return tuple(rows)


def project_rows(
    view_mode: ViewMode,
    images: Sequence[DiscoveredImage],
    dockerfiles: Sequence[DockerfileInference],
    root: Path,
    current_path: tuple[str, ...] = (),
) -> tuple[Row, ...]:
    if view_mode is ViewMode.IMAGE:
        return _image_rows(images)
    if view_mode is ViewMode.CONTAINER:
        return tuple(_item_row(item) for item in images)
    if view_mode is ViewMode.FOLDER:
        return _folder_rows(images, root, current_path)
    return _dockerfile_rows(dockerfiles, root)


def row_details(row: Row, root: Path) -> tuple[str, ...]:
    """Lines shown under an expanded row."""

    if row.dockerfile is not None:
        inference = row.dockerfile
        details = [
            f"dockerfile: {inference.dockerfile_path}",
            f"image: {inference.inferred_image or 'unknown'} ({inference.inference_source.value})",
            f"neighbours: {inference.neighbor_file_count}, dockerfiles in dir: {inference.total_dockerfiles_in_dir}",
        ]
        if inference.quadlet_basename:
            details.append(f"quadlet: {inference.quadlet_basename}")
        if inference.note:
            details.append(f"note: {inference.note}")
        return tuple(details)
    if row.item is not None:
        item = row.item
        source = "/".join(relative_parts(item.source_dir, root)) or "."
        return (
            f"container: {item.container or '-'}",
            f"source: {source}",
            f"entry: {item.entry_path.name}",
            f"build file: {'yes' if item.has_build_file else 'no'}",
        )
    return ()


def spec_for_row(row: Row, settings: Settings, *, force_pull: bool = False) -> RebuildJobSpec | None:
    """Return the job for `row`, or None when the row names no image.

    Rows with a known build file build; everything else pulls.
    """

    if row.image is None:
        return None
    if row.dockerfile is not None:
        inference = row.dockerfile
        return RebuildJobSpec(
            image=row.image,
            action=JobAction.PULL if force_pull else JobAction.BUILD,
            context_dir=inference.source_dir,
            dockerfile=inference.dockerfile_path,
            build_args=settings.build_args,
            no_cache=settings.no_cache,
        )
    item = row.item
    if item is None:
        return None
    action = JobAction.BUILD if item.has_build_file and not force_pull else JobAction.PULL
    return RebuildJobSpec(
        image=row.image,
        action=action,
        context_dir=item.source_dir,
        build_args=settings.build_args,
        no_cache=settings.no_cache,
        container=item.container,
        entry_path=item.entry_path,
    )
