"""Scan a directory tree for compose files, quadlets and Dockerfiles."""

from __future__ import annotations

import os
from pathlib import Path
import re
from collections.abc import Sequence

from podman_compose_mgr.discovery.compose import (
    ParseError,
    is_build_file,
    is_compose_file,
    is_quadlet_file,
    parse_compose_file,
    parse_quadlet_file,
)
from podman_compose_mgr.discovery.inference import DirInfo, infer_dockerfiles
from podman_compose_mgr.domain.errors import DiscoveryError, DiscoveryErrorKind
from podman_compose_mgr.domain.models import DiscoveredImage, DiscoveryIssue, ScanResult
from podman_compose_mgr.observability.logging import get_logger, log_event


_LOGGER = get_logger("podman_compose_mgr.discovery")


def compile_patterns(patterns: Sequence[str]) -> list[re.Pattern[str]]:
    """Compile user regexes, failing the whole scan on the first bad one."""

    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise DiscoveryError(f"Invalid path pattern {pattern!r}: {exc}") from exc
    return compiled


def should_keep_path(
    path: str,
    include: Sequence[re.Pattern[str]],
    exclude: Sequence[re.Pattern[str]],
) -> bool:
    """Exclusions are applied first; an empty include list keeps everything."""

    if exclude and any(pattern.search(path) for pattern in exclude):
        return False
    if include and not any(pattern.search(path) for pattern in include):
        return False
    return True


def _iter_files(root: Path):
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            yield Path(dirpath) / name


class FsDiscovery:
    """Discovery backed by the local filesystem."""

    def scan(
        self,
        root: Path,
        include_patterns: Sequence[str] = (),
        exclude_patterns: Sequence[str] = (),
    ) -> ScanResult:
        if not root.exists():
            raise DiscoveryError(f"Scan root does not exist: {root}")
        if not root.is_dir():
            raise DiscoveryError(f"Scan root must be a directory: {root}")

        include = compile_patterns(include_patterns)
        exclude = compile_patterns(exclude_patterns)

        dir_info: dict[Path, DirInfo] = {}
        issues: list[DiscoveryIssue] = []
        found: list[tuple[str, str | None, Path, Path]] = []
        seen: set[tuple[str, str | None, Path]] = set()

        def add(image: str, container: str | None, entry: Path) -> None:
            key = (image, container, entry.parent)
            if key in seen:
                return
            seen.add(key)
            found.append((image, container, entry.parent, entry))

        for path in _iter_files(root):
            if not should_keep_path(str(path), include, exclude):
                continue
            info = dir_info.setdefault(path.parent, DirInfo())

            if is_build_file(path):
                info.dockerfiles.append(path)
                continue

            if is_compose_file(path):
                try:
                    services = parse_compose_file(path)
                except OSError as exc:
                    issues.append(DiscoveryIssue(DiscoveryErrorKind.UNREADABLE, path, str(exc)))
                    continue
                except ParseError as exc:
                    issues.append(
                        DiscoveryIssue(DiscoveryErrorKind.MALFORMED_COMPOSE, path, str(exc))
                    )
                    continue
                info.compose_images.append(services[0].image if services else None)
                for service in services:
                    add(service.image, service.container, path)
                continue

            if is_quadlet_file(path):
                try:
                    quadlet = parse_quadlet_file(path)
                except OSError as exc:
                    issues.append(DiscoveryIssue(DiscoveryErrorKind.UNREADABLE, path, str(exc)))
                    continue
                except ParseError as exc:
                    issues.append(
                        DiscoveryIssue(DiscoveryErrorKind.MALFORMED_QUADLET, path, str(exc))
                    )
                    continue
                info.quadlets.append((path, quadlet.image))
                add(quadlet.image, quadlet.container, path)

        images = [
            DiscoveredImage(
                image=image,
                container=container,
                source_dir=source_dir,
                entry_path=entry,
                has_build_file=bool(dir_info.get(source_dir, DirInfo()).dockerfiles),
            )
            for image, container, source_dir, entry in found
        ]
        images.sort(key=lambda item: (item.image, item.container or ""))
        dockerfiles = infer_dockerfiles(dir_info)

        for issue in issues:
            log_event(
                _LOGGER,
                "discovery_issue",
                kind=issue.kind.value,
                path=str(issue.path),
                detail=issue.detail,
            )
        log_event(
            _LOGGER,
            "discovery_finished",
            root=str(root),
            images=len(images),
            dockerfiles=len(dockerfiles),
            issues=len(issues),
        )
        return ScanResult(images=tuple(images), dockerfiles=dockerfiles, issues=tuple(issues))
