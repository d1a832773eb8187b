"""Test fixtures for podman-compose-mgr tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a file below `tmp_path`, creating parent directories."""

    def _write(relative: str, content: str = "") -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def compose_tree(write_file: Callable[[str, str], Path], tmp_path: Path) -> Path:
    """A small tree with compose files, a quadlet and Dockerfiles."""

    write_file(
        "web/docker-compose.yml",
        "services:\n"
        "  app:\n"
        "    image: foo/bar:latest\n"
        "    container_name: web-app\n",
    )
    write_file("web/Dockerfile", "FROM alpine\n")
    write_file(
        "db/compose.yaml",
        "services:\n"
        "  postgres:\n"
        "    image: docker.io/library/postgres:16\n"
        "  cache:\n"
        "    image: redis:7\n"
        "  sidecar:\n"
        "    build: .\n",
    )
    write_file(
        "quad/proxy.container",
        "[Unit]\nDescription=Reverse proxy\n\n[Container]\nImage=docker.io/library/caddy:2\n",
    )
    write_file("quad/Containerfile", "FROM caddy:2\n")
    write_file("orphan/Dockerfile", "FROM scratch\n")
    return tmp_path
