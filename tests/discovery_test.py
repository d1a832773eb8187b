"""Test filesystem discovery and Dockerfile inference."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from podman_compose_mgr.discovery.compose import ParseError, parse_compose_file, parse_quadlet_file
from podman_compose_mgr.discovery.inference import DirInfo, infer_dockerfiles
from podman_compose_mgr.discovery.ports import StaticDiscovery
from podman_compose_mgr.discovery.scanner import FsDiscovery, compile_patterns, should_keep_path
from podman_compose_mgr.domain.errors import DiscoveryError, DiscoveryErrorKind
from podman_compose_mgr.domain.models import InferenceSource, ScanResult


def test_scan_finds_compose_and_quadlet_images(compose_tree: Path) -> None:
    result = FsDiscovery().scan(compose_tree)

    assert [(item.image, item.container) for item in result.images] == [
        ("docker.io/library/caddy:2", "Reverse proxy"),
        ("docker.io/library/postgres:16", "postgres"),
        ("foo/bar:latest", "web-app"),
        ("redis:7", "cache"),
    ]
    by_image = {item.image: item for item in result.images}
    assert by_image["foo/bar:latest"].has_build_file is True
    assert by_image["redis:7"].has_build_file is False
    assert by_image["docker.io/library/caddy:2"].entry_path.name == "proxy.container"
    assert result.issues == ()


def test_dockerfile_inference(compose_tree: Path) -> None:
    result = FsDiscovery().scan(compose_tree)
    by_dir = {inference.source_dir.name: inference for inference in result.dockerfiles}

    assert by_dir["web"].inferred_image == "foo/bar:latest"
    assert by_dir["web"].inference_source is InferenceSource.COMPOSE
    assert by_dir["quad"].inferred_image == "docker.io/library/caddy:2"
    assert by_dir["quad"].inference_source is InferenceSource.QUADLET
    assert by_dir["quad"].quadlet_basename == "proxy.container"
    assert by_dir["orphan"].inferred_image is None
    assert by_dir["orphan"].note == "no compose or quadlet file next to it"


def test_inference_from_single_neighbour(tmp_path: Path) -> None:
    infos = {
        tmp_path / "a": DirInfo(compose_images=["one"]),
        tmp_path / "b": DirInfo(compose_images=["two"]),
        tmp_path / "c": DirInfo(dockerfiles=[tmp_path / "c" / "Dockerfile"], compose_images=["foo/bar"]),
    }
    inferences = infer_dockerfiles(infos)
    assert len(inferences) == 1
    assert inferences[0].inferred_image == "foo/bar"
    assert inferences[0].neighbor_file_count == 1


def test_inference_refuses_ambiguous_directories(tmp_path: Path) -> None:
    directory = tmp_path / "multi"
    infos = {
        directory: DirInfo(
            dockerfiles=[directory / "Dockerfile", directory / "Dockerfile.dev"],
            compose_images=["foo/bar"],
        )
    }
    inferences = infer_dockerfiles(infos)
    assert [inference.basename for inference in inferences] == ["Dockerfile", "Dockerfile.dev"]
    assert all(inference.inferred_image is None for inference in inferences)
    assert inferences[0].note == "2 Dockerfiles share this directory"


def test_malformed_files_become_issues(write_file: Callable[[str, str], Path], tmp_path: Path) -> None:
    write_file("bad/docker-compose.yml", "services: [unclosed\n")
    write_file("badq/app.container", "[Unit]\nDescription=x\n")
    write_file("good/compose.yml", "services:\n  web:\n    image: nginx\n")

    result = FsDiscovery().scan(tmp_path)

    assert [item.image for item in result.images] == ["nginx"]
    kinds = {issue.path.name: issue.kind for issue in result.issues}
    assert kinds == {
        "docker-compose.yml": DiscoveryErrorKind.MALFORMED_COMPOSE,
        "app.container": DiscoveryErrorKind.MALFORMED_QUADLET,
    }


def test_undecodable_files_become_issues(write_file: Callable[[str, str], Path], tmp_path: Path) -> None:
    bad = write_file("bad/docker-compose.yml")
    bad.write_bytes(b"services:\n  web:\n    image: \xff\xfe\n")
    badq = write_file("badq/app.container")
    badq.write_bytes(b"[Container]\nImage=\xff\n")
    write_file("good/docker-compose.yml", "services:\n  web:\n    image: nginx\n")

    result = FsDiscovery().scan(tmp_path)

    assert [item.image for item in result.images] == ["nginx"]
    kinds = {issue.path.parent.name: issue.kind for issue in result.issues}
    assert kinds == {
        "bad": DiscoveryErrorKind.MALFORMED_COMPOSE,
        "badq": DiscoveryErrorKind.MALFORMED_QUADLET,
    }
    with pytest.raises(ParseError, match="UTF-8"):
        parse_compose_file(bad)


def test_dotted_compose_names_are_discovered(write_file: Callable[[str, str], Path], tmp_path: Path) -> None:
    write_file("star/app.compose.yml", "services:\n  web:\n    image: star:1\n")
    write_file("star/db.compose.yaml", "services:\n  db:\n    image: star-db:1\n")
    write_file("star/notcompose.yml", "services:\n  x:\n    image: ignored\n")

    result = FsDiscovery().scan(tmp_path)

    assert sorted(item.image for item in result.images) == ["star-db:1", "star:1"]
    assert result.issues == ()


def test_exclude_is_applied_before_include(write_file: Callable[[str, str], Path], tmp_path: Path) -> None:
    write_file("keep/compose.yml", "services:\n  a:\n    image: keep\n")
    write_file("keep/old/compose.yml", "services:\n  a:\n    image: old\n")
    write_file("other/compose.yml", "services:\n  a:\n    image: other\n")

    result = FsDiscovery().scan(tmp_path, include_patterns=["keep"], exclude_patterns=["/old/"])
    assert [item.image for item in result.images] == ["keep"]


def test_should_keep_path() -> None:
    include = compile_patterns(["apps"])
    exclude = compile_patterns(["apps/skip"])
    assert should_keep_path("/x/apps/web/compose.yml", include, exclude) is True
    assert should_keep_path("/x/apps/skip/compose.yml", include, exclude) is False
    assert should_keep_path("/x/infra/compose.yml", include, exclude) is False
    assert should_keep_path("/x/infra/compose.yml", [], []) is True


def test_invalid_pattern_fails_scan(tmp_path: Path) -> None:
    with pytest.raises(DiscoveryError):
        FsDiscovery().scan(tmp_path, include_patterns=["("])


def test_missing_root_fails_scan(tmp_path: Path) -> None:
    with pytest.raises(DiscoveryError):
        FsDiscovery().scan(tmp_path / "nope")


def test_compose_container_name_defaults_to_service(write_file: Callable[[str, str], Path]) -> None:
    path = write_file("compose.yml", "services:\n  api:\n    image: api:1\n  worker:\n    build: .\n")
    services = parse_compose_file(path)
    assert [(service.image, service.container) for service in services] == [("api:1", "api")]


def test_compose_without_services_is_empty(write_file: Callable[[str, str], Path]) -> None:
    path = write_file("compose.yml", "version: '3'\n")
    assert parse_compose_file(path) == []


def test_compose_top_level_must_be_mapping(write_file: Callable[[str, str], Path]) -> None:
    path = write_file("compose.yml", "- a\n- b\n")
    with pytest.raises(ParseError):
        parse_compose_file(path)


def test_quadlet_name_precedence(write_file: Callable[[str, str], Path]) -> None:
    named = write_file("a.container", "[Unit]\nDescription=Desc\n[Container]\nImage=img\nContainerName=explicit\n")
    described = write_file("b.container", "[Unit]\nDescription=Desc\n[Container]\nImage=img\n")
    bare = write_file("c.container", "[Container]\nImage=img\n")

    assert parse_quadlet_file(named).container == "explicit"
    assert parse_quadlet_file(described).container == "Desc"
    assert parse_quadlet_file(bare).container == "c"


def test_static_discovery_records_calls(tmp_path: Path) -> None:
    discovery = StaticDiscovery(ScanResult())
    assert discovery.scan(tmp_path, ["a"], ["b"]) == ScanResult()
    assert discovery.calls == [(tmp_path, ("a",), ("b",))]

    failing = StaticDiscovery(error="boom")
    with pytest.raises(DiscoveryError, match="boom"):
        failing.scan(tmp_path)
