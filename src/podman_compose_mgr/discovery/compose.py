"""Extract image references from compose and quadlet files."""

from __future__ import annotations

import configparser
from dataclasses import dataclass
from pathlib import Path

import yaml


COMPOSE_FILENAMES = frozenset(
    {"docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"}
)
COMPOSE_SUFFIXES = (".compose.yml", ".compose.yaml")
QUADLET_SUFFIX = ".container"
BUILD_FILE_PREFIXES = ("Dockerfile", "Containerfile")


class ParseError(ValueError):
    """A compose or quadlet file is readable but not usable."""


@dataclass(frozen=True, slots=True)
class ServiceImage:
    image: str
    container: str | None


def is_compose_file(path: Path) -> bool:
    return path.name in COMPOSE_FILENAMES or path.name.endswith(COMPOSE_SUFFIXES)


def is_quadlet_file(path: Path) -> bool:
    return path.suffix == QUADLET_SUFFIX


def is_build_file(path: Path) -> bool:
    return path.name.startswith(BUILD_FILE_PREFIXES)


def parse_compose_file(path: Path) -> list[ServiceImage]:
    """Return every service that names an image, in file order.

    The container name is `container_name` when set, else the service key.
    Raises OSError when unreadable and ParseError when the YAML is unusable
    or the file is not UTF-8.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"not valid UTF-8: {exc.reason}") from exc
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ParseError(f"invalid YAML: {exc}") from exc
    if not isinstance(document, dict):
        raise ParseError("top level is not a mapping")
    services = document.get("services")
    if services is None:
        return []
    if not isinstance(services, dict):
        raise ParseError("'services' is not a mapping")

    found: list[ServiceImage] = []
    for service_name, service_cfg in services.items():
        if not isinstance(service_cfg, dict):
            continue
        image = service_cfg.get("image")
        if not isinstance(image, str) or not image:
            continue
        container = service_cfg.get("container_name")
        if not isinstance(container, str) or not container:
            container = str(service_name)
        found.append(ServiceImage(image=image, container=container))
    return found


def parse_quadlet_file(path: Path) -> ServiceImage:
    """Read `[Container] Image=` and the best available container name.

    Name lookup order: `ContainerName=`, then `[Unit] Description=`, then the
    file stem.
    """

    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    try:
        with path.open("r", encoding="utf-8") as handle:
            parser.read_file(handle)
    except configparser.Error as exc:
        raise ParseError(f"invalid quadlet syntax: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ParseError(f"not valid UTF-8: {exc.reason}") from exc

    if not parser.has_section("Container"):
        raise ParseError("no [Container] section")
    image = parser.get("Container", "Image", fallback="").strip()
    if not image:
        raise ParseError("no Image directive in [Container]")

    name = parser.get("Container", "ContainerName", fallback="").strip()
    if not name:
        name = parser.get("Unit", "Description", fallback="").strip()
    if not name:
        name = path.stem
    return ServiceImage(image=image, container=name)
