"""`podman-compose-mgr simulate` command."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import sys
from typing import Literal

from podman_compose_mgr.config.loader import load_app_config
from podman_compose_mgr.discovery.scanner import FsDiscovery
from podman_compose_mgr.domain.errors import DiscoveryError
from podman_compose_mgr.mvu.model import ViewMode
from podman_compose_mgr.mvu.rows import project_rows, row_details
from podman_compose_mgr.observability.logging import configure_logging, verbosity_to_level


@dataclass(slots=True)
class SimulateCommand:
    """Run discovery and print the rows one TUI view would show."""

    root: Path = Path(".")
    config: str | None = None
    view: Literal["image", "container", "folder", "dockerfile"] = "image"
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    details: bool = False
    verbose: int = 0


def execute(command: SimulateCommand) -> None:
    cfg = load_app_config(
        config_ref=command.config,
        root=command.root,
        include_patterns=list(command.include),
        exclude_patterns=list(command.exclude),
    )
    configure_logging(verbosity_to_level(command.verbose))
    root = Path(cfg.scan.root)
    view = ViewMode(command.view)
    try:
        result = FsDiscovery().scan(root, cfg.scan.include_patterns, cfg.scan.exclude_patterns)
    except DiscoveryError as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    # Folder view prints the whole tree, one level at a time.
    if view is ViewMode.FOLDER:
        _print_folder(result.images, root, (), command.details)
    else:
        rows = project_rows(view, result.images, result.dockerfiles, root)
        for row in rows:
            print(row.label)
            if command.details:
                for detail in row_details(row, root):
                    print(f"    {detail}")
    print(f"{view.title}: {len(result.images)} image reference(s), {len(result.issues)} skipped file(s)")


def _print_folder(images, root: Path, path: tuple[str, ...], details: bool) -> None:
    indent = "  " * len(path)
    for row in project_rows(ViewMode.FOLDER, images, (), root, path):
        print(f"{indent}{row.label}")
        if row.folder is not None:
            _print_folder(images, root, path + (row.folder,), details)
        elif details:
            for detail in row_details(row, root):
                print(f"{indent}    {detail}")
