"""Container-runtime capability interface and command-line builders."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Protocol


class RuntimeProcess(Protocol):
    """A started build or pull whose output is read line by line."""

    def lines(self) -> Iterator[str]: ...

    def wait(self) -> int: ...

    def terminate(self) -> None: ...


class ContainerRuntime(Protocol):
    def build(
        self,
        image: str,
        context_dir: Path,
        dockerfile: Path | None,
        build_args: Sequence[str],
        no_cache: bool,
    ) -> RuntimeProcess: ...

    def pull(self, image: str) -> RuntimeProcess: ...


def build_argv(
    binary: str,
    image: str,
    context_dir: Path,
    dockerfile: Path | None,
    build_args: Sequence[str],
    no_cache: bool,
) -> list[str]:
    """Return the `podman build` argument vector."""

    argv = [binary, "build", "-t", image]
    if dockerfile is not None:
        argv.extend(["-f", str(dockerfile)])
    for arg in build_args:
        argv.extend(["--build-arg", arg])
    if no_cache:
        argv.append("--no-cache")
    argv.append(str(context_dir))
    return argv


def pull_argv(binary: str, image: str) -> list[str]:
    return [binary, "pull", image]
