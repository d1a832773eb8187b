"""Tyro CLI application entrypoint."""

from __future__ import annotations

from typing import Annotated

import tyro

from podman_compose_mgr.cli import commands_rebuild, commands_simulate, commands_tui


TopLevelCommand = Annotated[
    commands_tui.TuiCommand,
    tyro.conf.subcommand(name="tui"),
] | Annotated[
    commands_rebuild.RebuildCommand,
    tyro.conf.subcommand(name="rebuild"),
] | Annotated[
    commands_simulate.SimulateCommand,
    tyro.conf.subcommand(name="simulate"),
]


def dispatch(command: TopLevelCommand) -> None:
    """Dispatch parsed top-level command object."""

    if isinstance(command, commands_tui.TuiCommand):
        commands_tui.execute(command)
        return
    if isinstance(command, commands_rebuild.RebuildCommand):
        commands_rebuild.execute(command)
        return
    if isinstance(command, commands_simulate.SimulateCommand):
        commands_simulate.execute(command)
        return
    raise TypeError(f"Unsupported command type: {type(command).__name__}")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run requested command."""

    command = tyro.cli(TopLevelCommand, args=argv)
    dispatch(command)
