"""podman-compose-mgr package entrypoint."""

from podman_compose_mgr.cli.app import main as _cli_main


def main() -> None:
    """Run the podman-compose-mgr CLI."""
    _cli_main()
