"""Example podman-compose-mgr config.

Use with `podman-compose-mgr tui --config example_config.py:CONFIG`.
"""

from podman_compose_mgr.config.schema import AppConfig, BuildConfig, ScanConfig, TuiConfig


CONFIG = AppConfig(
    scan=ScanConfig(
        root="~/containers",
        include_patterns=[],
        exclude_patterns=[r"/\.git/", r"/archive/"],
    ),
    build=BuildConfig(
        build_args=["USERNAME=podman"],
        no_cache=False,
        runtime_binary="podman",
    ),
    tui=TuiConfig(
        tick_interval=0.25,
        output_limit=5000,
        job_slots=1,
    ),
)
