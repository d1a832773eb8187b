"""Helpers shared by the CLI commands."""

from __future__ import annotations

from collections.abc import Sequence

from podman_compose_mgr.config.schema import AppConfig
from podman_compose_mgr.domain.models import JobState, JobStatus
from podman_compose_mgr.mvu.queue import JobRecord
from podman_compose_mgr.runtime.base import ContainerRuntime
from podman_compose_mgr.runtime.podman import PodmanRuntime
from podman_compose_mgr.runtime.scripted import ScriptedRuntime


def make_runtime(config: AppConfig) -> ContainerRuntime:
    """Real podman, or a runtime that only prints commands for `--dry-run`."""

    if config.dry_run:
        return ScriptedRuntime(echo_commands=True, binary=config.build.runtime_binary)
    return PodmanRuntime(config.build.runtime_binary)


def summarize(records: Sequence[JobRecord]) -> list[str]:
    return [f"#{record.job_id} {record.spec.action.value} {record.spec.image}: {record.status.label()}" for record in records]


def any_failed(statuses: Sequence[JobStatus]) -> bool:
    return any(status.state is JobState.FAILED for status in statuses)
