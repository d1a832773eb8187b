"""Immutable job queue: pending specs, bounded running slots and the archive record."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, replace

from podman_compose_mgr.domain.models import JobState, JobStatus, RebuildJobSpec


MAX_JOB_SLOTS = 8
CHUNK_SIZE = 256


def normalize_job_slots(requested: int | None) -> int:
    """Return a safe number of concurrently running jobs."""

    if requested is None:
        return 1
    return min(max(1, int(requested)), MAX_JOB_SLOTS)


@dataclass(frozen=True, slots=True)
class OutputLog(Sequence[str]):
    """Immutable line buffer stored in chunks of `CHUNK_SIZE` lines.

    Appending copies only the last chunk, and trimming to a limit drops whole
    chunks from the front. `skip` hides the already-dropped head of the first
    chunk. Supports `len`, iteration, indexing and slicing.
    """

    chunks: tuple[tuple[str, ...], ...] = ()
    skip: int = 0
    size: int = 0

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[str]:
        for index, chunk in enumerate(self.chunks):
            yield from (chunk[self.skip :] if index == 0 else chunk)

    def __getitem__(self, key: int | slice) -> str | tuple[str, ...]:
        if isinstance(key, slice):
            return tuple(self._at(position) for position in range(self.size)[key])
        return self._at(range(self.size)[key])

    def _at(self, position: int) -> str:
        position += self.skip
        first = len(self.chunks[0])
        if position < first:
            return self.chunks[0][position]
        position -= first
        return self.chunks[1 + position // CHUNK_SIZE][position % CHUNK_SIZE]

    def append(self, line: str, limit: int) -> tuple["OutputLog", int]:
        """Return the log with `line` added and how many head lines fell off."""

        chunks = self.chunks
        if chunks and len(chunks[-1]) < CHUNK_SIZE:
            chunks = chunks[:-1] + (chunks[-1] + (line,),)
        else:
            chunks = chunks + ((line,),)
        skip = self.skip
        size = self.size + 1
        dropped = 0
        if limit > 0 and size > limit:
            dropped = size - limit
            skip += dropped
            size = limit
            while skip >= len(chunks[0]):
                skip -= len(chunks[0])
                chunks = chunks[1:]
        return OutputLog(chunks, skip, size), dropped


@dataclass(frozen=True, slots=True)
class ActiveJob:
    """A job that occupies a slot until its worker reports completion."""

    job_id: int
    spec: RebuildJobSpec
    output: OutputLog = OutputLog()
    status: JobStatus = JobStatus.running()
    dropped_lines: int = 0

    @property
    def is_running(self) -> bool:
        return self.status.state is JobState.RUNNING

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self.output)

    def with_line(self, line: str, limit: int) -> "ActiveJob":
        output, dropped = self.output.append(line, limit)
        return replace(self, output=output, dropped_lines=self.dropped_lines + dropped)


@dataclass(frozen=True, slots=True)
class JobRecord:
    """A finished job kept for the output screen and export."""

    job_id: int
    spec: RebuildJobSpec
    lines: tuple[str, ...]
    status: JobStatus
    dropped_lines: int = 0


@dataclass(frozen=True, slots=True)
class JobQueue:
    """Pending specs in FIFO order plus the jobs currently holding a slot.

    No two entries across `pending` and `active` share a dedup key.
    """

    pending: tuple[RebuildJobSpec, ...] = ()
    active: tuple[ActiveJob, ...] = ()
    slots: int = 1
    next_id: int = 1

    def keys(self) -> frozenset[str]:
        keys = {spec.dedup_key for spec in self.pending}
        keys.update(job.spec.dedup_key for job in self.active)
        return frozenset(keys)

    def __len__(self) -> int:
        return len(self.pending) + len(self.active)

    @property
    def is_idle(self) -> bool:
        return not self.pending and not self.active

    @property
    def has_running(self) -> bool:
        return any(job.is_running for job in self.active)

    def running_ids(self) -> tuple[int, ...]:
        return tuple(job.job_id for job in self.active if job.is_running)

    def get(self, job_id: int) -> ActiveJob | None:
        for job in self.active:
            if job.job_id == job_id:
                return job
        return None

    def enqueue(self, spec: RebuildJobSpec) -> tuple["JobQueue", bool]:
        """Append `spec` unless its dedup key is already pending or running."""

        if spec.dedup_key in self.keys():
            return self, False
        return replace(self, pending=self.pending + (spec,)), True

    def start_next(self) -> tuple["JobQueue", ActiveJob | None]:
        if not self.pending or len(self.active) >= self.slots:
            return self, None
        job = ActiveJob(job_id=self.next_id, spec=self.pending[0])
        queue = replace(
            self,
            pending=self.pending[1:],
            active=self.active + (job,),
            next_id=self.next_id + 1,
        )
        return queue, job

    def cancel(self, job_id: int) -> "JobQueue":
        """Mark a running job cancelled; it keeps its slot until it completes."""

        job = self.get(job_id)
        if job is None or not job.is_running:
            return self
        return self._replace_job(replace(job, status=JobStatus.cancelled()))

    def append_line(self, job_id: int, line: str, limit: int) -> "JobQueue":
        job = self.get(job_id)
        if job is None or not job.is_running:
            return self
        return self._replace_job(job.with_line(line, limit))

    def finish(self, job_id: int, status: JobStatus) -> tuple["JobQueue", JobRecord | None]:
        """Release the slot of `job_id`; a cancelled job stays cancelled."""

        job = self.get(job_id)
        if job is None:
            return self, None
        final = job.status if job.status.is_terminal else status
        if not final.is_terminal:
            final = JobStatus.cancelled()
        record = JobRecord(
            job_id=job.job_id,
            spec=job.spec,
            lines=job.lines,
            status=final,
            dropped_lines=job.dropped_lines,
        )
        active = tuple(item for item in self.active if item.job_id != job_id)
        return replace(self, active=active), record

    def clear_pending(self) -> "JobQueue":
        return replace(self, pending=())

    def _replace_job(self, updated: ActiveJob) -> "JobQueue":
        active = tuple(updated if job.job_id == updated.job_id else job for job in self.active)
        return replace(self, active=active)
