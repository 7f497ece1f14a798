"""Asynchronous runtime that executes submitted Oyster scripts as jobs."""

from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Protocol
from uuid import uuid4

from oyster.adapters import GameBridge
from oyster.catalog import CommandCatalog
from oyster.models import Statement
from oyster.parser import DEFAULT_COMMENT_PREFIXES, parse
from oyster.vm import OysterVM, ScriptOutput


class ScriptJobStatus(str, Enum):
    """Lifecycle states for submitted script jobs."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(slots=True)
class ScriptJob:
    """Represents script execution state and final outcome."""

    id: str
    name: str
    submitted_at: datetime
    status: ScriptJobStatus
    statement_count: int = 0
    steps: int = 0
    error: str | None = None
    finished_at: datetime | None = None


class ScriptHistoryStore(Protocol):
    """Persistence contract for storing finished script runs."""

    def append(self, job: ScriptJob) -> None:
        """Persist a finished job record."""

    def list_recent(self, limit: int) -> list[ScriptJob]:
        """Return up to ``limit`` newest jobs."""


class InMemoryHistoryStore:
    """Bounded in-memory history store."""

    def __init__(self, max_jobs: int = 1_000) -> None:
        self._jobs: deque[ScriptJob] = deque(maxlen=max_jobs)

    def append(self, job: ScriptJob) -> None:
        self._jobs.appendleft(job)

    def list_recent(self, limit: int) -> list[ScriptJob]:
        return list(self._jobs)[:limit]


class JsonlHistoryStore:
    """JSONL-backed script run history."""

    def __init__(self, file_path: str | Path) -> None:
        self._path = Path(file_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, job: ScriptJob) -> None:
        payload = asdict(job)
        payload["status"] = job.status.value
        payload["submitted_at"] = job.submitted_at.isoformat()
        payload["finished_at"] = job.finished_at.isoformat() if job.finished_at else None
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload) + "\n")

    def list_recent(self, limit: int) -> list[ScriptJob]:
        if not self._path.exists():
            return []

        jobs: list[ScriptJob] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                payload = json.loads(line)
                finished_at = payload.get("finished_at")
                jobs.append(
                    ScriptJob(
                        id=payload["id"],
                        name=payload["name"],
                        submitted_at=datetime.fromisoformat(payload["submitted_at"]),
                        status=ScriptJobStatus(payload["status"]),
                        statement_count=payload.get("statement_count", 0),
                        steps=payload.get("steps", 0),
                        error=payload.get("error"),
                        finished_at=datetime.fromisoformat(finished_at) if finished_at else None,
                    )
                )

        jobs.reverse()
        return jobs[:limit]


@dataclass(slots=True)
class _PendingRun:
    statements: tuple[Statement, ...]
    output: ScriptOutput


class ScriptRuntime:
    """Queue-backed async runtime; every job gets its own VM and variable store."""

    def __init__(
        self,
        *,
        catalog: CommandCatalog | None = None,
        bridge: GameBridge | None = None,
        history_store: ScriptHistoryStore | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        wait_time_scale: float = 1.0,
        max_steps: int | None = None,
        comment_prefixes: Iterable[str] = DEFAULT_COMMENT_PREFIXES,
        max_queue_size: int = 100,
        logger: logging.Logger | None = None,
    ) -> None:
        self._catalog = catalog
        self._bridge = bridge
        self._history_store = history_store or InMemoryHistoryStore(max_jobs=max_queue_size)
        self._sleep = sleep
        self._wait_time_scale = wait_time_scale
        self._max_steps = max_steps
        self._comment_prefixes = tuple(comment_prefixes)
        self._logger = logger or logging.getLogger("oyster.runtime")

        self._jobs: dict[str, ScriptJob] = {}
        self._pending: dict[str, _PendingRun] = {}
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_queue_size)
        self._worker_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start the worker loop once for this runtime."""
        if self._worker_task and not self._worker_task.done():
            return

        self._worker_task = asyncio.create_task(self._worker_loop(), name="oyster-script-worker")
        self._logger.info("script_runtime_started", extra={"queue_maxsize": self._queue.maxsize})

    async def stop(self) -> None:
        """Stop worker loop and wait for graceful cancellation."""
        if not self._worker_task:
            return

        self._worker_task.cancel()
        try:
            await self._worker_task
        except asyncio.CancelledError:
            pass
        finally:
            self._worker_task = None

        self._logger.info("script_runtime_stopped")

    async def join(self) -> None:
        """Wait until every queued job has finished."""
        await self._queue.join()

    def submit_script(self, source: str, output: ScriptOutput, *, name: str | None = None) -> str:
        """Parse ``source`` now and queue it; later edits to the text do not affect the run."""
        statements = parse(source, comment_prefixes=self._comment_prefixes)
        job_id = uuid4().hex
        job = ScriptJob(
            id=job_id,
            name=name or f"script-{len(self._jobs) + 1}",
            submitted_at=datetime.now(timezone.utc),
            status=ScriptJobStatus.QUEUED,
            statement_count=len(statements),
        )
        self._jobs[job_id] = job
        self._pending[job_id] = _PendingRun(statements=statements, output=output)
        self._queue.put_nowait(job_id)
        self._logger.info(
            "script_submitted",
            extra={"job_id": job_id, "script": job.name, "queue_size": self._queue.qsize()},
        )
        return job_id

    def get_job(self, job_id: str) -> ScriptJob:
        """Return job state for the given id."""
        if job_id not in self._jobs:
            raise KeyError(f"Unknown script job id: {job_id}")
        return self._jobs[job_id]

    def list_recent_jobs(self, limit: int = 20) -> list[ScriptJob]:
        """Return most recent in-memory jobs and persisted history entries."""
        in_memory = sorted(self._jobs.values(), key=lambda job: job.submitted_at, reverse=True)
        if len(in_memory) >= limit:
            return in_memory[:limit]

        persisted = self._history_store.list_recent(limit)
        merged: list[ScriptJob] = []
        seen: set[str] = set()
        for job in [*in_memory, *persisted]:
            if job.id in seen:
                continue
            seen.add(job.id)
            merged.append(job)
            if len(merged) >= limit:
                break
        return merged

    async def _worker_loop(self) -> None:
        while True:
            job_id = await self._queue.get()
            try:
                await self._execute_job(job_id)
            finally:
                self._queue.task_done()

    async def _execute_job(self, job_id: str) -> None:
        job = self._jobs[job_id]
        pending = self._pending.pop(job_id)
        job.status = ScriptJobStatus.RUNNING
        self._logger.info("script_job_started", extra={"job_id": job.id, "script": job.name})

        vm = OysterVM(
            pending.statements,
            output=pending.output,
            catalog=self._catalog,
            bridge=self._bridge,
            sleep=self._sleep,
            wait_time_scale=self._wait_time_scale,
            logger=self._logger.getChild("vm"),
        )
        try:
            result = await vm.run(max_steps=self._max_steps)
        except asyncio.CancelledError:
            job.status = ScriptJobStatus.CANCELLED
            job.steps = vm.steps
            job.finished_at = datetime.now(timezone.utc)
            self._history_store.append(job)
            raise

        job.status = ScriptJobStatus(result.status.value)
        job.steps = result.steps
        job.error = result.error
        job.finished_at = datetime.now(timezone.utc)
        self._logger.info(
            "script_job_finished",
            extra={"job_id": job.id, "status": job.status.value, "steps": job.steps},
        )
        self._history_store.append(job)
