from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from oyster.adapters import EchoGameBridge
from oyster.runtime import JsonlHistoryStore, ScriptJobStatus, ScriptRuntime


class RecordingOutput:
    def __init__(self) -> None:
        self.lines: list[str] = []

    def append_line(self, text: str) -> None:
        self.lines.append(text)

    async def choose(self, options: list[str]) -> int | None:
        return 0


class FailingBridge(EchoGameBridge):
    def send(self, payload):
        raise RuntimeError("boom")


async def _no_sleep(seconds: float) -> None:
    return None


def test_runtime_executes_script_successfully() -> None:
    async def _run() -> tuple[ScriptJobStatus, int, list[str]]:
        runtime = ScriptRuntime(sleep=_no_sleep)
        output = RecordingOutput()
        await runtime.start()
        job_id = runtime.submit_script('Act_Speak ["hi"]\nSys_Wait [5000]\nAct_Append ["bye"]', output)
        await asyncio.wait_for(runtime.join(), timeout=1)
        job = runtime.get_job(job_id)
        await runtime.stop()
        return job.status, job.steps, output.lines

    status, steps, lines = asyncio.run(_run())
    assert status == ScriptJobStatus.COMPLETED
    assert steps == 3
    assert lines == ["hi", "bye"]


def test_jobs_have_independent_variable_stores() -> None:
    async def _run() -> tuple[list[str], list[str]]:
        runtime = ScriptRuntime(sleep=_no_sleep)
        first, second = RecordingOutput(), RecordingOutput()
        await runtime.start()
        runtime.submit_script('Set_StringVar ["who", "first"]\nAct_Speak [$who]', first)
        runtime.submit_script("Act_Speak [$who]", second)
        await asyncio.wait_for(runtime.join(), timeout=1)
        await runtime.stop()
        return first.lines, second.lines

    first_lines, second_lines = asyncio.run(_run())
    assert first_lines == ["first"]
    assert second_lines == [""]


def test_runtime_marks_failed_jobs() -> None:
    async def _run() -> tuple[ScriptJobStatus, str | None]:
        runtime = ScriptRuntime(bridge=FailingBridge(), sleep=_no_sleep)
        await runtime.start()
        job_id = runtime.submit_script('Give_Item ["Sword"]', RecordingOutput())
        await asyncio.wait_for(runtime.join(), timeout=1)
        job = runtime.get_job(job_id)
        await runtime.stop()
        return job.status, job.error

    status, error = asyncio.run(_run())
    assert status == ScriptJobStatus.FAILED
    assert "RuntimeError" in (error or "")


def test_runtime_stops_runaway_scripts() -> None:
    async def _run() -> tuple[ScriptJobStatus, int]:
        runtime = ScriptRuntime(sleep=_no_sleep, max_steps=12)
        await runtime.start()
        job_id = runtime.submit_script('Line_Marker ["L"]\nAct_Speak ["hi"]\nJump_To ["L"]', RecordingOutput())
        await asyncio.wait_for(runtime.join(), timeout=1)
        job = runtime.get_job(job_id)
        await runtime.stop()
        return job.status, job.steps

    status, steps = asyncio.run(_run())
    assert status == ScriptJobStatus.STOPPED
    assert steps == 12


def test_unknown_job_id_raises() -> None:
    runtime = ScriptRuntime()

    with pytest.raises(KeyError):
        runtime.get_job("missing")


def test_jsonl_history_store_roundtrip(tmp_path: Path) -> None:
    history_path = tmp_path / "history" / "runs.jsonl"

    async def _run() -> str:
        runtime = ScriptRuntime(history_store=JsonlHistoryStore(history_path), sleep=_no_sleep)
        await runtime.start()
        job_id = runtime.submit_script('Act_Speak ["hi"]', RecordingOutput(), name="intro.oyster")
        await asyncio.wait_for(runtime.join(), timeout=1)
        await runtime.stop()
        return job_id

    job_id = asyncio.run(_run())
    recent = JsonlHistoryStore(history_path).list_recent(limit=5)

    assert recent[0].id == job_id
    assert recent[0].name == "intro.oyster"
    assert recent[0].status == ScriptJobStatus.COMPLETED
    assert recent[0].finished_at is not None

    fresh = ScriptRuntime(history_store=JsonlHistoryStore(history_path))
    assert fresh.list_recent_jobs(limit=5)[0].id == job_id
