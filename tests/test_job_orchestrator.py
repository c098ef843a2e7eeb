# tests/test_job_orchestrator.py
import asyncio

import pytest

from generation.exceptions import EmptyResponseError
from generation.job_orchestrator import CRASH_ERROR_PREFIX, McqJobOrchestrator, NO_QUESTIONS_ERROR
from generation.mcq_generator import ChunkGenerator
from generation.retry import RetryPolicy
from tests.helpers import FakeGenerationClient, make_questions, no_sleep

CHUNK_SIZE = 150


class InMemoryJobStore:
    """Dict-backed store with the same finalize-once / monotonic rules as the SQL one."""

    def __init__(self):
        self.jobs = {}
        self.progress_calls = []

    def create_job(self, metadata):
        job_id = len(self.jobs) + 1
        self.jobs[job_id] = dict(metadata, status="pending", processed_chunks=0, output=None, error=None)
        return job_id

    def update_progress(self, job_id, processed):
        self.progress_calls.append(processed)
        job = self.jobs[job_id]
        if job["status"] in ("completed", "failed"):
            return
        job["processed_chunks"] = max(job["processed_chunks"], processed)
        job["status"] = "processing"

    def complete_job(self, job_id, output_summary):
        job = self.jobs[job_id]
        if job["status"] not in ("completed", "failed"):
            job.update(status="completed", output=output_summary)

    def fail_job(self, job_id, error_message):
        job = self.jobs[job_id]
        if job["status"] not in ("completed", "failed"):
            job.update(status="failed", error=error_message)


def _text(n_chunks):
    """n_chunks hard-cut windows of CHUNK_SIZE letters (no sentence breaks)."""
    return "".join(chr(ord("a") + i) * CHUNK_SIZE for i in range(n_chunks))


def _orchestrator(responses, pace_log=None):
    store = InMemoryJobStore()
    client = FakeGenerationClient(responses)
    generator = ChunkGenerator(client, RetryPolicy(max_attempts=3, base_delay=2.0), sleep=no_sleep)

    async def record_pace(seconds):
        if pace_log is not None:
            pace_log.append(seconds)

    orch = McqJobOrchestrator(store, generator, chunk_size=CHUNK_SIZE, inter_chunk_delay=1.5, sleep=record_pace)
    return orch, store, client


def _run_job(orch, text, persist=None):
    job_id, total = orch.start(5, text)
    outcome = asyncio.run(orch.run(job_id, text, "Pakistan Affairs", persist=persist))
    return job_id, total, outcome


class TestMcqJobOrchestrator:
    def test_two_chunks_aggregate_in_order(self):
        """15 + 12 questions → 27 in chunk order, completed, 2/2 processed."""
        orch, store, _ = _orchestrator([
            {"questions": make_questions(15, prefix="first-")},
            {"questions": make_questions(12, prefix="second-")},
        ])
        job_id, total, outcome = _run_job(orch, _text(2))

        assert total == 2
        assert outcome.status == "completed"
        assert len(outcome.questions) == 27
        assert outcome.questions[0].question.startswith("first-0")
        assert outcome.questions[15].question.startswith("second-0")
        assert [q.position for q in outcome.questions] == list(range(27))

        job = store.jobs[job_id]
        assert job["status"] == "completed"
        assert job["processed_chunks"] == job["total_chunks"] == 2
        assert job["output"]["questionsCount"] == 27

    def test_failed_chunk_is_skipped(self):
        """The middle chunk exhausts its retries; the job still completes."""
        orch, store, client = _orchestrator([
            {"questions": make_questions(4)},
            EmptyResponseError("empty"), EmptyResponseError("empty"), EmptyResponseError("empty"),
            {"questions": make_questions(3)},
        ])
        job_id, _, outcome = _run_job(orch, _text(3))

        assert outcome.status == "completed"
        assert len(outcome.questions) == 7
        assert outcome.summary["skippedChunks"] == [1]
        assert outcome.summary["chunks"][1]["accepted"] == 0
        assert store.jobs[job_id]["processed_chunks"] == 3
        assert len(client.prompts) == 5

    def test_all_chunks_failing_fails_job(self):
        orch, store, _ = _orchestrator([EmptyResponseError("empty")] * 6)
        job_id, _, outcome = _run_job(orch, _text(2))

        assert outcome.status == "failed"
        assert outcome.questions == []
        assert outcome.summary["questionsCount"] == 0
        assert store.jobs[job_id]["status"] == "failed"
        assert store.jobs[job_id]["error"] == NO_QUESTIONS_ERROR
        assert store.jobs[job_id]["processed_chunks"] == 2

    def test_progress_reported_after_every_chunk(self):
        orch, store, _ = _orchestrator([{"questions": make_questions(1)}] * 3)
        _run_job(orch, _text(3))
        assert store.progress_calls == [0, 1, 2, 3]

    def test_pacing_only_between_successful_chunks(self):
        pace_log = []
        orch, _, _ = _orchestrator([
            {"questions": make_questions(1)},
            EmptyResponseError("empty"), EmptyResponseError("empty"), EmptyResponseError("empty"),
            {"questions": make_questions(1)},
        ], pace_log)
        _run_job(orch, _text(3))
        # after chunk 1 only: chunk 2 failed, chunk 3 is last
        assert pace_log == [1.5]

    def test_no_pacing_for_single_chunk(self):
        pace_log = []
        orch, _, _ = _orchestrator([{"questions": make_questions(2)}], pace_log)
        _run_job(orch, _text(1))
        assert pace_log == []

    def test_persist_summary_merged(self):
        orch, store, _ = _orchestrator([{"questions": make_questions(2)}])
        saved = []

        async def persist(questions):
            saved.extend(questions)
            return {"materialId": 11, "topicId": 4}

        job_id, _, outcome = _run_job(orch, _text(1), persist=persist)
        assert len(saved) == 2
        assert store.jobs[job_id]["output"]["materialId"] == 11
        assert store.jobs[job_id]["output"]["questionsCount"] == 2

    def test_persist_failure_fails_job(self):
        orch, store, _ = _orchestrator([{"questions": make_questions(2)}])

        async def persist(questions):
            raise RuntimeError("disk full")

        job_id, _, outcome = _run_job(orch, _text(1), persist=persist)
        assert outcome.status == "failed"
        assert "disk full" in store.jobs[job_id]["error"]

    def test_blank_text_fails_at_start(self):
        orch, store, client = _orchestrator([])
        job_id, total = orch.start(5, "   ")
        assert total == 0
        assert store.jobs[job_id]["status"] == "failed"
        assert client.prompts == []

    def test_input_preview_truncated(self):
        orch, store, _ = _orchestrator([])
        text = "word " * 1000
        job_id, _ = orch.start(5, text)
        assert store.jobs[job_id]["input_text"] == text[:1000]

    def test_unexpected_error_fails_job_and_propagates(self):
        """A non-retryable error on chunk 2 must not leave the job in processing."""
        orch, store, _ = _orchestrator([{"questions": make_questions(2)}, ValueError("bad payload")])
        job_id, _ = orch.start(5, _text(2))

        with pytest.raises(ValueError):
            asyncio.run(orch.run(job_id, _text(2), "Pakistan Affairs"))

        job = store.jobs[job_id]
        assert job["status"] == "failed"
        assert job["error"] == f"{CRASH_ERROR_PREFIX}bad payload"
        assert job["processed_chunks"] == 1
