"""
Job Orchestrator — runs one MCQ generation job end to end.

  start()  → chunk the text, create the job record (pending)
  run()    → for each chunk in order:
               generate → advance processed_chunks → pace before the next chunk
             aggregate → persist (caller-supplied) → completed | failed

A chunk whose generation fails after all retries is skipped; the job only
fails when no chunk produced a single question or when persisting fails.
Any other error escaping run() fails the job before it propagates.
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple

from generation.chunker import DEFAULT_CHUNK_SIZE, chunk_text, count_chunks
from generation.exceptions import ChunkGenerationError
from generation.mcq_generator import ChunkGenerator
from generation.schemas import GeneratedQuestion

log = logging.getLogger("generation.pipeline")

INTER_CHUNK_DELAY = float(os.getenv("MCQ_INTER_CHUNK_DELAY", "1.5"))
INPUT_TEXT_PREVIEW_CHARS = 1000

NO_TEXT_ERROR = "No usable text: the content is empty or too short to generate questions from."
NO_QUESTIONS_ERROR = "Failed to generate questions from the text. Please check the content."
CRASH_ERROR_PREFIX = "Generation crashed: "

PersistFn = Callable[[List[GeneratedQuestion]], Awaitable[Optional[Dict[str, Any]]]]


class JobStore(Protocol):
    def create_job(self, metadata: Dict[str, Any]) -> int: ...

    def update_progress(self, job_id: int, processed: int) -> None: ...

    def complete_job(self, job_id: int, output_summary: Dict[str, Any]) -> None: ...

    def fail_job(self, job_id: int, error_message: str) -> None: ...


@dataclass
class JobOutcome:
    job_id: int
    status: str
    questions: List[GeneratedQuestion] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "completed"


class McqJobOrchestrator:
    def __init__(
        self,
        store: JobStore,
        generator: ChunkGenerator,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        inter_chunk_delay: float = INTER_CHUNK_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.generator = generator
        self.chunk_size = chunk_size
        self.inter_chunk_delay = inter_chunk_delay
        self._sleep = sleep

    def start(self, user_id: Optional[int], text: str, job_type: str = "mcq_generation") -> Tuple[int, int]:
        """
        Create the job record. Returns (job_id, total_chunks).
        With no usable text the job is created and failed right away (total_chunks = 0).
        """
        total_chunks = count_chunks(text or "", self.chunk_size)
        job_id = self.store.create_job({
            "user_id": user_id,
            "job_type": job_type,
            "input_text": (text or "")[:INPUT_TEXT_PREVIEW_CHARS],
            "total_chunks": total_chunks,
        })
        if total_chunks == 0:
            log.warning(f"[JOB {job_id}] no usable text, failing immediately")
            self.store.fail_job(job_id, NO_TEXT_ERROR)
        else:
            log.info(f"[JOB {job_id}] created: {total_chunks} chunk(s), {len(text)} chars")
        return job_id, total_chunks

    async def run(
        self,
        job_id: int,
        text: str,
        topic_name: str,
        include_urdu: bool = False,
        persist: Optional[PersistFn] = None,
    ) -> JobOutcome:
        """
        Process every chunk and finalize the job. An unexpected error (anything other
        than a skipped chunk or a failed persist) fails the job and is re-raised.
        """
        try:
            return await self._process(job_id, text, topic_name, include_urdu, persist)
        except Exception as e:
            log.exception(f"[JOB {job_id}] crashed")
            self.store.fail_job(job_id, f"{CRASH_ERROR_PREFIX}{e}")
            raise

    async def _process(
        self,
        job_id: int,
        text: str,
        topic_name: str,
        include_urdu: bool,
        persist: Optional[PersistFn],
    ) -> JobOutcome:
        chunks = list(chunk_text(text or "", self.chunk_size))
        total = len(chunks)
        if total == 0:
            self.store.fail_job(job_id, NO_TEXT_ERROR)
            return JobOutcome(job_id=job_id, status="failed", error=NO_TEXT_ERROR)

        self.store.update_progress(job_id, 0)
        log.info(f"[JOB {job_id}] processing {total} chunk(s) for topic '{topic_name}'")

        questions: List[GeneratedQuestion] = []
        chunk_reports: List[Dict[str, Any]] = []
        skipped: List[int] = []

        for i, chunk in enumerate(chunks):
            is_last = i == total - 1
            try:
                result = await self.generator.generate(chunk, topic_name, include_urdu, total)
            except ChunkGenerationError as e:
                log.error(f"[JOB {job_id}] chunk {i + 1}/{total} skipped: {e.cause}")
                skipped.append(chunk.index)
                chunk_reports.append({"index": chunk.index, "parsed": 0, "accepted": 0, "error": str(e.cause)})
                self.store.update_progress(job_id, i + 1)
                continue

            questions.extend(result.questions)
            chunk_reports.append({
                "index": chunk.index,
                "parsed": result.parsed_count,
                "accepted": result.accepted_count,
                "error": None,
            })
            self.store.update_progress(job_id, i + 1)

            if not is_last and self.inter_chunk_delay > 0:
                await self._sleep(self.inter_chunk_delay)

        for pos, q in enumerate(questions):
            q.position = pos

        summary: Dict[str, Any] = {
            "questionsCount": len(questions),
            "chunks": chunk_reports,
            "skippedChunks": skipped,
        }

        if not questions:
            log.error(f"[JOB {job_id}] failed: no questions from {total} chunk(s)")
            self.store.fail_job(job_id, NO_QUESTIONS_ERROR)
            return JobOutcome(job_id=job_id, status="failed", summary=summary, error=NO_QUESTIONS_ERROR)

        if persist is not None:
            try:
                extra = await persist(questions)
            except Exception as e:
                log.exception(f"[JOB {job_id}] persisting {len(questions)} questions failed")
                message = f"Failed to save generated questions: {e}"
                self.store.fail_job(job_id, message)
                return JobOutcome(job_id=job_id, status="failed", questions=questions, summary=summary, error=message)
            if extra:
                summary.update(extra)

        self.store.complete_job(job_id, summary)
        log.info(
            f"[JOB {job_id}] completed: {len(questions)} questions, "
            f"{len(skipped)} of {total} chunk(s) skipped"
        )
        return JobOutcome(job_id=job_id, status="completed", questions=questions, summary=summary)
