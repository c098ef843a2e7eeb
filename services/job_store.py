"""
Persistent job store for AI generation jobs (ai_generation_jobs table).
Every call opens and closes its own session, so background tasks can use it
after the request session is gone.

Guarantees enforced in SQL rather than in Python:
  - processed_chunks never decreases (guarded UPDATE)
  - a job is finalized (completed / failed) at most once
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import case, update
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from database.models import AiGenerationJob, JobStatus, TERMINAL_JOB_STATUSES

log = logging.getLogger("services.job_store")


@dataclass
class JobRecord:
    id: int
    user_id: Optional[int]
    job_type: str
    status: str
    input_text: Optional[str]
    total_chunks: Optional[int]
    processed_chunks: int
    error_message: Optional[str]
    output_data: Optional[Dict[str, Any]]
    created_at: Optional[datetime]
    completed_at: Optional[datetime]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_JOB_STATUSES

    @classmethod
    def from_row(cls, row: AiGenerationJob) -> "JobRecord":
        return cls(
            id=row.id,
            user_id=row.user_id,
            job_type=row.job_type,
            status=row.status,
            input_text=row.input_text,
            total_chunks=row.total_chunks,
            processed_chunks=row.processed_chunks or 0,
            error_message=row.error_message,
            output_data=row.output_data,
            created_at=row.created_at,
            completed_at=row.completed_at,
        )


class SqlAlchemyJobStore:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _execute(self, stmt) -> int:
        db = self._session_factory()
        try:
            result = db.execute(stmt)
            db.commit()
            return result.rowcount
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ─── Writes ────────────────────────────────────────────────────────────────

    def create_job(self, metadata: Dict[str, Any]) -> int:
        db = self._session_factory()
        try:
            job = AiGenerationJob(
                user_id=metadata.get("user_id"),
                job_type=metadata.get("job_type", "mcq_generation"),
                status=JobStatus.PENDING.value,
                input_text=metadata.get("input_text"),
                total_chunks=metadata.get("total_chunks"),
                processed_chunks=0,
            )
            db.add(job)
            db.commit()
            db.refresh(job)
            return job.id
        finally:
            db.close()

    def update_progress(self, job_id: int, processed: int) -> None:
        """
        Raise processed_chunks to `processed` (never lowers it) and move a
        pending job to processing. No-op on finalized jobs.
        """
        stmt = (
            update(AiGenerationJob)
            .where(
                AiGenerationJob.id == job_id,
                AiGenerationJob.status.notin_(TERMINAL_JOB_STATUSES),
            )
            .values(
                processed_chunks=case(
                    (AiGenerationJob.processed_chunks < processed, processed),
                    else_=AiGenerationJob.processed_chunks,
                ),
                status=JobStatus.PROCESSING.value,
            )
            .execution_options(synchronize_session=False)
        )
        self._execute(stmt)

    def _finalize(self, job_id: int, values: Dict[str, Any]) -> bool:
        stmt = (
            update(AiGenerationJob)
            .where(
                AiGenerationJob.id == job_id,
                AiGenerationJob.status.notin_(TERMINAL_JOB_STATUSES),
            )
            .values(completed_at=func.now(), **values)
            .execution_options(synchronize_session=False)
        )
        changed = self._execute(stmt) > 0
        if not changed:
            log.warning(f"[JOBS] job {job_id} already finalized or missing; {values['status']} ignored")
        return changed

    def complete_job(self, job_id: int, output_summary: Dict[str, Any]) -> bool:
        return self._finalize(job_id, {
            "status": JobStatus.COMPLETED.value,
            "output_data": output_summary,
        })

    def fail_job(self, job_id: int, error_message: str) -> bool:
        return self._finalize(job_id, {
            "status": JobStatus.FAILED.value,
            "error_message": error_message,
        })

    # ─── Reads ─────────────────────────────────────────────────────────────────

    def get_job(self, job_id: int) -> Optional[JobRecord]:
        db = self._session_factory()
        try:
            row = db.query(AiGenerationJob).filter(AiGenerationJob.id == job_id).first()
            return JobRecord.from_row(row) if row else None
        finally:
            db.close()

    def list_jobs(self, user_id: Optional[int] = None, limit: int = 50) -> List[JobRecord]:
        db = self._session_factory()
        try:
            q = db.query(AiGenerationJob)
            if user_id is not None:
                q = q.filter(AiGenerationJob.user_id == user_id)
            rows = q.order_by(AiGenerationJob.created_at.desc(), AiGenerationJob.id.desc()).limit(limit).all()
            return [JobRecord.from_row(r) for r in rows]
        finally:
            db.close()
