# tests/test_job_store.py
from services.job_store import SqlAlchemyJobStore


def _new_job(store, total=3):
    return store.create_job({
        "user_id": None,
        "job_type": "mcq_generation",
        "input_text": "preview",
        "total_chunks": total,
    })


class TestSqlAlchemyJobStore:
    def test_created_job_is_pending(self, session_factory):
        store = SqlAlchemyJobStore(session_factory)
        job = store.get_job(_new_job(store))
        assert job.status == "pending"
        assert job.processed_chunks == 0
        assert job.total_chunks == 3
        assert job.input_text == "preview"

    def test_progress_moves_to_processing_and_never_decreases(self, session_factory):
        store = SqlAlchemyJobStore(session_factory)
        job_id = _new_job(store)

        store.update_progress(job_id, 2)
        assert store.get_job(job_id).status == "processing"
        store.update_progress(job_id, 1)
        assert store.get_job(job_id).processed_chunks == 2
        store.update_progress(job_id, 2)
        assert store.get_job(job_id).processed_chunks == 2
        store.update_progress(job_id, 3)
        assert store.get_job(job_id).processed_chunks == 3

    def test_finalized_only_once(self, session_factory):
        store = SqlAlchemyJobStore(session_factory)
        job_id = _new_job(store)

        assert store.complete_job(job_id, {"questionsCount": 5}) is True
        assert store.fail_job(job_id, "late failure") is False

        job = store.get_job(job_id)
        assert job.status == "completed"
        assert job.is_terminal
        assert job.output_data == {"questionsCount": 5}
        assert job.error_message is None
        assert job.completed_at is not None

    def test_progress_ignored_after_failure(self, session_factory):
        store = SqlAlchemyJobStore(session_factory)
        job_id = _new_job(store)
        store.fail_job(job_id, "boom")
        store.update_progress(job_id, 3)

        job = store.get_job(job_id)
        assert job.status == "failed"
        assert job.processed_chunks == 0
        assert job.error_message == "boom"

    def test_missing_job(self, session_factory):
        store = SqlAlchemyJobStore(session_factory)
        assert store.get_job(999) is None
        assert store.complete_job(999, {}) is False

    def test_list_jobs_filters_by_user(self, session_factory, student_user):
        store = SqlAlchemyJobStore(session_factory)
        mine = store.create_job({"user_id": student_user.id, "job_type": "mcq_generation", "total_chunks": 1})
        _new_job(store)

        jobs = store.list_jobs(user_id=student_user.id)
        assert [j.id for j in jobs] == [mine]
        assert len(store.list_jobs()) == 2
