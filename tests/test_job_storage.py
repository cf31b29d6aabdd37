"""Tests for the in-memory job storage and the job thread pool."""

from __future__ import annotations

import threading

import pytest

from job_storage import JobThreadPoolManager, PersistentJobStorage

UNREACHABLE_REDIS = "redis://127.0.0.1:1/0"


@pytest.fixture
def storage():
    store = PersistentJobStorage(prefix="test", ttl=60, redis_url=UNREACHABLE_REDIS)
    assert store.redis_available is False
    return store


class TestPersistentJobStorage:
    def test_round_trip(self, storage):
        storage.create_job("j1", {"status": "QUEUED"})
        storage.update_job("j1", {"status": "DONE", "progress": {"current": 1, "total": 1}})

        job = storage.get_job("j1")
        assert job["status"] == "DONE"
        assert job["progress"] == {"current": 1, "total": 1}
        assert "created_at" in job and "last_update" in job

    def test_reads_return_copies(self, storage):
        storage.create_job("j1", {"status": "QUEUED", "progress": {"current": 0}})
        storage.set_chunk_result("j1", "tt_0001", {"entries": []})

        job = storage.get_job("j1")
        job["status"] = "DONE"
        job["progress"]["current"] = 9
        storage.get_chunk_results("j1")["tt_0001"]["entries"].append("x")

        assert storage.get_job("j1")["status"] == "QUEUED"
        assert storage.get_job("j1")["progress"] == {"current": 0}
        assert storage.get_chunk_results("j1")["tt_0001"]["entries"] == []

    def test_expired_jobs_are_dropped(self):
        store = PersistentJobStorage(prefix="test", ttl=0, redis_url=UNREACHABLE_REDIS)
        store.create_job("j1", {"status": "QUEUED"})
        store.set_chunk_result("j1", "tt_0001", {"entries": []})

        assert store.get_job("j1") is None
        assert store.get_chunk_results("j1") == {}
        assert store.update_job("j1", {"status": "DONE"}) is False

    def test_update_unknown_job(self, storage):
        assert storage.update_job("missing", {"status": "DONE"}) is False

    def test_cleanup(self, storage):
        storage.create_job("j1", {"status": "DONE"})
        storage.set_chunk_result("j1", "tt_0001", {"entries": []})

        storage.cleanup_job("j1")

        assert storage.get_job("j1") is None
        assert storage.get_chunk_results("j1") == {}


class TestJobThreadPoolManager:
    def test_job_receives_cancel_event_and_is_released(self):
        pool = JobThreadPoolManager(max_workers=1, thread_name_prefix="test_worker")
        seen = []

        def work(value, cancel_event):
            seen.append((value, cancel_event.is_set()))
            return value * 2

        future = pool.submit_job("j1", work, 21)

        assert future.result(timeout=10) == 42
        assert seen == [(21, False)]
        assert "j1" not in pool.cancel_events
        assert "j1" not in pool.active_futures

    def test_cancel_sets_event_of_running_job(self):
        pool = JobThreadPoolManager(max_workers=1, thread_name_prefix="test_worker")
        started = threading.Event()

        def work(cancel_event):
            started.set()
            return cancel_event.wait(timeout=10)

        future = pool.submit_job("j1", work)
        assert started.wait(timeout=10)

        assert pool.cancel_job("j1") is True
        assert future.result(timeout=10) is True
        assert pool.cancel_job("j1") is False

    def test_job_is_released_when_it_raises(self):
        pool = JobThreadPoolManager(max_workers=1, thread_name_prefix="test_worker")

        def work(cancel_event):
            raise RuntimeError("boom")

        future = pool.submit_job("j1", work)

        with pytest.raises(RuntimeError):
            future.result(timeout=10)
        assert "j1" not in pool.cancel_events
