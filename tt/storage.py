"""Storage helpers for TT jobs and chunk outcomes.

Reads always go to ``storage`` so a job disappears once its TTL lapses.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from job_storage import JobThreadPoolManager, PersistentJobStorage

from .config import JOB_TTL

storage = PersistentJobStorage(prefix="tt", ttl=JOB_TTL)
thread_pool = JobThreadPoolManager(max_workers=1, thread_name_prefix="tt_worker")


def create_job(job_id: str, job_data: Dict[str, Any]) -> None:
    storage.create_job(job_id, job_data)


def get_job(job_id: str) -> Optional[Dict[str, Any]]:
    return storage.get_job(job_id)


def update_job(job_id: str, updates: Dict[str, Any]) -> None:
    storage.update_job(job_id, updates)


def set_chunk_result(job_id: str, chunk_id: str, chunk_data: Dict[str, Any]) -> None:
    storage.set_chunk_result(job_id, chunk_id, chunk_data)


def get_chunk_results(job_id: str) -> Dict[str, Dict[str, Any]]:
    return storage.get_chunk_results(job_id)


def cleanup_job(job_id: str) -> None:
    storage.cleanup_job(job_id)
    thread_pool.cleanup_job(job_id)
