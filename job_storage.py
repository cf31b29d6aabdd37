"""
Session Job Storage for TT jobs
-------------------------------
Redis-backed storage for job status, progress and per-chunk outcomes,
with an in-memory fallback for development. Entries expire after one
editing session in both backends, and every read returns a fresh copy.
"""

import copy
import json
import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

import redis
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_TTL = 14400


class PersistentJobStorage:
    """Redis-based storage for job/result tracking scoped by a prefix."""

    def __init__(self, prefix: str = "tt", ttl: int = DEFAULT_TTL, redis_url: Optional[str] = None):
        """Create a storage helper scoped by a namespace prefix.

        Falls back to in-memory dictionaries when Redis cannot be reached.
        """
        self._memory_jobs: Dict[str, Dict[str, Any]] = {}
        self._memory_results: Dict[str, Dict[str, Any]] = {}
        self._memory_expiry: Dict[str, float] = {}
        self._memory_lock = threading.Lock()
        try:
            url = redis_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
            self.redis_client = redis.from_url(url, decode_responses=True, socket_connect_timeout=1)
            self.redis_client.ping()
            self.redis_available = True
            logger.info("Redis connected successfully")
        except (redis.ConnectionError, redis.RedisError) as e:
            logger.warning("Redis not available, falling back to in-memory storage: %s", e)
            self.redis_available = False

        namespace = prefix.strip() or "tt"
        self.JOB_PREFIX = f"{namespace}_job:"
        self.RESULT_PREFIX = f"{namespace}_result:"
        self.JOB_TTL = ttl

    def _get_job_key(self, job_id: str) -> str:
        return f"{self.JOB_PREFIX}{job_id}"

    def _get_result_key(self, job_id: str) -> str:
        return f"{self.RESULT_PREFIX}{job_id}"

    def _serialize(self, data: Any) -> str:
        return json.dumps(data, default=str, ensure_ascii=False)

    def _deserialize(self, data: str) -> Any:
        return json.loads(data)

    # In-memory expiry, mirrors SETEX/EXPIRE. Callers hold _memory_lock.
    def _touch(self, job_id: str) -> None:
        self._memory_expiry[job_id] = time.time() + self.JOB_TTL

    def _purge_expired(self) -> None:
        now = time.time()
        for job_id, expires_at in list(self._memory_expiry.items()):
            if expires_at <= now:
                self._drop(job_id)

    def _drop(self, job_id: str) -> None:
        self._memory_jobs.pop(job_id, None)
        self._memory_results.pop(job_id, None)
        self._memory_expiry.pop(job_id, None)

    # Job Management
    def create_job(self, job_id: str, job_data: Dict[str, Any]) -> bool:
        """Create a new job entry."""
        try:
            job_data["created_at"] = time.time()
            job_data["last_update"] = time.time()

            if self.redis_available:
                self.redis_client.setex(self._get_job_key(job_id), self.JOB_TTL, self._serialize(job_data))
            else:
                with self._memory_lock:
                    self._purge_expired()
                    self._memory_jobs[job_id] = copy.deepcopy(job_data)
                    self._touch(job_id)
            return True
        except redis.RedisError as e:
            logger.error("Failed to create job %s: %s", job_id, e)
            return False

    def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Get a copy of the job data by ID."""
        try:
            if self.redis_available:
                data = self.redis_client.get(self._get_job_key(job_id))
                return self._deserialize(data) if data else None
            with self._memory_lock:
                self._purge_expired()
                job = self._memory_jobs.get(job_id)
                return copy.deepcopy(job) if job is not None else None
        except redis.RedisError as e:
            logger.error("Failed to get job %s: %s", job_id, e)
            return None

    def update_job(self, job_id: str, updates: Dict[str, Any]) -> bool:
        """Merge ``updates`` into the stored job and renew its TTL."""
        try:
            updates["last_update"] = time.time()

            if self.redis_available:
                job_key = self._get_job_key(job_id)
                existing_data = self.redis_client.get(job_key)
                if not existing_data:
                    return False
                job_data = self._deserialize(existing_data)
                job_data.update(updates)
                self.redis_client.setex(job_key, self.JOB_TTL, self._serialize(job_data))
                return True

            with self._memory_lock:
                self._purge_expired()
                if job_id not in self._memory_jobs:
                    return False
                self._memory_jobs[job_id].update(copy.deepcopy(updates))
                self._touch(job_id)
                return True
        except redis.RedisError as e:
            logger.error("Failed to update job %s: %s", job_id, e)
            return False

    # Chunk Results Management
    def set_chunk_result(self, job_id: str, chunk_id: str, chunk_data: Dict[str, Any]) -> bool:
        """Set chunk result data."""
        try:
            chunk_data["last_update"] = time.time()

            if self.redis_available:
                result_key = self._get_result_key(job_id)
                existing_results = self.redis_client.hget(result_key, "chunks") or "{}"
                results_data = self._deserialize(existing_results)
                results_data[chunk_id] = chunk_data
                self.redis_client.hset(result_key, "chunks", self._serialize(results_data))
                self.redis_client.expire(result_key, self.JOB_TTL)
            else:
                with self._memory_lock:
                    self._purge_expired()
                    self._memory_results.setdefault(job_id, {})[chunk_id] = copy.deepcopy(chunk_data)
                    self._touch(job_id)
            return True
        except redis.RedisError as e:
            logger.error("Failed to set chunk result %s:%s: %s", job_id, chunk_id, e)
            return False

    def get_chunk_results(self, job_id: str) -> Dict[str, Any]:
        """Get a copy of all chunk results for a job."""
        try:
            if self.redis_available:
                chunks_data = self.redis_client.hget(self._get_result_key(job_id), "chunks")
                return self._deserialize(chunks_data) if chunks_data else {}
            with self._memory_lock:
                self._purge_expired()
                return copy.deepcopy(self._memory_results.get(job_id, {}))
        except redis.RedisError as e:
            logger.error("Failed to get chunk results %s: %s", job_id, e)
            return {}

    def cleanup_job(self, job_id: str) -> bool:
        """Clean up job and its results."""
        try:
            if self.redis_available:
                self.redis_client.delete(self._get_job_key(job_id), self._get_result_key(job_id))
            else:
                with self._memory_lock:
                    self._drop(job_id)
            return True
        except redis.RedisError as e:
            logger.error("Failed to cleanup job %s: %s", job_id, e)
            return False


class JobThreadPoolManager:
    """Runs jobs on a thread pool and tracks their cancellation flags.

    With ``max_workers=1`` jobs queue up and at most one runs at a time.
    A job's entries are released as soon as its function returns.
    """

    def __init__(self, max_workers: int = 1, thread_name_prefix: str = "tt_worker"):
        self.max_workers = max_workers
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=thread_name_prefix)
        self.active_futures: Dict[str, Future] = {}
        self.cancel_events: Dict[str, threading.Event] = {}
        self._lock = threading.Lock()

    def submit_job(self, job_id: str, func: Callable[..., Any], *args, **kwargs) -> Future:
        """Submit a job; ``func`` receives the job's cancel event as ``cancel_event``."""
        with self._lock:
            cancel_event = self.cancel_events.setdefault(job_id, threading.Event())
            future = self.executor.submit(self._run, job_id, func, args, kwargs, cancel_event)
            self.active_futures[job_id] = future
        return future

    def _run(
        self,
        job_id: str,
        func: Callable[..., Any],
        args: tuple,
        kwargs: Dict[str, Any],
        cancel_event: threading.Event,
    ) -> Any:
        try:
            return func(*args, cancel_event=cancel_event, **kwargs)
        finally:
            self.cleanup_job(job_id)

    def cancel_job(self, job_id: str) -> bool:
        with self._lock:
            event = self.cancel_events.get(job_id)
        if event is None:
            return False
        event.set()
        return True

    def cleanup_job(self, job_id: str) -> None:
        with self._lock:
            self.active_futures.pop(job_id, None)
            self.cancel_events.pop(job_id, None)
