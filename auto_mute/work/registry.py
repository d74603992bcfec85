"""
In-memory job registry.

All job state lives here and is lost on restart. Every read and write goes
through one lock; expected concurrency is tens of jobs, not thousands.
Readers get copies, so a returned Job never changes under the caller.
"""

from __future__ import annotations

import dataclasses
import threading
import time
from typing import Callable, Dict, List, Optional

from auto_mute.work.models import Counters, Job, JobStatus, can_transition


class InvalidTransition(ValueError):
    pass


class JobRegistry:
    def __init__(self) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._counters = Counters()
        self.started_at = time.time()

    # ── basic contract ───────────────────────────────────────────────────────

    def create(self, job: Job) -> None:
        with self._lock:
            if job.id in self._jobs:
                raise ValueError(f"job {job.id} already exists")
            self._jobs[job.id] = dataclasses.replace(job)

    def get(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            return dataclasses.replace(job) if job else None

    def mutate(self, job_id: str, fn: Callable[[Job], None]) -> bool:
        """
        Apply fn to the stored job under the lock.
        Returns False when the job is unknown (never created or already evicted).
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return False
            fn(job)
            return True

    def sweep_expired(self, max_age: float, now: Optional[float] = None) -> int:
        """Drop every job older than max_age seconds, whatever its status."""
        now = time.time() if now is None else now
        with self._lock:
            expired = [jid for jid, job in self._jobs.items() if now - job.created_at > max_age]
            for jid in expired:
                del self._jobs[jid]
        return len(expired)

    def snapshot(self) -> List[Job]:
        with self._lock:
            return [dataclasses.replace(job) for job in self._jobs.values()]

    # ── transitions ──────────────────────────────────────────────────────────

    def _transition(self, job: Job, target: JobStatus) -> None:
        if not can_transition(job.status, target):
            raise InvalidTransition(f"job {job.id}: {job.status.value} -> {target.value}")
        job.status = target

    def mark_processing(self, job_id: str, output_path: str, output_filename: str) -> bool:
        def _apply(job: Job) -> None:
            self._transition(job, JobStatus.processing)
            job.progress = 0
            job.output_path = output_path
            job.output_filename = output_filename

        return self.mutate(job_id, _apply)

    def update_progress(self, job_id: str, progress: int) -> bool:
        def _apply(job: Job) -> None:
            if job.status is not JobStatus.processing:
                return
            # never move backwards, never reach 100 before completion
            job.progress = max(job.progress, min(99, max(0, int(progress))))

        return self.mutate(job_id, _apply)

    def mark_completed(self, job_id: str) -> bool:
        def _apply(job: Job) -> None:
            self._transition(job, JobStatus.completed)
            job.progress = 100
            job.completed_at = time.time()

        found = self.mutate(job_id, _apply)
        # the transcode finished even if the record was evicted meanwhile
        self._bump("total_processed")
        return found

    def mark_failed(self, job_id: str, error: str) -> bool:
        def _apply(job: Job) -> None:
            self._transition(job, JobStatus.failed)
            job.error = error
            job.output_path = None

        found = self.mutate(job_id, _apply)
        self._bump("total_failed")
        return found

    # ── aggregate counters ───────────────────────────────────────────────────

    def _bump(self, name: str) -> None:
        with self._lock:
            current = getattr(self._counters, name)
            self._counters = dataclasses.replace(self._counters, **{name: current + 1})

    def record_upload(self) -> None:
        self._bump("total_uploads")

    @property
    def counters(self) -> Counters:
        with self._lock:
            return self._counters

    def active_count(self) -> int:
        return sum(1 for job in self.snapshot() if job.status.is_active)
