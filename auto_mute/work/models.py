from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class JobStatus(str, Enum):
    uploading = "uploading"
    processing = "processing"
    completed = "completed"
    failed = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.completed, JobStatus.failed)

    @property
    def is_active(self) -> bool:
        return self in (JobStatus.uploading, JobStatus.processing)


# forward-only state machine
_TRANSITIONS = {
    JobStatus.uploading: {JobStatus.processing},
    JobStatus.processing: {JobStatus.completed, JobStatus.failed},
    JobStatus.completed: set(),
    JobStatus.failed: set(),
}


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return target in _TRANSITIONS[current]


@dataclass
class Job:
    id: str
    original_name: str
    input_path: str
    status: JobStatus = JobStatus.uploading
    progress: int = 0
    output_path: Optional[str] = None
    output_filename: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    completed_at: Optional[float] = None
    error: Optional[str] = None

    def to_progress(self) -> Dict[str, Any]:
        return {
            "success": True,
            "jobId": self.id,
            "status": self.status.value,
            "progress": self.progress,
            "originalName": self.original_name,
            "error": self.error,
        }


@dataclass(frozen=True)
class Counters:
    total_uploads: int = 0
    total_processed: int = 0
    total_failed: int = 0
