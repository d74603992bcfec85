from __future__ import annotations

import posixpath
from typing import Optional

from fastapi import HTTPException, Request

from auto_mute.work.runtime import Runtime


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


def sanitize_job_id(raw: str) -> Optional[str]:
    """Normalize a path-supplied id; None when it tries to climb directories."""
    normalized = posixpath.normpath(raw.replace("\\", "/"))
    if ".." in normalized:
        return None
    return normalized


def valid_job_id(job_id: str) -> str:
    clean = sanitize_job_id(job_id)
    if clean is None:
        raise HTTPException(status_code=400, detail="Invalid job ID")
    return clean
