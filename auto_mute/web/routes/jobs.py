from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from auto_mute.web.deps import get_runtime, valid_job_id
from auto_mute.work.models import JobStatus
from auto_mute.work.runtime import Runtime

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/progress/{job_id}")
def progress(job_id: str = Depends(valid_job_id), runtime: Runtime = Depends(get_runtime)):
    job = runtime.registry.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job.to_progress()


@router.get("/download/{job_id}")
def download(job_id: str = Depends(valid_job_id), runtime: Runtime = Depends(get_runtime)):
    job = runtime.registry.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    if job.status is not JobStatus.completed:
        raise HTTPException(status_code=400, detail="Job not completed yet")
    if not job.output_path or not Path(job.output_path).exists():
        raise HTTPException(status_code=404, detail="Output file not found")

    logger.info("download requested for job %s", job_id)
    return FileResponse(job.output_path, filename=job.output_filename)
