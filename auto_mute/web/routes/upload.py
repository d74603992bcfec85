from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from auto_mute.web.deps import get_runtime
from auto_mute.work.jobs import UnsupportedFileType, create_job, run_job
from auto_mute.work.runtime import Runtime
from auto_mute.work.storage import UploadTooLarge

router = APIRouter()


@router.post("/upload")
async def upload(
    background_tasks: BackgroundTasks,
    video: Optional[UploadFile] = File(default=None),
    runtime: Runtime = Depends(get_runtime),
):
    if video is None or not video.filename:
        raise HTTPException(status_code=400, detail="No video file uploaded")

    try:
        job = await run_in_threadpool(create_job, runtime, video.filename, video.content_type, video.file)
    except UnsupportedFileType as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UploadTooLarge:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {runtime.settings.max_upload_mb} MB.",
        )

    background_tasks.add_task(run_job, runtime, job.id)
    return {
        "success": True,
        "jobId": job.id,
        "message": "Upload successful, processing started",
    }
