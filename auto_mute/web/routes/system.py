from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends

from auto_mute.web.deps import get_runtime
from auto_mute.work.runtime import Runtime

router = APIRouter()


def uptime(started_at: float, now: float) -> Dict[str, int]:
    total_ms = int((now - started_at) * 1000)
    total_s = total_ms // 1000
    return {
        "days": total_s // 86400,
        "hours": (total_s // 3600) % 24,
        "minutes": (total_s // 60) % 60,
        "seconds": total_s % 60,
        "totalMs": total_ms,
    }


@router.get("/stats")
def stats(runtime: Runtime = Depends(get_runtime)):
    registry = runtime.registry
    counters = registry.counters
    return {
        "success": True,
        "uptime": uptime(registry.started_at, time.time()),
        "totalUploads": counters.total_uploads,
        "totalProcessed": counters.total_processed,
        "totalFailed": counters.total_failed,
        "activeJobs": registry.active_count(),
    }


@router.get("/health")
def health():
    return {
        "success": True,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
