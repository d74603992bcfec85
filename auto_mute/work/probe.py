from __future__ import annotations

import logging
import math
import subprocess
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 30


def probe_duration(path: Union[str, Path], ffprobe_path: str = "ffprobe") -> float:
    """
    Return the media duration in seconds, or 0.0 when it cannot be determined.
    0.0 means "unknown": progress falls back to best effort, the job still runs.
    """
    cmd = [
        ffprobe_path,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=PROBE_TIMEOUT_SECONDS)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("ffprobe could not run on %s: %s", path, e)
        return 0.0
    if proc.returncode != 0:
        logger.warning("ffprobe exited with code %s on %s", proc.returncode, path)
        return 0.0
    try:
        duration = float(proc.stdout.strip())
    except ValueError:
        return 0.0
    if math.isnan(duration) or math.isinf(duration) or duration < 0:
        return 0.0
    return duration
