from __future__ import annotations

import logging
import math
import subprocess
import threading
import uuid
from pathlib import Path
from typing import BinaryIO, Callable, IO, List, Optional, Tuple

from auto_mute.work.models import Job
from auto_mute.work.probe import probe_duration
from auto_mute.work.registry import InvalidTransition
from auto_mute.work.runtime import Runtime

logger = logging.getLogger(__name__)

# bounded so a misbehaving transcoder cannot grow memory without limit
STDERR_LIMIT = 500

MICROSECONDS = 1_000_000


class UnsupportedFileType(ValueError):
    pass


# --------- upload intake ----------
def _safe_name(filename: str) -> str:
    return filename.replace("/", "_").replace("\\", "_")


def validate_upload(runtime: Runtime, filename: str, content_type: Optional[str]) -> str:
    """Return the lower-cased extension, or raise UnsupportedFileType."""
    settings = runtime.settings
    ext = Path(filename).suffix.lower()
    if ext not in settings.allowed_extensions:
        logger.warning("rejected file with invalid extension: %r", ext)
        raise UnsupportedFileType(f"Invalid file type. Allowed: {', '.join(settings.allowed_extensions)}")

    mime = (content_type or "application/octet-stream").split(";")[0].strip().lower()
    if mime not in settings.allowed_mimetypes:
        logger.warning("rejected file with invalid MIME type: %r", mime)
        raise UnsupportedFileType("Invalid file type. Please upload a valid video file.")
    return ext


def create_job(runtime: Runtime, filename: str, content_type: Optional[str], src: BinaryIO) -> Job:
    ext = validate_upload(runtime, filename, content_type)
    job_id = uuid.uuid4().hex
    input_path = runtime.store.put(job_id, ext, src, runtime.settings.max_upload_bytes)

    job = Job(id=job_id, original_name=_safe_name(filename), input_path=str(input_path))
    runtime.registry.create(job)
    runtime.registry.record_upload()
    logger.info("file uploaded: %s (job %s)", job.original_name, job_id)
    return job


# --------- transcoder ----------
def build_strip_audio_command(ffmpeg_path: str, input_path: str, output_path: str) -> List[str]:
    return [
        ffmpeg_path,
        "-hide_banner",
        "-i", input_path,
        "-an",  # drop audio
        "-c:v", "copy",  # remux only, no re-encoding
        "-y",
        "-progress", "pipe:1",
        "-nostats",
        output_path,
    ]


def ffmpeg_available(ffmpeg_path: str) -> bool:
    try:
        proc = subprocess.run([ffmpeg_path, "-version"], capture_output=True, timeout=5)
    except (OSError, subprocess.TimeoutExpired):
        return False
    return proc.returncode == 0


def parse_progress_line(line: str, duration: float) -> Optional[int]:
    """
    Turn one `out_time_ms=<microseconds>` line into a percentage in [0, 99].
    Returns None for other keys, unparsable values, or an unknown duration.
    """
    key, sep, value = line.strip().partition("=")
    if key != "out_time_ms" or not sep:
        return None
    try:
        micros = int(value)
    except ValueError:
        return None
    if duration <= 0:
        return None
    pct = max(0.0, micros / MICROSECONDS / duration * 100)
    # half-up rounding; 100 is reserved for a finished job
    return min(99, math.floor(pct + 0.5))


def _drain(stream: IO[str], limit: int, sink: List[str]) -> None:
    kept = 0
    for line in stream:
        if kept < limit:
            piece = line[: limit - kept]
            sink.append(piece)
            kept += len(piece)


def run_transcoder(
    cmd: List[str],
    duration: float,
    on_progress: Callable[[int], None],
) -> Tuple[int, str]:
    """
    Run the transcoder until it exits.

    stdout is parsed for progress here while stderr is drained on its own
    thread; reading them one after the other can deadlock once a pipe fills.
    Returns (exit code, first STDERR_LIMIT chars of stderr).
    Raises OSError when the binary cannot be started.
    """
    process = subprocess.Popen(
        cmd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    stderr_parts: List[str] = []
    stderr_thread = threading.Thread(
        target=_drain, args=(process.stderr, STDERR_LIMIT, stderr_parts), daemon=True
    )
    stderr_thread.start()

    for line in process.stdout:
        pct = parse_progress_line(line, duration)
        if pct is not None:
            on_progress(pct)
        elif line.startswith("progress=end"):
            logger.debug("transcoder reported end of stream")

    stderr_thread.join()
    returncode = process.wait()
    return returncode, "".join(stderr_parts).strip()


def _fail(runtime: Runtime, job_id: str, output_path: Path, message: str) -> None:
    output_path.unlink(missing_ok=True)
    runtime.registry.mark_failed(job_id, message)
    logger.error("job %s failed: %s", job_id, message)


def run_job(runtime: Runtime, job_id: str) -> None:
    registry = runtime.registry
    settings = runtime.settings

    job = registry.get(job_id)
    if job is None:
        logger.warning("job %s no longer exists, skipping", job_id)
        return

    ext = Path(job.input_path).suffix.lower()
    output_path = runtime.store.output_path_for(job_id, ext)
    try:
        if not registry.mark_processing(job_id, str(output_path), f"muted_{job.original_name}"):
            logger.warning("job %s evicted before processing, skipping", job_id)
            return
    except InvalidTransition as e:
        logger.warning("not starting job %s: %s", job_id, e)
        return

    logger.info("processing started for job %s", job_id)
    try:
        duration = probe_duration(job.input_path, settings.ffprobe_path)
        logger.info("job %s duration: %.2f seconds", job_id, duration)

        cmd = build_strip_audio_command(settings.ffmpeg_path, job.input_path, str(output_path))
        try:
            returncode, stderr = run_transcoder(
                cmd, duration, lambda pct: registry.update_progress(job_id, pct)
            )
        except OSError as e:
            _fail(runtime, job_id, output_path, f"could not start ffmpeg: {e}")
            return

        if returncode != 0:
            message = f"ffmpeg exited with code {returncode}"
            if stderr:
                message = f"{message}: {stderr}"
            _fail(runtime, job_id, output_path, message)
            return

        registry.mark_completed(job_id)
        logger.info("job %s completed", job_id)
    except Exception:
        logger.exception("unexpected error while processing job %s", job_id)
        _fail(runtime, job_id, output_path, "internal error while processing")
