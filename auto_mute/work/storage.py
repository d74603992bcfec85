from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB


class UploadTooLarge(Exception):
    def __init__(self, max_bytes: int) -> None:
        super().__init__(f"upload exceeds {max_bytes} bytes")
        self.max_bytes = max_bytes


class FileStore:
    """Inbound uploads and processed outputs, each in its own directory."""

    def __init__(self, uploads_dir: Path, outputs_dir: Path) -> None:
        self.uploads_dir = Path(uploads_dir)
        self.outputs_dir = Path(outputs_dir)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        self.outputs_dir.mkdir(parents=True, exist_ok=True)

    def put(self, job_id: str, ext: str, src: BinaryIO, max_bytes: int) -> Path:
        """
        Copy src to uploads/<job_id><ext>, at most max_bytes.
        The partial file is removed before UploadTooLarge is raised.
        """
        path = self.uploads_dir / f"{job_id}{ext}"
        written = 0
        try:
            with path.open("wb") as buf:
                while True:
                    chunk = src.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > max_bytes:
                        raise UploadTooLarge(max_bytes)
                    buf.write(chunk)
        except Exception:
            path.unlink(missing_ok=True)
            raise
        return path

    def path_for(self, job_id: str) -> Optional[Path]:
        for p in self.uploads_dir.glob(f"{job_id}.*"):
            return p
        return None

    def output_path_for(self, job_id: str, ext: str) -> Path:
        return self.outputs_dir / f"{job_id}_muted{ext}"

    def sweep(self, max_age: float, now: Optional[float] = None) -> int:
        """Delete files in both directories last modified more than max_age seconds ago."""
        now = time.time() if now is None else now
        removed = 0
        for d in (self.uploads_dir, self.outputs_dir):
            if not d.exists():
                continue
            for p in d.iterdir():
                try:
                    if now - p.stat().st_mtime > max_age:
                        p.unlink()
                        removed += 1
                except FileNotFoundError:
                    # vanished between listing and stat/unlink
                    continue
                except OSError as e:
                    logger.warning("failed to remove %s: %s", p, e)
        return removed
