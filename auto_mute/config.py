from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parent.parent

DEFAULT_EXTENSIONS = ".mp4,.mov,.avi,.mkv,.webm,.wmv,.flv,.m4v,.mpeg,.mpg,.3gp"
DEFAULT_MIMETYPES = ",".join(
    [
        "video/mp4",
        "video/quicktime",
        "video/x-msvideo",
        "video/x-matroska",
        "video/webm",
        "video/x-ms-wmv",
        "video/x-flv",
        "video/mpeg",
        "video/3gpp",
        # large files are often sent without a specific type
        "application/octet-stream",
    ]
)


def _split(value: str) -> Tuple[str, ...]:
    return tuple(s.strip().lower() for s in value.split(",") if s.strip())


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    data_dir: Path = ROOT / "data"
    max_upload_mb: int = 2048
    retention_seconds: float = 3600.0
    sweep_interval_seconds: float = 300.0
    allowed_extensions: Tuple[str, ...] = _split(DEFAULT_EXTENSIONS)
    allowed_mimetypes: Tuple[str, ...] = _split(DEFAULT_MIMETYPES)
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    log_level: str = "INFO"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def uploads_dir(self) -> Path:
        return Path(self.data_dir) / "uploads"

    @property
    def outputs_dir(self) -> Path:
        return Path(self.data_dir) / "outputs"

    @classmethod
    def from_env(cls) -> "Settings":
        # load in increasing precedence
        load_dotenv(ROOT / ".env")
        load_dotenv(ROOT / ".env.local", override=True)
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            data_dir=Path(os.getenv("DATA_DIR", str(ROOT / "data"))),
            max_upload_mb=int(os.getenv("MAX_UPLOAD_MB", "2048")),
            retention_seconds=float(os.getenv("RETENTION_SECONDS", "3600")),
            sweep_interval_seconds=float(os.getenv("SWEEP_INTERVAL_SECONDS", "300")),
            allowed_extensions=_split(os.getenv("ALLOWED_EXTENSIONS", DEFAULT_EXTENSIONS)),
            allowed_mimetypes=_split(os.getenv("ALLOWED_MIMETYPES", DEFAULT_MIMETYPES)),
            ffmpeg_path=os.getenv("FFMPEG_PATH", "ffmpeg"),
            ffprobe_path=os.getenv("FFPROBE_PATH", "ffprobe"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
