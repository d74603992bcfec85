from __future__ import annotations

from dataclasses import dataclass

from auto_mute.config import Settings
from auto_mute.work.registry import JobRegistry
from auto_mute.work.storage import FileStore


@dataclass
class Runtime:
    """Process-wide state owned by one app instance."""

    settings: Settings
    registry: JobRegistry
    store: FileStore

    @classmethod
    def from_settings(cls, settings: Settings) -> "Runtime":
        return cls(
            settings=settings,
            registry=JobRegistry(),
            store=FileStore(settings.uploads_dir, settings.outputs_dir),
        )
