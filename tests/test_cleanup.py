from __future__ import annotations

import os
import time
import unittest
from pathlib import Path

from fastapi.testclient import TestClient

from auto_mute.server import create_app
from auto_mute.work.cleanup import Sweeper, sweep_once
from auto_mute.work.models import Job
from tests.helpers import TempDirCase


class SweepOnceTests(TempDirCase):
    def test_old_jobs_and_files_are_evicted_fresh_ones_kept(self) -> None:
        app = create_app(self.make_settings(retention_seconds=3600), start_sweeper=False)
        runtime = app.state.runtime
        client = TestClient(app)

        old_id = client.post("/upload", files={"video": ("a.mp4", b"old", "video/mp4")}).json()["jobId"]
        new_id = client.post("/upload", files={"video": ("b.mp4", b"new", "video/mp4")}).json()["jobId"]
        old = runtime.registry.get(old_id)

        # age the first job and its files by two hours
        now = time.time()
        runtime.registry.mutate(old_id, lambda j: setattr(j, "created_at", now - 7200))
        for p in (Path(old.input_path), Path(old.output_path)):
            os.utime(p, (now - 7200, now - 7200))

        self.assertEqual(sweep_once(runtime, now=now), 2)

        self.assertIsNone(runtime.registry.get(old_id))
        self.assertFalse(Path(old.input_path).exists())
        self.assertFalse(Path(old.output_path).exists())
        self.assertEqual(client.get(f"/progress/{old_id}").status_code, 404)
        self.assertEqual(client.get(f"/download/{old_id}").status_code, 404)

        self.assertIsNotNone(runtime.registry.get(new_id))
        self.assertEqual(client.get(f"/download/{new_id}").content, b"new")
        # counters survive eviction
        self.assertEqual(runtime.registry.counters.total_uploads, 2)

    def test_job_still_inside_window_survives(self) -> None:
        runtime = self.make_runtime(retention_seconds=3600)
        now = time.time()
        runtime.registry.create(Job(id="j", original_name="a.mp4", input_path="/x", created_at=now - 3599))

        sweep_once(runtime, now=now)
        self.assertIsNotNone(runtime.registry.get("j"))


class SweeperThreadTests(TempDirCase):
    def test_timer_evicts_expired_jobs(self) -> None:
        runtime = self.make_runtime(retention_seconds=0.0, sweep_interval_seconds=0.05)
        runtime.registry.create(Job(id="j", original_name="a.mp4", input_path="/x", created_at=time.time() - 1))
        sweeper = Sweeper(runtime)
        sweeper.start()
        try:
            deadline = time.time() + 5
            while runtime.registry.get("j") is not None and time.time() < deadline:
                time.sleep(0.02)
        finally:
            sweeper.stop()

        self.assertIsNone(runtime.registry.get("j"))
        self.assertFalse(sweeper.running)

    def test_lifespan_starts_and_stops_sweeper(self) -> None:
        app = create_app(self.make_settings(), start_sweeper=True)
        with TestClient(app) as client:
            self.assertTrue(app.state.sweeper.running)
            self.assertEqual(client.get("/health").status_code, 200)
        self.assertFalse(app.state.sweeper.running)


if __name__ == "__main__":
    unittest.main()
