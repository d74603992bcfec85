from __future__ import annotations

import os
import stat
import sys
import tempfile
import textwrap
import unittest
from pathlib import Path
from typing import Iterable

from auto_mute.config import Settings
from auto_mute.work.runtime import Runtime


def write_script(directory: Path, name: str, body: str) -> str:
    path = Path(directory) / name
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body), encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


def fake_ffprobe(directory: Path, output: str = "10.000000", code: int = 0) -> str:
    return write_script(
        directory,
        "ffprobe",
        f"""
        import sys
        print({output!r})
        sys.exit({code})
        """,
    )


def fake_ffmpeg(directory: Path, times_us: Iterable[int] = (0, 2_500_000, 5_000_000, 10_000_000)) -> str:
    """Copies the input to the output and reports the given out_time_ms values."""
    return write_script(
        directory,
        "ffmpeg",
        f"""
        import shutil
        import sys

        args = sys.argv[1:]
        src = args[args.index("-i") + 1]
        dst = args[-1]
        for t in {list(times_us)!r}:
            print("frame=1")
            print("out_time_ms=%d" % t)
            print("progress=continue", flush=True)
        shutil.copyfile(src, dst)
        print("progress=end", flush=True)
        """,
    )


def failing_ffmpeg(directory: Path, stderr_size: int = 5000, code: int = 1) -> str:
    return write_script(
        directory,
        "ffmpeg",
        f"""
        import sys

        args = sys.argv[1:]
        dst = args[-1]
        open(dst, "wb").write(b"partial")
        sys.stderr.write("E" * {stderr_size})
        sys.stderr.flush()
        sys.exit({code})
        """,
    )


def noisy_ffmpeg(directory: Path, size: int = 256 * 1024) -> str:
    """Fills both pipes well past the OS buffer before exiting."""
    return write_script(
        directory,
        "ffmpeg",
        f"""
        import shutil
        import sys

        args = sys.argv[1:]
        src = args[args.index("-i") + 1]
        dst = args[-1]
        line = "x" * 99 + "\\n"
        for _ in range({size} // 100):
            sys.stderr.write(line)
            sys.stdout.write("stream_0_0_q=" + line)
        print("out_time_ms=1000000")
        shutil.copyfile(src, dst)
        print("progress=end")
        """,
    )


class TempDirCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.bin_dir = self.tmp / "bin"
        self.bin_dir.mkdir()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def make_settings(self, **overrides) -> Settings:
        values = dict(
            data_dir=self.tmp / "data",
            ffmpeg_path=overrides.pop("ffmpeg_path", None) or fake_ffmpeg(self.bin_dir),
            ffprobe_path=overrides.pop("ffprobe_path", None) or fake_ffprobe(self.bin_dir),
        )
        values.update(overrides)
        return Settings(**values)

    def make_runtime(self, **overrides) -> Runtime:
        return Runtime.from_settings(self.make_settings(**overrides))


def missing_binary(directory: Path) -> str:
    return os.path.join(str(directory), "does-not-exist")
