from __future__ import annotations

import unittest

from auto_mute.work.probe import probe_duration
from tests.helpers import TempDirCase, fake_ffprobe, missing_binary


class ProbeDurationTests(TempDirCase):
    def setUp(self) -> None:
        super().setUp()
        self.media = self.tmp / "in.mp4"
        self.media.write_bytes(b"\x00")

    def test_reads_duration(self) -> None:
        ffprobe = fake_ffprobe(self.bin_dir, "12.480000")
        self.assertAlmostEqual(probe_duration(self.media, ffprobe), 12.48)

    def test_non_zero_exit_means_unknown(self) -> None:
        ffprobe = fake_ffprobe(self.bin_dir, "12.0", code=1)
        self.assertEqual(probe_duration(self.media, ffprobe), 0.0)

    def test_unparsable_output_means_unknown(self) -> None:
        for output in ("N/A", "", "-3", "nan"):
            with self.subTest(output=output):
                ffprobe = fake_ffprobe(self.bin_dir, output)
                self.assertEqual(probe_duration(self.media, ffprobe), 0.0)

    def test_missing_binary_means_unknown(self) -> None:
        self.assertEqual(probe_duration(self.media, missing_binary(self.bin_dir)), 0.0)


if __name__ == "__main__":
    unittest.main()
