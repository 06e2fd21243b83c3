"""
Conftest: shared fixtures for all Coinflip test modules.

1. Synthetic frames — gradient and two-tone frames with known red channels
2. Workspace settings — RunSettings rooted in pytest's tmp_path
3. Fake FFmpeg — a tool runner that writes PNG frames instead of decoding video
"""

import os
import sys

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.settings import RunSettings
from core.video_io import ToolResult, save_frame


def _make_test_frame(width=32, height=24):
    """Generate a synthetic test frame (gradient, not blank).

    Red runs 0..255 across the width, so column 0 is black-origin.
    """
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :, 0] = np.linspace(0, 255, width, dtype=np.uint8)  # R gradient
    frame[:, :, 1] = 128  # constant G
    frame[:, :, 2] = np.linspace(255, 0, width, dtype=np.uint8)  # B inverse
    return frame


def _make_two_tone_frame(width=32, height=24):
    """Left half red=0 (black-origin), right half red=200 (white-origin)."""
    frame = np.full((height, width, 3), 77, dtype=np.uint8)
    frame[:, : width // 2, 0] = 0
    frame[:, width // 2:, 0] = 200
    return frame


class FakeFFmpeg:
    """Stands in for run_tool. Records every command.

    Extraction writes `frame_count` synthetic PNGs into the output pattern's
    directory; compilation touches the output file.
    """

    def __init__(self, frame_count=3, width=16, height=8,
                 extract_code=0, compile_code=0, stderr="ffmpeg: boom"):
        self.frame_count = frame_count
        self.width = width
        self.height = height
        self.extract_code = extract_code
        self.compile_code = compile_code
        self.stderr = stderr
        self.calls = []

    def __call__(self, args):
        self.calls.append(list(args))
        if "-vsync" in args:
            if self.extract_code:
                return ToolResult(self.extract_code, self.stderr)
            target = args[-1]
            start = int(args[args.index("-start_number") + 1])
            for i in range(self.frame_count):
                frame = _make_test_frame(self.width, self.height)
                frame[0, 0, 0] = (i * 37) % 256
                save_frame(frame, target % (start + i))
            return ToolResult(0, "")
        if self.compile_code:
            return ToolResult(self.compile_code, self.stderr)
        with open(args[-1], "wb") as f:
            f.write(b"\x00" * 16)
        return ToolResult(0, "")


@pytest.fixture
def test_frame():
    return _make_test_frame()


@pytest.fixture
def two_tone_frame():
    return _make_two_tone_frame()


@pytest.fixture
def settings(tmp_path):
    """RunSettings with every path inside tmp_path."""
    return RunSettings(
        input_video=tmp_path / "input.mp4",
        frames_dir=tmp_path / "frames",
        modified_frames_dir=tmp_path / "modified_frames",
        output_video=tmp_path / "output.mp4",
    )


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    """FakeFFmpeg runner; also pins the ffmpeg binary name so PATH doesn't matter."""
    monkeypatch.setattr("core.video_io.get_ffmpeg", lambda: "ffmpeg")
    return FakeFFmpeg()
