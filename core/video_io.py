"""
Coinflip — Video I/O
Frame extraction (video → numbered PNGs) and reassembly (PNGs → video).
Uses FFmpeg subprocess for all codec work; frames are loaded and saved with Pillow.
"""

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image

STDERR_TAIL = 500


class FFmpegError(RuntimeError):
    """Raised when an FFmpeg stage exits non-zero."""

    def __init__(self, stage: str, returncode: int, stderr: str):
        self.stage = stage
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"FFmpeg {stage} failed (exit code {returncode}): {_tail(stderr)}"
        )


class ExtractionError(FFmpegError):
    """Frame extraction failed. Nothing downstream can run."""

    def __init__(self, returncode: int, stderr: str):
        super().__init__("frame extraction", returncode, stderr)


@dataclass(frozen=True)
class ToolResult:
    """Exit status and diagnostic text of one external tool invocation."""
    returncode: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def tail(self, limit: int = STDERR_TAIL) -> str:
        """Last `limit` chars of stderr (FFmpeg prints the real error last)."""
        return _tail(self.stderr, limit)


def _tail(text: str, limit: int = STDERR_TAIL) -> str:
    text = (text or "").strip()
    return text[-limit:] if len(text) > limit else text


def get_ffmpeg():
    """Find FFmpeg binary."""
    path = shutil.which("ffmpeg")
    if not path:
        raise RuntimeError("FFmpeg not found. Install with: brew install ffmpeg")
    return path


def run_tool(args: list) -> ToolResult:
    """Run a command to completion, capturing stderr.

    Args:
        args: Full argument vector; args[0] is the executable.

    Returns:
        ToolResult with the exit code and decoded stderr.
    """
    result = subprocess.run(
        [str(a) for a in args],
        stdin=subprocess.DEVNULL,
        capture_output=True,
    )
    stderr = (result.stderr or b"").decode("utf-8", errors="replace")
    return ToolResult(returncode=result.returncode, stderr=stderr)


def format_rate(fps: float) -> str:
    """30.0 → '30', 29.97 → '29.97'."""
    fps = float(fps)
    return str(int(fps)) if fps.is_integer() else repr(fps)


def frame_path(directory, index: int, pattern: str = "frame_%04d.png") -> Path:
    """Path of frame `index` inside `directory`."""
    return Path(directory) / (pattern % index)


def extract_command(video_path, frames_dir, fps: float = 30.0,
                    start_number: int = 0, pattern: str = "frame_%04d.png",
                    ffmpeg: str | None = None) -> list[str]:
    """Argument vector that samples `video_path` into numbered PNGs."""
    return [
        ffmpeg or get_ffmpeg(),
        "-i", str(video_path),
        "-vf", f"fps={format_rate(fps)}",
        "-start_number", str(start_number),
        "-vsync", "vfr",  # no dropped or duplicated frames
        str(Path(frames_dir) / pattern),
    ]


def compile_command(frames_dir, output_path, fps: float = 30.0,
                    pattern: str = "frame_%04d.png", codec: str = "libx264",
                    crf: int = 23, preset: str = "medium",
                    pixel_format: str = "yuv420p", start_number: int = 0,
                    ffmpeg: str | None = None) -> list[str]:
    """Argument vector that encodes a numbered PNG sequence into a video."""
    cmd = [ffmpeg or get_ffmpeg(), "-y", "-framerate", format_rate(fps)]
    if start_number:
        cmd += ["-start_number", str(start_number)]
    cmd += [
        "-i", str(Path(frames_dir) / pattern),
        "-c:v", codec,
        "-crf", str(crf),
        "-preset", str(preset),
        "-pix_fmt", pixel_format,
        str(output_path),
    ]
    return cmd


def extract_frames(video_path, frames_dir, fps: float = 30.0,
                   start_number: int = 0, pattern: str = "frame_%04d.png",
                   runner=run_tool) -> ToolResult:
    """Extract frames from a video as numbered PNG files.

    Args:
        video_path: Path to input video.
        frames_dir: Existing directory to write frame PNGs into.
        fps: Sampling rate in frames per second.
        start_number: Index of the first frame written.
        pattern: printf-style filename pattern.
        runner: Callable(args) -> ToolResult. Defaults to a real subprocess.

    Returns:
        ToolResult of the FFmpeg invocation.

    Raises:
        ExtractionError: If FFmpeg exits non-zero.
    """
    cmd = extract_command(video_path, frames_dir, fps, start_number, pattern)
    result = runner(cmd)
    if not result.ok:
        raise ExtractionError(result.returncode, result.stderr)
    return result


def compile_frames(frames_dir, output_path, fps: float = 30.0,
                   pattern: str = "frame_%04d.png", encode=None, start_number: int = 0,
                   runner=run_tool) -> ToolResult:
    """Reassemble numbered PNG frames into a video file.

    Failure is reported through the returned ToolResult, not raised; the
    caller decides how loudly to complain.

    Args:
        frames_dir: Directory containing the numbered frames.
        output_path: Output video file path.
        fps: Frames per second (should match the extraction rate).
        pattern: printf-style filename pattern.
        encode: EncodeSettings (or None for libx264 / crf 23 / medium / yuv420p).
        start_number: Number of the first frame file (image2 -start_number).
        runner: Callable(args) -> ToolResult.

    Returns:
        ToolResult of the FFmpeg invocation.
    """
    codec_args = {}
    if encode is not None:
        codec_args = {
            "codec": encode.codec,
            "crf": encode.crf,
            "preset": getattr(encode.preset, "value", encode.preset),
            "pixel_format": encode.pixel_format,
        }
    cmd = compile_command(frames_dir, output_path, fps, pattern,
                          start_number=start_number, **codec_args)
    return runner(cmd)


def load_frame(frame_path) -> np.ndarray:
    """Load a frame PNG as a numpy array (H, W, 3) uint8 RGB."""
    with Image.open(str(frame_path)) as img:
        return np.array(img.convert("RGB"))


def save_frame(array: np.ndarray, output_path):
    """Save a numpy array (H, W, 3) as PNG."""
    img = Image.fromarray(np.clip(array, 0, 255).astype(np.uint8))
    img.save(str(output_path), format="PNG")
