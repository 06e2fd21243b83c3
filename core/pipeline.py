"""
Coinflip — Dither Pipeline
Wipes the workspace, extracts frames with FFmpeg, dithers every frame,
then compiles the dithered frames back into a video.

Frames are independent: each one rebuilds its coin streams from fixed seeds,
so they can be processed in any order or in parallel with identical output.
"""

import logging
import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

from PIL import UnidentifiedImageError

from core.settings import RunSettings
from core.video_io import (
    compile_frames, extract_frames, frame_path, load_frame, run_tool, save_frame,
)
from effects import apply_effect

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Base class for fatal pipeline failures."""
    pass


class SetupError(PipelineError):
    """Raised when the working directories can't be reset."""
    pass


class FrameDecodeError(PipelineError):
    """Raised when an extracted frame can't be read."""

    def __init__(self, index: int, path, reason: str):
        self.index = index
        self.path = Path(path)
        super().__init__(f"Frame {index} could not be decoded ({self.path}): {reason}")


class FrameWriteError(PipelineError):
    """Raised when a dithered frame can't be written."""

    def __init__(self, index: int, path, reason: str):
        self.index = index
        self.path = Path(path)
        super().__init__(f"Frame {index} could not be written ({self.path}): {reason}")


@dataclass
class RunResult:
    """Outcome of a full run."""
    frame_count: int
    output_video: Path
    compiled: bool
    compile_error: str = ""


def prepare_workspace(settings: RunSettings) -> None:
    """Delete previous output and frame dirs, then recreate empty frame dirs.

    Raises:
        SetupError: If anything can't be deleted or created.
    """
    try:
        settings.output_video.unlink(missing_ok=True)
        for directory in (settings.frames_dir, settings.modified_frames_dir):
            if directory.exists():
                shutil.rmtree(directory)
        settings.frames_dir.mkdir(parents=True)
        settings.modified_frames_dir.mkdir(parents=True)
    except OSError as e:
        raise SetupError(f"Could not reset working directories: {e}") from e


def discover_frames(frames_dir, pattern: str = "frame_%04d.png", start: int = 0) -> list[Path]:
    """Collect contiguously numbered frames, stopping at the first gap."""
    frames = []
    index = start
    while True:
        path = frame_path(frames_dir, index, pattern)
        if not path.exists():
            break
        frames.append(path)
        index += 1
    return frames


def process_frame(index: int, settings: RunSettings, frame_index: int | None = None) -> Path:
    """Dither frame file `index` from frames_dir into modified_frames_dir.

    Args:
        index: Number in the frame filename.
        settings: Run configuration.
        frame_index: Zero-based position in the video, which drives the
            white-stream burn. Defaults to `index - start_number`.

    Raises:
        FrameDecodeError: If the source frame can't be parsed.
        FrameWriteError: If the dithered frame can't be saved.
    """
    pattern = settings.extract.pattern
    src = frame_path(settings.frames_dir, index, pattern)
    dst = frame_path(settings.modified_frames_dir, index, pattern)

    try:
        frame = load_frame(src)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise FrameDecodeError(index, src, str(e)) from e

    if frame_index is None:
        frame_index = index - settings.extract.start_number
    dithered = apply_effect(frame, settings.effect, frame_index=frame_index, **settings.effect_params)

    try:
        save_frame(dithered, dst)
    except (OSError, ValueError) as e:
        raise FrameWriteError(index, dst, str(e)) from e

    logger.debug("frame %d: %dx%d -> %s", index, frame.shape[1], frame.shape[0], dst)
    return dst


def process_frames(settings: RunSettings, progress_callback=None) -> int:
    """Dither every contiguous frame in frames_dir.

    Args:
        settings: Run configuration.
        progress_callback: Optional fn(frame_index, total_frames) after each frame.
            frame_index is the zero-based position, whatever start_number is.

    Returns:
        Number of frames processed.
    """
    start = settings.extract.start_number
    frames = discover_frames(settings.frames_dir, settings.extract.pattern, start)
    total = len(frames)

    def _one(position):
        try:
            process_frame(start + position, settings, frame_index=position)
        except PipelineError:
            logger.exception("Frame %d failed", start + position)
            raise
        if progress_callback:
            progress_callback(position, total)

    if settings.workers > 1 and total > 1:
        executor = ThreadPoolExecutor(max_workers=settings.workers)
        futures = [executor.submit(_one, position) for position in range(total)]
        try:
            for future in as_completed(futures):
                future.result()
        except BaseException:
            # Queued frames never start once one frame has failed
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)
    else:
        for position in range(total):
            _one(position)

    return total


def run(settings: RunSettings | None = None, progress_callback=None, runner=run_tool) -> RunResult:
    """Full run: reset workspace → extract → dither → compile.

    Args:
        settings: Run configuration (defaults reproduce the classic run).
        progress_callback: Optional fn(frame_index, total_frames).
        runner: Callable(args) -> ToolResult used for FFmpeg invocations.

    Returns:
        RunResult. A failed compile is reported here, not raised.

    Raises:
        SetupError, ExtractionError, FrameDecodeError, FrameWriteError.
    """
    settings = settings or RunSettings()
    extract = settings.extract

    prepare_workspace(settings)
    print("Cleaned up frames directory.")

    print("Extracting frames from the original video...")
    extract_frames(
        settings.input_video, settings.frames_dir,
        fps=extract.fps, start_number=extract.start_number,
        pattern=extract.pattern, runner=runner,
    )

    print("Processing frames...")
    count = process_frames(settings, progress_callback=progress_callback)
    print(f"Processed {count} frames.")

    print("Compiling modified frames into a new video...")
    result = compile_frames(
        settings.modified_frames_dir, settings.output_video,
        fps=extract.fps, pattern=extract.pattern,
        encode=settings.encode, start_number=extract.start_number, runner=runner,
    )
    if not result.ok:
        logger.error("Compile failed with exit code %d", result.returncode)
        return RunResult(count, settings.output_video, compiled=False, compile_error=result.stderr)

    print(f"Video successfully created: {settings.output_video}")
    return RunResult(count, settings.output_video, compiled=True)
