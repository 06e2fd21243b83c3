"""
Coinflip -- Run Settings Models

Pydantic models describing one dither run: where the source video lives,
where the intermediate frame sequences go, how FFmpeg samples and encodes,
and which coin streams drive the dither.

Defaults reproduce the classic zero-argument run:
    BadApple.mp4 -> frames/ -> modified_frames/ -> output.mp4 @ 30fps
"""

from __future__ import annotations

import json
import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from effects import EFFECTS, DEFAULT_EFFECT
from effects.streams import WHITE_SEED, BLACK_SEED

# One %0Nd placeholder; no other % directives, no directories
FRAME_PATTERN_RE = re.compile(r"[^%/\\]*%0[1-9][0-9]*d[^%/\\]*\.png", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class H264Preset(str, Enum):
    """Encoding speed vs. compression efficiency tradeoff.

    Does NOT affect visual quality -- only file size and encode time.
    """
    ULTRAFAST = "ultrafast"
    SUPERFAST = "superfast"
    VERYFAST = "veryfast"
    FASTER = "faster"
    FAST = "fast"
    MEDIUM = "medium"
    SLOW = "slow"
    SLOWER = "slower"
    VERYSLOW = "veryslow"


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------

class ExtractSettings(BaseModel):
    """Frame extraction (video -> numbered PNG sequence).

    FFmpeg flags:
        -i {input} -vf fps={fps} -start_number {start_number} -vsync vfr {dir}/{pattern}
    """
    fps: float = Field(
        default=30.0,
        gt=0.0,
        le=240.0,
        description="Sampling rate in frames per second. Also the output frame rate.",
    )
    start_number: int = Field(
        default=0,
        ge=0,
        description="Index of the first extracted frame.",
    )
    pattern: str = Field(
        default="frame_%04d.png",
        description="printf-style frame filename pattern shared by both frame dirs.",
    )

    @model_validator(mode="after")
    def validate_pattern(self) -> "ExtractSettings":
        """Pattern must be a bare PNG filename with one zero-padded index, e.g. %04d."""
        if not FRAME_PATTERN_RE.fullmatch(self.pattern):
            raise ValueError(
                f"Frame pattern '{self.pattern}' must be a bare .png filename with "
                f"exactly one zero-padded integer placeholder, e.g. 'frame_%04d.png'"
            )
        return self


class EncodeSettings(BaseModel):
    """Frame sequence -> video encoding.

    FFmpeg flags:
        -c:v {codec} -crf {crf} -preset {preset} -pix_fmt {pixel_format}
    """
    codec: str = Field(
        default="libx264",
        description="FFmpeg video encoder name.",
    )
    crf: int = Field(
        default=23,
        ge=0,
        le=51,
        description=(
            "Constant Rate Factor (0-51). "
            "0=lossless, 18=visually transparent, 23=good default, 28=acceptable."
        ),
    )
    preset: H264Preset = Field(
        default=H264Preset.MEDIUM,
        description="Encoding speed vs. compression. Slower = smaller file at same quality.",
    )
    pixel_format: str = Field(
        default="yuv420p",
        description="Output pixel format. yuv420p for maximum player compatibility.",
    )


# ---------------------------------------------------------------------------
# Top-level run settings
# ---------------------------------------------------------------------------

class RunSettings(BaseModel):
    """Complete configuration for one dither run.

    Quick start:
        RunSettings()                                   # BadApple.mp4 -> output.mp4
        RunSettings(input_video="clip.mov", workers=4)  # Overrides
        RunSettings.from_file("coinflip.json")          # JSON on disk
    """

    # -- Paths --
    input_video: Path = Field(
        default=Path("BadApple.mp4"),
        description="Source video handed to FFmpeg for frame extraction.",
    )
    frames_dir: Path = Field(
        default=Path("frames"),
        description="Scratch directory for extracted source frames. Wiped every run.",
    )
    modified_frames_dir: Path = Field(
        default=Path("modified_frames"),
        description="Scratch directory for dithered frames. Wiped every run.",
    )
    output_video: Path = Field(
        default=Path("output.mp4"),
        description="Compiled output video. Deleted at the start of every run.",
    )

    # -- Dither --
    effect: str = Field(
        default=DEFAULT_EFFECT,
        description="Registered effect name (see effects.EFFECTS).",
    )
    white_seed: int = Field(
        default=WHITE_SEED,
        ge=0,
        description="Seed of the stream flipped by non-zero-red pixels.",
    )
    black_seed: int = Field(
        default=BLACK_SEED,
        ge=0,
        description="Seed of the stream flipped by zero-red pixels.",
    )

    # -- Execution --
    workers: int = Field(
        default=1,
        ge=1,
        le=64,
        description="Frames processed concurrently. 1 = strictly sequential.",
    )

    # -- FFmpeg stages --
    extract: ExtractSettings = Field(default_factory=ExtractSettings)
    encode: EncodeSettings = Field(default_factory=EncodeSettings)

    @model_validator(mode="after")
    def validate_run(self) -> "RunSettings":
        """Enforce cross-field rules before any directory is touched."""
        if self.effect not in EFFECTS:
            available = ", ".join(sorted(EFFECTS.keys()))
            raise ValueError(f"Unknown effect '{self.effect}'. Available: {available}")
        if self.frames_dir.resolve() == self.modified_frames_dir.resolve():
            raise ValueError(
                f"frames_dir and modified_frames_dir must differ "
                f"(both are '{self.frames_dir}')"
            )
        return self

    @property
    def effect_params(self) -> dict:
        """Params passed to the effect on every frame."""
        return {"white_seed": self.white_seed, "black_seed": self.black_seed}

    @classmethod
    def from_file(cls, path: str | Path, **overrides) -> "RunSettings":
        """Load settings from a JSON file, then apply keyword overrides."""
        data = json.loads(Path(path).read_text())
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(data)
