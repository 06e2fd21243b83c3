"""
Coinflip — Binary Coin-Flip Dither
Replaces every pixel with pure black or pure white by flipping a seeded coin.
Pixels whose red channel is exactly 0 flip the black stream, all others flip
the white stream.
"""

import numpy as np

from effects.streams import DualStream, WHITE_SEED, BLACK_SEED

BLACK = 0
WHITE = 255


def _validate(frame: np.ndarray, frame_index: int):
    if frame.ndim != 3 or frame.shape[2] < 3:
        raise ValueError(f"Expected (H, W, 3) RGB frame, got shape {frame.shape}")
    if int(frame_index) < 0:
        raise ValueError(f"frame_index must be >= 0, got {frame_index}")


def _paint(flips: np.ndarray) -> np.ndarray:
    """True -> black, False -> white."""
    return np.where(flips, BLACK, WHITE).astype(np.uint8)


def coinflip(frame: np.ndarray, frame_index: int = 0,
             white_seed: int = WHITE_SEED,
             black_seed: int = BLACK_SEED) -> np.ndarray:
    """Dither a frame to pure black/white with two seeded coin streams.

    Args:
        frame: (H, W, 3) uint8 RGB array. Only the red channel is read.
        frame_index: Position of the frame in the video. The white stream
            skips `frame_index * width` flips before the first pixel.
        white_seed: Seed for the stream used by non-zero-red pixels.
        black_seed: Seed for the stream used by zero-red pixels.

    Returns:
        New (H, W, 3) uint8 frame containing only (0,0,0) and (255,255,255).
    """
    _validate(frame, frame_index)
    h, w = frame.shape[:2]
    streams = DualStream.for_frame(frame_index, w, white_seed, black_seed)

    # Boolean indexing walks the mask in row-major order, which is the
    # per-pixel draw order (y outer, x inner)
    black_origin = frame[:, :, 0] == 0
    flips = np.empty((h, w), dtype=bool)
    flips[black_origin] = streams.black.sample_bools(int(black_origin.sum()))
    flips[~black_origin] = streams.white.sample_bools(int((~black_origin).sum()))

    plane = _paint(flips)
    return np.repeat(plane[:, :, np.newaxis], 3, axis=2)


def coinflip_lockstep(frame: np.ndarray, frame_index: int = 0,
                      white_seed: int = WHITE_SEED,
                      black_seed: int = BLACK_SEED) -> np.ndarray:
    """Coin-flip dither where both coins are flipped for every pixel.

    Same burn and classification as `coinflip`, but each stream advances once
    per pixel whatever the pixel's class, and the flip matching the class is
    kept. Zero-red pixels therefore see the same black pattern on every frame
    and every image of the same size.

    Args:
        frame: (H, W, 3) uint8 RGB array. Only the red channel is read.
        frame_index: Position of the frame in the video.
        white_seed: Seed for the white stream.
        black_seed: Seed for the black stream.

    Returns:
        New (H, W, 3) uint8 frame containing only (0,0,0) and (255,255,255).
    """
    _validate(frame, frame_index)
    h, w = frame.shape[:2]
    streams = DualStream.for_frame(frame_index, w, white_seed, black_seed)

    white_flips = streams.white.sample_bools(h * w).reshape(h, w)
    black_flips = streams.black.sample_bools(h * w).reshape(h, w)
    flips = np.where(frame[:, :, 0] == 0, black_flips, white_flips)

    plane = _paint(flips)
    return np.repeat(plane[:, :, np.newaxis], 3, axis=2)
