"""
Coinflip — Seeded Coin Streams
Two independently seeded pseudorandom coin streams ("white" and "black").
Streams are rebuilt fresh for every frame; the white stream is shifted by a
frame-dependent burn so its pattern moves while the black pattern stays put.
"""

import numpy as np

WHITE_SEED = 0
BLACK_SEED = 12415


class CoinStream:
    """Deterministic fair-coin source over a PCG64 generator.

    Every sample consumes exactly one 64-bit draw, so the same seed and the
    same sequence of calls always reproduce the same flips.
    """

    def __init__(self, seed: int):
        seed = int(seed)
        if seed < 0:
            raise ValueError(f"Stream seed must be non-negative, got {seed}")
        self.seed = seed
        self._bitgen = np.random.PCG64(seed)
        self._rng = np.random.Generator(self._bitgen)
        self.draws = 0

    def sample_bool(self) -> bool:
        """Flip one coin."""
        self.draws += 1
        return bool(self._rng.random() < 0.5)

    def sample_bools(self, count: int) -> np.ndarray:
        """Flip `count` coins, in draw order."""
        count = _check_count(count)
        self.draws += count
        return self._rng.random(count) < 0.5

    def burn(self, count: int) -> None:
        """Discard `count` samples without materialising them."""
        count = _check_count(count)
        if count:
            # Doubles take one 64-bit draw each, so advance(n) == n samples
            self._bitgen.advance(count)
            self.draws += count

    def __repr__(self):
        return f"CoinStream(seed={self.seed}, draws={self.draws})"


class DualStream:
    """The white/black stream pair used to dither one frame."""

    def __init__(self, white_seed: int = WHITE_SEED, black_seed: int = BLACK_SEED):
        self.white = CoinStream(white_seed)
        self.black = CoinStream(black_seed)

    @classmethod
    def for_frame(cls, frame_index: int, width: int,
                  white_seed: int = WHITE_SEED,
                  black_seed: int = BLACK_SEED) -> "DualStream":
        """Fresh pair with `frame_index * width` samples burned from white.

        The black stream is never burned.
        """
        frame_index = int(frame_index)
        width = int(width)
        if frame_index < 0:
            raise ValueError(f"frame_index must be >= 0, got {frame_index}")
        if width < 0:
            raise ValueError(f"width must be >= 0, got {width}")
        streams = cls(white_seed, black_seed)
        streams.white.burn(burn_count(frame_index, width))
        return streams


def burn_count(frame_index: int, width: int) -> int:
    """Number of white samples discarded before frame `frame_index`."""
    return int(frame_index) * int(width)


def _check_count(count) -> int:
    count = int(count)
    if count < 0:
        raise ValueError(f"Sample count must be non-negative, got {count}")
    return count
