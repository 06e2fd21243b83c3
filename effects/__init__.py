"""
Coinflip — Effects Registry
Every effect is a function: (frame: np.ndarray, frame_index: int, **params) -> np.ndarray
"""

import inspect

from effects.coinflip import coinflip, coinflip_lockstep
from effects.streams import WHITE_SEED, BLACK_SEED

DEFAULT_EFFECT = "coinflip"

# Master registry: name -> (function, default_params, description)
EFFECTS = {
    "coinflip": {
        "fn": coinflip,
        "category": "dither",
        "params": {"white_seed": WHITE_SEED, "black_seed": BLACK_SEED},
        "description": "Binary dither: each pixel flips only the coin matching its class",
    },
    "coinflip_lockstep": {
        "fn": coinflip_lockstep,
        "category": "dither",
        "params": {"white_seed": WHITE_SEED, "black_seed": BLACK_SEED},
        "description": "Binary dither: both coins flip for every pixel, matching one is kept",
    },
}


def get_effect(name: str):
    """Get an effect by name. Returns (fn, default_params).

    Raises ValueError if the effect doesn't exist.
    """
    if name not in EFFECTS:
        available = ", ".join(sorted(EFFECTS.keys()))
        raise ValueError(f"Unknown effect: {name}. Available: {available}")
    entry = EFFECTS[name]
    return entry["fn"], entry["params"].copy()


def list_effects() -> list[dict]:
    """List all available effects with descriptions."""
    return [
        {
            "name": name,
            "description": entry["description"],
            "params": entry["params"],
            "category": entry.get("category", "other"),
        }
        for name, entry in EFFECTS.items()
    ]


def apply_effect(frame, effect_name: str = DEFAULT_EFFECT, frame_index: int = 0, **params):
    """Apply a named effect to a frame with given params."""
    fn, defaults = get_effect(effect_name)
    merged = {**defaults, **params}
    if "frame_index" in inspect.signature(fn).parameters:
        merged["frame_index"] = frame_index
    return fn(frame, **merged)
