"""
Slice set normalization for BeatSlicer.

Turns raw timestamp lists (analysis output or manual edits) into the
canonical slice set: strictly increasing, zero-anchored, free of
near-duplicates and capped at one slice per pad.
"""
from __future__ import annotations
import math
from typing import Iterable

from .config import SLICE_CONFIG
from .types import SliceSet


def _usable(value: object) -> bool:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    return math.isfinite(number) and number > -SLICE_CONFIG.epsilon


def normalize(
    raw: Iterable[float],
    epsilon: float = SLICE_CONFIG.epsilon,
    max_slices: int = SLICE_CONFIG.max_slices
) -> SliceSet:
    """
    Build a canonical slice set from raw timestamps.

    Args:
        raw: Timestamps in seconds, in any order, duplicates allowed
        epsilon: Timestamps closer than this collapse into one
        max_slices: Maximum number of slices kept

    Returns:
        Sorted list starting at 0.0, or an empty list when nothing is usable
    """
    values = sorted({float(v) for v in raw if _usable(v)})
    if not values:
        return []

    # Zero anchor: snap a near-zero first slice, otherwise prepend 0.0
    if values[0] < epsilon:
        values[0] = 0.0
    else:
        values.insert(0, 0.0)

    result: SliceSet = [values[0]]
    for value in values[1:]:
        if value - result[-1] >= epsilon:
            result.append(value)

    return result[:max_slices]


def insert_slice(slices: SliceSet, seconds: float) -> SliceSet:
    """Return a new slice set with a manual slice added at `seconds`."""
    return normalize([*slices, seconds])


def remove_slice(slices: SliceSet, index: int) -> SliceSet:
    """
    Return a new slice set without the slice at `index`.
    The 0.0 anchor is restored while any other slice remains.
    """
    if not 0 <= index < len(slices):
        return list(slices)
    return normalize(s for i, s in enumerate(slices) if i != index)


def move_slice(slices: SliceSet, index: int, seconds: float) -> SliceSet:
    """Return a new slice set with the slice at `index` moved to `seconds`."""
    if not 0 <= index < len(slices):
        return list(slices)
    return normalize([seconds if i == index else s for i, s in enumerate(slices)])
