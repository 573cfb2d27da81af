"""Weighted and Hull moving averages over finite numeric sequences."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


def weighted_average(series: Sequence[float], period: int) -> float:
    """Linearly weighted mean of the trailing ``period`` values.

    The oldest value in the window gets weight 1, the newest gets the window
    length. Windows shorter than ``period`` use whatever is available.
    """
    if len(series) == 0:
        raise ValueError("weighted_average requires a non-empty series")
    window = np.asarray(series[-max(1, min(len(series), period)):], dtype=float)
    weights = np.arange(1, len(window) + 1, dtype=float)
    return float(np.dot(window, weights) / weights.sum())


def hull_average(series: Sequence[float], period: int) -> float:
    """Hull moving average.

    Returns the last value unchanged while the series is shorter than
    ``period``.
    """
    if len(series) == 0:
        raise ValueError("hull_average requires a non-empty series")
    if len(series) < period:
        return float(series[-1])

    half = period // 2
    root = int(math.floor(math.sqrt(period)))

    raw = []
    for k in range(root):
        sub = series[: len(series) - k]
        raw.insert(0, 2.0 * weighted_average(sub, half) - weighted_average(sub, period))

    return weighted_average(raw, root)
