"""Smoothing primitives."""

from engines.smoothing.moving_averages import hull_average, weighted_average

__all__ = ["hull_average", "weighted_average"]
