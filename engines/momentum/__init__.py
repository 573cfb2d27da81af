"""Momentum pipeline."""

from engines.momentum.momentum_engine import MomentumEngine, order_flow_intensity

__all__ = ["MomentumEngine", "order_flow_intensity"]
