"""Recommendation collaborators.

- GammaRegimeAgent: rule-based collaborator built from the analytic packet
- parse_recommendation_text: turns a marker-based free-text report into a
  RecommendationResult
"""

from agents.gamma_agent import GammaRegimeAgent
from agents.recommendation_parser import parse_recommendation_text

__all__ = [
    "GammaRegimeAgent",
    "parse_recommendation_text",
]
