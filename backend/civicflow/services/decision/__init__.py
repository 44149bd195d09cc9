"""Decision recommendation."""

from .recommender import DecisionRecommender

__all__ = ["DecisionRecommender"]
