"""
Recommendation Module.

Provides:
- Difficulty recommendation per skill category
- Content selection blending due reviews with fresh items
- Weak-area detection and learning path generation
"""

from src.recommendation.engine import (
    EngineConfig,
    LearningPathStep,
    LearningVelocity,
    RecommendationEngine,
    WeakArea,
)

__all__ = [
    "EngineConfig",
    "LearningPathStep",
    "LearningVelocity",
    "RecommendationEngine",
    "WeakArea",
]
