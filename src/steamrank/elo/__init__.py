"""
Elo rating system module.

Pure, database-free rating math for pairwise comparisons:
- Logistic expected score with a 400-point spread
- Fixed K-factor, no provisional boost and no clamping
"""

from steamrank.elo.calculator import (
    EloCalculator,
    EloUpdate,
    calculate_elo_change,
    expected_score,
    winner_side,
)
from steamrank.elo.constants import DEFAULT_ELO, K_FACTOR

__all__ = [
    "EloCalculator",
    "EloUpdate",
    "calculate_elo_change",
    "expected_score",
    "winner_side",
    "DEFAULT_ELO",
    "K_FACTOR",
]
