"""
Elo rating system constants.

K factor: Controls rating volatility (how much ratings change per comparison)
  - Fixed for every comparison; it does not shrink as a game accumulates
    comparisons and there is no provisional boost for new games
  - 32 is the classic value for a young, fast-moving pool

S factor: Controls the spread (how rating differences translate to an
expected score). A 400-point gap means the higher-rated game is
expected to win ten times as often as it loses.
"""

# Rating points moved by a fully unexpected result
K_FACTOR = 32

# Logistic spread of the expected-score curve
S_FACTOR = 400

# Starting rating for a game admitted to the ladder
DEFAULT_ELO = 1500.0
