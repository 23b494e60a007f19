"""
SteamRank - Steam catalog Elo ladder

Users are shown two games from the catalog and pick the one they prefer.
Each judgment updates an Elo rating per game, and the ratings feed a
public leaderboard.

Main components:
- elo: Pure Elo rating calculation
- ladder: Rating store, pair selection, leaderboard and the comparison service
- catalog: Read-only game metadata used to decorate responses
- db: SQLAlchemy models and engine/session lifecycle
- web: FastAPI REST API
"""

__version__ = "1.0.0"
