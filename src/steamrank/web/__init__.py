"""FastAPI web layer for SteamRank."""
