#!/usr/bin/env python3
"""
Run the SteamRank API server.

Host, port and auto-reload come from settings (API_HOST, API_PORT,
API_RELOAD environment variables or .env).

Usage:
    python scripts/run_api.py
"""

import sys
from pathlib import Path

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import uvicorn

from steamrank.config import settings


def main() -> int:
    uvicorn.run(
        "steamrank.web.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
