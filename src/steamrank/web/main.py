"""
FastAPI application for the SteamRank comparison ladder.

Endpoints are plain `def` functions: FastAPI runs them in its threadpool,
so each request gets its own short database transaction and no lock is
ever held across an await.

The engine is opened in the lifespan handler and disposed at shutdown.
Tests (or any embedding) can pass their own engine to create_app().
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, PositiveInt
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from steamrank.catalog import SqlCatalog
from steamrank.config import Settings, settings as default_settings
from steamrank.db.session import create_db_engine, create_session_factory
from steamrank.errors import LadderError
from steamrank.ladder.leaderboard import Leaderboard
from steamrank.ladder.selector import PairSelector
from steamrank.ladder.service import ComparisonService
from steamrank.ladder.store import RatingStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

router = APIRouter()


class CompareRequest(BaseModel):
    """Body of POST /api/games/rankings/compare."""

    model_config = ConfigDict(strict=True)

    game1Id: PositiveInt
    game2Id: PositiveInt
    winnerId: PositiveInt


def build_service(engine: Engine, settings: Settings) -> ComparisonService:
    """Wire the ladder components around one session factory."""
    session_factory = create_session_factory(engine)
    store = RatingStore.from_settings(session_factory, settings)
    return ComparisonService(
        store=store,
        selector=PairSelector(store),
        leaderboard=Leaderboard(store, page_size=settings.leaderboard_size),
        catalog=SqlCatalog(session_factory),
        leaderboard_size=settings.leaderboard_size,
    )


def get_service(request: Request) -> ComparisonService:
    """Dependency returning the app-wide comparison service."""
    return request.app.state.service


# ==========================================================================
# JSON API Endpoints
# ==========================================================================


@router.get("/api/health")
def health(request: Request):
    """Database liveness check."""
    try:
        with request.app.state.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check failed: %s", exc)
        return JSONResponse({"ok": False, "error": str(exc)}, status_code=500)
    return {"ok": True, "db": "up"}


@router.get("/api/games/rankings/random-pair")
def random_pair(service: ComparisonService = Depends(get_service)):
    """Two distinct ladder games for the user to choose between."""
    first, second = service.request_pair()
    return [first.to_dict(), second.to_dict()]


@router.post("/api/games/rankings/compare")
def compare(body: CompareRequest, service: ComparisonService = Depends(get_service)):
    """
    Record which of two games the user preferred.

    Returns both games' Elo before and after, plus the change.
    """
    result = service.submit_judgment(body.game1Id, body.game2Id, body.winnerId)
    return result.to_dict()


@router.get("/api/games/rankings/leaderboard")
def leaderboard(
    service: ComparisonService = Depends(get_service),
    limit: Optional[int] = Query(None, ge=1, description="Number of rows (capped at the leaderboard size)"),
    page: Optional[int] = Query(None, ge=1, description="Page of the full ranking, `limit` rows per page"),
):
    """Top games by Elo, best first."""
    return [row.to_dict() for row in service.leaderboard(limit, page=page)]


# ==========================================================================
# Error handling
# ==========================================================================


async def ladder_error_handler(request: Request, exc: LadderError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse({"error": str(exc)}, status_code=exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed input as a 400 with a readable message."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse({"error": "; ".join(messages) or "Invalid request"}, status_code=400)


# ==========================================================================
# Application factory
# ==========================================================================


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Settings to use (defaults to the environment)
        engine: Pre-built engine; when given, the app does not dispose it
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
        logging.getLogger("steamrank").setLevel(settings.log_level)

        owned = engine is None
        app.state.engine = engine or create_db_engine(settings=settings)
        app.state.service = build_service(app.state.engine, settings)
        logger.info("SteamRank API started (%s)", app.state.engine.url.render_as_string(hide_password=True))
        try:
            yield
        finally:
            if owned:
                app.state.engine.dispose()
            logger.info("SteamRank API stopped")

    app = FastAPI(title="SteamRank", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_exception_handler(LadderError, ladder_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(router)
    return app


app = create_app()
