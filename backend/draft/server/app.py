from __future__ import annotations

import contextlib
import json
import sqlite3
from http import HTTPStatus
from typing import TYPE_CHECKING, TypeVar

import structlog
from pydantic import BaseModel, ValidationError
from starlette.applications import Starlette
from starlette.background import BackgroundTask
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from draft.logic.enums import DraftErrorCode
from draft.logic.exceptions import DraftRuleError
from draft.logic.room import COMPLETED_SEASON_WEEKS
from draft.logic.service import DraftService
from draft.logic.store import DraftSessionStore
from draft.messaging.router import MessageRouter
from draft.server.settings import DraftServerSettings
from draft.server.types import CreateGameRequest, JoinGameRequest, LineupRequest
from draft.server.websocket import websocket_endpoint
from draft.session.manager import SessionManager
from draft.stats.provider import StoredStatProvider
from draft.stats.scheduler import SyncScheduler
from draft.stats.sleeper import SleeperAPIError, SleeperClient
from draft.stats.sync import StatSyncService
from shared.dal.session_repository import ConcurrentModificationError
from shared.db import Database, SqlitePlayerRepository, SqliteSessionRepository, SqliteStatRepository
from shared.logging import setup_logging

if TYPE_CHECKING:
    import random
    from collections.abc import AsyncGenerator

    from starlette.requests import Request
    from starlette.websockets import WebSocket

    from draft.logic.scoring import StatProvider

logger = structlog.get_logger()

_MAX_REQUEST_BODY_SIZE = 4096

_RequestModel = TypeVar("_RequestModel", bound=BaseModel)


async def _parse_body(request: Request, model: type[_RequestModel]) -> _RequestModel | JSONResponse:
    """Validate a small JSON body, or return the 4xx response to send instead."""
    raw_body = await request.body()
    if len(raw_body) > _MAX_REQUEST_BODY_SIZE:
        return JSONResponse({"error": "Request body too large"}, status_code=HTTPStatus.REQUEST_ENTITY_TOO_LARGE)
    try:
        return model.model_validate(json.loads(raw_body))
    except (ValueError, TypeError, json.JSONDecodeError, UnicodeDecodeError, ValidationError):  # fmt: skip
        return JSONResponse({"error": "Invalid request body"}, status_code=HTTPStatus.BAD_REQUEST)


def _rule_error_response(error: DraftRuleError) -> JSONResponse:
    status = HTTPStatus.NOT_FOUND if error.code == DraftErrorCode.NOT_FOUND else HTTPStatus.CONFLICT
    return JSONResponse({"error": error.message, "code": error.code.value}, status_code=status)


def _store_error_response() -> JSONResponse:
    return JSONResponse({"error": "Action could not be saved, try again"}, status_code=HTTPStatus.SERVICE_UNAVAILABLE)


def _invalid_week_response(week: int) -> JSONResponse | None:
    if 1 <= week <= COMPLETED_SEASON_WEEKS:
        return None
    return JSONResponse({"error": f"week must be 1-{COMPLETED_SEASON_WEEKS}"}, status_code=HTTPStatus.BAD_REQUEST)


async def _sync_week_in_background(sync_service: StatSyncService, season: int, week: int) -> None:
    try:
        await sync_service.sync_weekly_stats(season, week)
    except (SleeperAPIError, sqlite3.Error):
        logger.exception("background stats sync failed", season=season, week=week)


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


# --- Games ---


async def create_game(request: Request) -> JSONResponse:
    draft_service: DraftService = request.app.state.draft_service
    stat_repository: SqliteStatRepository = request.app.state.stat_repository

    body = await _parse_body(request, CreateGameRequest)
    if isinstance(body, JSONResponse):
        return body

    try:
        session, participant = await draft_service.create(body.player_name)
    except sqlite3.Error:
        logger.exception("failed to create game")
        return _store_error_response()

    background = None
    if await stat_repository.count_for_week(session.season, session.week) == 0:
        background = BackgroundTask(
            _sync_week_in_background,
            request.app.state.sync_service,
            session.season,
            session.week,
        )

    return JSONResponse(
        {
            "game_code": session.code,
            "player_id": participant.id,
            "season": session.season,
            "week": session.week,
        },
        status_code=HTTPStatus.CREATED,
        background=background,
    )


async def join_game(request: Request) -> JSONResponse:
    draft_service: DraftService = request.app.state.draft_service
    session_manager: SessionManager = request.app.state.session_manager

    body = await _parse_body(request, JoinGameRequest)
    if isinstance(body, JSONResponse):
        return body

    try:
        _, participant = await draft_service.join(
            body.game_code,
            body.player_name,
            on_commit=session_manager.broadcast_session,
        )
    except DraftRuleError as e:
        return _rule_error_response(e)
    except (ConcurrentModificationError, sqlite3.Error):
        logger.exception("failed to join game", session_code=body.game_code)
        return _store_error_response()

    return JSONResponse({"player_id": participant.id})


async def get_game(request: Request) -> JSONResponse:
    draft_service: DraftService = request.app.state.draft_service
    try:
        session = await draft_service.get(request.path_params["code"].upper())
    except DraftRuleError as e:
        return _rule_error_response(e)
    return JSONResponse(session.model_dump(mode="json"))


async def rescore_game(request: Request) -> JSONResponse:
    draft_service: DraftService = request.app.state.draft_service
    session_manager: SessionManager = request.app.state.session_manager
    code = request.path_params["code"].upper()

    try:
        session = await draft_service.rescore(code, on_commit=session_manager.broadcast_session)
    except DraftRuleError as e:
        return _rule_error_response(e)
    except (ConcurrentModificationError, sqlite3.Error):
        logger.exception("failed to rescore game", session_code=code)
        return _store_error_response()

    return JSONResponse(session.model_dump(mode="json"))


# --- Players and stats ---


async def list_players(request: Request) -> JSONResponse:
    player_repository: SqlitePlayerRepository = request.app.state.player_repository
    params = request.query_params
    players = await player_repository.search(
        position=params.get("position") or None,
        team=params.get("team") or None,
        name=params.get("search") or None,
    )
    return JSONResponse([player.model_dump(mode="json") for player in players])


async def count_players(request: Request) -> JSONResponse:
    player_repository: SqlitePlayerRepository = request.app.state.player_repository
    total = await player_repository.count()
    active = await player_repository.count(status="Active")
    return JSONResponse({"total": total, "active": active})


async def stats_exist(request: Request) -> JSONResponse:
    stat_repository: SqliteStatRepository = request.app.state.stat_repository
    season, week = request.path_params["season"], request.path_params["week"]
    count = await stat_repository.count_for_week(season, week)
    return JSONResponse({"exists": count > 0, "count": count})


async def get_player_stats(request: Request) -> JSONResponse:
    stat_repository: SqliteStatRepository = request.app.state.stat_repository
    params = request.path_params
    record = await stat_repository.get(params["player_id"], params["season"], params["week"])
    return JSONResponse(record.model_dump(mode="json") if record is not None else None)


async def calculate_lineup(request: Request) -> JSONResponse:
    stat_repository: SqliteStatRepository = request.app.state.stat_repository

    body = await _parse_body(request, LineupRequest)
    if isinstance(body, JSONResponse):
        return body

    records = await stat_repository.get_many(body.player_ids, body.season, body.week)
    return JSONResponse(
        {
            "stats": [record.model_dump(mode="json") for record in records],
            "total_points": sum(record.points for record in records),
            "player_count": len(records),
        },
    )


# --- Manual sync ---


async def sync_players(request: Request) -> JSONResponse:
    sync_service: StatSyncService = request.app.state.sync_service
    try:
        result = await sync_service.sync_players()
    except SleeperAPIError:
        logger.exception("manual player sync failed")
        return JSONResponse({"error": "Sync failed"}, status_code=HTTPStatus.BAD_GATEWAY)
    return JSONResponse(
        {"message": "Players synced successfully", "result": {"inserted": result.inserted, "updated": result.updated}},
    )


async def sync_stats(request: Request) -> JSONResponse:
    sync_service: StatSyncService = request.app.state.sync_service
    season, week = request.path_params["season"], request.path_params["week"]
    invalid = _invalid_week_response(week)
    if invalid is not None:
        return invalid
    try:
        result = await sync_service.sync_weekly_stats(season, week)
    except SleeperAPIError:
        logger.exception("manual stats sync failed", season=season, week=week)
        return JSONResponse({"error": "Sync failed"}, status_code=HTTPStatus.BAD_GATEWAY)
    return JSONResponse(
        {"message": "Stats synced successfully", "result": {"inserted": result.inserted, "updated": result.updated}},
    )


def create_app(
    settings: DraftServerSettings | None = None,
    *,
    database: Database | None = None,
    sleeper_client: SleeperClient | None = None,
    stat_provider: StatProvider | None = None,
    rng: random.Random | None = None,
) -> Starlette:
    """Build the app and its object graph.

    Collaborators that are not passed in are built from settings; tests pass
    fakes for the Sleeper client or stat provider and an in-memory database.
    """
    if settings is None:  # pragma: no cover
        settings = DraftServerSettings()

    # When the app opens its own database, it owns the connection lifecycle.
    owned_db: Database | None = None
    if database is None:
        database = Database(settings.database_path)
        database.connect()
        owned_db = database

    session_repository = SqliteSessionRepository(database)
    player_repository = SqlitePlayerRepository(database)
    stat_repository = SqliteStatRepository(database)

    if sleeper_client is None:
        sleeper_client = SleeperClient(settings.sleeper_base_url, timeout=settings.sleeper_timeout)
    sync_service = StatSyncService(sleeper_client, player_repository, stat_repository)

    if stat_provider is None:
        stat_provider = StoredStatProvider(
            stat_repository,
            sync_service,
            attempts=settings.stat_fetch_attempts,
            retry_delay=settings.stat_fetch_retry_delay,
        )

    draft_service = DraftService(
        DraftSessionStore(session_repository, settings.week_pool, rng=rng),
        stat_provider,
        player_repository,
        enforce_roster_slots=settings.enforce_roster_slots,
    )
    session_manager = SessionManager(draft_service)
    message_router = MessageRouter(session_manager)
    scheduler = SyncScheduler(sync_service) if settings.scheduler_enabled else None

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/api/game/create", create_game, methods=["POST"]),
        Route("/api/game/join", join_game, methods=["POST"]),
        Route("/api/game/{code}", get_game, methods=["GET"]),
        Route("/api/game/{code}/rescore", rescore_game, methods=["POST"]),
        Route("/api/players", list_players, methods=["GET"]),
        Route("/api/players/count", count_players, methods=["GET"]),
        Route("/api/stats/exists/{season:int}/{week:int}", stats_exist, methods=["GET"]),
        Route("/api/stats/{player_id}/{season:int}/{week:int}", get_player_stats, methods=["GET"]),
        Route("/api/lineup/calculate", calculate_lineup, methods=["POST"]),
        Route("/api/sync/players", sync_players, methods=["POST"]),
        Route("/api/sync/stats/{season:int}/{week:int}", sync_stats, methods=["POST"]),
        WebSocketRoute("/ws/{session_code}", ws_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        if scheduler is not None:
            scheduler.start()
        yield
        if scheduler is not None:
            await scheduler.stop()
        if owned_db is not None:
            owned_db.close()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.draft_service = draft_service
    app.state.session_manager = session_manager
    app.state.player_repository = player_repository
    app.state.stat_repository = stat_repository
    app.state.sync_service = sync_service

    logger.info(
        "draft server ready",
        enforce_roster_slots=settings.enforce_roster_slots,
        scheduler_enabled=settings.scheduler_enabled,
    )
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = DraftServerSettings()
    setup_logging(settings.log_dir)
    return create_app(settings=settings)
