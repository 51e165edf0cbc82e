"""
Web route handlers and middlewares for the cook-off JSON API.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict

import aiosqlite
from aiohttp import web

from .bonus import BonusRound
from .competition import CompetitionState
from .errors import CookoffError, InternalError, ValidationError
from .judging import JudgingService
from .registry import ChiliRegistry, parse_path_number
from .voting import VotingService

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

# Message reported for a storage failure, keyed by route name.
FAILURE_MESSAGES = {
    "list_chilis": "Failed to fetch chilis",
    "save_chili": "Failed to save chili",
    "delete_all_chilis": "Failed to reset competition",
    "delete_chili": "Failed to delete chili",
    "submit_score": "Failed to save score",
    "final_scores": "Failed to fetch final scores",
    "chili_scores": "Failed to fetch scores",
    "all_scores": "Failed to fetch scores",
    "submit_vote": "Failed to save vote",
    "vote_results": "Failed to calculate results",
    "get_status": "Failed to get status",
    "set_status": "Failed to update status",
    "admin_stats": "Failed to get stats",
    "bonus_status": "Failed to get bonus round status",
    "bonus_start": "Failed to start bonus round",
    "bonus_end": "Failed to end bonus round",
    "submit_bonus_scores": "Failed to save bonus scores",
}


def _route_name(request: web.Request) -> str:
    route = request.match_info.route
    return getattr(route, "name", None) or ""


@web.middleware
async def error_middleware(
    request: web.Request,
    handler: Handler,
) -> web.StreamResponse:
    """
    Convert every failure into a JSON error body.

    Unmatched paths and methods answer 404 with the requested path.
    """
    try:
        return await handler(request)
    except CookoffError as e:
        return web.json_response(e.to_dict(), status=e.status)
    except (web.HTTPNotFound, web.HTTPMethodNotAllowed):
        logger.info("404 Not Found: %s %s", request.method, request.path_qs)
        return web.json_response(
            {"error": "Not Found", "path": request.path_qs}, status=404
        )
    except web.HTTPException:
        raise
    except aiosqlite.Error as e:
        message = FAILURE_MESSAGES.get(_route_name(request), "Database error")
        logger.exception("%s: %s %s", message, request.method, request.path)
        error = InternalError(message, details=str(e))
        return web.json_response(error.to_dict(), status=error.status)
    except Exception as e:
        logger.exception("Unhandled error: %s %s", request.method, request.path)
        return web.json_response(
            {"error": "Internal Server Error", "details": str(e)}, status=500
        )


def make_request_logger(config: Any) -> Any:
    """
    Build a middleware that logs each request, with the body of writes.

    @param config: Service configuration; logging is off unless
        features.request_logging is enabled
    @return: aiohttp middleware
    """

    @web.middleware
    async def request_logger(
        request: web.Request,
        handler: Handler,
    ) -> web.StreamResponse:
        if config.is_feature_enabled("request_logging"):
            logger.info("%s %s", request.method, request.path_qs)
            if request.method in ("POST", "PUT") and request.body_exists:
                body = await request.text()
                logger.info("Body: %s", body)
        return await handler(request)

    return request_logger


async def read_json(request: web.Request) -> Dict[str, Any]:
    """
    Parse the request body as a JSON object; an empty body reads as {}.

    request.text() returns the cached body when a middleware already read it.

    @param request: Incoming HTTP request
    @return: Parsed body
    """
    if not request.body_exists:
        return {}
    text = await request.text()
    if not text.strip():
        return {}
    try:
        body = json.loads(text)
    except ValueError as e:
        raise ValidationError("Invalid JSON body", details=str(e)) from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


class WebHandlers:
    """Handles API routes and responses."""

    def __init__(
        self,
        db_manager: Any,
        config: Any,
        port: int = 3005,
    ) -> None:
        self.db = db_manager
        self.config = config
        self.port = port

        self.registry = ChiliRegistry(db_manager)
        self.judging = JudgingService(db_manager)
        self.voting = VotingService(db_manager)
        self.bonus = BonusRound(db_manager, config)
        self.competition = CompetitionState(db_manager)

    @property
    def app_url(self) -> str:
        return self.config.get("server", "app_url") or f"http://localhost:{self.port}"

    # ---- Service probes ----

    async def health(
        self,
        _: web.Request,
    ) -> web.Response:
        """
        Liveness and database connectivity probe.

        @param _: Unused request parameter
        @return: JSON health report, status 500 when the database is unreachable
        """
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            await self.db.ping()
        except aiosqlite.Error as e:
            logger.error("Health check failed: %s", e)
            return web.json_response(
                {"status": "unhealthy", "error": str(e), "timestamp": timestamp},
                status=500,
            )

        return web.json_response(
            {
                "status": "healthy",
                "timestamp": timestamp,
                "database": "connected",
                "environment": self.config.get("environment"),
                "appUrl": self.app_url,
                "port": self.port,
            }
        )

    async def index(
        self,
        _: web.Request,
    ) -> web.Response:
        try:
            counts = await self.db.count_rows("chilis")
        except aiosqlite.Error as e:
            return web.json_response(
                {"status": "error", "database": "failed", "error": str(e)}, status=500
            )
        return web.json_response(
            {
                "status": "ok",
                "database": "connected",
                "competition": self.config.get("competition_name"),
                "chiliCount": counts["chilis"],
                "environment": self.config.get("environment"),
            }
        )

    # ---- Chilis ----

    async def list_chilis(
        self,
        _: web.Request,
    ) -> web.Response:
        chilis = await self.registry.list_chilis()
        logger.info("Found %d chilis in database", len(chilis))
        return web.json_response(chilis)

    async def save_chili(
        self,
        request: web.Request,
    ) -> web.Response:
        body = await read_json(request)
        result = await self.registry.upsert_chili(
            body.get("number"), body.get("name"), body.get("cook")
        )
        return web.json_response(
            {"message": "Chili saved", "data": result["data"], "changes": result["changes"]},
            status=201,
        )

    async def delete_all_chilis(
        self,
        _: web.Request,
    ) -> web.Response:
        deleted = await self.registry.delete_all()
        return web.json_response(
            {"message": "Competition reset successfully", "deleted": deleted}
        )

    async def delete_chili(
        self,
        request: web.Request,
    ) -> web.Response:
        """
        Delete one chili and its scores, bonus scores and votes.

        @param request: HTTP request object containing the chili number
        @return: JSON response with per-table deleted counts
        """
        number = parse_path_number(request.match_info["number"], "Chili not found")
        deleted = await self.registry.delete_chili(number)
        return web.json_response(
            {"message": "Chili deleted", "number": number, "deleted": deleted}
        )

    # ---- Judge scores ----

    async def submit_score(
        self,
        request: web.Request,
    ) -> web.Response:
        body = await read_json(request)
        result = await self.judging.submit_score(
            body.get("chili_id"), body, body.get("judge_id")
        )
        return web.json_response(result, status=201)

    async def chili_scores(
        self,
        request: web.Request,
    ) -> web.Response:
        scores = await self.judging.get_scores(request.match_info["chili_id"])
        return web.json_response(scores)

    async def all_scores(
        self,
        _: web.Request,
    ) -> web.Response:
        return web.json_response(await self.judging.get_scores_summary())

    async def final_scores(
        self,
        _: web.Request,
    ) -> web.Response:
        return web.json_response(await self.judging.get_final_scores())

    # ---- Attendee votes ----

    async def submit_vote(
        self,
        request: web.Request,
    ) -> web.Response:
        """
        Save an attendee's top three picks.

        The voter's address and user agent default to the request's own
        when the body does not carry them.

        @param request: HTTP request with first_place, second_place and third_place
        @return: JSON response with the vote id
        """
        body = await read_json(request)
        vote_id = await self.voting.submit_vote(
            body.get("first_place"),
            body.get("second_place"),
            body.get("third_place"),
            ip_address=body.get("ip_address") or request.remote,
            user_agent=body.get("user_agent") or request.headers.get("User-Agent"),
        )
        return web.json_response({"message": "Vote saved", "id": vote_id}, status=201)

    async def vote_results(
        self,
        _: web.Request,
    ) -> web.Response:
        return web.json_response(await self.voting.get_results())

    # ---- Competition state ----

    async def get_status(
        self,
        _: web.Request,
    ) -> web.Response:
        return web.json_response({"status": await self.competition.get_status()})

    async def set_status(
        self,
        request: web.Request,
    ) -> web.Response:
        body = await read_json(request)
        status = await self.competition.set_status(body.get("status"))
        return web.json_response({"message": "Status updated", "status": status})

    async def admin_stats(
        self,
        _: web.Request,
    ) -> web.Response:
        return web.json_response(await self.competition.get_stats())

    # ---- Bonus round ----

    async def bonus_status(
        self,
        _: web.Request,
    ) -> web.Response:
        return web.json_response({"bonus_round_active": await self.bonus.is_active()})

    async def bonus_start(
        self,
        _: web.Request,
    ) -> web.Response:
        await self.bonus.start()
        return web.json_response(
            {"message": "Bonus round started", "bonus_round_active": True}
        )

    async def bonus_end(
        self,
        _: web.Request,
    ) -> web.Response:
        await self.bonus.end()
        return web.json_response(
            {"message": "Bonus round ended", "bonus_round_active": False}
        )

    async def submit_bonus_scores(
        self,
        request: web.Request,
    ) -> web.Response:
        body = await read_json(request)
        result = await self.bonus.submit_bonus_scores(
            body.get("bonus_scores"), body.get("judge_id")
        )
        return web.json_response({"message": "Bonus scores saved", **result}, status=201)

    # ---- Debug (enabled by features.debug_endpoints) ----

    async def debug_bonus_scores(
        self,
        _: web.Request,
    ) -> web.Response:
        bonus_scores = await self.db.fetch_all("SELECT * FROM bonus_scores ORDER BY id")
        chilis = await self.db.fetch_all("SELECT id, number, name FROM chilis ORDER BY number")
        return web.json_response({"bonus_scores": bonus_scores, "chilis": chilis})

    async def debug_final_scores(
        self,
        _: web.Request,
    ) -> web.Response:
        """
        Raw tables next to the computed final scores.

        @param _: Unused request parameter
        @return: JSON response with chilis, scores, bonus scores and final results
        """
        return web.json_response(
            {
                "chilis": await self.db.fetch_all("SELECT * FROM chilis ORDER BY number"),
                "scores": await self.db.fetch_all("SELECT * FROM scores ORDER BY id"),
                "bonusScores": await self.db.fetch_all(
                    "SELECT * FROM bonus_scores ORDER BY id"
                ),
                "finalResults": await self.judging.get_final_scores(),
            }
        )
