"""
Main CookoffSystem class that orchestrates all components.
"""

import logging
from typing import Optional

import aiohttp_cors
from aiohttp import web, web_runner

from .config import CookoffConfig
from .database import DatabaseManager
from .web_handlers import WebHandlers, error_middleware, make_request_logger

logger = logging.getLogger(__name__)


class CookoffSystem:
    """Chili cook-off scoring service with a JSON web API."""

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 3005,
        db_path: str = "chili-cookoff.db",
        config_path: str = "cookoff_config.json",
    ) -> None:
        self.host = host
        self.port = port
        self.db_path = db_path

        # Load configuration
        self.config = CookoffConfig(config_path)
        # Initialize components
        self.db = DatabaseManager(db_path, self.config)
        self.web_handlers = WebHandlers(self.db, self.config, port=port)

    async def init_db(self) -> None:
        """
        Initialize the database.

        Creates database tables and performs any necessary migrations.
        """
        await self.db.init_db()

    def create_app(self) -> web.Application:
        """
        Build the aiohttp application with all API routes.

        @return: Configured web application
        """
        app = web.Application(
            middlewares=[error_middleware, make_request_logger(self.config)]
        )
        handlers = self.web_handlers
        router = app.router

        router.add_get("/health", handlers.health, name="health")
        router.add_get("/", handlers.index, name="index")

        # Chilis
        router.add_get("/api/chilis", handlers.list_chilis, name="list_chilis")
        router.add_post("/api/chilis", handlers.save_chili, name="save_chili")
        router.add_delete("/api/chilis", handlers.delete_all_chilis, name="delete_all_chilis")
        router.add_delete("/api/chilis/{number}", handlers.delete_chili, name="delete_chili")

        # Judge scores; /final must be registered before the {chili_id} pattern
        router.add_post("/api/scores", handlers.submit_score, name="submit_score")
        router.add_get("/api/scores", handlers.all_scores, name="all_scores")
        router.add_get("/api/scores/final", handlers.final_scores, name="final_scores")
        router.add_get("/api/scores/{chili_id}", handlers.chili_scores, name="chili_scores")

        # Attendee votes
        router.add_post("/api/votes", handlers.submit_vote, name="submit_vote")
        router.add_get("/api/votes/results", handlers.vote_results, name="vote_results")

        # Competition state and admin
        router.add_get("/api/competition/status", handlers.get_status, name="get_status")
        router.add_post("/api/competition/status", handlers.set_status, name="set_status")
        router.add_get("/api/admin/stats", handlers.admin_stats, name="admin_stats")

        # Bonus round
        router.add_get(
            "/api/competition/bonus/status", handlers.bonus_status, name="bonus_status"
        )
        router.add_post(
            "/api/competition/bonus/start", handlers.bonus_start, name="bonus_start"
        )
        router.add_post("/api/competition/bonus/end", handlers.bonus_end, name="bonus_end")
        router.add_post(
            "/api/bonus-scores", handlers.submit_bonus_scores, name="submit_bonus_scores"
        )

        # Conditionally add debug routes
        if self.config.is_feature_enabled("debug_endpoints"):
            router.add_get("/api/debug/bonus-scores", handlers.debug_bonus_scores)
            router.add_get("/api/debug/final-scores", handlers.debug_final_scores)

        if self.config.is_cors_enabled():
            origin = self.config.get("cors", "allowed_origin") or "*"
            cors = aiohttp_cors.setup(
                app,
                defaults={
                    origin: aiohttp_cors.ResourceOptions(
                        allow_credentials=True,
                        expose_headers="*",
                        allow_headers="*",
                        allow_methods="*",
                    )
                },
            )
            for route in list(app.router.routes()):
                cors.add(route)

        return app

    async def start_web_server(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> web_runner.AppRunner:
        """
        Start the web server.

        @param host: Host address to bind the server to (default uses configured host)
        @param port: Port number to use (default uses configured port)
        @return: AppRunner instance for the web server
        """
        if host is None:
            host = self.host
        if port is None:
            port = self.port

        app_runner = web_runner.AppRunner(self.create_app())
        await app_runner.setup()

        site = web_runner.TCPSite(app_runner, host, port)
        await site.start()

        logger.info("Server listening on http://%s:%s", host, port)
        logger.info("App URL: %s", self.web_handlers.app_url)
        logger.info("Database: %s", self.db_path)
        logger.info("Environment: %s", self.config.get("environment"))
        return app_runner

    async def log_summary(self) -> None:
        """Log what the database currently holds."""
        await self.db.log_summary()
