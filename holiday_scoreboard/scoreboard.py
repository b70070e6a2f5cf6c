"""
Main ScoreboardSystem class that orchestrates all components.
"""

import asyncio
from typing import Optional
from aiohttp import web, web_runner
import aiohttp_cors

from .config import ScoreboardConfig
from .database import RosterStore, create_store
from .engine import ScoreboardEngine
from .errors import StorageUnavailable
from .models import EmptyScoreboard
from .web_handlers import WebHandlers


class ScoreboardSystem:
    """Async scoreboard system with a JSON web interface."""

    def __init__(
        self,
        host: Optional[str] = None,
        web_port: Optional[int] = None,
        db_path: Optional[str] = None,
        config_path: str = "scoreboard_config.json",
        backend: Optional[str] = None,
        config: Optional[ScoreboardConfig] = None,
        store: Optional[RosterStore] = None,
    ) -> None:
        # Load configuration; explicit arguments win over file and environment
        self.config = config or ScoreboardConfig(config_path)
        if host is not None:
            self.config.config["web"]["host"] = host
        if web_port is not None:
            self.config.config["web"]["port"] = web_port
        if db_path is not None:
            self.config.config["storage"]["db_path"] = db_path
        if backend is not None:
            self.config.config["storage"]["backend"] = backend

        self.host = self.config.get("web", "host")
        self.web_port = self.config.get("web", "port")

        # Initialize components
        self.store = store or create_store(self.config)
        self.engine = ScoreboardEngine(
            self.store,
            default_rows=self.config.get("roster", "default_rows"),
            max_retries=self.config.get("roster", "max_retries"),
        )
        self.web_handlers = WebHandlers(self.engine, self.config)

    async def init_db(self) -> None:
        """
        Initialize the roster store.

        Creates database tables and performs any necessary setup.
        """
        await self.store.init()

    def build_app(self) -> web.Application:
        """
        Build the aiohttp application with all API routes and CORS enabled.

        @return: Configured application
        """
        app = web.Application()

        # Setup CORS
        cors = aiohttp_cors.setup(
            app,
            defaults={
                "*": aiohttp_cors.ResourceOptions(
                    allow_credentials=True,
                    expose_headers="*",
                    allow_headers="*",
                    allow_methods="*",
                )
            },
        )

        # API routes
        app.router.add_get("/api/config", self.web_handlers.api_config)
        app.router.add_get("/api/roster", self.web_handlers.api_roster)
        app.router.add_put("/api/roster", self.web_handlers.api_save_roster)
        app.router.add_post("/api/players", self.web_handlers.api_add_player)
        app.router.add_delete(
            "/api/players/last", self.web_handlers.api_remove_player
        )
        app.router.add_get("/api/scoreboard", self.web_handlers.api_scoreboard)

        # Add CORS to all routes
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
        @param port: Port number to use (default uses configured web_port)
        @return: AppRunner instance for the web server
        """
        if host is None:
            host = self.host
        if port is None:
            port = self.web_port

        app_runner = web_runner.AppRunner(self.build_app())
        await app_runner.setup()

        site = web_runner.TCPSite(app_runner, host, port)
        await site.start()

        print(f"Web server running on http://{host}:{port}")
        return app_runner

    async def run_forever(self) -> None:
        """Run the web server until interrupted."""
        web_server_runner = await self.start_web_server()

        print(f"\n{self.config.get('scoreboard_name')} Running!")
        print(f"Web Interface: http://{self.host}:{self.web_port}")
        print("\nPress Ctrl+C to stop...\n")

        try:
            await asyncio.Event().wait()
        except (KeyboardInterrupt, asyncio.CancelledError):
            print("\nShutting down server...")
        finally:
            await web_server_runner.cleanup()
            await self.store.close()

    async def print_full_scoreboard(self) -> None:
        """
        Print the ranked scoreboard to console.

        Displays every player with per-game scores and their total.
        """
        print("\n" + "=" * 60)
        print(str(self.config.get("scoreboard_name")).upper())
        print("=" * 60)

        try:
            ranking = await self.engine.get_ranked_scoreboard()
        except StorageUnavailable as e:
            print(f"Scoreboard unavailable: {e}")
            return

        if isinstance(ranking, EmptyScoreboard):
            print(ranking.message)
            return

        games = self.config.games()
        header = "  ".join(f"{game['name'][:12]:>12}" for game in games)
        print(f"{'#':>3}  {'Player':<15} {header}  {'Total':>6}")
        print("-" * 60)

        for entry in ranking:
            scores = "  ".join(
                f"{getattr(entry, game['key']):>12d}" for game in games
            )
            print(f"{entry.rank:3d}. {entry.name:<15} {scores}  {entry.total:6d}")
