"""HTTP server exposing the current roster as JSON.

Only ``GET /api`` exists. Other paths get 404 and other methods on
``/api`` get 405, both from aiohttp's router.
"""

import json
from collections.abc import Callable
from typing import Optional

from aiohttp import web

from ..config.models import APIConfig
from ..models.world import RosterSnapshot
from ..utils.logging import get_logger


logger = get_logger(__name__)

API_PATH = "/api"


class SnapshotServer:
    """Serves roster snapshots over HTTP."""

    def __init__(self, config: APIConfig, snapshot_provider: Callable[[], RosterSnapshot]):
        """Initialize the snapshot server.

        Args:
            config: API configuration
            snapshot_provider: Returns the latest published snapshot
        """
        self.config = config
        self.snapshot_provider = snapshot_provider
        self.app: Optional[web.Application] = None
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

    def create_app(self) -> web.Application:
        """Build the aiohttp application."""
        app = web.Application(middlewares=[error_middleware])
        app.router.add_get(API_PATH, self.handle_snapshot, allow_head=False)
        return app

    async def start(self):
        """Bind the listener and start serving."""
        self.app = self.create_app()
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        self.site = web.TCPSite(self.runner, self.config.host, self.config.port)
        try:
            await self.site.start()
        except OSError as e:
            logger.error(
                "Failed to bind API server",
                host=self.config.host,
                port=self.config.port,
                error=str(e),
            )
            await self.runner.cleanup()
            self.runner = None
            self.site = None
            raise

        logger.info(
            "API server started",
            host=self.config.host,
            port=self.config.port,
            url=f"http://{self.config.host}:{self.config.port}{API_PATH}",
        )

    async def stop(self):
        """Stop the API server."""
        if self.site:
            await self.site.stop()
            self.site = None
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
        logger.info("API server stopped")

    async def handle_snapshot(self, request: web.Request) -> web.Response:
        """Return the players and their resolved locations."""
        snapshot = self.snapshot_provider()
        try:
            body = json.dumps(snapshot.to_dict())
        except (TypeError, ValueError) as e:
            logger.error("Failed to serialize roster", error=str(e))
            return internal_error()

        return web.Response(text=body, content_type="application/json")


def internal_error() -> web.Response:
    return web.json_response({"error": "Internal server error"}, status=500)


@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception as e:
        logger.error("Unhandled error in request handler", error=str(e), path=request.path)
        return internal_error()
