"""HTTP surface the host shell uses to submit queries."""

import logging

from aiohttp import web

from ledgerbot.query.models import QueryRequest
from ledgerbot.query.orchestrator import QueryOrchestrator

logger = logging.getLogger(__name__)


class WebServer:
    """aiohttp server exposing query resolution and cache invalidation."""

    def __init__(self, orchestrator: QueryOrchestrator, host: str = "0.0.0.0", port: int = 3000):
        self.orchestrator = orchestrator
        self.host = host
        self.port = port
        self.app = web.Application()
        self._setup_routes()
        logger.info(f"Web server initialized on port {port}")

    def _setup_routes(self):
        """Set up HTTP routes."""
        self.app.router.add_get("/", self._handle_health)
        self.app.router.add_get("/health", self._handle_health)
        self.app.router.add_post("/api/query", self._handle_query)
        self.app.router.add_post("/api/cache/clear", self._handle_cache_clear)
        logger.info("Routes configured: /, /health, /api/query, /api/cache/clear")

    async def _handle_health(self, request: web.Request) -> web.Response:
        """Health check endpoint."""
        return web.json_response({"status": "healthy", "service": "ledgerbot"})

    async def _handle_query(self, request: web.Request) -> web.Response:
        """
        Resolve one query.

        Expects JSON: {"text": "...", "tenant_id": "...", "channel_id": "...", "session_id": "..."}
        """
        try:
            data = await request.json()
        except ValueError:
            return web.json_response({"error": "Request body must be JSON"}, status=400)
        if not isinstance(data, dict):
            return web.json_response({"error": "Request body must be a JSON object"}, status=400)

        text = str(data.get("text") or "").strip()
        tenant_id = str(data.get("tenant_id") or "").strip()
        if not text or not tenant_id:
            return web.json_response({"error": "Both text and tenant_id are required"}, status=400)

        query = QueryRequest(
            text=text,
            tenant_id=tenant_id,
            channel_id=data.get("channel_id"),
            session_id=data.get("session_id"),
        )
        response = await self.orchestrator.resolve_query(query)
        return web.json_response(response.model_dump(mode="json"))

    async def _handle_cache_clear(self, request: web.Request) -> web.Response:
        """Drop cached answers after a data re-sync. Optional JSON: {"tenant_id": "..."}"""
        tenant_id = None
        if request.can_read_body:
            try:
                data = await request.json()
            except ValueError:
                return web.json_response({"error": "Request body must be JSON"}, status=400)
            tenant_id = data.get("tenant_id") if isinstance(data, dict) else None

        removed = self.orchestrator.cache.clear(tenant_id)
        return web.json_response({"status": "cleared", "removed": removed})

    async def start(self):
        """Start the web server."""
        runner = web.AppRunner(self.app)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        await site.start()
        logger.info(f"Web server started on port {self.port}")
        logger.info(f"Query endpoint: http://localhost:{self.port}/api/query")
        return runner

    async def stop(self, runner):
        """Stop the web server."""
        await runner.cleanup()
        logger.info("Web server stopped")
