"""
Application wiring: settings -> registry -> service -> FastAPI app.

Run with:  python -m src.main
"""

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from src.api import routes, websocket
from src.api.errors import game_error_handler
from src.core.config import Settings
from src.core.exceptions import GameError
from src.registry.memory_registry import InMemorySessionRegistry
from src.services.chess_service import ChessService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    app = FastAPI(title="Chess Sessions", version="0.1.0")
    registry = InMemorySessionRegistry(id_length=settings.session_id_length)
    app.state.service = ChessService(registry, clock_seconds=settings.clock_seconds)
    app.state.connections = websocket.ConnectionManager()

    app.add_exception_handler(GameError, game_error_handler)
    app.include_router(routes.router)
    app.include_router(websocket.router)

    # Static files mounted LAST: the mount at "/" would otherwise shadow the API routes
    if settings.static_dir.is_dir():
        app.mount(
            "/", StaticFiles(directory=settings.static_dir, html=True), name="static"
        )
        logger.info("Serving static files from %s", settings.static_dir)
    return app


def main() -> None:
    settings = Settings.from_env()
    app = create_app(settings)
    logger.info("Starting server on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
