"""Sound Effects Board - FastAPI Application."""

from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from soundboard.config import settings
from soundboard.routers import board, edit_mode, media, panel
from soundboard.services.board_store import BoardStore
from soundboard.services.edit_gate import EditModeGate
from soundboard.services.media_library import EphemeralMedia
from soundboard.services.now_playing import NowPlayingPanel
from soundboard.services.remote_store import create_store
from soundboard.services.sessions import SessionRegistry

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("soundboard")

static_dir = os.path.join(os.path.dirname(__file__), "..", "static")


def create_app(store=None, scheduler=None, list_media=None) -> FastAPI:
    """
    Build the app. ``store``, ``scheduler`` and ``list_media`` override the
    configured remote store, the panel's timer scheduler and the media
    listing used for auto-populating sounds.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        board_store = BoardStore(store or create_store(), list_media=list_media)
        await board_store.load_board()

        app.state.board = board_store
        app.state.edit_gate = EditModeGate(settings.edit_password)
        app.state.ephemeral = EphemeralMedia(settings.max_ephemeral_blobs)
        app.state.sessions = SessionRegistry(lambda: NowPlayingPanel(
            board_store,
            hide_delay_ms=settings.panel_hide_delay_ms,
            scheduler=scheduler,
            default_show_url=settings.default_show_url,
        ), max_sessions=settings.max_sessions)
        if not settings.edit_password:
            logger.warning("EDIT_PASSWORD not set, edit mode is open to everyone")
        logger.info(f"{settings.app_name} ready")
        try:
            yield
        finally:
            app.state.sessions.close_all()
            await board_store.close()

    app = FastAPI(
        title=settings.app_name,
        description="Sound effects board - sections of buttons that play audio clips",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware (allow all for development)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(board.router)
    app.include_router(panel.router)
    app.include_router(edit_mode.router)
    app.include_router(media.router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "remote": app.state.board.loaded_from_remote}

    # Board page
    if os.path.exists(static_dir):
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

        @app.get("/", include_in_schema=False)
        async def index():
            """Serve the board page."""
            return FileResponse(os.path.join(static_dir, "index.html"))

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8765)
