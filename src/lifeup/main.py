"""FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from lifeup.api.routes import router
from lifeup.api.websocket import handle_speech_websocket
from lifeup.config import get_settings
from lifeup.confirmation import ConfirmationGate
from lifeup.english.fetcher import ArticleFetcher
from lifeup.english.library import ArticleLibrary
from lifeup.speech.controller import Listener, SpeechController
from lifeup.speech.playback import AudioPlayback
from lifeup.speech.synthesizer import SpeechSynthesizer
from lifeup.storage.migrations import open_store
from lifeup.storage.store import JsonStore

# Configure structlog based on environment
is_production = os.getenv("ENV", "development").lower() == "production"

if is_production:
    # Production: JSON format for machine parsing
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
else:
    # Development: console format for human readability
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

logger = structlog.get_logger()
settings = get_settings()


def make_speech_controller(listener: Listener) -> SpeechController:
    """One controller (and audio stream) per connected view."""
    synthesizer = SpeechSynthesizer(
        settings.openai_api_key,
        model=settings.speech_model,
        voice=settings.speech_voice,
        speed=settings.speech_rate,
    )
    playback = AudioPlayback(
        sample_rate=settings.speech_sample_rate,
        chunk_size=settings.speech_sample_rate // 10,
        device=settings.audio_output_device,
    )
    return SpeechController(synthesizer, playback, listener)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = open_store(settings.storage_dir)
    logger.info("store_ready", path=str(store.root))
    app.state.gate = ConfirmationGate()
    app.state.fetcher = ArticleFetcher(
        settings.openai_api_key,
        model=settings.article_model,
        definition_language=settings.definition_language,
    )
    yield


app = FastAPI(title="LifeUp", version="0.1.0", lifespan=lifespan)
_allowed_origins_env = os.getenv(
    "ALLOWED_ORIGINS", "http://localhost:8000,http://127.0.0.1:8000"
)
allowed_origins = [o.strip() for o in _allowed_origins_env.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    """Optional APP_SECRET authentication middleware."""
    if not settings.app_secret:
        return await call_next(request)
    if not request.url.path.startswith("/api") or request.url.path == "/api/health":
        return await call_next(request)
    if request.headers.get("X-App-Secret", "") != settings.app_secret:
        return JSONResponse({"error": "Unauthorized"}, status_code=401)
    return await call_next(request)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Read-aloud WebSocket endpoint."""
    if settings.app_secret and websocket.headers.get("X-App-Secret", "") != settings.app_secret:
        await websocket.close(code=1008, reason="Unauthorized")
        return
    library = ArticleLibrary(JsonStore(settings.storage_dir))
    await handle_speech_websocket(websocket, make_speech_controller, library)


# Mount the shell's static files (must be after API routes)
if settings.frontend_dir.exists():
    app.mount("/", StaticFiles(directory=str(settings.frontend_dir), html=True), name="frontend")


def main() -> None:
    """Run the application."""
    uvicorn.run(
        "lifeup.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
