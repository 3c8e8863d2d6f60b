"""Browser WebSocket handler for read-aloud commands and playback state."""

import json
from collections.abc import Callable

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from lifeup.english.library import ArticleLibrary
from lifeup.errors import LifeUpError
from lifeup.speech.controller import Listener, SpeechController, SpeechEvent

logger = structlog.get_logger()

ControllerFactory = Callable[[Listener], SpeechController]


async def _resolve_text(message: dict, library: ArticleLibrary) -> str:
    """Text to read for a ``speak`` or ``speak_article`` command."""
    if message.get("type") == "speak":
        return str(message.get("text", ""))

    article = library.get(str(message.get("article_id", "")))
    index = message.get("token_index")
    if index is None:
        return article.content
    tokens = library.tokens(article.id)
    if not isinstance(index, int) or not 0 <= index < len(tokens):
        raise LifeUpError(f"No word at position {index}.")
    return tokens[index].lookup


async def handle_speech_websocket(
    websocket: WebSocket,
    make_controller: ControllerFactory,
    library: ArticleLibrary,
) -> None:
    """Serve one browser connection.

    Client messages:
        {"type": "speak", "text": "..."}
        {"type": "speak_article", "article_id": "...", "token_index": 3}
        {"type": "stop"}

    Server messages:
        {"type": "speech_state", "event": "start"|"end"|"error"|"cancelled",
         "playing": bool, "text": "..."}
        {"type": "error", "message": "..."}
    """
    await websocket.accept()
    logger.info("speech_ws_connected")

    async def send_state(event: SpeechEvent, text: str) -> None:
        await websocket.send_json({
            "type": "speech_state",
            "event": str(event),
            "playing": controller.is_playing,
            "text": text,
        })

    controller = make_controller(send_state)
    try:
        while True:
            try:
                message = json.loads(await websocket.receive_text())
            except json.JSONDecodeError:
                message = None
            if not isinstance(message, dict):
                await websocket.send_json({"type": "error", "message": "Messages must be JSON objects."})
                continue
            msg_type = message.get("type")
            try:
                if msg_type in ("speak", "speak_article"):
                    await controller.speak(await _resolve_text(message, library))
                elif msg_type == "stop":
                    await controller.stop()
                else:
                    await websocket.send_json(
                        {"type": "error", "message": f"Unknown message type: {msg_type}"}
                    )
            except LifeUpError as e:
                await websocket.send_json({"type": "error", "message": e.message})
    except WebSocketDisconnect:
        logger.info("speech_ws_disconnected")
    finally:
        await controller.close()
