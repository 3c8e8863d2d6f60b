"""Exclusive read-aloud controller.

At most one utterance is active: starting a new one cancels the previous
one, and ``close()`` silences everything when the owning view goes away.
"""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Protocol

import numpy as np
import structlog

logger = structlog.get_logger()


class SpeechEvent(StrEnum):
    START = "start"
    END = "end"
    ERROR = "error"
    CANCELLED = "cancelled"


class Synthesizer(Protocol):
    async def synthesize(self, text: str) -> np.ndarray: ...


class Playback(Protocol):
    is_playing: bool

    def start(self) -> None: ...
    def stop(self) -> None: ...
    def clear(self) -> None: ...
    async def play(self, audio: np.ndarray) -> None: ...
    async def wait_idle(self) -> None: ...


Listener = Callable[[SpeechEvent, str], Awaitable[None]]


class SpeechController:
    """Plays one utterance at a time and reports start/end/error.

    Args:
        synthesizer: Produces audio for a text.
        playback: Audio output.
        listener: Awaited with every state change.
    """

    def __init__(self, synthesizer: Synthesizer, playback: Playback, listener: Listener | None = None):
        self._synthesizer = synthesizer
        self._playback = playback
        self._listener = listener
        self._task: asyncio.Task | None = None
        self._playing = False

    @property
    def is_playing(self) -> bool:
        return self._playing

    async def _emit(self, event: SpeechEvent, text: str) -> None:
        if self._listener is None:
            return
        try:
            await self._listener(event, text)
        except Exception:
            logger.exception("speech_listener_failed", speech_event=event)

    async def speak(self, text: str) -> asyncio.Task | None:
        """Start reading ``text``, cancelling whatever is being read now."""
        await self.stop()
        text = text.strip()
        if not text:
            return None
        self._playback.start()
        self._task = asyncio.create_task(self._run(text))
        return self._task

    async def _run(self, text: str) -> None:
        try:
            audio = await self._synthesizer.synthesize(text)
            self._playing = True
            await self._emit(SpeechEvent.START, text)
            await self._playback.play(audio)
            await self._playback.wait_idle()
        except asyncio.CancelledError:
            self._playback.clear()
            self._playing = False
            raise
        except Exception:
            logger.exception("speech_failed", chars=len(text))
            self._playing = False
            await self._emit(SpeechEvent.ERROR, text)
            return
        self._playing = False
        await self._emit(SpeechEvent.END, text)

    async def stop(self) -> None:
        """Cancel the active utterance, if any."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        await self._emit(SpeechEvent.CANCELLED, "")

    async def close(self) -> None:
        """Stop speaking and release the audio device."""
        await self.stop()
        self._playback.stop()
        self._playing = False
