"""Text-to-speech synthesis through the OpenAI audio API."""

import numpy as np
import structlog
from openai import AsyncOpenAI

from lifeup.errors import LifeUpError

logger = structlog.get_logger()

SPEECH_INSTRUCTIONS = "Speak clearly with a neutral American English (en-US) accent."


class SpeechUnavailable(LifeUpError):
    """Speech synthesis is not configured on this installation."""


def pcm16_to_float32(data: bytes) -> np.ndarray:
    """Convert raw little-endian PCM16 bytes to float32 audio in [-1.0, 1.0]."""
    pcm16 = np.frombuffer(data, dtype="<i2")
    return pcm16.astype(np.float32) / 32767.0


class SpeechSynthesizer:
    """Turns text into mono float32 audio at 24 kHz.

    Args:
        api_key: OpenAI API key, or None when speech is disabled.
        model: TTS model.
        voice: Voice name.
        speed: Playback rate; 0.9 is slightly slower than normal.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o-mini-tts",
        voice: str = "alloy",
        speed: float = 0.9,
    ):
        self.client = AsyncOpenAI(api_key=api_key) if api_key else None
        self.model = model
        self.voice = voice
        self.speed = speed

    async def synthesize(self, text: str) -> np.ndarray:
        if self.client is None:
            raise SpeechUnavailable("Read-aloud is not available: no OpenAI API key configured.")
        response = await self.client.audio.speech.create(
            model=self.model,
            voice=self.voice,
            input=text,
            instructions=SPEECH_INSTRUCTIONS,
            response_format="pcm",
            speed=self.speed,
        )
        audio = pcm16_to_float32(response.content)
        logger.debug("speech_synthesized", chars=len(text), samples=len(audio))
        return audio
