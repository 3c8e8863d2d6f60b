"""Speaker audio playback using sounddevice blocking write in a dedicated thread."""

import asyncio
import queue
import threading

import numpy as np
import sounddevice as sd
import structlog

logger = structlog.get_logger()

# Sentinel to signal the thread to stop
_STOP = None


class AudioPlayback:
    """Plays audio through the speaker using a dedicated writer thread.

    Uses sd.OutputStream.write() in blocking mode for reliable
    streaming playback without callback timing issues.

    Args:
        sample_rate: Audio sample rate in Hz.
        channels: Number of audio channels.
        chunk_size: Samples per write.
        device: Output device index (None for default).
    """

    def __init__(
        self,
        sample_rate: int = 24000,
        channels: int = 1,
        chunk_size: int = 2400,
        device: int | None = None,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_size = chunk_size
        self.device = device
        self._queue: queue.Queue[np.ndarray | None] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._running = False
        self._pending = 0
        self._lock = threading.Lock()

    @property
    def is_playing(self) -> bool:
        """Whether queued audio has not finished being written."""
        with self._lock:
            return self._pending > 0

    def start(self) -> None:
        """Start the playback thread."""
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(target=self._writer_loop, daemon=True)
        self._thread.start()
        logger.info("audio_playback_started", sample_rate=self.sample_rate, device=self.device)

    def stop(self) -> None:
        """Stop playback and join the thread."""
        self._running = False
        self.clear()
        self._queue.put(_STOP)
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None
        self.clear()
        logger.info("audio_playback_stopped")

    def clear(self) -> None:
        """Drop audio that has not been written yet (e.g. on interruption)."""
        while True:
            try:
                chunk = self._queue.get_nowait()
            except queue.Empty:
                break
            if chunk is not _STOP:
                with self._lock:
                    self._pending -= 1

    async def play(self, audio: np.ndarray) -> None:
        """Queue audio for playback, split into ``chunk_size`` pieces."""
        if not self._running:
            return
        for start in range(0, len(audio), self.chunk_size):
            with self._lock:
                self._pending += 1
            self._queue.put(audio[start:start + self.chunk_size])

    async def wait_idle(self, poll_interval: float = 0.05) -> None:
        """Return once everything queued so far has been written."""
        while self.is_playing:
            await asyncio.sleep(poll_interval)

    def _writer_loop(self) -> None:
        """Background thread: pull audio from queue, write to stream."""
        try:
            stream = sd.OutputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                blocksize=self.chunk_size,
                device=self.device,
            )
            stream.start()
        except Exception:
            logger.exception("audio_stream_open_failed")
            self._running = False
            self.clear()
            return

        try:
            while self._running:
                try:
                    chunk = self._queue.get(timeout=0.1)
                except queue.Empty:
                    continue

                if chunk is _STOP:
                    break

                data = chunk.reshape(-1, 1) if chunk.ndim == 1 else chunk
                try:
                    stream.write(data)
                except sd.PortAudioError:
                    logger.warning("audio_write_error")
                finally:
                    with self._lock:
                        self._pending -= 1
        except Exception:
            logger.exception("audio_writer_loop_error")
        finally:
            stream.stop()
            stream.close()
