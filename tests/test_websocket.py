"""Tests for the read-aloud WebSocket handler."""

import numpy as np
import pytest
from fastapi import FastAPI, WebSocket
from fastapi.testclient import TestClient

from lifeup.api.websocket import handle_speech_websocket
from lifeup.english.library import ArticleLibrary
from lifeup.speech.controller import SpeechController


class InstantSynthesizer:
    def __init__(self):
        self.texts = []

    async def synthesize(self, text):
        self.texts.append(text)
        return np.zeros(10, dtype=np.float32)


class NullPlayback:
    is_playing = False

    def __init__(self):
        self.stopped = False

    def start(self):
        pass

    def stop(self):
        self.stopped = True

    def clear(self):
        pass

    async def play(self, audio):
        pass

    async def wait_idle(self):
        pass


@pytest.fixture
def harness(store):
    library = ArticleLibrary(store)
    synth = InstantSynthesizer()
    playbacks = []

    def make_controller(listener):
        playback = NullPlayback()
        playbacks.append(playback)
        return SpeechController(synth, playback, listener)

    app = FastAPI()

    @app.websocket("/ws")
    async def ws(websocket: WebSocket):
        await handle_speech_websocket(websocket, make_controller, library)

    return TestClient(app), library, synth, playbacks


class TestSpeechWebSocket:
    def test_speak_text(self, harness):
        client, _, synth, _ = harness
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "speak", "text": "Hello"})
            start = ws.receive_json()
            end = ws.receive_json()
        assert start == {"type": "speech_state", "event": "start", "playing": True, "text": "Hello"}
        assert end["event"] == "end"
        assert end["playing"] is False
        assert synth.texts == ["Hello"]

    def test_speak_article_word(self, harness):
        client, library, synth, _ = harness
        article = library.add_article("A", "Small habits, big change.")
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "speak_article", "article_id": article.id, "token_index": 2})
            assert ws.receive_json()["text"] == "habits"
            ws.receive_json()
            ws.send_json({"type": "speak_article", "article_id": article.id})
            assert ws.receive_json()["text"] == "Small habits, big change."

    def test_errors_reported(self, harness):
        client, library, _, _ = harness
        article = library.add_article("A", "One two")
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "dance"})
            assert ws.receive_json() == {"type": "error", "message": "Unknown message type: dance"}
            ws.send_json({"type": "speak_article", "article_id": "missing"})
            assert "not found" in ws.receive_json()["message"]
            ws.send_json({"type": "speak_article", "article_id": article.id, "token_index": 99})
            assert ws.receive_json()["type"] == "error"

    def test_malformed_frames_reported(self, harness):
        client, _, synth, _ = harness
        with client.websocket_connect("/ws") as ws:
            ws.send_text("not json")
            assert ws.receive_json()["type"] == "error"
            ws.send_json(["speak", "Hello"])
            assert ws.receive_json()["type"] == "error"
            ws.send_json({"type": "speak", "text": "Still here"})
            assert ws.receive_json()["text"] == "Still here"
            ws.receive_json()
        assert synth.texts == ["Still here"]

    def test_disconnect_releases_audio(self, harness):
        client, _, _, playbacks = harness
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "stop"})
        assert playbacks and playbacks[0].stopped
