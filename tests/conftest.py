import json

import httpx
import pytest

from elote.config import SettingsStore
from elote.pipeline import RequestPipeline
from elote.prompts import PromptStore


class FakeClipboard:
    def __init__(self, text=""):
        self.text = text
        self.count = 0
        self.writes = []

    def get_text(self):
        return self.text

    def set_text(self, text):
        self.text = text
        self.count += 1
        self.writes.append(text)

    def change_count(self):
        return self.count

    def copy(self, text):
        """Simulate another application writing to the clipboard."""
        self.text = text
        self.count += 1


class RecordingNotifier:
    def __init__(self):
        self.messages = []
        self.sounds = 0

    def notify(self, title, message):
        self.messages.append((title, message))

    def play_sound(self):
        self.sounds += 1

    @property
    def titles(self):
        return [title for title, _ in self.messages]


class FakePipeline:
    """Pipeline double whose result is controlled by the test."""

    def __init__(self, result="enhanced", error=None):
        self.result = result
        self.error = error
        self.calls = []
        self.release = None

    async def process(self, text):
        self.calls.append(text)
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def store(tmp_path):
    return SettingsStore(path=tmp_path / "config.json")


@pytest.fixture
def clipboard():
    return FakeClipboard()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_pipeline(store):
    """Build a RequestPipeline whose HTTP traffic goes to ``handler``."""

    def factory(handler, reachable=True):
        requests = []

        def recording_handler(request):
            requests.append(request)
            return handler(request)

        pipeline = RequestPipeline(
            store,
            PromptStore(store),
            network_probe=lambda url: reachable,
            transport=httpx.MockTransport(recording_handler),
        )
        return pipeline, requests

    return factory


def json_response(status, payload):
    return httpx.Response(status, content=json.dumps(payload).encode("utf-8"))

