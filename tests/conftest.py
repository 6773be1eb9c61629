import copy
import os
from pathlib import Path

os.environ["CONFIG_PATH"] = str(Path(__file__).parent / "config.test.toml")

import httpx
import pytest
from fastapi.testclient import TestClient

from text_intelligence import config
from text_intelligence.fetcher import UrlFetcher
from text_intelligence.main import app, get_analyzer, get_fetcher, limiter

UPSTREAM_RESULT = {
    "metadata": {"request_id": "r-1", "summary_info": {"model_uuid": "m"}},
    "results": {
        "summary": {"text": "Deepgram is great."},
        "topics": {"segments": []},
        "sentiments": {"average": {"sentiment": "positive", "sentiment_score": 0.9}},
        "intents": {"segments": []},
    },
}


class FakeAnalyzer:
    def __init__(self, result=None, exc=None):
        self.result = copy.deepcopy(UPSTREAM_RESULT) if result is None else result
        self.exc = exc
        self.calls = []

    async def analyze(self, text, options):
        self.calls.append((text, options))
        if self.exc is not None:
            raise self.exc
        return self.result


@pytest.fixture
def cfg():
    """Yields a mutable copy of the active config and restores the original afterwards."""
    original = config.get_cfg()
    patched = copy.deepcopy(original)
    config.set_cfg(patched)
    yield patched
    config.set_cfg(original)


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def pages():
    """URL -> body served by the mock transport; unknown URLs get a 404."""
    return {}


@pytest.fixture
def transport(pages):
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url in pages:
            return httpx.Response(200, text=pages[url])
        return httpx.Response(404, text="nope")
    return httpx.MockTransport(handler)


@pytest.fixture
def client(analyzer, transport):
    limiter.enabled = False
    app.dependency_overrides[get_analyzer] = lambda: analyzer
    app.dependency_overrides[get_fetcher] = lambda: UrlFetcher(transport=transport)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    limiter.enabled = True
