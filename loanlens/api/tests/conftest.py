import importlib

import anyio
import httpx
import pytest

from loanlens.workers.graph.io import acquire as acquire_module
from tests.helpers import DummyResponse, csv_bytes, zip_bytes


class FakeKaggle:
    """Stands in for the dataset host behind ``requests.request``."""

    def __init__(self):
        self.calls = []
        self.status_code = 200
        self.content = zip_bytes({"loan_data.csv": csv_bytes()})

    def __call__(self, method, url, headers=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "timeout": timeout})
        return DummyResponse(status_code=self.status_code, content=self.content)


@pytest.fixture()
def api_app(monkeypatch):
    monkeypatch.setenv("KAGGLE_KEY", "test-key")
    monkeypatch.setenv("LOANLENS_CACHE_TTL", "300")
    monkeypatch.setenv("LOANLENS_DOWNLOAD_TIMEOUT", "5")
    monkeypatch.delenv("LOANLENS_DATASET", raising=False)
    monkeypatch.delenv("LOANLENS_STATIC_DIR", raising=False)
    monkeypatch.delenv("KAGGLE_API_BASE", raising=False)

    from loanlens.api import app as app_module

    importlib.reload(app_module)

    kaggle = FakeKaggle()
    monkeypatch.setattr(acquire_module.requests, "request", kaggle)

    transport = httpx.ASGITransport(app=app_module.app)
    async_client = httpx.AsyncClient(transport=transport, base_url="http://testserver")

    class SyncClient:
        def request(self, method: str, url: str, **kwargs):
            return anyio.run(lambda: async_client.request(method, url, **kwargs))

        def get(self, url: str, **kwargs):
            return self.request("GET", url, **kwargs)

        def post(self, url: str, **kwargs):
            return self.request("POST", url, **kwargs)

    try:
        yield {
            "client": SyncClient(),
            "module": app_module,
            "kaggle": kaggle,
        }
    finally:
        anyio.run(async_client.aclose)
