"""
Pytest configuration and fixtures shared by the backend test suites.

Upstream NASA traffic is served by httpx.MockTransport handlers; route
tests replace the gateway with an autospecced mock through FastAPI dependency
overrides, so nothing here touches the network.
"""

import json
import sys
from pathlib import Path
from typing import Callable, List
from unittest.mock import Mock

import httpx
import pytest
from fastapi.testclient import TestClient

# Add the backend directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.api.deps import get_nasa
from app.main import create_app
from app.services.nasa_api import NasaClient


class RecordingHandler:
    """MockTransport handler that records requests and replays queued responses."""

    def __init__(self, responses: List[httpx.Response]):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    @property
    def calls(self) -> int:
        return len(self.requests)


def json_response(payload, status_code: int = 200, headers=None) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode(), headers={
        "Content-Type": "application/json",
        **(headers or {}),
    })


@pytest.fixture
def recording_handler() -> Callable[..., RecordingHandler]:
    return lambda *responses: RecordingHandler(list(responses))


@pytest.fixture
def make_nasa():
    """Build a NasaClient whose HTTP client is backed by the given handler."""
    def _make(handler, retries: int = 2) -> NasaClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return NasaClient(
            api_key="TEST_KEY",
            base_url="https://api.nasa.test",
            http_client=http,
            retries=retries,
            backoff_base_ms=0,
            timeout_ms=1000,
        )
    return _make


@pytest.fixture
def nasa():
    """Gateway double; every coroutine method is an AsyncMock."""
    return Mock(spec=NasaClient)


@pytest.fixture
def client(nasa):
    app = create_app()
    app.dependency_overrides[get_nasa] = lambda: nasa
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_flares():
    return [
        {"flrID": "F1", "classType": "M2.1", "beginTime": "2024-05-08T01:00Z", "peakTime": "2024-05-08T01:10Z"},
        {"flrID": "F2", "classType": "X1.0", "beginTime": None, "peakTime": None, "endTime": "2024-05-09T05:00Z"},
        {"flrID": "F3", "classType": "C3.4"},
    ]


@pytest.fixture
def sample_neo_today():
    return {
        "element_count": 2,
        "near_earth_objects": {
            "2024-05-10": [
                {
                    "id": "1",
                    "name": "(2024 AB)",
                    "close_approach_data": [
                        {"close_approach_date": "2024-05-10", "close_approach_date_full": "2024-May-10 03:15"}
                    ],
                },
                {"id": "2", "name": "(2024 CD)", "close_approach_data": []},
            ]
        },
    }
