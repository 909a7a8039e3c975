import io
from typing import Any, Callable, Union

import httpx
import pytest
from PIL import Image

from anime_opener.services.minimax_client import MiniMaxClient
from anime_opener.services.orchestrator import GenerationOrchestrator
from anime_opener.services.task_store import InMemoryTaskStore

API_BASE = "https://api.minimax.test/v1"

OK = {"status_code": 0, "status_msg": "success"}

Reply = Union[tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class FakeMiniMax:
    """Scriptable stand-in for the MiniMax REST API.

    Each (method, endpoint) has a queue of replies; the last reply repeats.
    A reply is a ``(status_code, json_body)`` tuple or a callable taking the
    request.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], list[Reply]] = {
            ("POST", "/image_generation"): [
                (200, {
                    "id": "img-task-1",
                    "data": {"image_urls": ["https://cdn.test/initial.png"]},
                    "base_resp": OK,
                })
            ],
            ("GET", "/query/image_generation"): [
                (200, {"status": "success", "image": {"image_url": "https://cdn.test/polled.png"}})
            ],
            ("POST", "/lyrics_generation"): [
                (200, {"lyrics": "[Verse]\nSteel meets steel", "base_resp": OK})
            ],
            ("POST", "/music_generation"): [
                (200, {"data": {"audio": "https://cdn.test/song.mp3"}, "base_resp": OK})
            ],
            ("POST", "/video_generation"): [
                (200, {"task_id": "vid-task-1", "base_resp": OK})
            ],
            ("GET", "/query/video_generation"): [
                (200, {"status": "Processing", "base_resp": OK})
            ],
            ("POST", "/files/upload"): [
                (200, {"file": {"file_id": "file-1", "file_url": "https://cdn.test/upload.png"}})
            ],
            ("GET", "/files/retrieve"): [
                (200, {"file": {"download_url": "https://cdn.test/video.mp4"}, "base_resp": OK})
            ],
        }

    def reply(self, method: str, endpoint: str, *replies: Reply) -> None:
        self.routes[(method, endpoint)] = list(replies)

    def calls(self, method: str, endpoint: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path == f"/v1{endpoint}"
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.removeprefix("/v1")
        queue = self.routes.get((request.method, endpoint))
        if not queue:
            return httpx.Response(404, json={"error": f"no fake route for {endpoint}"})
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(reply):
            return reply(request)
        status, body = reply
        return httpx.Response(status, json=body)


class RecordingSleep:
    """Async sleep replacement that records the requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_minimax() -> FakeMiniMax:
    return FakeMiniMax()


@pytest.fixture
def minimax_client(fake_minimax) -> MiniMaxClient:
    return MiniMaxClient(
        api_key="test-key",
        base_url=API_BASE,
        transport=httpx.MockTransport(fake_minimax.handler),
    )


@pytest.fixture
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def orchestrator(minimax_client, store, recording_sleep) -> GenerationOrchestrator:
    return GenerationOrchestrator(
        minimax_client, store, sleep=recording_sleep, use_uploaded_image=False
    )


@pytest.fixture
def jpeg_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (16, 16), color=(200, 40, 90)).save(buf, format="JPEG")
    return buf.getvalue()
