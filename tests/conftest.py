import io
import json
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
import pytest
from PIL import Image


class FakeResponse:
    def __init__(self, status: int = 200, json_body: Any = None, body: bytes = b"", headers: Optional[Dict[str, str]] = None, reason: str = "") -> None:
        self.status = status
        self.reason = reason or ("OK" if status < 400 else "Error")
        self.headers = headers or {}
        self._json = json_body
        self._body = body if json_body is None else json.dumps(json_body).encode()

    @property
    def ok(self) -> bool:
        return self.status < 400

    async def read(self) -> bytes:
        return self._body

    async def text(self) -> str:
        return self._body.decode("utf-8", errors="ignore")

    async def json(self) -> Any:
        if self._json is not None:
            return self._json
        return json.loads(self._body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeHttp:
    """Routes aiohttp requests to canned responses keyed by (method, url)."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], FakeResponse] = {}
        self.calls: List[Dict[str, Any]] = []

    def add(self, method: str, url: str, **kwargs: Any) -> None:
        self.routes[(method.upper(), url)] = FakeResponse(**kwargs)

    def calls_to(self, method: str, url: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method.upper() and c["url"] == url]

    def session(self, *args: Any, **kwargs: Any) -> "FakeSession":
        return FakeSession(self)


class FakeSession:
    def __init__(self, http: FakeHttp) -> None:
        self.http = http

    def _request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.http.calls.append({"method": method, "url": url, **kwargs})
        try:
            return self.http.routes[(method, url)]
        except KeyError:
            raise aiohttp.ClientConnectionError(f"No route for {method} {url}")

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._request("POST", url, **kwargs)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.fixture
def fake_http(monkeypatch) -> FakeHttp:
    http = FakeHttp()
    monkeypatch.setattr(aiohttp, "ClientSession", http.session)
    return http


def make_image_bytes(fmt: str = "PNG", size=(8, 8), color=(255, 0, 0)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


def make_gif_bytes(frames: int = 2) -> bytes:
    images = [Image.new("P", (6, 6), color=i * 40) for i in range(frames)]
    buf = io.BytesIO()
    images[0].save(buf, format="GIF", save_all=True, append_images=images[1:], duration=100, loop=0)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def gif_bytes() -> bytes:
    return make_gif_bytes()
