import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

FIXTURES_DIR = Path(__file__).parent / "fixtures"

ACCESS_TOKEN = "acc35570d3n"


def load_fixture(name: str) -> Any:
    return json.loads((FIXTURES_DIR / name).read_text(encoding="utf-8"))


class FakeAirthingsApi:
    """Serves the consumer API and token endpoint from JSON fixtures."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str]] = []
        self.authorization_headers: List[Optional[str]] = []
        self.device_list_params: List[Dict[str, str]] = []
        self.token_forms: List[Dict[str, str]] = []
        self.status_overrides: Dict[str, int] = {}
        self.body_overrides: Dict[str, Any] = {}

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/v1/token", self._handle_token)
        app.router.add_get("/v1/devices", self._handle_devices)
        app.router.add_get(
            "/v1/devices/{device_id}/latest-samples", self._handle_sample
        )
        app.router.add_get("/v1/devices/{device_id}", self._handle_details)
        return app

    def count(self, kind: str) -> int:
        return sum(1 for call_kind, _ in self.calls if call_kind == kind)

    async def _handle_token(self, request: web.Request) -> web.StreamResponse:
        form = await request.post()
        self.token_forms.append({key: str(value) for key, value in form.items()})
        self.calls.append(("token", ""))
        return web.Response(
            text=f"access_token={ACCESS_TOKEN}&scope=user&token_type=bearer",
            content_type="application/x-www-form-urlencoded",
        )

    async def _handle_devices(self, request: web.Request) -> web.StreamResponse:
        self.calls.append(("devices", ""))
        self.authorization_headers.append(request.headers.get("Authorization"))
        self.device_list_params.append(dict(request.query))
        return self._respond("devices", "device_list.json")

    async def _handle_sample(self, request: web.Request) -> web.StreamResponse:
        device_id = request.match_info["device_id"]
        self.calls.append(("sample", device_id))
        self.authorization_headers.append(request.headers.get("Authorization"))
        return self._respond(f"sample:{device_id}", f"sample_{device_id}.json")

    async def _handle_details(self, request: web.Request) -> web.StreamResponse:
        device_id = request.match_info["device_id"]
        self.calls.append(("details", device_id))
        self.authorization_headers.append(request.headers.get("Authorization"))
        return self._respond(f"details:{device_id}", f"details_{device_id}.json")

    def _respond(self, key: str, fixture: str) -> web.StreamResponse:
        status = self.status_overrides.get(key, 200)
        if status != 200:
            return web.json_response(load_fixture("error.json"), status=status)
        if key in self.body_overrides:
            body = self.body_overrides[key]
            if isinstance(body, str):
                return web.Response(text=body, content_type="application/json")
            return web.json_response(body)
        path = FIXTURES_DIR / fixture
        if not path.exists():
            return web.json_response(load_fixture("error.json"), status=404)
        return web.json_response(load_fixture(fixture))


@pytest.fixture
def fake_api() -> FakeAirthingsApi:
    return FakeAirthingsApi()


@pytest_asyncio.fixture
async def api_server(fake_api: FakeAirthingsApi):
    async with TestServer(fake_api.build_app()) as server:
        yield server


