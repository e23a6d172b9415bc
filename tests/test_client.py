"""
test_client - VarSwitchClient SSE 처리 및 롤백 흐름 테스트

네트워크 없이 가짜 응답 객체로 SSE 파싱을 검증합니다.
"""

import json
from unittest.mock import AsyncMock

import aiohttp
import pytest

from varswitch_client import (
    ConnectionLostError,
    SwitchOutcome,
    VarSwitchClient,
)


class FakeContent:
    def __init__(self, lines, error=None):
        self._lines = [line.encode("utf-8") for line in lines]
        self._error = error

    async def readline(self) -> bytes:
        if self._lines:
            return self._lines.pop(0)
        if self._error is not None:
            raise self._error
        return b""


class FakeResponse:
    def __init__(self, lines=(), status=200, body=None, error=None):
        self.status = status
        self.content = FakeContent(list(lines), error)
        self._body = body

    async def json(self):
        if self._body is None:
            raise aiohttp.ContentTypeError(None, ())
        return self._body


def sse(event: str, data: dict) -> list:
    return [f"event: {event}\r\n", f"data: {json.dumps(data)}\r\n", "\r\n"]


@pytest.fixture
def client():
    return VarSwitchClient(base_url="http://127.0.0.1:1430/")


class TestParseStream:
    async def test_events_and_keepalive(self, client):
        lines = [": keepalive\r\n"] + sse("switch", {"switch_id": "s1"}) + sse("progress", {"step": 1})
        events = [e async for e in client._parse_sse_stream(FakeResponse(lines))]

        assert [e.event for e in events] == ["switch", "progress"]
        assert events[0].data == {"switch_id": "s1"}

    async def test_non_json_data(self, client):
        lines = ["event: x\n", "data: plain\n", "\n"]
        events = [e async for e in client._parse_sse_stream(FakeResponse(lines))]
        assert events[0].data == {"raw": "plain"}

    async def test_network_error(self, client):
        response = FakeResponse(error=aiohttp.ClientPayloadError("reset"))
        with pytest.raises(ConnectionLostError):
            [e async for e in client._parse_sse_stream(response)]


class TestHandleEvents:
    async def test_result(self, client):
        lines = (
            sse("switch", {"switch_id": "s1"})
            + sse("progress", {"step": 1, "total": 6, "label": "prepare"})
            + sse("result", {
                "success": False,
                "profile_name": "A",
                "details": {"env_vars": True, "vscode": False, "claude": True},
                "errors": ["VSCode: bad json"],
                "cancelled": False,
            })
        )
        progress = []
        switch_ids = []

        async def on_progress(step, total, label):
            progress.append((step, total, label))

        async def on_switch(switch_id):
            switch_ids.append(switch_id)

        outcome = await client._handle_sse_events(FakeResponse(lines), on_progress, on_switch)

        assert outcome.success is False
        assert outcome.errors == ["VSCode: bad json"]
        assert outcome.switch_id == "s1"
        assert progress == [(1, 6, "prepare")]
        assert switch_ids == ["s1"]

    async def test_error_event(self, client):
        lines = sse("error", {"message": "활성 프로필 기록 실패"})
        outcome = await client._handle_sse_events(FakeResponse(lines))
        assert outcome.success is False
        assert outcome.error == "활성 프로필 기록 실패"

    async def test_stream_ends_without_result(self, client):
        with pytest.raises(ConnectionLostError):
            await client._handle_sse_events(FakeResponse(sse("switch", {"switch_id": "s"})))


class TestParseError:
    async def test_envelope_in_detail(self, client):
        body = {"detail": {"error": {"code": "PROFILE_NOT_FOUND", "message": "없음", "details": {}}}}
        response = FakeResponse(status=404, body=body)
        assert await client._parse_error(response) == "없음"
        assert await client._parse_error_code(response) == "PROFILE_NOT_FOUND"

    async def test_top_level_envelope(self, client):
        body = {"error": {"code": "INTERNAL_ERROR", "message": "boom"}}
        response = FakeResponse(status=500, body=body)
        assert await client._parse_error(response) == "boom"
        assert await client._parse_error_code(response) == "INTERNAL_ERROR"

    async def test_non_json(self, client):
        response = FakeResponse(status=502)
        assert await client._parse_error(response) == "HTTP 502"
        assert await client._parse_error_code(response) is None


class TestSwitchWithRollback:
    async def test_restores_on_cancel(self, client, monkeypatch):
        snapshot = {"env_auth_token": None, "claude_content": "{}"}
        monkeypatch.setattr(client, "snapshot", AsyncMock(return_value=snapshot))
        monkeypatch.setattr(client, "switch", AsyncMock(return_value=SwitchOutcome(
            success=False, errors=["cancelled"], cancelled=True,
        )))
        restore = AsyncMock()
        monkeypatch.setattr(client, "restore", restore)

        outcome = await client.switch_with_rollback("p1")

        assert outcome.restored is True
        restore.assert_awaited_once_with(snapshot)

    async def test_no_restore_on_success(self, client, monkeypatch):
        monkeypatch.setattr(client, "snapshot", AsyncMock(return_value={}))
        monkeypatch.setattr(client, "switch", AsyncMock(return_value=SwitchOutcome(success=True)))
        restore = AsyncMock()
        monkeypatch.setattr(client, "restore", restore)

        outcome = await client.switch_with_rollback("p1")

        assert outcome.restored is False
        restore.assert_not_awaited()


class TestClientConfig:
    def test_base_url_trailing_slash(self, client):
        assert client.base_url == "http://127.0.0.1:1430"

    def test_auth_header(self):
        headers = VarSwitchClient("http://x", token="t")._build_headers()
        assert headers["Authorization"] == "Bearer t"
