"""VarSwitch HTTP + SSE 클라이언트

VarSwitch 로컬 서비스와 통신하는 비동기 HTTP 클라이언트.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, List, Optional

import aiohttp

logger = logging.getLogger(__name__)

# HTTP 타임아웃 (초)
HTTP_CONNECT_TIMEOUT = 10


# === 데이터 타입 ===

@dataclass
class SSEEvent:
    """Server-Sent Event 데이터"""
    event: str
    data: dict


@dataclass
class SwitchOutcome:
    """프로필 전환 결과

    error 는 최상위 실패(활성 프로필 기록 실패, 연결 끊김 등)일 때만 설정됩니다.
    restored 는 switch_with_rollback 이 취소된 전환을 되돌렸을 때 True.
    """
    success: bool
    profile_name: str = ""
    details: dict = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    cancelled: bool = False
    switch_id: Optional[str] = None
    error: Optional[str] = None
    restored: bool = False


# === 예외 ===

class VarSwitchServiceError(Exception):
    """VarSwitch 클라이언트 오류"""
    pass


class ProfileNotFoundError(VarSwitchServiceError):
    """프로필을 찾을 수 없음"""
    pass


class SwitchNotFoundError(VarSwitchServiceError):
    """진행 중인 전환을 찾을 수 없음"""
    pass


class DuplicateProfileError(VarSwitchServiceError):
    """같은 자격 증명의 프로필이 이미 존재"""
    pass


class NothingToImportError(VarSwitchServiceError):
    """현재 설정에서 자격 증명을 찾지 못함"""
    pass


class ConnectionLostError(VarSwitchServiceError):
    """SSE 연결 끊김"""
    pass


# === 클라이언트 ===

class VarSwitchClient:
    """VarSwitch 서비스 HTTP + SSE 클라이언트

    사용 예:
        async with VarSwitchClient(base_url="http://127.0.0.1:1430") as client:
            profiles = await client.list_profiles()
            outcome = await client.switch_with_rollback(profiles[0]["id"])
    """

    def __init__(self, base_url: str, token: str = ""):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(
                connect=HTTP_CONNECT_TIMEOUT,
                sock_read=None,   # 서버가 keepalive 를 보내므로 라인 읽기 타임아웃 없음
                total=None,
            )
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers=self._build_headers(),
            )
        return self._session

    def _build_headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "VarSwitchClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # === Profiles API ===

    async def list_profiles(self) -> List[dict]:
        """프로필 목록"""
        data = await self._request("GET", "/profiles", "프로필 목록 조회 실패")
        return data["profiles"]

    async def get_active_profile(self) -> Optional[dict]:
        """활성 프로필 (없으면 None)"""
        data = await self._request("GET", "/profiles/active", "활성 프로필 조회 실패")
        return data["profile"]

    async def add_profile(self, name: str, api_key: str, base_url: str) -> dict:
        """프로필 추가"""
        return await self._request(
            "POST",
            "/profiles",
            "프로필 추가 실패",
            payload={"name": name, "api_key": api_key, "base_url": base_url},
        )

    async def update_profile(
        self,
        profile_id: str,
        name: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> dict:
        """프로필 수정 (None 인 필드는 유지)"""
        return await self._request(
            "PUT",
            f"/profiles/{profile_id}",
            "프로필 수정 실패",
            payload={"name": name, "api_key": api_key, "base_url": base_url},
        )

    async def delete_profile(self, profile_id: str) -> bool:
        """프로필 삭제. 프로필이 없으면 False."""
        try:
            await self._request("DELETE", f"/profiles/{profile_id}", "프로필 삭제 실패")
        except ProfileNotFoundError:
            return False
        return True

    async def import_current(self, name: str = "") -> dict:
        """현재 설정된 자격 증명을 활성 프로필로 저장"""
        return await self._request(
            "POST",
            "/profiles/import-current",
            "현재 설정 가져오기 실패",
            payload={"name": name},
        )

    async def export_profiles(self, path: str) -> str:
        """profiles.json 내보내기. 저장된 경로 반환."""
        data = await self._request(
            "POST", "/profiles/export", "프로필 내보내기 실패", payload={"path": path}
        )
        return data["path"]

    async def import_profiles(self, path: str) -> int:
        """profiles.json 가져오기. 추가된 프로필 수 반환."""
        data = await self._request(
            "POST", "/profiles/import", "프로필 가져오기 실패", payload={"path": path}
        )
        return data["imported"]

    # === Targets API ===

    async def status(self) -> dict:
        """세 대상의 현재 자격 증명"""
        return await self._request("GET", "/targets/status", "상태 조회 실패")

    async def snapshot(self) -> dict:
        """현재 설정 스냅샷"""
        return await self._request("GET", "/snapshot", "스냅샷 캡처 실패")

    async def restore(self, snapshot: dict) -> None:
        """스냅샷 상태로 복원"""
        await self._request("POST", "/restore", "스냅샷 복원 실패", payload=snapshot)

    async def paths(self) -> dict:
        """동기화 대상 파일 경로"""
        return await self._request("GET", "/paths", "경로 조회 실패")

    async def health_check(self) -> dict:
        """헬스 체크"""
        session = await self._get_session()
        url = f"{self.base_url}/health"

        async with session.get(url) as response:
            if response.status == 200:
                return await response.json()
            else:
                raise VarSwitchServiceError("헬스 체크 실패")

    # === Switch API ===

    async def switch(
        self,
        profile_id: str,
        on_progress: Optional[Callable[[int, int, str], Awaitable[None]]] = None,
        on_switch: Optional[Callable[[str], Awaitable[None]]] = None,
    ) -> SwitchOutcome:
        """프로필 전환 (SSE 스트리밍)

        Args:
            profile_id: 전환할 프로필 ID
            on_progress: 진행 콜백 (step, total, label)
            on_switch: 전환 ID 조기 통지 콜백. 이 ID 로 cancel() 을 호출할 수 있습니다.

        Raises:
            ProfileNotFoundError: 프로필이 존재하지 않음
        """
        session = await self._get_session()
        url = f"{self.base_url}/switch/{profile_id}"

        async with session.post(url) as response:
            if response.status == 404:
                raise ProfileNotFoundError(f"프로필이 존재하지 않습니다: {profile_id}")
            elif response.status != 200:
                error = await self._parse_error(response)
                raise VarSwitchServiceError(f"전환 실패: {error}")

            try:
                return await self._handle_sse_events(response, on_progress, on_switch)
            except ConnectionLostError as e:
                return SwitchOutcome(success=False, error=str(e))

    async def cancel(self, switch_id: str) -> bool:
        """전환 취소 요청. 진행 중인 전환이 없으면 False."""
        try:
            await self._request(
                "POST", f"/switches/{switch_id}/cancel", "전환 취소 실패"
            )
        except SwitchNotFoundError:
            return False
        return True

    async def cancel_all(self) -> int:
        """진행 중인 모든 전환 취소 요청"""
        data = await self._request("POST", "/switches/cancel", "전환 취소 실패")
        return data["cancelled"]

    async def switch_with_rollback(
        self,
        profile_id: str,
        on_progress: Optional[Callable[[int, int, str], Awaitable[None]]] = None,
        on_switch: Optional[Callable[[str], Awaitable[None]]] = None,
    ) -> SwitchOutcome:
        """스냅샷 → 전환 → (취소되면) 복원

        취소된 전환이 이미 쓴 대상은 스냅샷으로 되돌립니다.
        """
        snapshot = await self.snapshot()
        outcome = await self.switch(profile_id, on_progress=on_progress, on_switch=on_switch)
        if outcome.cancelled:
            logger.info(f"전환 취소됨, 스냅샷 복원: {profile_id}")
            await self.restore(snapshot)
            outcome.restored = True
        return outcome

    # === 헬퍼 메서드 ===

    async def _request(
        self,
        method: str,
        path: str,
        failure_message: str,
        payload: Optional[dict] = None,
    ) -> dict:
        session = await self._get_session()
        url = f"{self.base_url}{path}"

        async with session.request(method, url, json=payload) as response:
            if response.status == 200:
                return await response.json()

            error = await self._parse_error(response)
            code = await self._parse_error_code(response)
            if code == "PROFILE_NOT_FOUND":
                raise ProfileNotFoundError(error)
            elif code == "SWITCH_NOT_FOUND":
                raise SwitchNotFoundError(error)
            elif code == "DUPLICATE_PROFILE":
                raise DuplicateProfileError(error)
            elif code == "NOTHING_TO_IMPORT":
                raise NothingToImportError(error)
            raise VarSwitchServiceError(f"{failure_message}: {error}")

    async def _handle_sse_events(
        self,
        response: aiohttp.ClientResponse,
        on_progress: Optional[Callable[[int, int, str], Awaitable[None]]] = None,
        on_switch: Optional[Callable[[str], Awaitable[None]]] = None,
    ) -> SwitchOutcome:
        """SSE 이벤트 스트림 처리"""
        switch_id = None

        async for event in self._parse_sse_stream(response):
            if event.event == "switch":
                switch_id = event.data.get("switch_id")
                if on_switch and switch_id:
                    await on_switch(switch_id)

            elif event.event == "progress":
                if on_progress:
                    await on_progress(
                        event.data.get("step", 0),
                        event.data.get("total", 0),
                        event.data.get("label", ""),
                    )

            elif event.event == "result":
                return SwitchOutcome(
                    success=event.data.get("success", False),
                    profile_name=event.data.get("profile_name", ""),
                    details=event.data.get("details", {}),
                    errors=event.data.get("errors", []),
                    cancelled=event.data.get("cancelled", False),
                    switch_id=switch_id,
                )

            elif event.event == "error":
                return SwitchOutcome(
                    success=False,
                    switch_id=switch_id,
                    error=event.data.get("message", "알 수 없는 오류"),
                )

        raise ConnectionLostError("결과를 받기 전에 스트림이 종료되었습니다")

    async def _parse_sse_stream(
        self,
        response: aiohttp.ClientResponse,
    ) -> AsyncIterator[SSEEvent]:
        """SSE 스트림 파싱

        연결 끊김 시 ConnectionLostError를 발생시킵니다.
        """
        current_event = "message"
        current_data: list[str] = []
        last_event_name = "none"  # 로깅용: 마지막으로 수신한 이벤트 이름

        while True:
            try:
                line_bytes = await response.content.readline()
            except aiohttp.ClientError as e:
                logger.error(
                    f"[SSE] 네트워크 오류로 연결 끊김 (마지막 이벤트: {last_event_name}): {e}"
                )
                raise ConnectionLostError(f"VarSwitch 서비스 연결이 끊어졌습니다: {e}")

            if not line_bytes:
                logger.debug(f"[SSE] 스트림 종료 (마지막 이벤트: {last_event_name})")
                break

            line = line_bytes.decode("utf-8").rstrip("\r\n")

            if line.startswith("event:"):
                current_event = line[6:].strip()
            elif line.startswith("data:"):
                current_data.append(line[5:].strip())
            elif line.startswith(":"):
                pass  # SSE comment (keepalive)
            elif line == "":
                if current_data:
                    data_str = "\n".join(current_data)
                    try:
                        data = json.loads(data_str)
                    except json.JSONDecodeError:
                        data = {"raw": data_str}

                    last_event_name = current_event
                    yield SSEEvent(event=current_event, data=data)

                    current_event = "message"
                    current_data = []

    @staticmethod
    async def _read_error_body(response: aiohttp.ClientResponse) -> dict:
        try:
            data = await response.json()
        except (aiohttp.ContentTypeError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    async def _parse_error(self, response: aiohttp.ClientResponse) -> str:
        """에러 응답 파싱"""
        data = await self._read_error_body(response)
        if "error" in data:
            return data["error"].get("message", str(data["error"]))
        if "detail" in data:
            detail = data["detail"]
            if isinstance(detail, dict) and "error" in detail:
                return detail["error"].get("message", str(detail["error"]))
            return str(detail)
        return str(data) if data else f"HTTP {response.status}"

    async def _parse_error_code(self, response: aiohttp.ClientResponse) -> Optional[str]:
        """에러 응답의 code 필드"""
        data = await self._read_error_body(response)
        error = data.get("error")
        if error is None and isinstance(data.get("detail"), dict):
            error = data["detail"].get("error")
        return error.get("code") if isinstance(error, dict) else None
