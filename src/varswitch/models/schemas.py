"""
Pydantic 모델 - Request/Response 스키마
"""

from enum import Enum
from typing import Optional, List, Union
from pydantic import BaseModel, Field


# === Enums ===

class SSEEventType(str, Enum):
    """SSE 이벤트 타입"""
    SWITCH = "switch"
    PROGRESS = "progress"
    RESULT = "result"
    ERROR = "error"


# === Request Models ===

class ProfileCreateRequest(BaseModel):
    """프로필 생성 요청"""
    name: str = Field(..., description="프로필 이름")
    api_key: str = Field(..., description="API 키")
    base_url: str = Field(..., description="API Base URL")


class ProfileUpdateRequest(BaseModel):
    """프로필 수정 요청 (비어 있는 필드는 기존 값 유지)"""
    name: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None


class ImportCurrentRequest(BaseModel):
    """현재 설정 가져오기 요청"""
    name: str = Field("", description="프로필 이름 (비어 있으면 기본 이름)")


class PathRequest(BaseModel):
    """파일 경로 요청 (내보내기/가져오기)"""
    path: str = Field(..., description="파일 경로")


# === Response Models ===

class ProfileModel(BaseModel):
    """프로필"""
    id: str
    name: str
    api_key: str
    base_url: str
    is_active: bool
    created_at: str


class ProfileListResponse(BaseModel):
    """프로필 목록 응답"""
    profiles: List[ProfileModel]
    active: Optional[str] = Field(None, description="활성 프로필 ID")


class ActiveProfileResponse(BaseModel):
    """활성 프로필 응답"""
    profile: Optional[ProfileModel] = None


class DeleteResponse(BaseModel):
    """삭제 응답"""
    deleted: bool
    id: str


class ExportResponse(BaseModel):
    """내보내기 응답"""
    path: str


class ImportResponse(BaseModel):
    """가져오기 응답"""
    imported: int


class LocationStatusModel(BaseModel):
    """대상 하나의 현재 자격 증명"""
    api_key: str = ""
    base_url: str = ""


class StatusResponse(BaseModel):
    """대상 상태 응답 (읽을 수 없는 대상은 null)"""
    env_vars: Optional[LocationStatusModel] = None
    vscode: Optional[LocationStatusModel] = None
    claude: Optional[LocationStatusModel] = None
    synced: bool = False


class ConfigSnapshotModel(BaseModel):
    """설정 스냅샷 (null 은 캡처 시점에 없었음을 뜻함)"""
    env_auth_token: Optional[str] = None
    env_auth_key: Optional[str] = None
    env_api_key: Optional[str] = None
    env_base_url: Optional[str] = None
    vscode_content: Optional[str] = None
    claude_content: Optional[str] = None


class RestoreResponse(BaseModel):
    """복원 응답"""
    restored: bool


class CancelResponse(BaseModel):
    """전환 취소 응답"""
    cancelled: int


class PathsResponse(BaseModel):
    """동기화 대상 경로"""
    data_dir: str
    profiles_path: str
    vscode_settings_path: str
    claude_settings_path: str
    env_file_path: str


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str
    version: str
    uptime_seconds: int
    environment: Optional[str] = None
    active_switches: int = 0


# === Error Response ===

class ErrorDetail(BaseModel):
    """에러 상세 정보"""
    code: str
    message: str
    details: dict = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """에러 응답"""
    error: ErrorDetail


# === SSE Event Models ===

class SwitchStartedEvent(BaseModel):
    """전환 시작 이벤트

    클라이언트는 switch_id 로 취소 API 를 호출할 수 있습니다.
    """
    type: str = SSEEventType.SWITCH.value
    switch_id: str
    profile_id: str
    profile_name: str


class SwitchProgressEvent(BaseModel):
    """전환 진행 이벤트"""
    type: str = SSEEventType.PROGRESS.value
    step: int
    total: int
    label: str


class SwitchDetailsModel(BaseModel):
    """대상별 쓰기 성공 여부"""
    env_vars: bool = False
    vscode: bool = False
    claude: bool = False


class SwitchResultEvent(BaseModel):
    """전환 결과 이벤트"""
    type: str = SSEEventType.RESULT.value
    switch_id: str
    success: bool
    details: SwitchDetailsModel
    errors: List[str] = Field(default_factory=list)
    profile_name: str
    cancelled: bool = False


class ErrorEvent(BaseModel):
    """오류 이벤트 (최상위 실패)"""
    type: str = SSEEventType.ERROR.value
    switch_id: Optional[str] = None
    message: str


# 전환 큐/SSE 스트림으로 전달되는 이벤트
SwitchEvent = Union[SwitchStartedEvent, SwitchProgressEvent, SwitchResultEvent, ErrorEvent]
