"""
Switch Models - 프로필 전환 관련 데이터 모델 및 예외

프로필, 전환 결과, 스냅샷, 진행 이벤트 등 핵심 데이터 구조를 정의합니다.
"""

from datetime import datetime, timezone
from dataclasses import dataclass, field, asdict
from typing import Optional, List

from varswitch.constants import SWITCH_TOTAL_STEPS


class VarSwitchError(Exception):
    """VarSwitch 공통 오류"""
    pass


class ProfileNotFoundError(VarSwitchError):
    """프로필 없음 오류"""
    pass


class DuplicateProfileError(VarSwitchError):
    """같은 (api_key, base_url) 쌍의 프로필이 이미 존재"""
    pass


class TargetError(VarSwitchError):
    """동기화 대상 읽기/쓰기 실패"""
    pass


class FinalizeError(VarSwitchError):
    """전환 후 프로필 저장소 영속화 실패"""
    pass


class ImportCurrentError(VarSwitchError):
    """현재 설정에서 자격 증명을 찾지 못함"""
    pass


class RestoreError(VarSwitchError):
    """스냅샷 복원 실패"""
    pass


def utc_now() -> datetime:
    """현재 UTC 시간 반환"""
    return datetime.now(timezone.utc)


def utc_now_str() -> str:
    """현재 UTC 시간을 ISO 문자열로 반환"""
    return utc_now().isoformat()


def mask_secret(value: str) -> str:
    """로그 출력용 API 키 마스킹"""
    if not value:
        return ""
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}...{value[-4:]}"


@dataclass
class Profile:
    """자격 증명 프로필

    id, created_at 은 생성 시 한 번 부여되고 변경되지 않습니다.
    """
    id: str
    name: str
    api_key: str
    base_url: str
    is_active: bool = False
    created_at: str = field(default_factory=utc_now_str)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SwitchDetails:
    """대상별 쓰기 성공 여부"""
    env_vars: bool = False
    vscode: bool = False
    claude: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SwitchResult:
    """프로필 전환 결과

    success 는 세 대상이 모두 성공했을 때만 True.
    cancelled 결과는 항상 오류 하나("cancelled")만 가집니다.
    """
    success: bool
    details: SwitchDetails
    errors: List[str]
    profile_name: str
    cancelled: bool = False

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "details": self.details.to_dict(),
            "errors": list(self.errors),
            "profile_name": self.profile_name,
            "cancelled": self.cancelled,
        }


@dataclass
class ProgressEvent:
    """전환 진행 이벤트"""
    step: int
    label: str
    total: int = SWITCH_TOTAL_STEPS

    def to_dict(self) -> dict:
        return {"step": self.step, "total": self.total, "label": self.label}


@dataclass
class ConfigSnapshot:
    """대상 설정의 시점 스냅샷

    None 은 "캡처 시점에 존재하지 않았음"을 뜻하며,
    빈 문자열("존재하지만 비어 있음")과 구분됩니다.
    """
    env_auth_token: Optional[str] = None
    env_auth_key: Optional[str] = None
    env_api_key: Optional[str] = None
    env_base_url: Optional[str] = None
    vscode_content: Optional[str] = None
    claude_content: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ConfigSnapshot":
        return cls(
            env_auth_token=data.get("env_auth_token"),
            env_auth_key=data.get("env_auth_key"),
            env_api_key=data.get("env_api_key"),
            env_base_url=data.get("env_base_url"),
            vscode_content=data.get("vscode_content"),
            claude_content=data.get("claude_content"),
        )


@dataclass
class LocationStatus:
    """대상 하나의 현재 자격 증명"""
    api_key: str = ""
    base_url: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class StatusResult:
    """세 대상의 현재 상태

    읽을 수 없는 대상은 None.
    """
    env_vars: Optional[LocationStatus] = None
    vscode: Optional[LocationStatus] = None
    claude: Optional[LocationStatus] = None

    @property
    def synced(self) -> bool:
        """비어 있지 않은 키/URL 이 대상 간에 모두 같은지 여부"""
        locations = [loc for loc in (self.env_vars, self.vscode, self.claude) if loc]
        keys = {loc.api_key for loc in locations if loc.api_key}
        urls = {loc.base_url for loc in locations if loc.base_url}
        return len(keys) == 1 and len(urls) <= 1

    def to_dict(self) -> dict:
        return {
            "env_vars": self.env_vars.to_dict() if self.env_vars else None,
            "vscode": self.vscode.to_dict() if self.vscode else None,
            "claude": self.claude.to_dict() if self.claude else None,
            "synced": self.synced,
        }
