"""
AuthNames - 자격 증명 환경변수 이름 정책

TOKEN / KEY / LEGACY 세 이름 중 어느 것을 쓰고 어느 것을 제거할지 결정합니다.
세 대상(시스템 환경변수, VS Code, Claude Code)이 모두 같은 정책을 공유하므로
대상은 EnvView 프로토콜만 구현하면 됩니다.
"""

from enum import Enum
from typing import Optional, Protocol

from varswitch.constants import (
    AUTH_TOKEN_ENV,
    AUTH_KEY_ENV,
    LEGACY_AUTH_ENV,
    BASE_URL_ENV,
)


class AuthVariableName(str, Enum):
    """의미상 동일한 자격 증명 환경변수 이름"""
    TOKEN = AUTH_TOKEN_ENV   # 현재 권장
    KEY = AUTH_KEY_ENV       # deprecated
    LEGACY = LEGACY_AUTH_ENV  # 가장 오래된 이름


class EnvView(Protocol):
    """이름 기반 환경변수 컨테이너"""

    def read(self, name: str) -> Optional[str]: ...

    def write(self, name: str, value: str) -> None: ...

    def delete(self, name: str) -> None: ...

    def contains(self, name: str) -> bool: ...


class AuthNameResolver:
    """
    자격 증명 이름 결정기.

    모든 대상은 쓰기 후 TOKEN 하나와 BASE_URL 만 남도록 수렴합니다.
    """

    # 읽기 우선순위 (세 대상 모두 동일)
    READ_PRECEDENCE = (
        AuthVariableName.TOKEN,
        AuthVariableName.KEY,
        AuthVariableName.LEGACY,
    )

    def resolve(self, has_token: bool, has_key: bool) -> AuthVariableName:
        """
        쓸 이름 결정.

        입력은 "기존 이름 유지" 정책을 위한 자리이며, 현재 정책은
        항상 TOKEN 으로 이전합니다.
        """
        return AuthVariableName.TOKEN

    def apply_to(self, target: EnvView, api_key: str, base_url: str) -> AuthVariableName:
        """
        대상에 자격 증명 적용.

        1. 결정된 이름에 api_key 쓰기
        2. BASE_URL 쓰기
        3. TOKEN/KEY 중 선택되지 않은 쪽 제거
        4. LEGACY 제거

        같은 입력으로 두 번 적용해도 결과가 같습니다.

        Returns:
            사용된 이름
        """
        auth_name = self.resolve(
            target.contains(AuthVariableName.TOKEN.value),
            target.contains(AuthVariableName.KEY.value),
        )
        target.write(auth_name.value, api_key)
        target.write(BASE_URL_ENV, base_url)

        other = (
            AuthVariableName.KEY
            if auth_name == AuthVariableName.TOKEN
            else AuthVariableName.TOKEN
        )
        if target.contains(other.value):
            target.delete(other.value)
        if target.contains(AuthVariableName.LEGACY.value):
            target.delete(AuthVariableName.LEGACY.value)

        return auth_name

    def read_auth(self, target: EnvView) -> str:
        """TOKEN → KEY → LEGACY 순으로 자격 증명 조회. 없으면 빈 문자열."""
        for name in self.READ_PRECEDENCE:
            value = target.read(name.value)
            if value is not None:
                return value
        return ""

    def read_base_url(self, target: EnvView) -> str:
        return target.read(BASE_URL_ENV) or ""


# 모듈 공유 인스턴스 (상태 없음)
auth_name_resolver = AuthNameResolver()
