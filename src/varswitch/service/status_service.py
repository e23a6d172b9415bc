"""
StatusService - 대상 상태 조회 및 현재 설정 가져오기
"""

import logging

from varswitch.constants import DEFAULT_IMPORT_NAME
from varswitch.service.profile_store import ProfileStore
from varswitch.service.switch_models import (
    ImportCurrentError,
    Profile,
    StatusResult,
    mask_secret,
)
from varswitch.service.targets import EnvArrayTarget, EnvObjectTarget, EnvVarTarget

logger = logging.getLogger(__name__)


class StatusService:
    """세 대상의 현재 자격 증명 조회 (읽기 전용)"""

    def __init__(
        self,
        store: ProfileStore,
        env_target: EnvVarTarget,
        editor_target: EnvArrayTarget,
        tool_target: EnvObjectTarget,
    ) -> None:
        self._store = store
        self._env_target = env_target
        self._editor_target = editor_target
        self._tool_target = tool_target

    def status(self) -> StatusResult:
        """대상별 best-effort 조회. 읽을 수 없는 대상은 None."""
        return StatusResult(
            env_vars=self._env_target.read_status(),
            vscode=self._editor_target.read_status(),
            claude=self._tool_target.read_status(),
        )

    def import_current(self, name: str = "") -> Profile:
        """
        현재 설정된 자격 증명을 활성 프로필로 저장.

        Claude → VS Code → 시스템 환경변수 순으로 비어 있는 필드를 채웁니다.

        Args:
            name: 프로필 이름 (비어 있으면 기본 이름)

        Raises:
            ImportCurrentError: api_key 또는 base_url 을 찾지 못함
            DuplicateProfileError: 같은 자격 증명의 프로필이 이미 존재
        """
        api_key = ""
        base_url = ""
        for target in (self._tool_target, self._editor_target, self._env_target):
            if api_key and base_url:
                break
            location = target.read_status()
            if location is None:
                continue
            api_key = api_key or location.api_key
            base_url = base_url or location.base_url

        if not api_key:
            raise ImportCurrentError("현재 설정에서 API 키를 찾을 수 없습니다")
        if not base_url:
            raise ImportCurrentError("현재 설정에서 Base URL 을 찾을 수 없습니다")

        name = name.strip() or DEFAULT_IMPORT_NAME
        logger.info(f"현재 설정 가져오기: {name} (key={mask_secret(api_key)}, url={base_url})")
        return self._store.add_active(name, api_key, base_url)
