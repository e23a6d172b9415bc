"""
SnapshotManager - 대상 설정 스냅샷 캡처/복원

전환 직전 상태를 캡처해 두었다가, 사용자가 전환을 취소하면 그대로 되돌립니다.
문서는 원본 텍스트 그대로 보관하므로 복원 후 바이트 단위로 동일합니다.
"""

import logging

from varswitch.constants import (
    AUTH_TOKEN_ENV,
    AUTH_KEY_ENV,
    LEGACY_AUTH_ENV,
    BASE_URL_ENV,
)
from varswitch.service.env_store import EnvStore
from varswitch.service.json_document import JsonDocument
from varswitch.service.switch_models import ConfigSnapshot, RestoreError

logger = logging.getLogger(__name__)

# 스냅샷 필드 ↔ 환경변수 이름
_ENV_FIELDS = (
    ("env_auth_token", AUTH_TOKEN_ENV),
    ("env_auth_key", AUTH_KEY_ENV),
    ("env_api_key", LEGACY_AUTH_ENV),
    ("env_base_url", BASE_URL_ENV),
)


class SnapshotManager:
    def __init__(
        self,
        env_store: EnvStore,
        editor_document: JsonDocument,
        tool_document: JsonDocument,
    ) -> None:
        self._env_store = env_store
        self._editor_document = editor_document
        self._tool_document = tool_document

    def capture(self) -> ConfigSnapshot:
        """
        현재 상태 캡처.

        실패하지 않습니다. 읽을 수 없는 항목은 "없음"(None)으로 기록됩니다.
        """
        snapshot = ConfigSnapshot()
        for field_name, env_name in _ENV_FIELDS:
            try:
                value = self._env_store.get(env_name)
            except (OSError, ValueError) as e:
                logger.warning(f"스냅샷: 환경변수 읽기 실패 {env_name} - {e}")
                value = None
            setattr(snapshot, field_name, value)

        snapshot.vscode_content = self._read_document(self._editor_document)
        snapshot.claude_content = self._read_document(self._tool_document)
        logger.info("설정 스냅샷 캡처 완료")
        return snapshot

    @staticmethod
    def _read_document(document: JsonDocument):
        try:
            return document.read_text()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"스냅샷: 문서 읽기 실패 {document.path} - {e}")
            return None

    def restore(self, snapshot: ConfigSnapshot) -> None:
        """
        스냅샷 상태로 복원.

        - 값이 있던 환경변수는 다시 쓰고, 없던 환경변수는 (있으면) 삭제
        - 환경변수 변경 알림은 한 번만
        - 내용이 있던 문서는 원본 텍스트 그대로 쓰기, 없던 문서는 (있으면) 삭제

        첫 실패에서 중단합니다 (이미 복원된 항목은 되돌리지 않음).

        Raises:
            RestoreError: 복원 실패
        """
        for field_name, env_name in _ENV_FIELDS:
            value = getattr(snapshot, field_name)
            try:
                if value is not None:
                    self._env_store.set(env_name, value)
                elif self._env_store.get(env_name) is not None:
                    self._env_store.delete(env_name)
            except (OSError, ValueError) as e:
                raise RestoreError(f"환경변수 복원 실패 ({env_name}): {e}") from e

        self._env_store.broadcast_change()

        documents = (
            (self._editor_document, snapshot.vscode_content),
            (self._tool_document, snapshot.claude_content),
        )
        for document, content in documents:
            try:
                if content is not None:
                    document.write_text(content)
                elif document.remove():
                    logger.info(f"캡처 시점에 없던 문서 삭제: {document.path}")
            except OSError as e:
                raise RestoreError(f"문서 복원 실패 ({document.path}): {e}") from e

        logger.info("설정 스냅샷 복원 완료")
