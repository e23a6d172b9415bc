"""
SwitchOrchestrator - 프로필 전환 단계 실행기

고정된 6단계로 프로필 하나를 세 대상에 적용합니다.

    prepare(1) → system(2) → vscode(3) → claude(4) → finalize(5) → done(6)

- 대상 하나의 실패는 다른 대상에 영향을 주지 않습니다 (항목별 오류 집계).
- 취소는 단계 사이에서만 확인합니다 (대상 쓰기 도중에는 중단하지 않음).
- 진행 이벤트는 fire-and-forget 으로 리스너에 전달됩니다.
"""

import logging
import threading
from enum import IntEnum
from typing import Callable, Optional

from varswitch.constants import CANCELLED_ERROR
from varswitch.service.profile_store import ProfileStore
from varswitch.service.switch_models import (
    FinalizeError,
    Profile,
    ProfileNotFoundError,
    ProgressEvent,
    SwitchDetails,
    SwitchResult,
    TargetError,
    mask_secret,
)
from varswitch.service.targets import (
    EnvArrayTarget,
    EnvObjectTarget,
    EnvTarget,
    EnvVarTarget,
)

logger = logging.getLogger(__name__)

ProgressListener = Callable[[ProgressEvent], None]


class SwitchStep(IntEnum):
    """전환 단계"""
    PREPARE = 1
    SYSTEM_ENV = 2
    EDITOR = 3
    TOOL = 4
    FINALIZE = 5
    DONE = 6

    @property
    def label(self) -> str:
        return _STEP_LABELS[self]


_STEP_LABELS = {
    SwitchStep.PREPARE: "prepare",
    SwitchStep.SYSTEM_ENV: "system",
    SwitchStep.EDITOR: "vscode",
    SwitchStep.TOOL: "claude",
    SwitchStep.FINALIZE: "finalize",
    SwitchStep.DONE: "done",
}


class CancellationToken:
    """
    전환 한 번에 속하는 취소 토큰.

    다른 스레드에서 cancel() 을 호출하면 다음 단계 경계에서 전환이 멈춥니다.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class SwitchOrchestrator:
    """
    프로필 전환기.

    ProfileStore 에서 프로필을 찾아 세 대상에 적용하고,
    성공 여부와 관계없이 항상 SwitchResult 를 반환합니다.
    """

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

    def switch(
        self,
        profile_id: str,
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressListener] = None,
    ) -> SwitchResult:
        """
        프로필 전환 실행 (블로킹).

        Args:
            profile_id: 전환할 프로필 ID
            token: 취소 토큰. 시작 시 초기화되므로 시작 이후의 취소 요청만 반영됩니다.
            on_progress: 진행 이벤트 리스너

        Returns:
            전환 결과

        Raises:
            ProfileNotFoundError: 프로필이 존재하지 않음 (진행 이벤트 발행 전)
            FinalizeError: 활성 프로필 기록 실패
        """
        profile = self._store.get(profile_id)

        if token is None:
            token = CancellationToken()
        token.reset()

        details = SwitchDetails()
        errors: list[str] = []

        logger.info(
            f"프로필 전환 시작: {profile.name} "
            f"(key={mask_secret(profile.api_key)}, url={profile.base_url})"
        )
        self._emit(on_progress, SwitchStep.PREPARE)

        steps = (
            (SwitchStep.SYSTEM_ENV, self._env_target, "env_vars"),
            (SwitchStep.EDITOR, self._editor_target, "vscode"),
            (SwitchStep.TOOL, self._tool_target, "claude"),
        )
        for step, target, detail_field in steps:
            if token.is_cancelled:
                return self._cancelled(profile, details, step)

            self._emit(on_progress, step)
            if self._apply_target(target, profile, errors):
                setattr(details, detail_field, True)

        if token.is_cancelled:
            return self._cancelled(profile, details, SwitchStep.FINALIZE)

        self._emit(on_progress, SwitchStep.FINALIZE)
        self._finalize(profile)

        if token.is_cancelled:
            return self._cancelled(profile, details, SwitchStep.DONE)

        self._emit(on_progress, SwitchStep.DONE)

        result = SwitchResult(
            success=not errors,
            details=details,
            errors=errors,
            profile_name=profile.name,
        )
        if result.success:
            logger.info(f"프로필 전환 완료: {profile.name}")
        else:
            logger.warning(f"프로필 전환 부분 실패: {profile.name} - {errors}")
        return result

    def _apply_target(self, target: EnvTarget, profile: Profile, errors: list[str]) -> bool:
        """대상 하나에 적용. 실패는 errors 에 기록하고 False 반환."""
        try:
            target.apply(profile.api_key, profile.base_url)
        except TargetError as e:
            logger.warning(f"{target.display_name} 적용 실패: {e}")
            errors.append(f"{target.display_name}: {e}")
            return False

        if isinstance(target, EnvVarTarget):
            target.notify_changed()
        return True

    def _finalize(self, profile: Profile) -> None:
        try:
            self._store.activate(profile.id)
        except (OSError, ProfileNotFoundError) as e:
            logger.error(f"활성 프로필 기록 실패: {e}")
            raise FinalizeError(f"활성 프로필 기록 실패: {e}") from e

    @staticmethod
    def _cancelled(profile: Profile, details: SwitchDetails, step: SwitchStep) -> SwitchResult:
        logger.info(f"프로필 전환 취소: {profile.name} ({step.label} 이전)")
        return SwitchResult(
            success=False,
            details=details,
            errors=[CANCELLED_ERROR],
            profile_name=profile.name,
            cancelled=True,
        )

    @staticmethod
    def _emit(listener: Optional[ProgressListener], step: SwitchStep) -> None:
        if listener is None:
            return
        try:
            listener(ProgressEvent(step=int(step), label=step.label))
        except Exception as e:
            logger.warning(f"진행 이벤트 전달 실패: {e}")
