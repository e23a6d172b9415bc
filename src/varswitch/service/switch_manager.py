"""
SwitchManager - 진행 중인 프로필 전환 관리

SwitchOrchestrator 는 블로킹 코드이므로 워커 스레드에서 실행하고,
진행 이벤트는 전환별 asyncio.Queue 로 전달합니다.

큐로 전달되는 이벤트 (pydantic 모델, type 필드로 구분):
- SwitchStartedEvent: 전환 시작 (switch_id 통지)
- SwitchProgressEvent: 단계 진행 {step, total, label}
- SwitchResultEvent: 전환 결과 (SwitchResult)
- ErrorEvent: 최상위 실패 (FinalizeError 등)
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from varswitch.models import (
    ErrorEvent,
    SSEEventType,
    SwitchEvent,
    SwitchProgressEvent,
    SwitchResultEvent,
    SwitchStartedEvent,
)
from varswitch.service.profile_store import ProfileStore
from varswitch.service.switch_models import (
    ProgressEvent,
    SwitchResult,
    VarSwitchError,
    utc_now,
)
from varswitch.service.switch_orchestrator import (
    CancellationToken,
    SwitchOrchestrator,
    SwitchStep,
)

logger = logging.getLogger(__name__)

# 종료 이벤트 타입
TERMINAL_EVENT_TYPES = (SSEEventType.RESULT.value, SSEEventType.ERROR.value)


@dataclass
class SwitchRun:
    """진행 중인 전환 하나"""
    switch_id: str
    profile_id: str
    profile_name: str
    token: CancellationToken = field(default_factory=CancellationToken)
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    created_at: datetime = field(default_factory=utc_now)
    task: Optional[asyncio.Task] = None
    # 취소 요청 여부. 워커가 토큰을 초기화한 직후(PREPARE) 다시 적용됨
    cancel_requested: bool = False

    def request_cancel(self) -> None:
        self.cancel_requested = True
        self.token.cancel()


def _result_event(switch_id: str, result: SwitchResult) -> SwitchResultEvent:
    return SwitchResultEvent(switch_id=switch_id, **result.to_dict())


class SwitchManager:
    """
    전환 실행기.

    전환마다 새 CancellationToken 을 만들어 보관하므로
    switch_id 로 특정 전환만 취소할 수 있습니다.
    """

    def __init__(self, orchestrator: SwitchOrchestrator, store: ProfileStore) -> None:
        self._orchestrator = orchestrator
        self._store = store
        self._runs: Dict[str, SwitchRun] = {}

    @property
    def active_count(self) -> int:
        return len(self._runs)

    def get(self, switch_id: str) -> Optional[SwitchRun]:
        return self._runs.get(switch_id)

    async def start(self, profile_id: str) -> SwitchRun:
        """
        전환 시작 (백그라운드).

        Returns:
            SwitchRun. run.queue 에서 SwitchEvent 를 읽을 수 있습니다.

        Raises:
            ProfileNotFoundError: 프로필이 존재하지 않음 (부작용 없음)
        """
        profile = self._store.get(profile_id)

        run = SwitchRun(
            switch_id=str(uuid.uuid4()),
            profile_id=profile.id,
            profile_name=profile.name,
        )
        self._runs[run.switch_id] = run
        run.queue.put_nowait(SwitchStartedEvent(
            switch_id=run.switch_id,
            profile_id=run.profile_id,
            profile_name=run.profile_name,
        ))

        run.task = asyncio.create_task(self._execute(run))
        logger.info(f"[SWITCH] Started {run.switch_id} -> {profile.name}")
        return run

    async def _execute(self, run: SwitchRun) -> None:
        loop = asyncio.get_running_loop()

        def on_progress(event: ProgressEvent) -> None:
            # 워커 스레드에서 호출됨. PREPARE 는 토큰 초기화 직후에 발행됨
            if event.step == SwitchStep.PREPARE and run.cancel_requested:
                run.token.cancel()
            loop.call_soon_threadsafe(
                run.queue.put_nowait,
                SwitchProgressEvent(**event.to_dict()),
            )

        event: SwitchEvent
        try:
            result = await asyncio.to_thread(
                self._orchestrator.switch, run.profile_id, run.token, on_progress
            )
            event = _result_event(run.switch_id, result)
        except VarSwitchError as e:
            logger.error(f"[SWITCH] Failed {run.switch_id}: {e}")
            event = ErrorEvent(switch_id=run.switch_id, message=str(e))
        except Exception as e:
            logger.exception(f"[SWITCH] Unexpected error {run.switch_id}: {e}")
            event = ErrorEvent(switch_id=run.switch_id, message=str(e))
        finally:
            self._runs.pop(run.switch_id, None)

        run.queue.put_nowait(event)
        logger.info(f"[SWITCH] Finished {run.switch_id}, event={event.type}")

    def cancel(self, switch_id: str) -> bool:
        """
        전환 취소 요청.

        Returns:
            True: 취소 요청됨, False: 진행 중인 전환 없음
        """
        run = self._runs.get(switch_id)
        if run is None:
            return False
        run.request_cancel()
        logger.info(f"[SWITCH] Cancel requested {switch_id}")
        return True

    def cancel_all(self) -> int:
        """진행 중인 모든 전환 취소 요청. 요청된 전환 수 반환."""
        runs = list(self._runs.values())
        for run in runs:
            run.request_cancel()
        if runs:
            logger.info(f"[SWITCH] Cancel requested for {len(runs)} switch(es)")
        return len(runs)

    async def shutdown(self) -> None:
        """모든 전환 취소 후 완료 대기"""
        self.cancel_all()
        tasks = [run.task for run in self._runs.values() if run.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
