"""
Switch API - 프로필 전환 엔드포인트

전환은 백그라운드에서 실행되고 진행 상황은 SSE 로 스트리밍됩니다.
클라이언트 연결이 끊어져도 전환은 끝까지 진행됩니다.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException
from sse_starlette.sse import EventSourceResponse

from varswitch.api.auth import verify_token
from varswitch.api.errors import error_detail
from varswitch.models import CancelResponse, ErrorResponse
from varswitch.service.switch_manager import TERMINAL_EVENT_TYPES, SwitchManager
from varswitch.service.switch_models import ProfileNotFoundError

logger = logging.getLogger(__name__)

# SSE keepalive 간격 (초)
KEEPALIVE_INTERVAL = 30.0


def create_switch_router(manager: SwitchManager) -> APIRouter:
    """
    Switch API 라우터 팩토리.

    Args:
        manager: 전환 실행기

    Returns:
        FastAPI APIRouter
    """
    router = APIRouter()

    @router.post(
        "/switch/{profile_id}",
        responses={404: {"model": ErrorResponse}},
    )
    async def switch_profile(profile_id: str, _: str = Depends(verify_token)):
        """
        프로필 전환 (SSE 스트리밍)

        이벤트 순서: switch → progress (최대 6회) → result 또는 error
        """
        try:
            run = await manager.start(profile_id)
        except ProfileNotFoundError as e:
            raise HTTPException(
                status_code=404,
                detail=error_detail("PROFILE_NOT_FOUND", str(e)),
            )

        async def event_generator():
            """SSE 이벤트 생성기"""
            while True:
                try:
                    event = await asyncio.wait_for(
                        run.queue.get(), timeout=KEEPALIVE_INTERVAL
                    )
                except asyncio.TimeoutError:
                    # keepalive (빈 코멘트)
                    yield {"comment": "keepalive"}
                    continue

                yield {
                    "event": event.type,
                    "data": event.model_dump_json(),
                }

                # 결과 또는 에러면 종료
                if event.type in TERMINAL_EVENT_TYPES:
                    break

        return EventSourceResponse(event_generator())

    @router.post("/switches/cancel", response_model=CancelResponse)
    async def cancel_all_switches(_: str = Depends(verify_token)):
        """
        진행 중인 모든 전환 취소 요청
        """
        return CancelResponse(cancelled=manager.cancel_all())

    @router.post(
        "/switches/{switch_id}/cancel",
        response_model=CancelResponse,
        responses={404: {"model": ErrorResponse}},
    )
    async def cancel_switch(switch_id: str, _: str = Depends(verify_token)):
        """
        특정 전환 취소 요청

        취소는 다음 단계 경계에서 반영됩니다.
        """
        if not manager.cancel(switch_id):
            raise HTTPException(
                status_code=404,
                detail=error_detail(
                    "SWITCH_NOT_FOUND", f"진행 중인 전환이 없습니다: {switch_id}"
                ),
            )
        return CancelResponse(cancelled=1)

    return router
