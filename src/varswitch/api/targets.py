"""
Targets API - 동기화 대상 상태 조회 및 스냅샷/복원
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from varswitch.api.auth import verify_token
from varswitch.api.errors import error_detail
from varswitch.models import (
    ConfigSnapshotModel,
    ErrorResponse,
    RestoreResponse,
    StatusResponse,
)
from varswitch.service.snapshot_manager import SnapshotManager
from varswitch.service.status_service import StatusService
from varswitch.service.switch_models import ConfigSnapshot, RestoreError

logger = logging.getLogger(__name__)


def create_targets_router(
    status_service: StatusService,
    snapshot_manager: SnapshotManager,
) -> APIRouter:
    """
    Targets API 라우터 팩토리.

    Args:
        status_service: 대상 상태 조회 서비스
        snapshot_manager: 스냅샷 캡처/복원기

    Returns:
        FastAPI APIRouter
    """
    router = APIRouter()

    @router.get("/targets/status", response_model=StatusResponse)
    async def get_targets_status(_: str = Depends(verify_token)):
        """
        GET /targets/status - 세 대상의 현재 자격 증명
        """
        return StatusResponse(**status_service.status().to_dict())

    @router.get("/snapshot", response_model=ConfigSnapshotModel)
    async def capture_snapshot(_: str = Depends(verify_token)):
        """
        GET /snapshot - 현재 설정 스냅샷 (전환 전에 호출)
        """
        return ConfigSnapshotModel(**snapshot_manager.capture().to_dict())

    @router.post(
        "/restore",
        response_model=RestoreResponse,
        responses={500: {"model": ErrorResponse}},
    )
    async def restore_snapshot(
        request: ConfigSnapshotModel,
        _: str = Depends(verify_token),
    ):
        """
        POST /restore - 스냅샷 상태로 복원
        """
        try:
            snapshot_manager.restore(ConfigSnapshot.from_dict(request.model_dump()))
        except RestoreError as e:
            logger.error(f"스냅샷 복원 실패: {e}")
            raise HTTPException(
                status_code=500,
                detail=error_detail("RESTORE_ERROR", str(e)),
            )
        return RestoreResponse(restored=True)

    return router
