"""
Profiles API - 프로필 관리 REST 엔드포인트

프로필 목록 조회, 활성 프로필 확인, 추가/수정/삭제,
현재 설정 가져오기, 프로필 파일 내보내기/가져오기.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from varswitch.api.auth import verify_token
from varswitch.api.errors import error_detail
from varswitch.models import (
    ActiveProfileResponse,
    DeleteResponse,
    ErrorResponse,
    ExportResponse,
    ImportCurrentRequest,
    ImportResponse,
    PathRequest,
    ProfileCreateRequest,
    ProfileListResponse,
    ProfileModel,
    ProfileUpdateRequest,
)
from varswitch.service.profile_store import ProfileStore
from varswitch.service.status_service import StatusService
from varswitch.service.switch_models import (
    DuplicateProfileError,
    ImportCurrentError,
    Profile,
    ProfileNotFoundError,
)

logger = logging.getLogger(__name__)


def profile_to_model(profile: Profile) -> ProfileModel:
    """Profile 을 ProfileModel 로 변환"""
    return ProfileModel(**profile.to_dict())


def create_profiles_router(store: ProfileStore, status_service: StatusService) -> APIRouter:
    """
    Profiles API 라우터 팩토리.

    Args:
        store: 프로필 저장소
        status_service: 현재 설정 조회 서비스 (import-current 용)

    Returns:
        FastAPI APIRouter
    """
    router = APIRouter()

    # --- Static paths (parameterized paths보다 먼저 등록) ---

    @router.get("", response_model=ProfileListResponse)
    async def list_profiles(_: str = Depends(verify_token)):
        """
        GET /profiles - 프로필 목록
        """
        profiles = store.list_profiles()
        active = next((p.id for p in profiles if p.is_active), None)
        return ProfileListResponse(
            profiles=[profile_to_model(p) for p in profiles],
            active=active,
        )

    @router.get("/active", response_model=ActiveProfileResponse)
    async def get_active_profile(_: str = Depends(verify_token)):
        """
        GET /profiles/active - 현재 활성 프로필
        """
        active = store.get_active()
        return ActiveProfileResponse(
            profile=profile_to_model(active) if active else None
        )

    @router.post(
        "",
        response_model=ProfileModel,
        responses={400: {"model": ErrorResponse}},
    )
    async def create_profile(request: ProfileCreateRequest, _: str = Depends(verify_token)):
        """
        POST /profiles - 프로필 추가 (비활성)
        """
        try:
            profile = store.add(request.name, request.api_key, request.base_url)
        except ValueError as e:
            raise HTTPException(
                status_code=400,
                detail=error_detail("VALIDATION_ERROR", str(e)),
            )
        except OSError as e:
            logger.error(f"프로필 저장 실패: {e}")
            raise HTTPException(
                status_code=500,
                detail=error_detail("STORAGE_ERROR", "프로필 저장 중 오류 발생"),
            )
        return profile_to_model(profile)

    @router.post(
        "/import-current",
        response_model=ProfileModel,
        responses={
            409: {"model": ErrorResponse},
            422: {"model": ErrorResponse},
        },
    )
    async def import_current(request: ImportCurrentRequest, _: str = Depends(verify_token)):
        """
        POST /profiles/import-current - 현재 설정된 자격 증명을 활성 프로필로 저장
        """
        try:
            profile = status_service.import_current(request.name)
        except ImportCurrentError as e:
            raise HTTPException(
                status_code=422,
                detail=error_detail("NOTHING_TO_IMPORT", str(e)),
            )
        except DuplicateProfileError as e:
            raise HTTPException(
                status_code=409,
                detail=error_detail("DUPLICATE_PROFILE", str(e)),
            )
        return profile_to_model(profile)

    @router.post(
        "/export",
        response_model=ExportResponse,
        responses={404: {"model": ErrorResponse}},
    )
    async def export_profiles(request: PathRequest, _: str = Depends(verify_token)):
        """
        POST /profiles/export - profiles.json 을 지정 경로로 복사
        """
        try:
            dest = store.export_to(request.path)
        except FileNotFoundError as e:
            raise HTTPException(
                status_code=404,
                detail=error_detail("FILE_NOT_FOUND", str(e)),
            )
        except OSError as e:
            raise HTTPException(
                status_code=500,
                detail=error_detail("STORAGE_ERROR", str(e)),
            )
        return ExportResponse(path=str(dest))

    @router.post(
        "/import",
        response_model=ImportResponse,
        responses={
            400: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
        },
    )
    async def import_profiles(request: PathRequest, _: str = Depends(verify_token)):
        """
        POST /profiles/import - 다른 profiles.json 의 프로필 병합
        """
        try:
            added = store.import_from(request.path)
        except FileNotFoundError as e:
            raise HTTPException(
                status_code=404,
                detail=error_detail("FILE_NOT_FOUND", str(e)),
            )
        except ValueError as e:
            raise HTTPException(
                status_code=400,
                detail=error_detail("INVALID_FILE", str(e)),
            )
        except OSError as e:
            raise HTTPException(
                status_code=500,
                detail=error_detail("STORAGE_ERROR", str(e)),
            )
        return ImportResponse(imported=added)

    # --- Parameterized paths ---

    @router.put(
        "/{profile_id}",
        response_model=ProfileModel,
        responses={404: {"model": ErrorResponse}},
    )
    async def update_profile(
        profile_id: str,
        request: ProfileUpdateRequest,
        _: str = Depends(verify_token),
    ):
        """
        PUT /profiles/{profile_id} - 프로필 수정
        """
        try:
            profile = store.update(
                profile_id,
                name=request.name,
                api_key=request.api_key,
                base_url=request.base_url,
            )
        except ProfileNotFoundError as e:
            raise HTTPException(
                status_code=404,
                detail=error_detail("PROFILE_NOT_FOUND", str(e)),
            )
        return profile_to_model(profile)

    @router.delete(
        "/{profile_id}",
        response_model=DeleteResponse,
        responses={404: {"model": ErrorResponse}},
    )
    async def delete_profile(profile_id: str, _: str = Depends(verify_token)):
        """
        DELETE /profiles/{profile_id} - 프로필 삭제
        """
        if not store.delete(profile_id):
            raise HTTPException(
                status_code=404,
                detail=error_detail(
                    "PROFILE_NOT_FOUND", f"프로필이 존재하지 않습니다: {profile_id}"
                ),
            )
        return DeleteResponse(deleted=True, id=profile_id)

    return router
