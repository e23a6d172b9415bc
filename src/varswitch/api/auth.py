"""
Authentication - Bearer 토큰 인증

VARSWITCH_TOKEN 이 없으면 루프백 바인딩(또는 개발 모드)에서만 인증 없이 허용합니다.
외부 인터페이스에 노출된 프로덕션 서비스는 토큰이 필수입니다.
"""

import os
import secrets
import logging
from fastapi import HTTPException, Header
from typing import Optional

from varswitch.config import get_settings
from varswitch.api.errors import error_detail


logger = logging.getLogger(__name__)

# 환경변수에서 토큰 읽기
VARSWITCH_TOKEN = os.getenv("VARSWITCH_TOKEN", "")


async def verify_token(authorization: Optional[str] = Header(None)) -> str:
    """
    Bearer 토큰 검증

    Args:
        authorization: Authorization 헤더 값

    Returns:
        검증된 토큰

    Raises:
        HTTPException: 인증 실패
    """
    settings = get_settings()

    # 토큰이 설정되지 않은 경우
    if not VARSWITCH_TOKEN:
        # 같은 머신의 UI 만 접근 가능하면 토큰 없이 허용
        if settings.is_loopback or settings.is_development:
            return ""
        if settings.is_production:
            logger.error(f"VARSWITCH_TOKEN not configured for {settings.host}")
            raise HTTPException(
                status_code=500,
                detail=error_detail("CONFIG_ERROR", "Authentication not configured"),
            )
        return ""

    if not authorization:
        raise HTTPException(
            status_code=401,
            detail=error_detail("UNAUTHORIZED", "Authorization 헤더가 필요합니다"),
        )

    # Bearer 토큰 파싱
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail=error_detail("UNAUTHORIZED", "Bearer 토큰 형식이 올바르지 않습니다"),
        )

    token = parts[1]

    # 상수 시간 비교
    if not secrets.compare_digest(token, VARSWITCH_TOKEN):
        raise HTTPException(
            status_code=401,
            detail=error_detail("UNAUTHORIZED", "유효하지 않은 토큰입니다"),
        )

    return token
