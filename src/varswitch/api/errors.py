"""
API 에러 응답 형식

모든 엔드포인트는 HTTPException.detail 에 다음 형식을 담습니다.
    {"error": {"code": ..., "message": ..., "details": {...}}}
"""

from typing import Optional


def error_detail(code: str, message: str, details: Optional[dict] = None) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        }
    }
