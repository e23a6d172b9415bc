"""
VarSwitch - FastAPI Application

자격 증명 프로필 동기화 로컬 서비스.
선택한 프로필을 시스템 환경변수, VS Code 설정, Claude Code 설정에 한 번에 적용합니다.
"""

import time
import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from varswitch.api import (
    create_profiles_router,
    create_switch_router,
    create_targets_router,
    verify_token,
)
from varswitch.constants import CLAUDE_ENV_FIELD, VSCODE_ENV_FIELD
from varswitch.models import HealthResponse, PathsResponse
from varswitch.service import (
    EnvArrayTarget,
    EnvObjectTarget,
    EnvVarTarget,
    JsonDocument,
    ProfileStore,
    ShellEnvFileStore,
    SnapshotManager,
    StatusService,
    SwitchManager,
    SwitchOrchestrator,
    create_env_store,
)
from varswitch.config import get_settings, setup_logging

# 설정 로드
settings = get_settings()

# 로깅 설정
logger = setup_logging(settings)

# 서비스 시작 시간 (uptime 계산용)
_start_time = time.time()


# === 서비스 구성 ===
# 라우터 등록에 필요하므로 모듈 레벨에서 초기화합니다.
# 모든 생성자는 참조 저장과 mkdir 만 수행합니다.

_profile_store = ProfileStore(settings.profiles_path)
_env_store = create_env_store(
    settings.env_file_path,
    broadcast_timeout_ms=settings.broadcast_timeout_ms,
)
_vscode_document = JsonDocument(settings.vscode_settings_path)
_claude_document = JsonDocument(settings.claude_settings_path)

_env_target = EnvVarTarget(_env_store)
_vscode_target = EnvArrayTarget(_vscode_document, (VSCODE_ENV_FIELD,))
_claude_target = EnvObjectTarget(_claude_document, (CLAUDE_ENV_FIELD,))

_orchestrator = SwitchOrchestrator(
    store=_profile_store,
    env_target=_env_target,
    editor_target=_vscode_target,
    tool_target=_claude_target,
)
_switch_manager = SwitchManager(orchestrator=_orchestrator, store=_profile_store)
_status_service = StatusService(
    store=_profile_store,
    env_target=_env_target,
    editor_target=_vscode_target,
    tool_target=_claude_target,
)
_snapshot_manager = SnapshotManager(
    env_store=_env_store,
    editor_document=_vscode_document,
    tool_document=_claude_document,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 라이프사이클 관리"""
    # Startup
    logger.info("VarSwitch starting...")
    logger.info(f"  Version: {settings.version}")
    logger.info(f"  Environment: {settings.environment}")
    logger.info(f"  Profiles: {settings.profiles_path}")
    logger.info(f"  VS Code settings: {settings.vscode_settings_path}")
    logger.info(f"  Claude settings: {settings.claude_settings_path}")
    logger.info(f"  Env store: {type(_env_store).__name__}")
    if isinstance(_env_store, ShellEnvFileStore):
        logger.info(f"  Shell profile line: {_env_store.source_line}")
    loaded = len(_profile_store.load())
    logger.info(f"  Loaded {loaded} profiles from storage")

    yield

    # Shutdown
    logger.info("VarSwitch shutting down...")

    # 진행 중인 전환 취소 (다음 단계 경계에서 멈춤)
    in_flight = _switch_manager.active_count
    if in_flight > 0:
        logger.info(f"  Cancelling {in_flight} in-flight switches")
    await _switch_manager.shutdown()


app = FastAPI(
    title="VarSwitch",
    description="Credential profile sync service",
    version=settings.version,
    lifespan=lifespan,
    # 프로덕션에서는 OpenAPI 문서 비활성화
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# CORS 설정 (로컬 UI 전용)
if settings.is_production:
    _allowed_origins = [
        "http://localhost:1420",
        "http://127.0.0.1:1420",
        "tauri://localhost",
    ]
else:
    _allowed_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Health & Meta Endpoints ===

@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """헬스 체크 엔드포인트"""
    return HealthResponse(
        status="healthy",
        version=settings.version,
        uptime_seconds=int(time.time() - _start_time),
        environment=settings.environment,
        active_switches=_switch_manager.active_count,
    )


@app.get("/paths", response_model=PathsResponse, tags=["health"])
async def get_paths(_: str = Depends(verify_token)):
    """동기화 대상 파일 경로 조회"""
    return PathsResponse(
        data_dir=settings.data_dir,
        profiles_path=str(settings.profiles_path),
        vscode_settings_path=settings.vscode_settings_path,
        claude_settings_path=settings.claude_settings_path,
        env_file_path=settings.env_file_path,
    )


# === API Routers ===

app.include_router(
    create_profiles_router(store=_profile_store, status_service=_status_service),
    prefix="/profiles",
    tags=["profiles"],
)
app.include_router(create_switch_router(manager=_switch_manager), tags=["switch"])
app.include_router(
    create_targets_router(
        status_service=_status_service,
        snapshot_manager=_snapshot_manager,
    ),
    tags=["targets"],
)


# === Exception Handlers ===

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """전역 예외 핸들러"""
    logger.exception(f"Unhandled exception: {exc}")

    # 프로덕션에서는 내부 정보 노출 방지
    error_message = (
        "Internal server error"
        if settings.is_production
        else str(exc)
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": error_message,
                "details": {},
            }
        },
    )


def run() -> None:
    """콘솔 스크립트 진입점"""
    import uvicorn

    uvicorn.run(
        "varswitch.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        access_log=not settings.is_production,
    )


if __name__ == "__main__":
    run()
