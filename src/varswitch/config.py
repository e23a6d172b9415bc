"""
VarSwitch - Configuration

환경변수 기반 설정 관리.
"""

import ipaddress
import os
import logging
import sys
from functools import lru_cache
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from varswitch.constants import DEFAULT_BROADCAST_TIMEOUT_MS

load_dotenv()

_config_logger = logging.getLogger(__name__)


def _safe_int(value: str, default: int, name: str) -> int:
    """환경변수를 안전하게 int로 변환

    Args:
        value: 변환할 문자열
        default: 변환 실패 시 기본값
        name: 환경변수 이름 (로깅용)

    Returns:
        변환된 int 값 또는 기본값
    """
    try:
        return int(value)
    except (ValueError, TypeError):
        _config_logger.warning(f"Invalid {name} value '{value}', using default: {default}")
        return default


def default_data_dir() -> Path:
    """프로필/환경변수 파일 기본 저장 디렉토리"""
    return Path.home() / ".varswitch"


def default_vscode_settings_path() -> Path:
    """플랫폼별 VS Code 사용자 settings.json 경로"""
    if sys.platform == "win32":
        appdata = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "Code" / "User" / "settings.json"
    if sys.platform == "darwin":
        return (
            Path.home() / "Library" / "Application Support"
            / "Code" / "User" / "settings.json"
        )
    config_home = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "Code" / "User" / "settings.json"


def default_claude_settings_path() -> Path:
    """Claude Code 사용자 settings.json 경로"""
    return Path.home() / ".claude" / "settings.json"


@dataclass
class Settings:
    """애플리케이션 설정"""

    # 서비스 정보
    service_name: str = "varswitch"
    version: str = "0.1.0"
    environment: str = "development"  # development, staging, production

    # 서버 설정 (로컬 UI 전용이므로 루프백에만 바인딩)
    host: str = "127.0.0.1"
    port: int = 1430

    # 데이터 디렉토리 (profiles.json, env.sh). 미설정 시 ~/.varswitch
    data_dir: str = ""

    # 동기화 대상 경로. 미설정 시 플랫폼 기본값
    vscode_settings_path: str = ""
    claude_settings_path: str = ""
    env_file_path: str = ""  # POSIX 전용. 미설정 시 {data_dir}/env.sh

    # 환경변수 변경 브로드캐스트 타임아웃 (Windows)
    broadcast_timeout_ms: int = DEFAULT_BROADCAST_TIMEOUT_MS

    # 로깅
    log_level: str = "INFO"
    log_format: str = "json"  # json, text

    @classmethod
    def from_env(cls) -> "Settings":
        """환경변수에서 설정 로드"""
        settings = cls(
            service_name=os.getenv("SERVICE_NAME", cls.service_name),
            version=os.getenv("SERVICE_VERSION", cls.version),
            environment=os.getenv("ENVIRONMENT", cls.environment),
            host=os.getenv("HOST", cls.host),
            port=_safe_int(os.getenv("PORT", str(cls.port)), cls.port, "PORT"),
            data_dir=os.getenv("DATA_DIR", ""),
            vscode_settings_path=os.getenv("VSCODE_SETTINGS_PATH", ""),
            claude_settings_path=os.getenv("CLAUDE_SETTINGS_PATH", ""),
            env_file_path=os.getenv("ENV_FILE_PATH", ""),
            broadcast_timeout_ms=_safe_int(
                os.getenv("BROADCAST_TIMEOUT_MS", str(cls.broadcast_timeout_ms)),
                cls.broadcast_timeout_ms,
                "BROADCAST_TIMEOUT_MS"
            ),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            log_format=os.getenv("LOG_FORMAT", cls.log_format),
        )

        settings.validate()
        return settings

    def validate(self) -> None:
        """설정값 검증 및 기본 경로 채우기"""
        if self.broadcast_timeout_ms <= 0:
            raise RuntimeError(
                f"BROADCAST_TIMEOUT_MS는 양수여야 합니다: {self.broadcast_timeout_ms}"
            )
        if not self.data_dir:
            self.data_dir = str(default_data_dir())
        if not self.vscode_settings_path:
            self.vscode_settings_path = str(default_vscode_settings_path())
        if not self.claude_settings_path:
            self.claude_settings_path = str(default_claude_settings_path())
        if not self.env_file_path:
            self.env_file_path = str(Path(self.data_dir) / "env.sh")

    @property
    def profiles_path(self) -> Path:
        return Path(self.data_dir) / "profiles.json"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_loopback(self) -> bool:
        """같은 머신에서만 접근 가능한 주소에 바인딩되었는지"""
        try:
            return ipaddress.ip_address(self.host).is_loopback
        except ValueError:
            return self.host == "localhost"


@lru_cache
def get_settings() -> Settings:
    """설정 싱글톤 반환"""
    return Settings.from_env()


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """로깅 설정

    프로덕션: JSON 포맷 (구조화된 로그)
    개발: 텍스트 포맷 (가독성)
    """
    if settings is None:
        settings = get_settings()

    # 기존 핸들러 제거
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # 로그 레벨 설정
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json" and settings.is_production:
        # JSON 포맷 (프로덕션)
        import json

        class JsonFormatter(logging.Formatter):
            def format(self, record: logging.LogRecord) -> str:
                log_data = {
                    "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
                    "level": record.levelname,
                    "logger": record.name,
                    "message": record.getMessage(),
                    "service": settings.service_name,
                    "environment": settings.environment,
                }

                # 예외 정보 추가
                if record.exc_info:
                    log_data["exception"] = self.formatException(record.exc_info)

                return json.dumps(log_data, ensure_ascii=False)

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
    else:
        # 텍스트 포맷 (개발)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # uvicorn 로거 레벨 조정
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    logger = logging.getLogger(settings.service_name)
    logger.setLevel(log_level)

    return logger
