"""
VarSwitch - 공통 상수 정의

여러 모듈에서 사용하는 환경변수 이름과 설정 파일 필드를 한 곳에 정의합니다.
"""

# 자격 증명 환경변수 이름 (외부 도구와의 계약이므로 정확히 일치해야 함)
AUTH_TOKEN_ENV = "ANTHROPIC_AUTH_TOKEN"
AUTH_KEY_ENV = "ANTHROPIC_AUTH_KEY"
LEGACY_AUTH_ENV = "ANTHROPIC_API_KEY"
BASE_URL_ENV = "ANTHROPIC_BASE_URL"

# 스냅샷/복원 대상 환경변수 (순서 고정)
SNAPSHOT_ENV_NAMES = (
    AUTH_TOKEN_ENV,
    AUTH_KEY_ENV,
    LEGACY_AUTH_ENV,
    BASE_URL_ENV,
)

# VS Code settings.json 안의 환경변수 배열 필드
VSCODE_ENV_FIELD = "claudeCode.environmentVariables"

# Claude Code settings.json 안의 환경변수 객체 필드
CLAUDE_ENV_FIELD = "env"

# 전환 단계 수
SWITCH_TOTAL_STEPS = 6

# 취소된 전환 결과의 유일한 오류 문자열
CANCELLED_ERROR = "cancelled"

# import_current 에서 이름이 비어 있을 때 사용하는 기본 이름
DEFAULT_IMPORT_NAME = "Imported profile"

# Windows 환경변수 변경 브로드캐스트 기본 타임아웃 (ms)
DEFAULT_BROADCAST_TIMEOUT_MS = 400
