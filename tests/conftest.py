"""
공통 픽스처

세 대상(env 파일, VS Code 문서, Claude 문서)과 프로필 저장소를 tmp_path 아래에 구성합니다.
"""

from pathlib import Path

import pytest

from varswitch.constants import CLAUDE_ENV_FIELD, VSCODE_ENV_FIELD
from varswitch.service.env_store import ShellEnvFileStore
from varswitch.service.json_document import JsonDocument
from varswitch.service.profile_store import ProfileStore
from varswitch.service.targets import EnvArrayTarget, EnvObjectTarget, EnvVarTarget


@pytest.fixture
def env_store(tmp_path: Path) -> ShellEnvFileStore:
    return ShellEnvFileStore(tmp_path / "data" / "env.sh")


@pytest.fixture
def vscode_path(tmp_path: Path) -> Path:
    return tmp_path / "Code" / "User" / "settings.json"


@pytest.fixture
def claude_path(tmp_path: Path) -> Path:
    return tmp_path / ".claude" / "settings.json"


@pytest.fixture
def vscode_document(vscode_path: Path) -> JsonDocument:
    return JsonDocument(vscode_path)


@pytest.fixture
def claude_document(claude_path: Path) -> JsonDocument:
    return JsonDocument(claude_path)


@pytest.fixture
def env_target(env_store) -> EnvVarTarget:
    return EnvVarTarget(env_store)


@pytest.fixture
def vscode_target(vscode_document) -> EnvArrayTarget:
    return EnvArrayTarget(vscode_document, (VSCODE_ENV_FIELD,))


@pytest.fixture
def claude_target(claude_document) -> EnvObjectTarget:
    return EnvObjectTarget(claude_document, (CLAUDE_ENV_FIELD,))


@pytest.fixture
def profile_store(tmp_path: Path) -> ProfileStore:
    return ProfileStore(tmp_path / "data" / "profiles.json")
