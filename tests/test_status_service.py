"""
test_status_service - 상태 조회 및 현재 설정 가져오기 테스트
"""

import json
from pathlib import Path

import pytest

from varswitch.constants import (
    AUTH_KEY_ENV,
    AUTH_TOKEN_ENV,
    BASE_URL_ENV,
    DEFAULT_IMPORT_NAME,
    VSCODE_ENV_FIELD,
)
from varswitch.service.status_service import StatusService
from varswitch.service.switch_models import (
    DuplicateProfileError,
    ImportCurrentError,
    LocationStatus,
    StatusResult,
)


def write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def service(profile_store, env_target, vscode_target, claude_target):
    return StatusService(profile_store, env_target, vscode_target, claude_target)


class TestStatus:
    def test_nothing_configured(self, service):
        status = service.status()
        assert status.env_vars == LocationStatus()
        assert status.vscode is None
        assert status.claude is None
        assert status.synced is False

    def test_synced(self, service, env_store, vscode_path, claude_path):
        env_store.set(AUTH_TOKEN_ENV, "sk")
        env_store.set(BASE_URL_ENV, "u")
        write_json(vscode_path, {VSCODE_ENV_FIELD: [
            {"name": AUTH_KEY_ENV, "value": "sk"},
        ]})
        write_json(claude_path, {"env": {AUTH_TOKEN_ENV: "sk", BASE_URL_ENV: "u"}})

        status = service.status()
        assert status.synced is True
        assert status.to_dict()["synced"] is True

    def test_not_synced(self, service, env_store, claude_path):
        env_store.set(AUTH_TOKEN_ENV, "sk-1")
        write_json(claude_path, {"env": {AUTH_TOKEN_ENV: "sk-2"}})
        assert service.status().synced is False

    def test_synced_url_mismatch(self):
        status = StatusResult(
            env_vars=LocationStatus("sk", "a"),
            claude=LocationStatus("sk", "b"),
        )
        assert status.synced is False


class TestImportCurrent:
    def test_priority_claude_first(self, service, profile_store, env_store, claude_path, vscode_path):
        env_store.set(AUTH_TOKEN_ENV, "sk-env")
        env_store.set(BASE_URL_ENV, "https://env.test")
        write_json(vscode_path, {VSCODE_ENV_FIELD: [{"name": AUTH_TOKEN_ENV, "value": "sk-vs"}]})
        write_json(claude_path, {"env": {AUTH_TOKEN_ENV: "sk-claude"}})

        profile = service.import_current("mine")

        # 키는 Claude, URL 은 VS Code 에 없으므로 시스템 환경변수에서
        assert profile.api_key == "sk-claude"
        assert profile.base_url == "https://env.test"
        assert profile.name == "mine"
        assert profile_store.get_active().id == profile.id

    def test_default_name(self, service, claude_path):
        write_json(claude_path, {"env": {AUTH_TOKEN_ENV: "sk", BASE_URL_ENV: "u"}})
        assert service.import_current("  ").name == DEFAULT_IMPORT_NAME

    def test_deactivates_others(self, service, profile_store, claude_path):
        other = profile_store.add("other", "sk-o", "https://o.test")
        profile_store.activate(other.id)
        write_json(claude_path, {"env": {AUTH_TOKEN_ENV: "sk", BASE_URL_ENV: "u"}})

        service.import_current("new")
        assert profile_store.get(other.id).is_active is False

    def test_missing_url(self, service, env_store):
        env_store.set(AUTH_TOKEN_ENV, "sk")
        with pytest.raises(ImportCurrentError):
            service.import_current("x")

    def test_missing_everything(self, service, profile_store):
        with pytest.raises(ImportCurrentError):
            service.import_current("x")
        assert profile_store.load() == []

    def test_duplicate(self, service, profile_store, claude_path):
        profile_store.add("existing", "sk", "https://a.test")
        write_json(claude_path, {"env": {AUTH_TOKEN_ENV: "sk", BASE_URL_ENV: "https://a.test"}})

        with pytest.raises(DuplicateProfileError):
            service.import_current("again")

    def test_unreadable_source_skipped(self, service, vscode_path, claude_path):
        vscode_path.parent.mkdir(parents=True)
        vscode_path.write_text("garbage", encoding="utf-8")
        write_json(claude_path, {"env": {AUTH_TOKEN_ENV: "sk", BASE_URL_ENV: "u"}})

        assert service.import_current("ok").api_key == "sk"
