"""
test_snapshot_manager - 스냅샷 캡처/복원 테스트
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from varswitch.constants import (
    AUTH_KEY_ENV,
    AUTH_TOKEN_ENV,
    BASE_URL_ENV,
    LEGACY_AUTH_ENV,
    SNAPSHOT_ENV_NAMES,
)
from varswitch.service.env_store import EnvStore
from varswitch.service.snapshot_manager import SnapshotManager
from varswitch.service.switch_models import ConfigSnapshot, RestoreError
from varswitch.service.switch_orchestrator import SwitchOrchestrator


@pytest.fixture
def manager(env_store, vscode_document, claude_document):
    return SnapshotManager(env_store, vscode_document, claude_document)


class TestCapture:
    def test_empty_state(self, manager):
        snapshot = manager.capture()
        assert snapshot == ConfigSnapshot()

    def test_captures_values(self, manager, env_store, claude_path):
        env_store.set(LEGACY_AUTH_ENV, "sk-l")
        env_store.set(BASE_URL_ENV, "")
        claude_path.parent.mkdir(parents=True)
        claude_path.write_text('{"env": {}}', encoding="utf-8")

        snapshot = manager.capture()

        assert snapshot.env_api_key == "sk-l"
        assert snapshot.env_base_url == ""  # 비어 있지만 존재
        assert snapshot.env_auth_token is None
        assert snapshot.claude_content == '{"env": {}}'
        assert snapshot.vscode_content is None

    def test_never_fails(self, vscode_document, claude_document):
        store = MagicMock(spec=EnvStore)
        store.get.side_effect = OSError("boom")
        snapshot = SnapshotManager(store, vscode_document, claude_document).capture()
        assert snapshot.env_auth_token is None


class TestRestore:
    def test_roundtrip(self, manager, env_store, vscode_path, claude_path):
        """캡처 → 변경 → 복원 시 원래 상태와 동일"""
        env_store.set(AUTH_KEY_ENV, "sk-old")
        env_store.set(BASE_URL_ENV, "https://old.test")
        vscode_raw = b'{\r\n  "editor.tabSize": 4,\r\n  "x": "\xec\x95\x88"\r\n}\r\n'
        claude_raw = b'{"env":{"ANTHROPIC_API_KEY":"sk-old"}}'
        vscode_path.parent.mkdir(parents=True)
        vscode_path.write_bytes(vscode_raw)
        claude_path.parent.mkdir(parents=True)
        claude_path.write_bytes(claude_raw)

        snapshot = manager.capture()

        env_store.set(AUTH_TOKEN_ENV, "sk-new")
        env_store.delete(AUTH_KEY_ENV)
        vscode_path.write_text("{}", encoding="utf-8")
        claude_path.write_text("{}", encoding="utf-8")

        manager.restore(snapshot)

        assert vscode_path.read_bytes() == vscode_raw
        assert claude_path.read_bytes() == claude_raw
        assert env_store.get(AUTH_KEY_ENV) == "sk-old"
        assert env_store.get(BASE_URL_ENV) == "https://old.test"
        assert env_store.get(AUTH_TOKEN_ENV) is None
        assert env_store.get(LEGACY_AUTH_ENV) is None

    def test_restore_without_change(self, manager, env_store, claude_path):
        env_store.set(AUTH_TOKEN_ENV, "sk")
        claude_path.parent.mkdir(parents=True)
        claude_path.write_bytes(b'{"a":1}')

        before = {name: env_store.get(name) for name in SNAPSHOT_ENV_NAMES}
        manager.restore(manager.capture())

        assert {name: env_store.get(name) for name in SNAPSHOT_ENV_NAMES} == before
        assert claude_path.read_bytes() == b'{"a":1}'

    def test_absent_document_removed(self, manager, vscode_path):
        vscode_path.parent.mkdir(parents=True)
        vscode_path.write_text("{}", encoding="utf-8")

        manager.restore(ConfigSnapshot())
        assert not vscode_path.exists()

    def test_absent_document_stays_absent(self, manager, vscode_path):
        manager.restore(ConfigSnapshot())
        assert not vscode_path.exists()

    def test_undo_switch_that_created_documents(
        self,
        manager,
        profile_store,
        env_store,
        env_target,
        vscode_target,
        claude_target,
        vscode_path,
        claude_path,
    ):
        """전환이 새로 만든 설정 파일은 복원 시 다시 없어짐"""
        profile = profile_store.add("A", "sk-a", "https://a.test")
        snapshot = manager.capture()

        orchestrator = SwitchOrchestrator(profile_store, env_target, vscode_target, claude_target)
        assert orchestrator.switch(profile.id).success is True
        assert claude_path.exists()

        manager.restore(snapshot)

        assert not claude_path.exists()
        assert not vscode_path.exists()
        assert env_store.get(AUTH_TOKEN_ENV) is None
        assert env_store.get(BASE_URL_ENV) is None

    def test_remove_failure(self, env_store, vscode_document, claude_document, claude_path):
        claude_path.parent.mkdir(parents=True)
        claude_path.write_text("{}", encoding="utf-8")
        manager = SnapshotManager(env_store, vscode_document, claude_document)

        with patch.object(claude_document, "remove", side_effect=PermissionError("denied")):
            with pytest.raises(RestoreError):
                manager.restore(ConfigSnapshot())

    def test_broadcast_once(self, vscode_document, claude_document):
        store = MagicMock(spec=EnvStore)
        store.get.return_value = "present"
        SnapshotManager(store, vscode_document, claude_document).restore(ConfigSnapshot())

        assert store.delete.call_count == len(SNAPSHOT_ENV_NAMES)
        store.broadcast_change.assert_called_once()

    def test_fail_fast(self, vscode_document, claude_document, vscode_path):
        store = MagicMock(spec=EnvStore)
        store.set.side_effect = PermissionError("denied")
        manager = SnapshotManager(store, vscode_document, claude_document)

        with pytest.raises(RestoreError):
            manager.restore(ConfigSnapshot(env_auth_token="sk", vscode_content="{}"))
        assert not vscode_path.exists()

    def test_snapshot_dict_roundtrip(self):
        snapshot = ConfigSnapshot(env_auth_token="t", vscode_content=json.dumps({"a": 1}))
        assert ConfigSnapshot.from_dict(snapshot.to_dict()) == snapshot
