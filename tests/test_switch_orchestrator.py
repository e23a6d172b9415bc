"""
test_switch_orchestrator - 프로필 전환 단계 테스트

단계 순서, 취소, 대상별 부분 실패, 활성 프로필 기록.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from varswitch.constants import (
    AUTH_TOKEN_ENV,
    BASE_URL_ENV,
    CANCELLED_ERROR,
    VSCODE_ENV_FIELD,
)
from varswitch.service.env_store import EnvStore
from varswitch.service.switch_models import (
    FinalizeError,
    LocationStatus,
    ProfileNotFoundError,
)
from varswitch.service.switch_orchestrator import (
    CancellationToken,
    SwitchOrchestrator,
    SwitchStep,
)
from varswitch.service.targets import EnvVarTarget


@pytest.fixture
def orchestrator(profile_store, env_target, vscode_target, claude_target):
    return SwitchOrchestrator(
        store=profile_store,
        env_target=env_target,
        editor_target=vscode_target,
        tool_target=claude_target,
    )


@pytest.fixture
def profile_a(profile_store):
    return profile_store.add("A", "sk-a", "https://a.test")


class TestSuccessfulSwitch:
    def test_all_targets_written(self, orchestrator, profile_a, env_store, vscode_path, claude_path):
        result = orchestrator.switch(profile_a.id)

        assert result.success is True
        assert result.cancelled is False
        assert result.errors == []
        assert result.profile_name == "A"
        assert result.details.to_dict() == {"env_vars": True, "vscode": True, "claude": True}

        assert env_store.get(AUTH_TOKEN_ENV) == "sk-a"
        claude = json.loads(claude_path.read_text(encoding="utf-8"))
        assert claude["env"][BASE_URL_ENV] == "https://a.test"
        vscode = json.loads(vscode_path.read_text(encoding="utf-8"))
        assert {"name": AUTH_TOKEN_ENV, "value": "sk-a"} in vscode[VSCODE_ENV_FIELD]

    def test_status_matches_profile(
        self, orchestrator, profile_a, env_target, vscode_target, claude_target
    ):
        """전환 후 세 대상 모두 같은 (key, url) 을 보고"""
        orchestrator.switch(profile_a.id)

        expected = LocationStatus(api_key="sk-a", base_url="https://a.test")
        assert env_target.read_status() == expected
        assert vscode_target.read_status() == expected
        assert claude_target.read_status() == expected

    def test_progress_sequence(self, orchestrator, profile_a):
        events = []
        orchestrator.switch(profile_a.id, on_progress=events.append)

        assert [e.step for e in events] == [1, 2, 3, 4, 5, 6]
        assert [e.label for e in events] == [
            "prepare", "system", "vscode", "claude", "finalize", "done",
        ]
        assert all(e.total == 6 for e in events)

    def test_listener_failure_ignored(self, orchestrator, profile_a):
        def broken(event):
            raise RuntimeError("listener down")

        result = orchestrator.switch(profile_a.id, on_progress=broken)
        assert result.success is True

    def test_broadcast_after_env_success(self, profile_store, vscode_target, claude_target, profile_a):
        store = MagicMock(spec=EnvStore)
        store.get.return_value = None
        orchestrator = SwitchOrchestrator(
            profile_store, EnvVarTarget(store), vscode_target, claude_target
        )

        orchestrator.switch(profile_a.id)
        store.broadcast_change.assert_called_once()


class TestActiveProfile:
    def test_activates_target_profile(self, orchestrator, profile_store):
        x = profile_store.add("X", "sk-x", "https://x.test")
        y = profile_store.add("Y", "sk-y", "https://y.test")
        profile_store.activate(x.id)

        orchestrator.switch(y.id)

        states = [(p.name, p.is_active) for p in profile_store.load()]
        assert states == [("X", False), ("Y", True)]

    def test_activates_even_when_targets_fail(self, orchestrator, profile_store, vscode_path):
        x = profile_store.add("X", "sk-x", "https://x.test")
        y = profile_store.add("Y", "sk-y", "https://y.test")
        profile_store.activate(x.id)
        vscode_path.parent.mkdir(parents=True)
        vscode_path.write_text("{ broken", encoding="utf-8")

        result = orchestrator.switch(y.id)

        assert result.success is False
        assert profile_store.get_active().id == y.id

    def test_finalize_failure(self, orchestrator, profile_store, profile_a):
        with patch.object(profile_store, "save", side_effect=OSError("disk full")):
            with pytest.raises(FinalizeError):
                orchestrator.switch(profile_a.id)


class TestPartialFailure:
    def test_editor_unparsable(self, orchestrator, profile_a, vscode_path):
        vscode_path.parent.mkdir(parents=True)
        vscode_path.write_text("{ this is not json", encoding="utf-8")

        result = orchestrator.switch(profile_a.id)

        assert result.success is False
        assert result.details.to_dict() == {"env_vars": True, "vscode": False, "claude": True}
        assert len(result.errors) == 1
        assert result.errors[0].startswith("VSCode: ")

    def test_env_failure_prefix(self, profile_store, vscode_target, claude_target, profile_a):
        store = MagicMock(spec=EnvStore)
        store.get.side_effect = PermissionError("registry denied")
        store.set.side_effect = PermissionError("registry denied")
        orchestrator = SwitchOrchestrator(
            profile_store, EnvVarTarget(store), vscode_target, claude_target
        )

        result = orchestrator.switch(profile_a.id)

        assert result.details.to_dict() == {"env_vars": False, "vscode": True, "claude": True}
        assert result.errors == ["System env: registry denied"]
        store.broadcast_change.assert_not_called()

    def test_tool_failure_prefix(self, orchestrator, profile_a, claude_path):
        claude_path.parent.mkdir(parents=True)
        claude_path.write_text("{", encoding="utf-8")

        result = orchestrator.switch(profile_a.id)
        assert result.errors[0].startswith("Claude: ")


class TestCancellation:
    def test_cancel_after_prepare(self, orchestrator, profile_a, env_store):
        token = CancellationToken()

        def on_progress(event):
            if event.step == SwitchStep.PREPARE:
                token.cancel()

        result = orchestrator.switch(profile_a.id, token=token, on_progress=on_progress)

        assert result.cancelled is True
        assert result.success is False
        assert result.errors == [CANCELLED_ERROR]
        assert result.details.to_dict() == {"env_vars": False, "vscode": False, "claude": False}
        assert env_store.get(AUTH_TOKEN_ENV) is None

    def test_cancel_keeps_completed_details(self, orchestrator, profile_a):
        token = CancellationToken()
        labels = []

        def on_progress(event):
            labels.append(event.label)
            if event.step == SwitchStep.EDITOR:
                token.cancel()

        result = orchestrator.switch(profile_a.id, token=token, on_progress=on_progress)

        # 진행 중인 대상 쓰기는 끝까지 완료됨
        assert result.details.to_dict() == {"env_vars": True, "vscode": True, "claude": False}
        assert labels == ["prepare", "system", "vscode"]

    def test_cancel_after_finalize(self, orchestrator, profile_store, profile_a):
        token = CancellationToken()

        def on_progress(event):
            if event.step == SwitchStep.FINALIZE:
                token.cancel()

        result = orchestrator.switch(profile_a.id, token=token, on_progress=on_progress)

        assert result.cancelled is True
        assert result.details.to_dict() == {"env_vars": True, "vscode": True, "claude": True}
        # finalize 단계는 이미 실행됨
        assert profile_store.get_active().id == profile_a.id

    def test_token_reset_on_start(self, orchestrator, profile_a):
        """이전에 요청된 취소는 새 전환에 영향 없음"""
        token = CancellationToken()
        token.cancel()

        result = orchestrator.switch(profile_a.id, token=token)
        assert result.cancelled is False

    def test_tokens_independent(self):
        a, b = CancellationToken(), CancellationToken()
        a.cancel()
        assert a.is_cancelled is True
        assert b.is_cancelled is False


class TestNotFound:
    def test_missing_profile(self, orchestrator, vscode_path):
        events = []
        with pytest.raises(ProfileNotFoundError):
            orchestrator.switch("nope", on_progress=events.append)
        assert events == []
        assert not vscode_path.exists()
