"""
Targets - 자격 증명 동기화 대상 어댑터

- EnvVarTarget: 영속 사용자 환경변수 (EnvStore)
- EnvArrayTarget: JSON 문서 안의 [{name, value}, ...] 배열 (VS Code)
- EnvObjectTarget: JSON 문서 안의 {name: value} 객체 (Claude Code)

세 대상 모두 read/write/delete/contains 를 제공하며,
자격 증명 적용/조회는 AuthNameResolver 에 위임합니다.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from varswitch.service.auth_names import (
    AuthNameResolver,
    AuthVariableName,
    EnvView,
    auth_name_resolver,
)
from varswitch.service.env_store import EnvStore
from varswitch.service.json_document import DocumentError, JsonDocument
from varswitch.service.switch_models import LocationStatus, TargetError

logger = logging.getLogger(__name__)


# === 메모리 내 컨테이너 뷰 ===

class EnvArray:
    """
    [{name, value}, ...] 배열 뷰.

    name 은 유일해야 하므로 write/delete 는 같은 이름의 레코드를 모두 제거한 뒤 동작합니다.
    객체가 아닌 요소는 건드리지 않습니다.
    """

    def __init__(self, items: list) -> None:
        self._items = items

    @staticmethod
    def _matches(item: Any, name: str) -> bool:
        return isinstance(item, dict) and item.get("name") == name

    def read(self, name: str) -> Optional[str]:
        for item in self._items:
            if self._matches(item, name):
                value = item.get("value")
                return value if isinstance(value, str) else None
        return None

    def write(self, name: str, value: str) -> None:
        self.delete(name)
        self._items.append({"name": name, "value": value})

    def delete(self, name: str) -> None:
        self._items[:] = [item for item in self._items if not self._matches(item, name)]

    def contains(self, name: str) -> bool:
        return any(self._matches(item, name) for item in self._items)


class EnvObject:
    """{name: value} 객체 뷰"""

    def __init__(self, mapping: dict) -> None:
        self._mapping = mapping

    def read(self, name: str) -> Optional[str]:
        value = self._mapping.get(name)
        return value if isinstance(value, str) else None

    def write(self, name: str, value: str) -> None:
        self._mapping[name] = value

    def delete(self, name: str) -> None:
        self._mapping.pop(name, None)

    def contains(self, name: str) -> bool:
        return name in self._mapping


# === 대상 어댑터 ===

class EnvTarget(ABC):
    """동기화 대상 공통 인터페이스"""

    # 오류 메시지 접두사 겸 표시 이름
    display_name: str = ""

    def __init__(self, resolver: AuthNameResolver = auth_name_resolver) -> None:
        self._resolver = resolver

    @abstractmethod
    def read(self, name: str) -> Optional[str]: ...

    @abstractmethod
    def write(self, name: str, value: str) -> None: ...

    @abstractmethod
    def delete(self, name: str) -> None: ...

    @abstractmethod
    def contains(self, name: str) -> bool: ...

    @abstractmethod
    def apply(self, api_key: str, base_url: str) -> AuthVariableName:
        """
        자격 증명 적용.

        Raises:
            TargetError: 읽기/쓰기 실패
        """

    @abstractmethod
    def read_status(self) -> Optional[LocationStatus]:
        """현재 자격 증명 조회. 읽을 수 없으면 None."""


class EnvVarTarget(EnvTarget):
    """영속 사용자 환경변수 대상"""

    display_name = "System env"

    def __init__(
        self,
        store: EnvStore,
        resolver: AuthNameResolver = auth_name_resolver,
    ) -> None:
        super().__init__(resolver)
        self._store = store

    @property
    def store(self) -> EnvStore:
        return self._store

    def read(self, name: str) -> Optional[str]:
        try:
            return self._store.get(name)
        except (OSError, ValueError) as e:
            raise TargetError(str(e)) from e

    def write(self, name: str, value: str) -> None:
        try:
            self._store.set(name, value)
        except (OSError, ValueError) as e:
            raise TargetError(str(e)) from e

    def delete(self, name: str) -> None:
        try:
            self._store.delete(name)
        except (OSError, ValueError) as e:
            raise TargetError(str(e)) from e

    def contains(self, name: str) -> bool:
        return self.read(name) is not None

    def apply(self, api_key: str, base_url: str) -> AuthVariableName:
        return self._resolver.apply_to(self, api_key, base_url)

    def notify_changed(self) -> bool:
        """실행 중인 프로세스에 변경 알림 (실패해도 예외 없음)"""
        return self._store.broadcast_change()

    def read_status(self) -> Optional[LocationStatus]:
        try:
            return LocationStatus(
                api_key=self._resolver.read_auth(self),
                base_url=self._resolver.read_base_url(self),
            )
        except TargetError as e:
            logger.warning(f"시스템 환경변수 읽기 실패: {e}")
            return None


class _JsonFieldTarget(EnvTarget):
    """JSON 문서의 필드 하나를 대상으로 하는 어댑터 공통 구현"""

    field_kind: type = dict
    replace_invalid_root: bool = False

    def __init__(
        self,
        document: JsonDocument,
        field_path: Sequence[str],
        resolver: AuthNameResolver = auth_name_resolver,
    ) -> None:
        super().__init__(resolver)
        self._document = document
        self._field_path = tuple(field_path)

    @property
    def document(self) -> JsonDocument:
        return self._document

    @abstractmethod
    def _view(self, value: Any) -> EnvView: ...

    def _patch(self, mutate):
        try:
            return self._document.patch(
                self._field_path,
                self.field_kind,
                lambda value: mutate(self._view(value)),
                replace_invalid_root=self.replace_invalid_root,
            )
        except DocumentError as e:
            raise TargetError(str(e)) from e

    def _field_view(self) -> Optional[EnvView]:
        try:
            value = self._document.get_field(self._field_path, self.field_kind)
        except DocumentError as e:
            raise TargetError(str(e)) from e
        return self._view(value) if value is not None else None

    def read(self, name: str) -> Optional[str]:
        view = self._field_view()
        return view.read(name) if view is not None else None

    def contains(self, name: str) -> bool:
        view = self._field_view()
        return view.contains(name) if view is not None else False

    def write(self, name: str, value: str) -> None:
        self._patch(lambda view: view.write(name, value))

    def delete(self, name: str) -> None:
        self._patch(lambda view: view.delete(name))

    def apply(self, api_key: str, base_url: str) -> AuthVariableName:
        """읽기 → 변경 → 쓰기를 문서 한 번의 patch 로 수행"""
        return self._patch(
            lambda view: self._resolver.apply_to(view, api_key, base_url)
        )


class EnvArrayTarget(_JsonFieldTarget):
    """VS Code settings.json 의 환경변수 배열 대상"""

    display_name = "VSCode"
    field_kind = list

    def _view(self, value: Any) -> EnvView:
        return EnvArray(value)

    def read_status(self) -> Optional[LocationStatus]:
        """문서를 읽을 수 없거나 배열 필드가 없으면 None"""
        try:
            view = self._field_view()
        except TargetError as e:
            logger.warning(f"VS Code 설정 읽기 실패: {e}")
            return None
        if view is None:
            return None
        return LocationStatus(
            api_key=self._resolver.read_auth(view),
            base_url=self._resolver.read_base_url(view),
        )


class EnvObjectTarget(_JsonFieldTarget):
    """Claude Code settings.json 의 env 객체 대상"""

    display_name = "Claude"
    field_kind = dict
    replace_invalid_root = True

    def _view(self, value: Any) -> EnvView:
        return EnvObject(value)

    def read_status(self) -> Optional[LocationStatus]:
        """문서를 읽을 수 없으면 None. env 필드가 없으면 빈 값."""
        if not self._document.exists():
            return None
        try:
            view = self._field_view()
        except TargetError as e:
            logger.warning(f"Claude 설정 읽기 실패: {e}")
            return None
        if view is None:
            return LocationStatus()
        return LocationStatus(
            api_key=self._resolver.read_auth(view),
            base_url=self._resolver.read_base_url(view),
        )
