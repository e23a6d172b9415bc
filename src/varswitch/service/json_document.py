"""
JsonDocument - 다른 애플리케이션과 공유하는 JSON 설정 문서

문서 전체를 읽고, 지정된 필드 하나만 변경한 뒤, 나머지 필드는 보존한 채
pretty-print 로 다시 씁니다 (partial JSON patch).
원본 텍스트 그대로의 읽기/쓰기(read_text/write_text)는 스냅샷 복원에 사용됩니다.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DocumentError(Exception):
    """문서 읽기/파싱/쓰기 실패"""
    pass


class JsonDocument:
    """
    고정 경로의 JSON 문서.

    문서가 없으면 빈 객체 `{}` 로 취급합니다.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    # --- 원본 텍스트 ---

    def read_text(self) -> Optional[str]:
        """
        원본 텍스트 읽기.

        줄바꿈/BOM 을 변환하지 않으므로 write_text 로 다시 쓰면 바이트 단위로 동일합니다.

        Returns:
            문서 텍스트 또는 None (파일 없음)
        """
        if not self._path.is_file():
            return None
        return self._path.read_bytes().decode("utf-8")

    def write_text(self, content: str) -> None:
        """원본 텍스트를 그대로 원자적으로 쓰기"""
        self._path.parent.mkdir(parents=True, exist_ok=True)

        # 원자적 저장: 임시 파일 → replace
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            tmp_path.write_bytes(content.encode("utf-8"))
            tmp_path.replace(self._path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

    def remove(self) -> bool:
        """
        문서 삭제.

        Returns:
            True: 삭제됨, False: 원래 없음

        Raises:
            OSError: 삭제 실패
        """
        if not self._path.is_file():
            return False
        self._path.unlink(missing_ok=True)
        return True

    # --- JSON ---

    def load(self) -> Any:
        """
        문서를 JSON 으로 읽기.

        Returns:
            파싱된 값. 파일이 없으면 빈 dict.

        Raises:
            DocumentError: 읽기 실패 또는 올바르지 않은 JSON
        """
        try:
            if not self._path.is_file():
                return {}
            raw = self._path.read_bytes().decode("utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentError(f"읽기 실패 ({self._path}): {e}") from e

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise DocumentError(f"올바르지 않은 JSON ({self._path}): {e}") from e

    def dump(self, data: Any) -> None:
        """JSON 을 pretty-print 로 쓰기"""
        try:
            self.write_text(json.dumps(data, ensure_ascii=False, indent=2))
        except OSError as e:
            raise DocumentError(f"쓰기 실패 ({self._path}): {e}") from e

    def get_field(self, field_path: Sequence[str], kind: type) -> Optional[Any]:
        """
        필드 조회 (읽기 전용).

        Returns:
            필드 값. 경로 중간이 없거나 타입이 kind 가 아니면 None.

        Raises:
            DocumentError: 문서를 읽을 수 없음
        """
        node = self.load()
        for key in field_path:
            if not isinstance(node, dict) or key not in node:
                return None
            node = node[key]
        return node if isinstance(node, kind) else None

    def patch(
        self,
        field_path: Sequence[str],
        kind: type,
        mutate: Callable[[Any], T],
        *,
        replace_invalid_root: bool = False,
    ) -> T:
        """
        필드 하나를 변경하고 문서 저장.

        1. 문서 읽기 (없으면 `{}`)
        2. 루트가 객체가 아니면 replace_invalid_root 에 따라 `{}` 로 교체하거나 실패
        3. 경로의 필드가 kind 타입이 아니면 빈 kind() 로 생성
        4. mutate(필드) 호출
        5. 문서 전체를 다시 쓰기

        Args:
            field_path: 루트부터의 키 경로
            kind: 필드 타입 (list 또는 dict)
            mutate: 필드를 제자리에서 변경하는 함수
            replace_invalid_root: 객체가 아닌 루트를 `{}` 로 교체할지 여부

        Returns:
            mutate 의 반환값

        Raises:
            DocumentError: 읽기/파싱/쓰기 실패
        """
        data = self.load()
        if not isinstance(data, dict):
            if not replace_invalid_root:
                raise DocumentError(f"루트가 JSON 객체가 아닙니다 ({self._path})")
            logger.warning(f"루트가 JSON 객체가 아니어서 교체합니다: {self._path}")
            data = {}

        parent = data
        for key in field_path[:-1]:
            child = parent.get(key)
            if not isinstance(child, dict):
                child = {}
                parent[key] = child
            parent = child

        leaf = field_path[-1]
        value = parent.get(leaf)
        if not isinstance(value, kind):
            value = kind()
            parent[leaf] = value

        result = mutate(value)
        self.dump(data)
        return result
