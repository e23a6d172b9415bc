"""
ProfileStore - 자격 증명 프로필 저장소

profiles.json 하나에 모든 프로필을 저장합니다.
형식: {"profiles": [{id, name, apiKey, baseUrl, isActive, createdAt}, ...]}

잠금이나 낙관적 동시성 검사는 하지 않습니다 (마지막 쓰기가 이김).
"""

import json
import logging
import shutil
import uuid
from pathlib import Path
from typing import Any, Optional

from varswitch.service.switch_models import (
    DuplicateProfileError,
    Profile,
    ProfileNotFoundError,
    utc_now_str,
)

logger = logging.getLogger(__name__)


def _normalize_base_url(value: str) -> str:
    return value.strip().rstrip("/")


def _profile_from_record(record: dict[str, Any]) -> Profile:
    return Profile(
        id=str(record.get("id") or ""),
        name=str(record.get("name") or ""),
        api_key=str(record.get("apiKey") or ""),
        base_url=str(record.get("baseUrl") or ""),
        is_active=bool(record.get("isActive", False)),
        created_at=str(record.get("createdAt") or ""),
    )


def _profile_to_record(profile: Profile) -> dict[str, Any]:
    return {
        "id": profile.id,
        "name": profile.name,
        "apiKey": profile.api_key,
        "baseUrl": profile.base_url,
        "isActive": profile.is_active,
        "createdAt": profile.created_at,
    }


def _repair(profiles: list[Profile]) -> bool:
    """id/createdAt 이 비어 있는 레거시 레코드 복구. 변경 여부 반환."""
    fixed = False
    for p in profiles:
        if not p.id:
            p.id = str(uuid.uuid4())
            fixed = True
        if not p.created_at:
            p.created_at = utc_now_str()
            fixed = True
    return fixed


class ProfileStore:
    """
    프로필 저장소.

    모든 조회는 파일을 새로 읽으므로, 다른 프로세스의 변경도 바로 반영됩니다.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """profiles.json 경로."""
        return self._path

    # --- 영속화 ---

    def _read_records(self, path: Path) -> list[dict[str, Any]]:
        data = json.loads(path.read_text(encoding="utf-8"))
        records = data.get("profiles") if isinstance(data, dict) else None
        if not isinstance(records, list):
            records = []
        return [r for r in records if isinstance(r, dict)]

    def load(self) -> list[Profile]:
        """
        프로필 목록 로드.

        파일이 없거나 읽을 수 없으면 빈 목록.
        id/createdAt 이 빠진 레코드는 복구 후 즉시 저장합니다.
        """
        if not self._path.is_file():
            return []
        try:
            profiles = [_profile_from_record(r) for r in self._read_records(self._path)]
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"프로필 파일 읽기 실패: {self._path} - {e}")
            return []

        if _repair(profiles):
            try:
                self.save(profiles)
                logger.info("레거시 프로필 레코드 복구 완료")
            except OSError as e:
                logger.warning(f"복구된 프로필 저장 실패: {e}")
        return profiles

    def save(self, profiles: list[Profile]) -> None:
        """
        프로필 목록 저장.

        Raises:
            OSError: 쓰기 실패
        """
        data = {"profiles": [_profile_to_record(p) for p in profiles]}

        # 원자적 저장: 임시 파일 → rename
        tmp_path = self._path.with_suffix(".tmp")
        try:
            tmp_path.write_text(
                json.dumps(data, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            # Windows에서 rename은 대상이 이미 있으면 실패하므로 replace 사용
            tmp_path.replace(self._path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

    # --- 조회 ---

    def list_profiles(self) -> list[Profile]:
        return self.load()

    def get(self, profile_id: str) -> Profile:
        """
        프로필 조회.

        Raises:
            ProfileNotFoundError: 프로필이 존재하지 않음
        """
        for p in self.load():
            if p.id == profile_id:
                return p
        raise ProfileNotFoundError(f"프로필이 존재하지 않습니다: {profile_id}")

    def get_active(self) -> Optional[Profile]:
        return next((p for p in self.load() if p.is_active), None)

    def find_by_credentials(self, api_key: str, base_url: str) -> Optional[Profile]:
        return next(
            (p for p in self.load() if p.api_key == api_key and p.base_url == base_url),
            None,
        )

    # --- 변경 ---

    def add(self, name: str, api_key: str, base_url: str) -> Profile:
        """
        프로필 추가 (비활성 상태).

        Raises:
            ValueError: 필수 필드 누락
        """
        name, api_key, base_url = name.strip(), api_key.strip(), _normalize_base_url(base_url)
        if not name or not api_key or not base_url:
            raise ValueError("name, api_key, base_url 은 모두 필수입니다")

        profiles = self.load()
        profile = Profile(
            id=str(uuid.uuid4()),
            name=name,
            api_key=api_key,
            base_url=base_url,
        )
        profiles.append(profile)
        self.save(profiles)
        logger.info(f"프로필 추가: {profile.name} ({profile.id})")
        return profile

    def update(
        self,
        profile_id: str,
        name: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> Profile:
        """
        프로필 수정. 비어 있는 인자는 기존 값을 유지합니다.

        Raises:
            ProfileNotFoundError: 프로필이 존재하지 않음
        """
        profiles = self.load()
        profile = next((p for p in profiles if p.id == profile_id), None)
        if profile is None:
            raise ProfileNotFoundError(f"프로필이 존재하지 않습니다: {profile_id}")

        if name:
            profile.name = name.strip()
        if api_key:
            profile.api_key = api_key.strip()
        if base_url:
            profile.base_url = _normalize_base_url(base_url)

        self.save(profiles)
        logger.info(f"프로필 수정: {profile.name} ({profile.id})")
        return profile

    def delete(self, profile_id: str) -> bool:
        """
        프로필 삭제.

        Returns:
            True: 삭제 성공, False: 프로필 없음
        """
        profiles = self.load()
        kept = [p for p in profiles if p.id != profile_id]
        if len(kept) == len(profiles):
            return False
        self.save(kept)
        logger.info(f"프로필 삭제: {profile_id}")
        return True

    def activate(self, profile_id: str) -> Profile:
        """
        프로필 하나만 활성으로 표시하고 저장.

        Raises:
            ProfileNotFoundError: 프로필이 존재하지 않음
            OSError: 저장 실패
        """
        profiles = self.load()
        target = None
        for p in profiles:
            p.is_active = p.id == profile_id
            if p.is_active:
                target = p
        if target is None:
            raise ProfileNotFoundError(f"프로필이 존재하지 않습니다: {profile_id}")
        self.save(profiles)
        logger.info(f"활성 프로필 설정: {target.name}")
        return target

    def add_active(self, name: str, api_key: str, base_url: str) -> Profile:
        """
        활성 상태로 프로필 추가. 나머지는 모두 비활성화합니다.

        Raises:
            DuplicateProfileError: 같은 (api_key, base_url) 프로필이 존재
        """
        profiles = self.load()
        if any(p.api_key == api_key and p.base_url == base_url for p in profiles):
            raise DuplicateProfileError("같은 자격 증명의 프로필이 이미 존재합니다")

        for p in profiles:
            p.is_active = False
        profile = Profile(
            id=str(uuid.uuid4()),
            name=name,
            api_key=api_key,
            base_url=base_url,
            is_active=True,
        )
        profiles.append(profile)
        self.save(profiles)
        logger.info(f"활성 프로필 추가: {profile.name} ({profile.id})")
        return profile

    # --- 내보내기 / 가져오기 ---

    def export_to(self, dest: Path | str) -> Path:
        """
        profiles.json 을 dest 로 복사.

        Raises:
            FileNotFoundError: 프로필 파일이 없음
        """
        if not self._path.is_file():
            raise FileNotFoundError(f"프로필 파일이 존재하지 않습니다: {self._path}")
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self._path, dest)
        logger.info(f"프로필 내보내기: {dest}")
        return dest

    def import_from(self, src: Path | str) -> int:
        """
        다른 profiles.json 의 프로필을 병합.

        같은 (apiKey, baseUrl) 프로필은 건너뛰고, 빈 id/createdAt 은 새로 부여합니다.

        Returns:
            추가된 프로필 수

        Raises:
            FileNotFoundError: 파일이 없음
            ValueError: 형식이 잘못되었거나 프로필이 없음
        """
        src = Path(src)
        if not src.is_file():
            raise FileNotFoundError(f"파일이 존재하지 않습니다: {src}")
        try:
            imported = [_profile_from_record(r) for r in self._read_records(src)]
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValueError(f"올바르지 않은 프로필 파일 형식: {e}") from e
        if not imported:
            raise ValueError("파일에 프로필이 없습니다")

        profiles = self.load()
        added = 0
        for p in imported:
            exists = any(
                x.api_key == p.api_key and x.base_url == p.base_url for x in profiles
            )
            if exists:
                continue
            _repair([p])
            # 활성 프로필은 전환으로만 결정
            p.is_active = False
            profiles.append(p)
            added += 1

        self.save(profiles)
        logger.info(f"프로필 가져오기: {added}/{len(imported)}개 추가")
        return added
