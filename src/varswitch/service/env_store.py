"""
EnvStore - 영속 사용자 환경변수 저장소

시스템 환경변수 대상의 백엔드입니다.
- Windows: HKCU\\Environment 레지스트리 + WM_SETTINGCHANGE 브로드캐스트
- POSIX: 로그인 셸이 source 하는 env.sh 파일 (export NAME='value')

두 백엔드 모두 이름 기반 get/set/delete 와 변경 알림(broadcast_change)을 제공합니다.
"""

import logging
import re
import shlex
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from varswitch.constants import DEFAULT_BROADCAST_TIMEOUT_MS

logger = logging.getLogger(__name__)

# export NAME=value 형식의 한 줄
_EXPORT_LINE_RE = re.compile(r"^\s*export\s+([A-Za-z_][A-Za-z0-9_]*)=(.*)$")

_ENV_FILE_HEADER = (
    "# Generated by VarSwitch\n"
    "# Do not edit by hand; switch profiles with VarSwitch instead.\n"
)


class EnvStore(ABC):
    """영속 환경변수 저장소 인터페이스"""

    @abstractmethod
    def get(self, name: str) -> Optional[str]:
        """값 조회. 없으면 None."""

    @abstractmethod
    def set(self, name: str, value: str) -> None:
        """값 저장 (영속)."""

    @abstractmethod
    def delete(self, name: str) -> None:
        """값 삭제. 없으면 아무것도 하지 않음."""

    def broadcast_change(self) -> bool:
        """
        실행 중인 다른 프로세스에 환경변수 변경 알림.

        best-effort: 실패하거나 지원하지 않는 플랫폼이면 False 를 반환하고
        예외를 던지지 않습니다.
        """
        return False


class ShellEnvFileStore(EnvStore):
    """
    셸 env 파일 기반 저장소 (POSIX).

    파일 안의 export 이외의 줄은 그대로 보존합니다.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def source_line(self) -> str:
        """셸 rc 파일에 추가할 source 구문"""
        quoted = shlex.quote(str(self._path))
        return f"[ -f {quoted} ] && . {quoted}"

    def _read_lines(self) -> list[str]:
        if not self._path.is_file():
            return []
        return self._path.read_text(encoding="utf-8").splitlines()

    @staticmethod
    def _parse_line(line: str) -> Optional[tuple[str, str]]:
        match = _EXPORT_LINE_RE.match(line)
        if not match:
            return None
        name, raw = match.groups()
        try:
            parts = shlex.split(raw)
        except ValueError:
            logger.warning(f"env 파일 줄 파싱 실패, 무시: {name}")
            return None
        return name, parts[0] if parts else ""

    def _write_lines(self, lines: list[str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        content = "\n".join(lines) + "\n" if lines else ""
        if not content.startswith(_ENV_FILE_HEADER.splitlines()[0]):
            content = _ENV_FILE_HEADER + content

        # 원자적 저장: 임시 파일 → replace
        tmp_path = self._path.with_suffix(".tmp")
        try:
            tmp_path.write_text(content, encoding="utf-8")
            tmp_path.replace(self._path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

    def _without(self, lines: list[str], name: str) -> list[str]:
        kept = []
        for line in lines:
            parsed = self._parse_line(line)
            if parsed is not None and parsed[0] == name:
                continue
            kept.append(line)
        return kept

    def get(self, name: str) -> Optional[str]:
        value = None
        for line in self._read_lines():
            parsed = self._parse_line(line)
            if parsed is not None and parsed[0] == name:
                value = parsed[1]  # 셸과 같이 마지막 정의가 우선
        return value

    def set(self, name: str, value: str) -> None:
        """
        Raises:
            ValueError: 값에 줄바꿈이 포함됨 (한 줄 export 로 저장할 수 없음)
        """
        if "\n" in value or "\r" in value:
            raise ValueError(f"env 파일 값에는 줄바꿈을 쓸 수 없습니다: {name}")
        lines = self._without(self._read_lines(), name)
        lines.append(f"export {name}={shlex.quote(value)}")
        self._write_lines(lines)
        logger.debug(f"env 파일 갱신: {name}")

    def delete(self, name: str) -> None:
        lines = self._read_lines()
        kept = self._without(lines, name)
        if len(kept) == len(lines):
            return
        self._write_lines(kept)
        logger.debug(f"env 파일에서 삭제: {name}")


class WindowsRegistryEnvStore(EnvStore):
    """
    HKCU\\Environment 레지스트리 기반 저장소 (Windows).

    새로 생성되는 프로세스는 로그아웃 없이 값을 읽고,
    이미 실행 중인 프로세스는 WM_SETTINGCHANGE 브로드캐스트로 다시 읽습니다.
    """

    _SUBKEY = "Environment"

    # SendMessageTimeoutW 인자
    _HWND_BROADCAST = 0xFFFF
    _WM_SETTINGCHANGE = 0x001A
    _SMTO_ABORTIFHUNG = 0x0002

    def __init__(self, broadcast_timeout_ms: int = DEFAULT_BROADCAST_TIMEOUT_MS) -> None:
        import winreg

        self._winreg = winreg
        self._broadcast_timeout_ms = broadcast_timeout_ms

    def _open(self):
        winreg = self._winreg
        return winreg.CreateKeyEx(
            winreg.HKEY_CURRENT_USER,
            self._SUBKEY,
            0,
            winreg.KEY_QUERY_VALUE | winreg.KEY_SET_VALUE,
        )

    def get(self, name: str) -> Optional[str]:
        with self._open() as key:
            try:
                value, _ = self._winreg.QueryValueEx(key, name)
            except FileNotFoundError:
                return None
        return str(value)

    def set(self, name: str, value: str) -> None:
        with self._open() as key:
            self._winreg.SetValueEx(key, name, 0, self._winreg.REG_SZ, value)

    def delete(self, name: str) -> None:
        with self._open() as key:
            try:
                self._winreg.DeleteValue(key, name)
            except FileNotFoundError:
                pass

    def broadcast_change(self) -> bool:
        import ctypes
        from ctypes import wintypes

        result = wintypes.DWORD()
        try:
            ok = ctypes.windll.user32.SendMessageTimeoutW(
                self._HWND_BROADCAST,
                self._WM_SETTINGCHANGE,
                0,
                "Environment",
                self._SMTO_ABORTIFHUNG,
                self._broadcast_timeout_ms,
                ctypes.byref(result),
            )
        except Exception as e:
            logger.warning(f"환경변수 변경 브로드캐스트 실패: {e}")
            return False

        if not ok:
            logger.warning(
                f"환경변수 변경 브로드캐스트 타임아웃 ({self._broadcast_timeout_ms}ms)"
            )
        return bool(ok)


def create_env_store(
    env_file_path: Path | str,
    broadcast_timeout_ms: int = DEFAULT_BROADCAST_TIMEOUT_MS,
) -> EnvStore:
    """현재 플랫폼에 맞는 환경변수 저장소 생성"""
    if sys.platform == "win32":
        return WindowsRegistryEnvStore(broadcast_timeout_ms=broadcast_timeout_ms)
    return ShellEnvFileStore(env_file_path)
