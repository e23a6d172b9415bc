"""VarSwitch 클라이언트 패키지"""

from .client import (
    VarSwitchClient,
    SSEEvent,
    SwitchOutcome,
    VarSwitchServiceError,
    ProfileNotFoundError,
    SwitchNotFoundError,
    DuplicateProfileError,
    NothingToImportError,
    ConnectionLostError,
)

__all__ = [
    "VarSwitchClient",
    "SSEEvent",
    "SwitchOutcome",
    "VarSwitchServiceError",
    "ProfileNotFoundError",
    "SwitchNotFoundError",
    "DuplicateProfileError",
    "NothingToImportError",
    "ConnectionLostError",
]
