# Business Logic Services
from .switch_models import (
    VarSwitchError,
    ProfileNotFoundError,
    DuplicateProfileError,
    TargetError,
    FinalizeError,
    ImportCurrentError,
    RestoreError,
    Profile,
    SwitchDetails,
    SwitchResult,
    ProgressEvent,
    ConfigSnapshot,
    LocationStatus,
    StatusResult,
)
from .auth_names import AuthVariableName, AuthNameResolver, auth_name_resolver
from .env_store import EnvStore, ShellEnvFileStore, WindowsRegistryEnvStore, create_env_store
from .json_document import JsonDocument, DocumentError
from .targets import EnvVarTarget, EnvArrayTarget, EnvObjectTarget
from .profile_store import ProfileStore
from .switch_orchestrator import CancellationToken, SwitchOrchestrator, SwitchStep
from .snapshot_manager import SnapshotManager
from .status_service import StatusService
from .switch_manager import SwitchManager, SwitchRun

__all__ = [
    "VarSwitchError",
    "ProfileNotFoundError",
    "DuplicateProfileError",
    "TargetError",
    "FinalizeError",
    "ImportCurrentError",
    "RestoreError",
    "Profile",
    "SwitchDetails",
    "SwitchResult",
    "ProgressEvent",
    "ConfigSnapshot",
    "LocationStatus",
    "StatusResult",
    "AuthVariableName",
    "AuthNameResolver",
    "auth_name_resolver",
    "EnvStore",
    "ShellEnvFileStore",
    "WindowsRegistryEnvStore",
    "create_env_store",
    "JsonDocument",
    "DocumentError",
    "EnvVarTarget",
    "EnvArrayTarget",
    "EnvObjectTarget",
    "ProfileStore",
    "CancellationToken",
    "SwitchOrchestrator",
    "SwitchStep",
    "SnapshotManager",
    "StatusService",
    "SwitchManager",
    "SwitchRun",
]
