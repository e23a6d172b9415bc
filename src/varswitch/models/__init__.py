# Request/Response Schemas
from .schemas import (
    SSEEventType,
    ProfileCreateRequest,
    ProfileUpdateRequest,
    ImportCurrentRequest,
    PathRequest,
    ProfileModel,
    ProfileListResponse,
    ActiveProfileResponse,
    DeleteResponse,
    ExportResponse,
    ImportResponse,
    LocationStatusModel,
    StatusResponse,
    ConfigSnapshotModel,
    RestoreResponse,
    CancelResponse,
    PathsResponse,
    HealthResponse,
    ErrorDetail,
    ErrorResponse,
    SwitchStartedEvent,
    SwitchProgressEvent,
    SwitchDetailsModel,
    SwitchResultEvent,
    ErrorEvent,
    SwitchEvent,
)

__all__ = [
    "SSEEventType",
    "ProfileCreateRequest",
    "ProfileUpdateRequest",
    "ImportCurrentRequest",
    "PathRequest",
    "ProfileModel",
    "ProfileListResponse",
    "ActiveProfileResponse",
    "DeleteResponse",
    "ExportResponse",
    "ImportResponse",
    "LocationStatusModel",
    "StatusResponse",
    "ConfigSnapshotModel",
    "RestoreResponse",
    "CancelResponse",
    "PathsResponse",
    "HealthResponse",
    "ErrorDetail",
    "ErrorResponse",
    "SwitchStartedEvent",
    "SwitchProgressEvent",
    "SwitchDetailsModel",
    "SwitchResultEvent",
    "ErrorEvent",
    "SwitchEvent",
]
