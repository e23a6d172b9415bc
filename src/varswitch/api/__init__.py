# API Routers
from .auth import verify_token
from .profiles import create_profiles_router
from .switch import create_switch_router
from .targets import create_targets_router

__all__ = [
    "verify_token",
    "create_profiles_router",
    "create_switch_router",
    "create_targets_router",
]
