from .profile import router as profile_router
from .coach import router as coach_router

ROUTERS = (profile_router, coach_router)

__all__ = [
    "ROUTERS",
    "profile_router",
    "coach_router",
]
