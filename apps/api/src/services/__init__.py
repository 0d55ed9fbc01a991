from .profile import profile_service, ProfileNotFoundError

__all__ = ["profile_service", "ProfileNotFoundError"]
