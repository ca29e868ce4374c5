from .external_user_service import ExternalUserService

__all__ = ["ExternalUserService"]
