"""API routes for AuthGate."""

from authgate.infrastructure.api.routes.auth_router import router as auth_router
from .email_change_router import router as email_change_router
from .oauth_router import router as oauth_router
from .profile_router import router as profile_router

__all__ = ["auth_router", "email_change_router", "oauth_router", "profile_router"]
