"""HTTP middleware and header helpers."""

from authgate.infrastructure.api.middleware.cors import (
    oauth_cors_headers,
    redirect_cors_headers,
)

__all__ = ["oauth_cors_headers", "redirect_cors_headers"]
