"""Internal machinery: HTTP transport and auth."""

from .http import (
    Auth,
    BearerAuth,
    HttpClient,
    HttpError,
    OAuth2Auth,
    Response,
)

__all__ = [
    "Auth",
    "BearerAuth",
    "HttpClient",
    "HttpError",
    "OAuth2Auth",
    "Response",
]
