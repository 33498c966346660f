"""
Security headers for API responses

Everything served here is JSON for the booking pages and the doctor
dashboard, so nothing may be framed, sniffed or cached. HSTS is only sent in
production, where the API sits behind TLS.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from .config import IS_PRODUCTION

BASE_HEADERS = {
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=(), payment=()",
}


def build_security_headers(production: bool = IS_PRODUCTION) -> dict:
    headers = dict(BASE_HEADERS)
    if production:
        headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, exclude_paths=None, production: bool = IS_PRODUCTION):
        super().__init__(app)
        self.exclude_paths = tuple(exclude_paths or ())
        self.headers = build_security_headers(production)

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith(self.exclude_paths):
            return response

        response.headers.update(self.headers)
        response.headers.setdefault("Cache-Control", "no-store")
        return response
