"""Security headers middleware for UTM Connect web application."""

from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from utm_connect.core.environment import Environment

# JSON API: nothing may be framed, scripted or embedded
API_CSP = "default-src 'none'; img-src 'self' data:; frame-ancestors 'none'; base-uri 'none'"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add helmet-style security headers to all responses."""

    def __init__(self, app, enable_hsts: Optional[bool] = None):
        super().__init__(app)
        self.enable_hsts = Environment.is_production() if enable_hsts is None else enable_hsts

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
        response.headers["Cross-Origin-Resource-Policy"] = "same-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        response.headers["Content-Security-Policy"] = API_CSP
        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
