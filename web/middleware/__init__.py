"""Middleware package for UTM Connect web application."""

from .security_headers import SecurityHeadersMiddleware

__all__ = ["SecurityHeadersMiddleware"]
