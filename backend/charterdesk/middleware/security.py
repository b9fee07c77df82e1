"""Response hardening: security headers, HTTPS redirect, secure cookies.

HSTS, the content security policy, the redirect and the cookie flags only
apply when ENVIRONMENT=production; local and test runs see plain HTTP.
"""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse

from charterdesk.config import settings

_STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=(), payment=()",
}

# The API only serves JSON; nothing needs to load from it
_API_CSP = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"


def _production() -> bool:
    return settings.environment == "production"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in _STATIC_HEADERS.items():
            response.headers[name] = value
        if _production():
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
            if request.url.path.startswith("/api"):
                response.headers["Content-Security-Policy"] = _API_CSP
        return response


class HTTPSRedirectMiddleware(BaseHTTPMiddleware):
    """Permanent redirect from http:// to https:// (production, or when forced)."""

    def __init__(self, app, force_https: bool = False):
        super().__init__(app)
        self.force_https = force_https

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if (self.force_https or _production()) and request.url.scheme == "http":
            return RedirectResponse(url=str(request.url.replace(scheme="https")), status_code=301)
        return await call_next(request)


class SecureCookieMiddleware(BaseHTTPMiddleware):
    """Add Secure/HttpOnly/SameSite to every Set-Cookie in production."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        if not _production():
            return response

        cookies = response.headers.getlist("set-cookie")
        if not cookies:
            return response
        del response.headers["set-cookie"]
        for cookie in cookies:
            for flag in ("Secure", "HttpOnly", "SameSite=Strict"):
                if flag.split("=")[0] not in cookie:
                    cookie += f"; {flag}"
            response.headers.append("set-cookie", cookie)
        return response
