from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from garden import settings

_STATIC_HEADERS = {
    'X-Frame-Options': 'DENY',
    'X-Content-Type-Options': 'nosniff',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
    # Auth responses carry tokens and codes, never cache them
    'Cache-Control': 'no-store',
    'Permissions-Policy': 'camera=(), geolocation=(), microphone=(), payment=(), usb=()',
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to all responses.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        if settings.ENABLE_SECURITY_HEADERS:
            for header, value in _STATIC_HEADERS.items():
                response.headers.setdefault(header, value)

            if settings.CSP_POLICY:
                response.headers['Content-Security-Policy'] = settings.CSP_POLICY

            # Only in deployed environments, browsers remember this for a year
            if settings.ENABLE_HSTS:
                response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        return response
