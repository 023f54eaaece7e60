"""Security headers middleware.

Learn: Responses here carry bearer tokens (the x-auth header on
register/login) and per-user todo lists, so every response, the guard's
bare 401s included, is marked non-cacheable and non-framable. Headers a
route already set are left alone. HSTS is only sent when the request
reached us over HTTPS, directly or through a proxy that says so in
X-Forwarded-Proto.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cache-Control": "no-store",
}

HSTS = "max-age=31536000; includeSubDomains"


def is_https(request: Request) -> bool:
    forwarded = request.headers.get("X-Forwarded-Proto", "")
    return request.url.scheme == "https" or forwarded.split(",")[0].strip() == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if is_https(request):
            response.headers["Strict-Transport-Security"] = HSTS
        return response
