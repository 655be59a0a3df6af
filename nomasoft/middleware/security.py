from __future__ import annotations

from collections.abc import Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# JSON-only API: nothing may be loaded, framed or embedded from responses
DEFAULT_API_CSP = ("default-src 'none'", "frame-ancestors 'none'", "base-uri 'none'")


def _is_secure_request(request: Request) -> bool:
    # Honor reverse proxy headers if present
    xf_proto = request.headers.get("x-forwarded-proto")
    if xf_proto:
        return "https" in xf_proto
    return request.url.scheme == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Sets locked-down security headers on every API response."""

    def __init__(
        self,
        app,
        *,
        csp_directives: Iterable[str] | None = None,
        hsts: str = "max-age=63072000; includeSubDomains",
        referrer_policy: str = "no-referrer",
        skip_hsts_hosts: set[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.csp_value = "; ".join(csp_directives or DEFAULT_API_CSP)
        self.hsts = hsts
        self.referrer_policy = referrer_policy
        self.skip_hsts_hosts = skip_hsts_hosts or {"localhost", "127.0.0.1"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers.setdefault("Content-Security-Policy", self.csp_value)
        if _is_secure_request(request):
            if request.url.hostname not in self.skip_hsts_hosts:
                response.headers.setdefault("Strict-Transport-Security", self.hsts)

        response.headers.setdefault("Referrer-Policy", self.referrer_policy)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
        # The site front end is served from another origin
        response.headers.setdefault("Cross-Origin-Resource-Policy", "same-site")
        return response
