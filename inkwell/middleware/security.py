from __future__ import annotations

from collections.abc import Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

DEFAULT_CSP = [
    "default-src 'self'",
    "style-src 'self' 'unsafe-inline'",
    "script-src 'self'",
    "img-src 'self' data: https:",
    "base-uri 'self'",
    "frame-ancestors 'self'",
    "object-src 'none'",
]


def _is_secure_request(request: Request) -> bool:
    # Honor reverse proxy headers if present
    xf_proto = request.headers.get("x-forwarded-proto")
    if xf_proto:
        return "https" in xf_proto
    return request.url.scheme == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Set hardened response headers for the JSON API and uploaded media.

    HSTS is only sent over HTTPS and never for local development hosts.
    """

    def __init__(
        self,
        app,
        *,
        csp_directives: Iterable[str] | None = None,
        hsts: str = "max-age=15552000; includeSubDomains",
        referrer_policy: str = "no-referrer",
        frame_options: str = "SAMEORIGIN",
        skip_hsts_hosts: set[str] | None = None,
        # Uploaded images are embedded cross-origin by the browser client
        resource_policy: str = "cross-origin",
    ) -> None:
        super().__init__(app)
        self.csp_value = "; ".join(csp_directives or DEFAULT_CSP)
        self.hsts = hsts
        self.referrer_policy = referrer_policy
        self.frame_options = frame_options
        self.skip_hsts_hosts = skip_hsts_hosts or {"localhost", "127.0.0.1"}
        self.resource_policy = resource_policy

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        headers = response.headers

        headers.setdefault("Content-Security-Policy", self.csp_value)
        if _is_secure_request(request) and (
            request.url.hostname not in self.skip_hsts_hosts
        ):
            headers.setdefault("Strict-Transport-Security", self.hsts)

        headers.setdefault("Referrer-Policy", self.referrer_policy)
        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("X-Frame-Options", self.frame_options)
        headers.setdefault("X-DNS-Prefetch-Control", "off")
        headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
        headers.setdefault("Cross-Origin-Resource-Policy", self.resource_policy)
        headers.setdefault("X-Permitted-Cross-Domain-Policies", "none")
        headers.setdefault("Origin-Agent-Cluster", "?1")
        return response
