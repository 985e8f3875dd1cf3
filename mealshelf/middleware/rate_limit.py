from __future__ import annotations
import time
from typing import Set
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from ..config import settings
from ..errors import ErrorResponse
from ..rate_limit_store import RateLimitStore, store as default_store
from ..security import identity_from_headers

class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Límite sliding-window por usuario (API key o sujeto del JWT).
    Las ventanas viven en RateLimitStore (memoria local o Redis).
    """
    def __init__(self, app, store: RateLimitStore | None = None):
        super().__init__(app)
        self.window_s = 60.0
        self.limit = settings.rate_limit_rpm
        self.burst = settings.rate_limit_burst
        self.exempt: Set[str] = {"/health", "/health/deep", "/metrics", "/docs", "/openapi.json"}
        self.store = store or default_store

    def _identity(self, request: Request) -> str:
        user = identity_from_headers(request.headers.get("X-API-Key"), request.headers.get("Authorization"))
        if user:
            return user
        # sin credenciales válidas: fallback dev o bucket anónimo compartido
        return settings.auth_fallback_user or "anonymous"

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.exempt or request.method == "OPTIONS":
            return await call_next(request)

        key = self._identity(request)
        allowed = await self.store.allow(key, time.monotonic(), self.window_s, max(self.limit, self.burst))
        if not allowed:
            err = ErrorResponse(code="rate_limited", detail="Rate limit exceeded")
            return JSONResponse(err.model_dump(), status_code=429)
        return await call_next(request)
