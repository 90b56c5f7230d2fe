"""Origin allow-list for cross-origin browser requests.

Entries are exact origins (``http://localhost:5173``) or wildcard patterns
(``https://*.vercel.app``); ``"*"`` allows every origin. Requests without an
``Origin`` header (server-to-server, curl) are always allowed.
"""

from __future__ import annotations

import logging
from fnmatch import fnmatchcase, translate
from typing import Iterable, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class OriginPolicy:
    def __init__(self, origins: Optional[Iterable[str]]) -> None:
        cleaned = [str(o).strip().rstrip("/") for o in (origins or []) if str(o).strip()]
        self.allow_all = "*" in cleaned
        self.exact: List[str] = [o for o in cleaned if "*" not in o]
        self.patterns: List[str] = [o for o in cleaned if "*" in o and o != "*"]

    def allows(self, origin: Optional[str]) -> bool:
        if not origin:
            return True
        if self.allow_all:
            return True
        origin = origin.rstrip("/")
        if origin in self.exact:
            return True
        return any(fnmatchcase(origin, pat) for pat in self.patterns)

    def origin_regex(self) -> Optional[str]:
        if not self.patterns:
            return None
        return "|".join(translate(p) for p in self.patterns)


def install_cors(app: FastAPI, policy: OriginPolicy) -> None:
    """Add CORS headers for allowed origins and reject the rest with 403."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if policy.allow_all else policy.exact,
        allow_origin_regex=None if policy.allow_all else policy.origin_regex(),
        allow_credentials=not policy.allow_all,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Registered after CORSMiddleware, so it runs first.
    @app.middleware("http")
    async def reject_disallowed_origin(request: Request, call_next):
        origin = request.headers.get("origin")
        if not policy.allows(origin):
            logger.warning("Blocked request from origin %s to %s", origin, request.url.path)
            return JSONResponse(
                status_code=403,
                content={
                    "error": "Forbidden",
                    "message": f"Origin {origin} is not allowed to access this service",
                },
            )
        return await call_next(request)
