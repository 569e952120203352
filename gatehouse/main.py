import logging
from urllib.parse import urlparse

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from gatehouse.api import auth, routes
from gatehouse.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Gatehouse", version="0.1.0")


# =============================================================================
# CSRF Origin Validation Middleware
# =============================================================================


class CSRFOriginMiddleware(BaseHTTPMiddleware):
    """
    Validate Origin/Referer headers on state-changing requests to prevent CSRF.

    - POST, PUT, PATCH, DELETE must include a matching Origin or Referer header
    - GET, HEAD, OPTIONS are always allowed (safe methods)
    - Health check endpoints are exempt
    """

    SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
    EXEMPT_PATHS = {"/health"}

    def _rejected(self, request: Request, header: str, value: str) -> JSONResponse:
        logger.warning(
            "CSRF %s mismatch: %s=%s, expected=%s, path=%s",
            header,
            header,
            value,
            request.headers.get("host", ""),
            request.url.path,
        )
        return JSONResponse(
            status_code=403,
            content={"detail": "Origin validation failed"},
        )

    async def dispatch(self, request: Request, call_next):
        if request.method in self.SAFE_METHODS:
            return await call_next(request)

        if request.url.path in self.EXEMPT_PATHS:
            return await call_next(request)

        expected_host = request.headers.get("host", "")

        # Origin wins over Referer when both are present
        for header in ("origin", "referer"):
            value = request.headers.get(header)
            if value:
                if urlparse(value).netloc != expected_host:
                    return self._rejected(request, header, value)
                return await call_next(request)

        logger.warning(
            "CSRF missing origin/referer: method=%s, path=%s",
            request.method,
            request.url.path,
        )
        return JSONResponse(
            status_code=403,
            content={"detail": "Origin validation failed"},
        )


app.add_middleware(CSRFOriginMiddleware)


@app.middleware("http")
async def session_cookie_middleware(request: Request, call_next):
    """Write session cookie updates queued by the auth dependencies."""
    response = await call_next(request)
    cookie = getattr(request.state, "session_cookie", None)
    if cookie is not None:
        cookie.apply(response)
    return response


@app.exception_handler(HTTPException)
async def auth_exception_handler(request: Request, exc: HTTPException):
    """
    Redirect to login page for 401 errors on browser requests.
    API requests (expecting JSON) still get the JSON error response.
    """
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        accept = request.headers.get("accept", "")
        if "text/html" in accept:
            return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)

    return JSONResponse(
        status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log unexpected faults and answer with a generic 500."""
    logger.exception(
        "Unhandled error: method=%s, path=%s", request.method, request.url.path
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


# Include routers
app.include_router(auth.router)
app.include_router(routes.router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
