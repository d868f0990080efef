"""Request logging and upload size middleware."""
import time

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from quillpost.core.config import settings
from quillpost.core.errors import PayloadTooLargeError
from quillpost.core.logger import logger

_QUIET_PATHS = {"/health", "/api/v1/health", "/metrics"}


class UploadSizeLimitMiddleware:
    """Caps multipart request bodies before the form parser reads them.

    A declared ``Content-Length`` over the ceiling is refused up front.
    Bodies without one (chunked uploads) are counted as they arrive and
    cut off with a 413 as soon as the ceiling is passed.
    """

    def __init__(self, app: ASGIApp, max_bytes: int | None = None):
        self.app = app
        self.max_bytes = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes

    def too_large_detail(self) -> str:
        return f"File too large. Max {self.max_bytes / (1024 * 1024):g}MB"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        headers = Headers(scope=scope)
        if not headers.get("content-type", "").startswith("multipart/form-data"):
            await self.app(scope, receive, send)
            return

        declared = headers.get("content-length")
        if declared is not None:
            if not declared.isdigit():
                response = JSONResponse({"detail": "Invalid Content-Length"}, status_code=status.HTTP_400_BAD_REQUEST)
                await response(scope, receive, send)
                return
            if int(declared) > self.max_bytes:
                logger.bind(path=scope["path"], content_length=int(declared)).warning("upload_rejected_too_large")
                response = JSONResponse(
                    {"detail": self.too_large_detail()}, status_code=status.HTTP_413_CONTENT_TOO_LARGE
                )
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    logger.bind(path=scope["path"], received=received).warning("upload_rejected_too_large")
                    # surfaces through the form parser as a 413 response
                    raise PayloadTooLargeError(self.too_large_detail())
            return message

        await self.app(scope, limited_receive, send)


async def log_requests(request: Request, call_next):
    if request.url.path in _QUIET_PATHS:
        return await call_next(request)

    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.bind(
            method=request.method,
            path=request.url.path,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        ).exception("http_request_failed")
        raise

    logger.bind(
        method=request.method,
        path=request.url.path,
        query=request.url.query,
        status=response.status_code,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent", ""),
    ).info("http_request")
    return response
