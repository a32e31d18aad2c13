"""
HTTP middleware: security headers and request body size limit.
"""
from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse


async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "0"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["Referrer-Policy"] = "no-referrer"
    response.headers["Cross-Origin-Resource-Policy"] = "same-origin"
    response.headers["Content-Security-Policy"] = "default-src 'self'"
    return response


async def request_size_middleware(request: Request, call_next):
    max_size = request.app.state.settings.MAX_REQUEST_SIZE
    if request.method in ("POST", "PUT", "PATCH"):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > max_size:
            return JSONResponse(
                status_code=413,
                content={
                    "error": "request_too_large",
                    "message": f"Request body exceeds {max_size} bytes",
                },
            )
    return await call_next(request)
