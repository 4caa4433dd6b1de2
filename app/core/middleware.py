"""
Middleware for request logging and error handling
"""
import time
import logging
import json
from typing import Callable
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.exceptions import AgendoException

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log every request and response with timing information"""

    SENSITIVE_HEADERS = ['authorization', 'cookie', 'x-api-key', 'api-key']
    SENSITIVE_FIELDS = ['password', 'old_password', 'new_password', 'validation_code', 'pix_key']
    MAX_BODY_LENGTH = 10000  # Maximum characters to log from request body

    def mask_sensitive_headers(self, headers: dict) -> dict:
        """Mask sensitive header values"""
        return {
            key: "***MASKED***" if key.lower() in self.SENSITIVE_HEADERS else value
            for key, value in headers.items()
        }

    def format_body(self, body: bytes) -> str:
        """Render a request body for the log, masking credentials"""
        if not body:
            return "Empty body"

        try:
            body_str = body.decode('utf-8')
        except UnicodeDecodeError:
            return f"<Binary data, size: {len(body)} bytes>"

        if len(body_str) > self.MAX_BODY_LENGTH:
            return f"{body_str[:self.MAX_BODY_LENGTH]}... [truncated, total size: {len(body_str)} chars]"

        try:
            json_body = json.loads(body_str)
        except json.JSONDecodeError:
            return body_str

        if isinstance(json_body, dict):
            for field in self.SENSITIVE_FIELDS:
                if field in json_body:
                    json_body[field] = "***MASKED***"
        return json.dumps(json_body, indent=2, ensure_ascii=False)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        logger.info("=" * 80)
        logger.info(f"🔵 REQUEST START: {request.method} {request.url.path}")
        logger.info(f"💻 Client: {request.client.host if request.client else 'Unknown'}")

        if request.query_params:
            logger.info(f"🔍 Query Params: {dict(request.query_params)}")

        headers = self.mask_sensitive_headers(dict(request.headers))
        logger.debug(f"📋 Headers: {json.dumps(headers, indent=2)}")

        if request.method in ["POST", "PUT", "PATCH"]:
            body_bytes = await request.body()
            logger.info(f"📦 Request Body: {self.format_body(body_bytes)}")

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            logger.error(f"❌ REQUEST FAILED: {request.method} {request.url.path}")
            logger.error(f"💥 Error: {str(e)}")
            logger.error(f"⏱️  Duration: {duration:.3f}s")
            logger.error("=" * 80)
            raise

        duration = time.time() - start_time
        logger.info(f"✅ Status Code: {response.status_code}")
        logger.info(f"⏱️  Duration: {duration:.3f}s")
        logger.info(f"🟢 REQUEST END: {request.method} {request.url.path}")
        logger.info("=" * 80)

        response.headers["X-Process-Time"] = str(duration)

        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware to handle exceptions globally"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except AgendoException as e:
            return JSONResponse(
                status_code=e.status_code,
                content={
                    "error": e.message,
                    "status_code": e.status_code,
                    "path": request.url.path,
                }
            )

        except ValueError as e:
            return JSONResponse(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                content={
                    "error": str(e),
                    "status_code": 422,
                    "path": request.url.path,
                }
            )

        except Exception as e:
            logger.exception(f"Unexpected error: {str(e)}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "Internal server error",
                    "status_code": 500,
                    "path": request.url.path,
                }
            )
