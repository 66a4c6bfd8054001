import logging
import re

from starlette.datastructures import Headers
from starlette.responses import JSONResponse

from tasktrail import config
from tasktrail.exceptions import PayloadTooLarge

logger = logging.getLogger(__name__)

UPLOAD_PATH = re.compile(r"^/tasks/\d+/upload/?$")
# room for multipart boundaries and part headers around the file itself
MULTIPART_OVERHEAD = 64 * 1024


def _too_large_detail() -> str:
    limit_mb = config.MAX_UPLOAD_SIZE / (1024 * 1024)
    return f"File exceeds the maximum size of {limit_mb:.0f}MB"


class UploadSizeLimitMiddleware:
    """
    ASGI middleware capping the request body of attachment uploads.

    A declared Content-Length over the ceiling is refused before anything is
    read. Bodies without one (chunked) are counted as they arrive and the
    request fails with 413 as soon as the ceiling is crossed, so nothing past
    it is spooled to disk.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope["method"] != "POST" or not UPLOAD_PATH.match(scope["path"]):
            return await self.app(scope, receive, send)

        ceiling = config.MAX_UPLOAD_SIZE + MULTIPART_OVERHEAD
        length = Headers(scope=scope).get("content-length")
        if length and length.isdigit() and int(length) > ceiling:
            logger.warning("Rejected upload to %s: Content-Length %s", scope["path"], length)
            response = JSONResponse(status_code=413, content={"detail": _too_large_detail()})
            return await response(scope, receive, send)

        received = 0

        async def counting_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > ceiling:
                    logger.warning("Aborted upload to %s after %s bytes", scope["path"], received)
                    raise PayloadTooLarge(_too_large_detail())
            return message

        await self.app(scope, counting_receive, send)
