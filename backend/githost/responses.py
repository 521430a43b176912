"""
Responses for the git gateway.

GitServiceResponse streams a transport subprocess: the request body is fed
into the process's stdin as it arrives and stdout is forwarded to the client
chunk by chunk. The response start is held back until the process produces
output, so a process that fails immediately still yields a plain error
response instead of a truncated stream.
"""

import asyncio
import logging
import zlib
from typing import Awaitable, Callable

from fastapi.responses import PlainTextResponse, Response
from starlette.types import Receive, Scope, Send

from githost.exceptions import (
    GitHostError,
    GitProcessError,
    RepositoryExistsError,
    RepositoryNotFoundError,
    RepositoryValidationError,
)
from githost.services.process import GitProcess

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


def error_status(exc: GitHostError) -> int:
    if isinstance(exc, RepositoryValidationError):
        return 400
    if isinstance(exc, RepositoryNotFoundError):
        return 404
    if isinstance(exc, RepositoryExistsError):
        return 409
    return 500


def error_response(exc: GitHostError) -> PlainTextResponse:
    """Plain-text error response carrying the error description."""
    status_code = error_status(exc)
    if status_code >= 500:
        logger.error(f"request failed: {exc}")
    else:
        logger.info(f"request rejected: {exc}")
    return PlainTextResponse(str(exc), status_code=status_code)


class GitServiceResponse(Response):
    """Streams the stdout of a git transport process as the response body."""

    def __init__(
        self,
        start_process: Callable[[], Awaitable[GitProcess]],
        media_type: str,
        prelude: bytes = b"",
        stream_request_body: bool = False,
        content_encoding: str | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.start_process = start_process
        self.prelude = prelude
        self.stream_request_body = stream_request_body
        self.gzip_body = (content_encoding or "").strip().lower() in ("gzip", "x-gzip")
        self.status_code = 200
        self.media_type = media_type
        self.background = None
        self.init_headers({**NO_CACHE_HEADERS, **(headers or {})})
        self.client_disconnected = False
        self.request_error: GitHostError | None = None

    async def _pump_request(self, receive: Receive, process: GitProcess) -> None:
        """Feed the request body into stdin, then watch for the client going away."""
        decompressor = zlib.decompressobj(16 + zlib.MAX_WBITS) if self.gzip_body else None
        feeding = self.stream_request_body

        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                self.client_disconnected = True
                process.kill()
                return
            if message["type"] != "http.request" or not feeding:
                continue

            more_body = message.get("more_body", False)
            try:
                body = message.get("body", b"")
                if decompressor is not None:
                    body = decompressor.decompress(body)
                    if not more_body:
                        body += decompressor.flush()
                if body:
                    await process.write(body)
            except zlib.error as e:
                self.request_error = GitProcessError(
                    process.args, None, str(e), message="could not decompress request body"
                )
                process.kill()
                feeding = False
                continue
            except (BrokenPipeError, ConnectionResetError):
                # Exit status reports why git stopped reading
                logger.debug(f"{' '.join(process.args[:2])} closed stdin before the request body ended")
                feeding = False
                continue

            if not more_body:
                process.close_stdin()
                feeding = False

    async def _send_start(self, send: Send) -> None:
        await send({
            "type": "http.response.start",
            "status": self.status_code,
            "headers": self.raw_headers,
        })

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            process = await self.start_process()
        except GitHostError as e:
            await error_response(e)(scope, receive, send)
            return

        pump = asyncio.create_task(self._pump_request(receive, process))
        started = False
        try:
            first = await process.read()
            if not first:
                await process.wait()

            await self._send_start(send)
            started = True
            await send({"type": "http.response.body", "body": self.prelude + first, "more_body": True})

            if first:
                while True:
                    chunk = await process.read()
                    if not chunk:
                        break
                    await send({"type": "http.response.body", "body": chunk, "more_body": True})
                await process.wait()

            await send({"type": "http.response.body", "body": b"", "more_body": False})
        except GitProcessError as e:
            if self.client_disconnected:
                logger.warning(f"client disconnected, {' '.join(process.args[:2])} terminated")
                return
            error = self.request_error or e
            if started:
                raise error
            await error_response(error)(scope, receive, send)
        finally:
            pump.cancel()
            await process.terminate()
