from typing import Awaitable, Callable

from starlette.responses import Response
from starlette.types import Message, Receive, Scope, Send

from http_metrics.logger import get_logger

logger = get_logger(__name__)

RawHandler = Callable[[Receive, Send], Awaitable[None]]


class RawResponse(Response):
    """
    A response that takes over the connection and writes ASGI messages itself.

    It carries a backup response which is sent when the raw handler fails
    before sending anything. status_code and headers come from the backup,
    so they are placeholders and say nothing about what the handler sends.
    """

    def __init__(self, handler: RawHandler, backup: Response):
        self.handler = handler
        self.backup = backup
        self.status_code = backup.status_code
        self.background = None
        self.body = backup.body
        self.raw_headers = list(backup.raw_headers)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        sent = False

        async def tracked_send(message: Message) -> None:
            nonlocal sent
            sent = True
            await send(message)

        try:
            await self.handler(receive, tracked_send)
        except Exception:
            if sent:
                raise
            logger.warning(
                "Raw response handler failed, sending backup status=%s",
                self.backup.status_code,
                exc_info=True,
            )
            await self.backup(scope, receive, send)
