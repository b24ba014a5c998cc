"""
Response filters decide whether a response is measured.

A filter returns None to drop the response from the metrics, or a response
whose status code is recorded. It never changes what is sent to the client.
"""

from typing import Callable, Optional

from starlette.responses import Response

from http_metrics.metrics.responses import RawResponse

ResponseFilter = Callable[[Response], Optional[Response]]


def accept_all(response: Response) -> Optional[Response]:
    return response


def ignore_raw_responses(response: Response) -> Optional[Response]:
    """
    Drop RawResponse values from the metrics.

    The status of a raw response is the one of its backup, for example a 500
    on a websocket-like endpoint, so every exchange would be counted as that
    status whatever really happened on the connection.
    """
    if isinstance(response, RawResponse):
        return None
    return response
