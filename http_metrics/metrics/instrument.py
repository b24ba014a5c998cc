import inspect
import time
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from http_metrics.metrics.filters import ResponseFilter, accept_all
from http_metrics.metrics.registry import LatencyRecorder, observe_seconds

T = TypeVar("T")

Clock = Callable[[], int]
LabelFn = Callable[[Request], str]
Endpoint = Callable[[Request], Union[Response, Awaitable[Response]]]
AsyncEndpoint = Callable[[Request], Awaitable[Response]]


async def _call_endpoint(endpoint: Endpoint, request: Request) -> Response:
    if inspect.iscoroutinefunction(endpoint):
        return await endpoint(request)
    result = await run_in_threadpool(endpoint, request)
    if inspect.isawaitable(result):
        return await result
    return result


def instrument_handler_value_with_filter(
    response_filter: ResponseFilter,
    label_fn: LabelFn,
    endpoint: Endpoint,
    recorder: Optional[LatencyRecorder] = None,
    clock: Clock = time.monotonic_ns,
) -> AsyncEndpoint:
    """
    Instrument an endpoint, the filter can change some responses or drop others.

    The handler label is label_fn(request). The response returned by the
    endpoint is always the one handed back, the filter only decides which
    status, if any, gets measured. Nothing is recorded if the endpoint raises.
    """

    async def instrumented_endpoint(request: Request) -> Response:
        start = clock()
        response = await _call_endpoint(endpoint, request)

        measured = response_filter(response)
        if measured is not None:
            end = clock()
            observe_seconds(
                label_fn(request),
                request.method,
                str(measured.status_code),
                start,
                end,
                recorder=recorder,
            )

        return response

    return instrumented_endpoint


def instrument_handler_value(
    label_fn: LabelFn,
    endpoint: Endpoint,
    recorder: Optional[LatencyRecorder] = None,
    clock: Clock = time.monotonic_ns,
) -> AsyncEndpoint:
    """
    Instrument an endpoint, populating the handler label with label_fn(request).

    If the endpoint can return RawResponse values, use
    instrument_handler_value_with_filter(ignore_raw_responses, ...) instead.
    """
    return instrument_handler_value_with_filter(
        accept_all, label_fn, endpoint, recorder=recorder, clock=clock
    )


def instrument_app(
    handler: str,
    endpoint: Endpoint,
    recorder: Optional[LatencyRecorder] = None,
    clock: Clock = time.monotonic_ns,
) -> AsyncEndpoint:
    """Instrument an endpoint with a fixed handler label."""
    return instrument_handler_value(lambda _request: handler, endpoint, recorder=recorder, clock=clock)


def instrument_io(
    label: str,
    op: Callable[..., T],
    *args: Any,
    recorder: Optional[LatencyRecorder] = None,
    clock: Clock = time.monotonic_ns,
    **kwargs: Any,
) -> T:
    """
    Run op(*args, **kwargs) and record its duration under the handler label.

    Only successful runs are recorded, a failure propagates untimed.
    """
    start = clock()
    result = op(*args, **kwargs)
    end = clock()
    observe_seconds(label, None, None, start, end, recorder=recorder)
    return result


async def instrument_io_async(
    label: str,
    awaitable: Awaitable[T],
    recorder: Optional[LatencyRecorder] = None,
    clock: Clock = time.monotonic_ns,
) -> T:
    start = clock()
    result = await awaitable
    end = clock()
    observe_seconds(label, None, None, start, end, recorder=recorder)
    return result


def instrumented(
    label: str,
    recorder: Optional[LatencyRecorder] = None,
    clock: Clock = time.monotonic_ns,
):
    """Decorator timing a sync or async function with instrument_io."""

    def decorator(func):
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                return await instrument_io_async(
                    label, func(*args, **kwargs), recorder=recorder, clock=clock
                )

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            return instrument_io(label, func, *args, recorder=recorder, clock=clock, **kwargs)

        return wrapper

    return decorator


class InstrumentationMiddleware(BaseHTTPMiddleware):
    """
    Instrument a whole application.

    Pass either a fixed handler label or a label_fn. When used together with
    per-endpoint instrumentation the requests get measured twice.
    """

    def __init__(
        self,
        app: ASGIApp,
        handler: str = "app",
        label_fn: Optional[LabelFn] = None,
        response_filter: ResponseFilter = accept_all,
        recorder: Optional[LatencyRecorder] = None,
        clock: Clock = time.monotonic_ns,
    ):
        super().__init__(app)
        self.label_fn = label_fn if label_fn is not None else (lambda _request: handler)
        self.response_filter = response_filter
        self.recorder = recorder
        self.clock = clock

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        instrumented_next = instrument_handler_value_with_filter(
            self.response_filter,
            self.label_fn,
            call_next,
            recorder=self.recorder,
            clock=self.clock,
        )
        return await instrumented_next(request)
