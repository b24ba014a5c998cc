from .filters import ResponseFilter, accept_all, ignore_raw_responses
from .instrument import (
    InstrumentationMiddleware,
    instrument_app,
    instrument_handler_value,
    instrument_handler_value_with_filter,
    instrument_io,
    instrument_io_async,
    instrumented,
)
from .middleware import PrometheusMiddleware, route
from .registry import (
    REGISTRY,
    LatencyRecorder,
    NamespacedRegistry,
    get_latency_recorder,
    observe_seconds,
)
from .responses import RawResponse

__all__ = [
    "REGISTRY",
    "InstrumentationMiddleware",
    "LatencyRecorder",
    "NamespacedRegistry",
    "PrometheusMiddleware",
    "RawResponse",
    "ResponseFilter",
    "accept_all",
    "get_latency_recorder",
    "ignore_raw_responses",
    "instrument_app",
    "instrument_handler_value",
    "instrument_handler_value_with_filter",
    "instrument_io",
    "instrument_io_async",
    "instrumented",
    "observe_seconds",
    "route",
]
