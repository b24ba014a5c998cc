import threading
from fractions import Fraction
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

from http_metrics.errors import RegistrationConflict
from http_metrics.logger import get_logger

logger = get_logger(__name__)

NANOS_PER_SECOND = 1_000_000_000

# === HTTP request latency ===
REQUEST_LATENCY_NAMESPACE = "http/requests"
REQUEST_LATENCY_NAME = "http_request_duration_seconds"
REQUEST_LATENCY_HELP = "The HTTP request latencies in seconds."
REQUEST_LATENCY_LABELS = ("handler", "method", "status_code")


class NamespacedRegistry:
    """
    A set of prometheus_client registries addressed by namespace.

    Each namespace ("http/requests", "jobs", ...) has its own CollectorRegistry
    so it can be exported on its own. Registration is idempotent: asking again
    for a metric with the same name and shape returns the first handle.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._registries: Dict[str, CollectorRegistry] = {}
        self._metrics: Dict[Tuple[str, str], object] = {}
        self._shapes: Dict[Tuple[str, str], tuple] = {}

    def register_or_get(
        self,
        namespace: str,
        name: str,
        factory: Callable[[CollectorRegistry], object],
        shape: tuple,
    ):
        key = (namespace, name)
        with self._lock:
            if key in self._metrics:
                existing = self._shapes[key]
                if existing != shape:
                    raise RegistrationConflict(namespace, name, existing, shape)
                return self._metrics[key]

            registry = self._registries.get(namespace)
            if registry is None:
                registry = CollectorRegistry(auto_describe=True)
                self._registries[namespace] = registry

            metric = factory(registry)
            self._metrics[key] = metric
            self._shapes[key] = shape
            logger.debug("Registered metric %s in namespace %s", name, namespace)
            return metric

    def histogram(
        self,
        namespace: str,
        name: str,
        documentation: str,
        labelnames: Sequence[str] = (),
        buckets: Sequence[float] = Histogram.DEFAULT_BUCKETS,
    ) -> Histogram:
        labelnames = tuple(labelnames)
        buckets = tuple(float(b) for b in buckets)
        return self.register_or_get(
            namespace,
            name,
            lambda registry: Histogram(
                name, documentation, labelnames, registry=registry, buckets=buckets
            ),
            ("histogram", labelnames, buckets),
        )

    def counter(
        self, namespace: str, name: str, documentation: str, labelnames: Sequence[str] = ()
    ) -> Counter:
        labelnames = tuple(labelnames)
        return self.register_or_get(
            namespace,
            name,
            lambda registry: Counter(name, documentation, labelnames, registry=registry),
            ("counter", labelnames),
        )

    def gauge(
        self, namespace: str, name: str, documentation: str, labelnames: Sequence[str] = ()
    ) -> Gauge:
        labelnames = tuple(labelnames)
        return self.register_or_get(
            namespace,
            name,
            lambda registry: Gauge(name, documentation, labelnames, registry=registry),
            ("gauge", labelnames),
        )

    def get(self, namespace: str) -> Optional[CollectorRegistry]:
        with self._lock:
            return self._registries.get(namespace)

    def available_namespaces(self) -> List[str]:
        with self._lock:
            return sorted(self._registries)

    def export_as_text(self, namespace: str) -> bytes:
        registry = self.get(namespace)
        if registry is None:
            return b""
        return generate_latest(registry)


REGISTRY = NamespacedRegistry()


class LatencyRecorder:
    """Owns the request latency histogram, keyed by (handler, method, status_code)."""

    def __init__(self, registry: Optional[NamespacedRegistry] = None):
        self.registry = registry if registry is not None else REGISTRY
        self.histogram = self.registry.histogram(
            REQUEST_LATENCY_NAMESPACE,
            REQUEST_LATENCY_NAME,
            REQUEST_LATENCY_HELP,
            REQUEST_LATENCY_LABELS,
        )

    def observe(
        self,
        handler: str,
        method: Optional[str],
        status: Optional[str],
        seconds: float,
    ) -> None:
        self.histogram.labels(handler, method or "", status or "").observe(seconds)


_recorder: Optional[LatencyRecorder] = None
_recorder_lock = threading.Lock()


def get_latency_recorder() -> LatencyRecorder:
    """Process-wide recorder on REGISTRY, created on first use."""
    global _recorder
    if _recorder is None:
        with _recorder_lock:
            if _recorder is None:
                _recorder = LatencyRecorder(REGISTRY)
    return _recorder


def nanos_to_seconds(nanos: int) -> float:
    return float(Fraction(nanos, NANOS_PER_SECOND))


def observe_seconds(
    handler: str,
    method: Optional[str],
    status: Optional[str],
    start: int,
    end: int,
    recorder: Optional[LatencyRecorder] = None,
) -> None:
    """
    Record an event to the request latency metric.

    start and end are monotonic clock readings in nanoseconds. The interval is
    not clamped, a clock going backwards shows up as a negative sample.
    """
    recorder = recorder if recorder is not None else get_latency_recorder()
    recorder.observe(handler, method, status, nanos_to_seconds(end - start))
