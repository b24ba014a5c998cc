from __future__ import annotations

from typing import Iterable

from http_metrics.metrics.registry import (
    REQUEST_LATENCY_NAME,
    REQUEST_LATENCY_NAMESPACE,
    NamespacedRegistry,
)


class FakeClock:
    """Returns the given nanosecond readings in order."""

    def __init__(self, readings: Iterable[int]):
        self._readings = iter(readings)
        self.calls = 0

    def __call__(self) -> int:
        self.calls += 1
        return next(self._readings)


def latency_sample(
    registry: NamespacedRegistry,
    suffix: str,
    handler: str,
    method: str = "",
    status: str = "",
) -> float | None:
    collector = registry.get(REQUEST_LATENCY_NAMESPACE)
    if collector is None:
        return None
    return collector.get_sample_value(
        f"{REQUEST_LATENCY_NAME}_{suffix}",
        {"handler": handler, "method": method, "status_code": status},
    )


def latency_label_sets(registry: NamespacedRegistry) -> set[tuple[str, str, str]]:
    collector = registry.get(REQUEST_LATENCY_NAMESPACE)
    if collector is None:
        return set()
    return {
        (sample.labels["handler"], sample.labels["method"], sample.labels["status_code"])
        for metric in collector.collect()
        for sample in metric.samples
        if sample.name == f"{REQUEST_LATENCY_NAME}_count"
    }
