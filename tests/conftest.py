from __future__ import annotations

import pytest

from http_metrics.metrics.registry import LatencyRecorder, NamespacedRegistry


@pytest.fixture
def registry() -> NamespacedRegistry:
    return NamespacedRegistry()


@pytest.fixture
def recorder(registry: NamespacedRegistry) -> LatencyRecorder:
    return LatencyRecorder(registry)
