"""Prometheus metrics middleware for Starlette / FastAPI applications."""

from http_metrics.config import PrometheusSettings

__version__ = "1.0.0"

__all__ = ["PrometheusSettings", "__version__"]
