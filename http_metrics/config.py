import os
import logging
from dataclasses import dataclass
from typing import Tuple


def _split_prefix(raw: str) -> Tuple[str, ...]:
    return tuple(part for part in raw.split("/") if part)


class Settings:
    # logs
    LOG_DIR: str = os.getenv("LOG_DIR", "./logs")
    LOG_LEVEL: int = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    LOG_TO_FILE = os.getenv("LOG_TO_FILE", "false").lower() == "true"

    # metrics endpoint, "metrics" -> /metrics, "internal/metrics" -> /internal/metrics
    METRICS_ENDPOINT_PREFIX = _split_prefix(os.getenv("METRICS_ENDPOINT_PREFIX", "metrics"))


settings = Settings()


@dataclass(frozen=True)
class PrometheusSettings:
    """
    Settings of the metrics endpoint.

    endpoint_prefix is the path used for exporting metrics, as segments.
    The default ("metrics",) corresponds to /metrics.
    """

    endpoint_prefix: Tuple[str, ...] = ("metrics",)

    def __post_init__(self):
        prefix = self.endpoint_prefix
        if isinstance(prefix, str):
            prefix = _split_prefix(prefix)
        prefix = tuple(prefix)
        if not prefix or any(not segment or "/" in segment for segment in prefix):
            raise ValueError(f"Invalid metrics endpoint prefix: {self.endpoint_prefix!r}")
        object.__setattr__(self, "endpoint_prefix", prefix)

    @classmethod
    def from_env(cls) -> "PrometheusSettings":
        return cls(endpoint_prefix=settings.METRICS_ENDPOINT_PREFIX)
