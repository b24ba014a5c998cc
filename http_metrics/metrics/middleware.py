from typing import List, Optional, Sequence

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from http_metrics.config import PrometheusSettings
from http_metrics.logger import get_logger
from http_metrics.metrics.registry import REGISTRY, NamespacedRegistry

logger = get_logger(__name__)

CONTENT_TYPE = "text/plain; version=0.0.4"


def path_segments(path: str) -> List[str]:
    return [segment for segment in path.split("/") if segment]


def match_prefix(prefix: Sequence[str], segments: Sequence[str]) -> Optional[List[str]]:
    """Segments left after the prefix, or None if the path is not under it."""
    prefix = list(prefix)
    if list(segments[: len(prefix)]) != prefix:
        return None
    return list(segments[len(prefix):])


def respond_with_available_routes(registry: NamespacedRegistry) -> Response:
    namespaces = registry.available_namespaces()
    body = "".join(f"{namespace}\n" for namespace in namespaces)
    return Response(content=body.encode("utf-8"), headers={"Content-Type": CONTENT_TYPE})


def respond_with_metrics(registry: NamespacedRegistry, segments: Sequence[str]) -> Response:
    metrics = registry.export_as_text("/".join(segments))
    return Response(content=metrics, headers={"Content-Type": CONTENT_TYPE})


async def route(
    settings: PrometheusSettings,
    call_next: RequestResponseEndpoint,
    request: Request,
    registry: NamespacedRegistry = REGISTRY,
) -> Response:
    """
    Serve GET /<prefix> and GET /<prefix>/<namespace...>, delegate the rest.

    /<prefix> lists the namespaces, one per line. /<prefix>/a/b exports the
    namespace "a/b", an unknown namespace gives an empty body.
    """
    if request.method != "GET":
        return await call_next(request)

    rest = match_prefix(settings.endpoint_prefix, path_segments(request.url.path))
    if rest is None:
        return await call_next(request)

    if not rest:
        logger.debug("Serving metric namespaces path=%s", request.url.path)
        return respond_with_available_routes(registry)

    logger.debug("Serving metrics namespace=%s", "/".join(rest))
    return respond_with_metrics(registry, rest)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Expose the metrics registry under settings.endpoint_prefix."""

    def __init__(
        self,
        app: ASGIApp,
        settings: Optional[PrometheusSettings] = None,
        registry: Optional[NamespacedRegistry] = None,
    ):
        super().__init__(app)
        self.settings = settings if settings is not None else PrometheusSettings.from_env()
        self.registry = registry if registry is not None else REGISTRY

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        return await route(self.settings, call_next, request, self.registry)
