import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from http_metrics.config import PrometheusSettings
from http_metrics.logger import get_logger
from http_metrics.metrics import (
    REGISTRY,
    LatencyRecorder,
    NamespacedRegistry,
    PrometheusMiddleware,
    RawResponse,
    ignore_raw_responses,
    instrument_app,
    instrument_handler_value,
    instrument_handler_value_with_filter,
    instrument_io,
)

logger = get_logger(__name__)

JOBS_NAMESPACE = "jobs"
# job names end up as label values, so only these are accepted
KNOWN_JOBS = frozenset({"default", "nightly", "cleanup"})


def run_job(name: str, seconds: float = 0.0) -> dict:
    if seconds:
        time.sleep(seconds)
    return {"job": name, "status": "done"}


def create_app(
    settings: Optional[PrometheusSettings] = None,
    registry: Optional[NamespacedRegistry] = None,
) -> FastAPI:
    registry = registry if registry is not None else REGISTRY
    recorder = LatencyRecorder(registry)

    jobs_total = registry.counter(
        JOBS_NAMESPACE,
        "jobs_runs_total",
        "Total jobs run by this service",
        ["job"],
    )

    app = FastAPI(title="HTTP Metrics Demo", version="1.0.0")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    async def work(request: Request):
        name = request.path_params["name"]
        if name == "missing":
            return JSONResponse({"error": "not_found"}, status_code=404)
        return PlainTextResponse(f"worked on {name}")

    def run(request: Request):
        name = request.query_params.get("name", "default")
        if name not in KNOWN_JOBS:
            logger.warning("unknown job name=%s", name)
            return JSONResponse({"error": "unknown_job", "known_jobs": sorted(KNOWN_JOBS)}, status_code=400)
        result = instrument_io(f"job:{name}", run_job, name, recorder=recorder)
        jobs_total.labels(job=name).inc()
        logger.info("job finished name=%s", name)
        return JSONResponse(result)

    async def raw_echo(receive, send):
        await send({"type": "http.response.start", "status": 200, "headers": []})
        await send({"type": "http.response.body", "body": b"raw"})

    async def raw(request: Request):
        return RawResponse(raw_echo, PlainTextResponse("raw not supported", status_code=500))

    app.add_route("/work/{name}", instrument_app("/work/{name}", work, recorder=recorder), methods=["GET"])
    app.add_route("/jobs/run", instrument_handler_value(lambda _r: "jobs", run, recorder=recorder), methods=["POST"])
    app.add_route(
        "/raw",
        instrument_handler_value_with_filter(ignore_raw_responses, lambda _r: "raw", raw, recorder=recorder),
        methods=["GET"],
    )

    app.add_middleware(
        PrometheusMiddleware,
        settings=settings if settings is not None else PrometheusSettings.from_env(),
        registry=registry,
    )

    logger.info("HTTP Metrics Demo started")
    return app


app = create_app()
