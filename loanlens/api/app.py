# loanlens/api/app.py
from __future__ import annotations

import logging
import os
import time
import uuid
from typing import Literal

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from mangum import Mangum
from pydantic import BaseModel

from loanlens.common.pipeline import build_chart_payload, build_statistics_payload
from loanlens.workers.graph import run_pipeline
from loanlens.workers.graph.core.config import Settings
from loanlens.workers.graph.core.errors import LoanLensError
from loanlens.workers.graph.core.types import Dataset
from loanlens.workers.graph.io.cache import DatasetCache
from loanlens.workers.graph.nodes.charts import ChartType, build_chart_spec, render_chart

# ---- Env ----
settings = Settings.from_env()

# ---- Logging ----
logger = logging.getLogger("loanlens.api")
if not logger.handlers:
    logging.basicConfig(level=settings.log_level)
logger.setLevel(settings.log_level)

# ---- Cache ----
dataset_cache = DatasetCache(settings.cache_ttl)

# ---- App ----
app = FastAPI(title="LoanLens API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["*"],
    allow_credentials=False,
)


# ---- Models ----
class ChartImagesResponse(BaseModel):
    """Base64-encoded PNGs in the order the client places them."""
    chart1: str
    chart2: str
    chart3: str


class CacheRefreshResponse(BaseModel):
    invalidated: bool
    ttlSeconds: float


# ---- Helpers ----
def _fetch_dataset() -> Dataset:
    result = run_pipeline(settings, phases=("acquire", "ingest"))
    return result.dataset


def load_dataset() -> Dataset:
    return dataset_cache.get_or_load(_fetch_dataset)


# ---- Errors ----
@app.exception_handler(LoanLensError)
async def loanlens_error_handler(request: Request, exc: LoanLensError):
    logger.error(
        "request failed: %s",
        exc,
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
        },
    )
    return PlainTextResponse(exc.public_message, status_code=500)


# ---- Routes ----
@app.get("/health")
def health():
    return {"ok": True}


@app.get("/")
def index():
    index_path = os.path.join(settings.static_dir, "index.html")
    if not os.path.isfile(index_path):
        return PlainTextResponse("Presentation client not installed", status_code=404)
    return FileResponse(index_path)


@app.get("/api/dataset")
def get_dataset():
    dataset = load_dataset()
    logger.info("serving dataset", extra={"records": len(dataset), "skipped_rows": dataset.skipped_rows})
    return JSONResponse(content=dataset.to_json_rows())


@app.get("/api/statistics")
def get_statistics(
    breakdown_policy: Literal["drop", "other"] = Query(default="drop", alias="breakdownPolicy"),
):
    dataset = load_dataset()
    result = run_pipeline(
        settings,
        phases=("descriptive_stats",),
        dataset=dataset,
        breakdown_policy=breakdown_policy,
    )
    return build_statistics_payload(result.statistics)


@app.get("/api/chart-images", response_model=ChartImagesResponse)
def get_chart_images():
    dataset = load_dataset()
    result = run_pipeline(settings, phases=("charts",), dataset=dataset)
    return build_chart_payload(result.charts)


@app.get("/api/chart-images/{chart_type}")
def get_chart_image(chart_type: str):
    kind = ChartType.parse(chart_type)
    image = render_chart(build_chart_spec(load_dataset(), kind))
    return Response(content=image.png, media_type="image/png")


@app.post("/api/cache/refresh", response_model=CacheRefreshResponse)
def refresh_cache():
    dataset_cache.invalidate()
    return {"invalidated": True, "ttlSeconds": dataset_cache.ttl_seconds}


# ---- Middleware ----
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    try:
        response = await call_next(request)
        duration_ms = int((time.time() - start) * 1000)
        logger.info(
            "request completed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "request_id": request_id,
            },
        )
        response.headers.setdefault("x-request-id", request_id)
        return response
    except Exception:
        duration_ms = int((time.time() - start) * 1000)
        logger.exception(
            "request failed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "request_id": request_id,
                "duration_ms": duration_ms,
            },
        )
        raise


# ---- Static client (mounted last so the API routes take precedence) ----
if os.path.isdir(settings.static_dir):
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
else:
    logger.warning("static directory %s does not exist; presentation client disabled", settings.static_dir)


# Lambda entrypoint
handler = Mangum(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
