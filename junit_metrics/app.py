"""JUnit Metrics ingestion — FastAPI application.

Accepts JUnit XML report uploads over HTTP, converts them into
``test_result`` points and writes them to InfluxDB.

Run with:
    uvicorn junit_metrics.app:app --port 8080
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from . import __version__
from .config import Settings, get_config
from .models import MetricPoint, RunSummary
from .parser import ReportParseError
from .service import summarize, write_points
from .tags import decorate_points, parse_tags
from .transformer import TransformResult, parse_junit_xml
from .transport import batched

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

settings: Optional[Settings] = None


class ParseResponse(BaseModel):
    """POST /parse response."""
    summary: RunSummary
    points: list[MetricPoint]


class IngestResponse(BaseModel):
    """POST /ingest/xml response."""
    status: str = "ok"
    points_written: int = 0
    batches: int = 0
    summary: RunSummary


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load configuration on startup."""
    global settings
    settings = get_config()
    logger.info(f"JUnit Metrics v{app.version} started")
    if settings.influx.is_configured:
        logger.info(f"InfluxDB target: {settings.influx.url} bucket={settings.influx.bucket}")
    else:
        logger.warning(f"InfluxDB not configured, missing: {settings.influx.missing()}")
    yield
    logger.info("Shutting down")


app = FastAPI(
    title="JUnit Metrics",
    description="JUnit XML test results to InfluxDB time series",
    version=__version__,
    lifespan=lifespan,
)


async def _read_report(file: UploadFile) -> TransformResult:
    content = await file.read()
    try:
        return parse_junit_xml(content)
    except ReportParseError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ---------------------------------------------------------------------------
# Health Check
# ---------------------------------------------------------------------------

@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "service": "junit-metrics",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "influx_configured": bool(settings and settings.influx.is_configured),
    }


# ---------------------------------------------------------------------------
# Parse (preview, nothing is written)
# ---------------------------------------------------------------------------

@app.post("/parse", response_model=ParseResponse)
async def parse_report(file: UploadFile = File(...)):
    """Return the points a report would produce, without writing them."""
    result = await _read_report(file)
    return ParseResponse(summary=summarize(result), points=result.points)


# ---------------------------------------------------------------------------
# Ingest (JUnit XML file upload)
# ---------------------------------------------------------------------------

@app.post("/ingest/xml", response_model=IngestResponse)
async def ingest_xml(
    file: UploadFile = File(...),
    runner_name: str = Form(...),
    tags: str = Form("{}"),
):
    """Ingest a raw JUnit XML file into InfluxDB."""
    if settings is None or not settings.influx.is_configured:
        raise HTTPException(status_code=503, detail="InfluxDB is not configured")

    result = await _read_report(file)
    summary = summarize(result)
    points = decorate_points(result.points, runner_name, parse_tags(tags))
    batch_size = settings.upload.batch_size

    try:
        written = await run_in_threadpool(write_points, points, settings.influx, batch_size)
    except Exception as e:
        logger.error(f"InfluxDB write failed: {e}")
        raise HTTPException(status_code=502, detail=f"InfluxDB write failed: {e}")

    logger.info(
        f"Ingested {summary.name or 'report'} runner={runner_name}: "
        f"{written} points, status breakdown {summary.status_counts}"
    )
    return IngestResponse(
        points_written=written,
        batches=sum(1 for _ in batched(points, batch_size)),
        summary=summary,
    )
