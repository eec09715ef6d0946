"""Report upload flow: read, transform, decorate, write.

Shared by the CLI and the HTTP service.
"""

import json
import logging
from pathlib import Path
from typing import Callable, Union

from pydantic import BaseModel

from .config import InfluxConfig, Settings
from .models import MetricPoint, RunSummary
from .tags import decorate_points
from .transformer import TransformResult, parse_junit_xml, status_counts
from .transport import InfluxWriter

logger = logging.getLogger(__name__)

WriterFactory = Callable[[InfluxConfig, int], InfluxWriter]


class UploadResult(BaseModel):
    """Outcome of one upload run."""
    points_written: int = 0
    batches: int = 0
    dry_run: bool = False
    summary: RunSummary


def load_report(path: Union[str, Path]) -> TransformResult:
    """Read a JUnit XML file and transform it."""
    logger.info(f"Reading JUnit XML from: {path}")
    xml_content = Path(path).read_text(encoding="utf-8")
    logger.info("Parsing JUnit XML...")
    return parse_junit_xml(xml_content)


def summarize(result: TransformResult) -> RunSummary:
    metadata = result.metadata
    return RunSummary(
        name=metadata.name,
        uuid=metadata.uuid,
        timestamp=metadata.timestamp,
        total_tests=metadata.total_tests,
        failures=metadata.failures,
        errors=metadata.errors,
        total_duration=metadata.total_duration,
        points=len(result.points),
        status_counts=status_counts(result.statuses),
    )


def log_summary(summary: RunSummary) -> None:
    logger.info(f"Parsed {summary.points} test results")
    logger.info(
        f"Summary: {summary.total_tests} tests, "
        f"{summary.failures} failures, {summary.errors} errors"
    )
    logger.info(f"Status breakdown: {json.dumps(summary.status_counts)}")


def write_points(
    points: list[MetricPoint],
    config: InfluxConfig,
    batch_size: int,
    writer_factory: WriterFactory = InfluxWriter,
) -> int:
    """Write points through a writer that is closed on every exit path."""
    with writer_factory(config, batch_size) as writer:
        return writer.write_points(points)


def upload_report(
    settings: Settings,
    writer_factory: WriterFactory = InfluxWriter,
) -> UploadResult:
    """Run the full upload for the report named in ``settings``.

    Raises:
        ConfigError: required settings are missing.
        ReportParseError: the report is not readable JUnit XML.
    """
    settings.require()
    upload = settings.upload

    result = load_report(upload.junit_file)
    points = decorate_points(result.points, upload.runner_name, upload.tags)

    summary = summarize(result)
    log_summary(summary)

    batches = -(-len(points) // upload.batch_size)
    if upload.dry_run:
        logger.info("Dry run: skipping InfluxDB write")
        return UploadResult(batches=batches, dry_run=True, summary=summary)

    written = write_points(points, settings.influx, upload.batch_size, writer_factory)
    logger.info(f"✅ Successfully uploaded {written} test results to InfluxDB")
    return UploadResult(points_written=written, batches=batches, summary=summary)
