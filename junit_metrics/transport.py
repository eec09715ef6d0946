"""InfluxDB transport for metric points.

The writer is an explicitly opened and closed resource: use it as a context
manager and every exit path, including a failed write, flushes and closes
the write API and the underlying client.
"""

import logging
from typing import Iterator, Optional, Sequence

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS

from .config import InfluxConfig
from .models import MetricPoint

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


def batched(points: Sequence[MetricPoint], size: int) -> Iterator[list[MetricPoint]]:
    """Yield consecutive groups of ``size`` points; order is preserved."""
    if size < 1:
        raise ValueError(f"batch size must be at least 1, got {size}")
    for start in range(0, len(points), size):
        yield list(points[start:start + size])


def to_influx_point(point: MetricPoint) -> Point:
    """Convert a :class:`MetricPoint` into an ``influxdb_client.Point``."""
    record = Point(point.measurement)
    for key, value in point.tags.items():
        record.tag(key, value)
    for key, value in point.fields.items():
        record.field(key, value)
    record.time(point.timestamp, WritePrecision.NS)
    return record


class InfluxWriter:
    """Writes metric points to one InfluxDB bucket in fixed-size batches."""

    def __init__(
        self,
        config: InfluxConfig,
        batch_size: int = DEFAULT_BATCH_SIZE,
        client: Optional[InfluxDBClient] = None,
    ):
        if batch_size < 1:
            raise ValueError(f"batch size must be at least 1, got {batch_size}")
        self.config = config
        self.batch_size = batch_size
        self._client = client
        self._write_api = None
        self._closed = False

    def open(self) -> "InfluxWriter":
        if self._closed:
            raise RuntimeError("InfluxWriter is closed")
        if self._write_api is not None:
            return self
        if self._client is None:
            logger.info(f"Connecting to InfluxDB at {self.config.url}...")
            self._client = InfluxDBClient(
                url=self.config.url,
                token=self.config.token,
                org=self.config.org,
                timeout=self.config.timeout_ms,
                verify_ssl=self.config.verify_ssl,
            )
        self._write_api = self._client.write_api(write_options=SYNCHRONOUS)
        return self

    def write_points(self, points: Sequence[MetricPoint]) -> int:
        """Write all points batch by batch; returns the number written."""
        self.open()
        total_batches = -(-len(points) // self.batch_size)
        written = 0
        for index, batch in enumerate(batched(points, self.batch_size), start=1):
            self._write_api.write(
                bucket=self.config.bucket,
                org=self.config.org,
                record=[to_influx_point(p) for p in batch],
            )
            written += len(batch)
            logger.debug(f"Wrote batch {index}/{total_batches}")
        return written

    def close(self) -> None:
        """Flush pending writes, then release the write API and client."""
        if self._closed:
            return
        self._closed = True
        try:
            if self._write_api is not None:
                self._write_api.flush()
                self._write_api.close()
        finally:
            self._write_api = None
            if self._client is not None:
                self._client.close()
                self._client = None

    def __enter__(self) -> "InfluxWriter":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
