"""JUnit XML to InfluxDB test metrics.

Turns every test-case of a JUnit report into one ``test_result`` point
(tags: suite, name, class, status; fields: duration, suite counters,
failure and flaky-failure details) and writes the points to InfluxDB in
batches.
"""

from .fields import parse_float, parse_integer, parse_timestamp, truncate_text
from .models import MetricPoint, RunMetadata, RunSummary, TestStatus
from .parser import JUnitStructureError, ReportParseError
from .transformer import TransformResult, parse_junit_xml, status_counts, transform

__all__ = [
    "JUnitStructureError",
    "MetricPoint",
    "ReportParseError",
    "RunMetadata",
    "RunSummary",
    "TestStatus",
    "TransformResult",
    "parse_float",
    "parse_integer",
    "parse_junit_xml",
    "parse_timestamp",
    "status_counts",
    "transform",
    "truncate_text",
]
__version__ = "0.1.0"
