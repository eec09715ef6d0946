"""JUnit report to ``test_result`` metric points.

One point per ``<testcase>``, in document order (suites, then test-cases
within each suite), plus a parallel list of status labels and the run
metadata read from the report root.
"""

import xml.etree.ElementTree as ET
from collections import Counter
from typing import Iterable, NamedTuple, Optional, Union

from .fields import parse_float, parse_integer, parse_timestamp, truncate_text
from .models import FieldValue, MetricPoint, RunMetadata, TestStatus
from .parser import FailureElement, RunElement, TestCaseElement, parse_xml, read_run


class TransformResult(NamedTuple):
    points: list[MetricPoint]
    statuses: list[TestStatus]
    metadata: RunMetadata


def _read_metadata(run: RunElement) -> RunMetadata:
    return RunMetadata(
        name=run.name,
        total_tests=parse_integer(run.tests),
        failures=parse_integer(run.failures),
        errors=parse_integer(run.errors),
        uuid=run.uuid,
        timestamp=parse_timestamp(run.timestamp),
        total_duration=parse_float(run.time),
    )


def _attach_text(fields: dict, prefix: str, failure: FailureElement) -> None:
    # Empty attributes are treated like missing ones
    if failure.message:
        fields[f"{prefix}_message"] = truncate_text(failure.message)
    if failure.type:
        fields[f"{prefix}_type"] = truncate_text(failure.type)
    if failure.details:
        fields[f"{prefix}_details"] = truncate_text(failure.details)


def _build_point(
    suite_name: Optional[str], testcase: TestCaseElement, metadata: RunMetadata
) -> tuple[MetricPoint, TestStatus]:
    tags = {
        "test_suite": suite_name,
        "test_name": testcase.name,
        "class_name": testcase.classname,
    }
    fields: dict[str, FieldValue] = {
        "duration": parse_float(testcase.time),
        "suite_total_tests": metadata.total_tests,
        "suite_failures": metadata.failures,
        "suite_errors": metadata.errors,
        "suite_total_duration": metadata.total_duration,
    }

    status = TestStatus.PASSED
    has_failure = False
    has_flaky_failure = False

    if testcase.flaky_failure is not None:
        has_flaky_failure = True
        status = TestStatus.FLAKY
        fields["flaky_duration"] = parse_float(testcase.flaky_failure.time)
        _attach_text(fields, "flaky", testcase.flaky_failure)

    # A hard failure overrides an earlier flaky status; has_flaky_failure stays set
    if testcase.failure is not None:
        has_failure = True
        status = TestStatus.FAILED
        _attach_text(fields, "failure", testcase.failure)

    tags["status"] = status.value
    fields["has_failure"] = 1 if has_failure else 0
    fields["has_flaky_failure"] = 1 if has_flaky_failure else 0

    point = MetricPoint(
        tags={k: v for k, v in tags.items() if v is not None},
        fields=fields,
        timestamp=parse_timestamp(testcase.timestamp, metadata.timestamp),
    )
    return point, status


def transform(tree: Union[ET.Element, ET.ElementTree]) -> TransformResult:
    """Convert a parsed JUnit document into metric points.

    Raises:
        JUnitStructureError: the document has no run element or no suites.
    """
    run = read_run(tree)
    metadata = _read_metadata(run)

    points: list[MetricPoint] = []
    statuses: list[TestStatus] = []

    for suite in run.suites:
        for testcase in suite.testcases:
            point, status = _build_point(suite.name, testcase, metadata)
            statuses.append(status)
            points.append(point)

    return TransformResult(points=points, statuses=statuses, metadata=metadata)


def parse_junit_xml(xml_content: Union[str, bytes]) -> TransformResult:
    """Parse JUnit XML text and transform it in one step."""
    return transform(parse_xml(xml_content))


def status_counts(statuses: Iterable[Union[TestStatus, str]]) -> dict[str, int]:
    """Count status labels, keyed by their string value in first-seen order."""
    counts = Counter(
        s.value if isinstance(s, TestStatus) else s for s in statuses
    )
    return dict(counts)
