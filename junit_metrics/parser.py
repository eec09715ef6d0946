"""JUnit XML reading into typed element records.

Handles the ``<testsuites>`` wrapper format and, like most CI collectors, a
standalone ``<testsuite>`` root. Attribute values are kept as the raw text
found in the document (``None`` when absent); conversion to numbers and
timestamps happens in the transformer via :mod:`junit_metrics.fields`.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Optional, Union


class ReportParseError(Exception):
    """The report could not be read as XML."""


class JUnitStructureError(ReportParseError):
    """The XML is well-formed but is not a JUnit run document."""


@dataclass(frozen=True)
class FailureElement:
    """A ``<failure>`` or ``<flakyFailure>`` child of a test-case."""
    message: Optional[str] = None
    type: Optional[str] = None
    details: Optional[str] = None
    time: Optional[str] = None


@dataclass(frozen=True)
class TestCaseElement:
    __test__ = False  # prevent pytest collection

    name: Optional[str] = None
    classname: Optional[str] = None
    time: Optional[str] = None
    timestamp: Optional[str] = None
    failure: Optional[FailureElement] = None
    flaky_failure: Optional[FailureElement] = None


@dataclass(frozen=True)
class SuiteElement:
    name: Optional[str] = None
    testcases: list[TestCaseElement] = field(default_factory=list)


@dataclass(frozen=True)
class RunElement:
    """The report root: run attributes plus its suites in document order."""
    name: Optional[str] = None
    tests: Optional[str] = None
    failures: Optional[str] = None
    errors: Optional[str] = None
    uuid: Optional[str] = None
    timestamp: Optional[str] = None
    time: Optional[str] = None
    suites: list[SuiteElement] = field(default_factory=list)


def parse_xml(xml_content: Union[str, bytes]) -> ET.Element:
    """Parse report text into an element tree root."""
    try:
        return ET.fromstring(xml_content)
    except ET.ParseError as e:
        raise ReportParseError(f"Invalid XML: {e}") from e


def _read_failure(el: Optional[ET.Element]) -> Optional[FailureElement]:
    if el is None:
        return None
    text = "".join(el.itertext())
    return FailureElement(
        message=el.get("message"),
        type=el.get("type"),
        details=text if text.strip() else None,
        time=el.get("time"),
    )


def _read_testcase(tc_el: ET.Element) -> TestCaseElement:
    return TestCaseElement(
        name=tc_el.get("name"),
        classname=tc_el.get("classname"),
        time=tc_el.get("time"),
        timestamp=tc_el.get("timestamp"),
        # Only the first child of each kind counts
        failure=_read_failure(tc_el.find("failure")),
        flaky_failure=_read_failure(tc_el.find("flakyFailure")),
    )


def _read_suite(suite_el: ET.Element) -> SuiteElement:
    return SuiteElement(
        name=suite_el.get("name"),
        testcases=[_read_testcase(tc) for tc in suite_el.findall("testcase")],
    )


def read_run(tree: Union[ET.Element, ET.ElementTree]) -> RunElement:
    """Read a parsed report into a :class:`RunElement`.

    Raises:
        JUnitStructureError: the root is not a run element, or the run
            contains no suites.
    """
    root = tree.getroot() if isinstance(tree, ET.ElementTree) else tree
    if root is None:
        raise JUnitStructureError("Document has no root element")

    if root.tag == "testsuites":
        suite_elements = root.findall("testsuite")
    elif root.tag == "testsuite":
        suite_elements = [root]
    else:
        raise JUnitStructureError(
            f"Expected <testsuites> root element, found <{root.tag}>"
        )

    if not suite_elements:
        raise JUnitStructureError("Run element contains no <testsuite> elements")

    return RunElement(
        name=root.get("name"),
        tests=root.get("tests"),
        failures=root.get("failures"),
        errors=root.get("errors"),
        uuid=root.get("uuid"),
        timestamp=root.get("timestamp"),
        time=root.get("time"),
        suites=[_read_suite(s) for s in suite_elements],
    )
