"""Data models for JUnit metric points and run metadata."""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

MEASUREMENT = "test_result"

FieldValue = Union[int, float, str]


class TestStatus(str, Enum):
    """Outcome classification of a single test-case."""
    __test__ = False  # prevent pytest collection

    PASSED = "passed"
    FAILED = "failed"
    FLAKY = "flaky"


class RunMetadata(BaseModel):
    """Run-level attributes read from the report root."""
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    total_tests: int = 0
    failures: int = 0
    errors: int = 0
    uuid: Optional[str] = None
    timestamp: datetime
    total_duration: float = 0.0


class MetricPoint(BaseModel):
    """One tagged, timestamped observation for a single test-case."""
    model_config = ConfigDict(frozen=True)

    measurement: str = MEASUREMENT
    tags: dict[str, str] = Field(default_factory=dict)
    fields: dict[str, FieldValue] = Field(default_factory=dict)
    timestamp: datetime

    @property
    def status(self) -> Optional[str]:
        return self.tags.get("status")

    def with_tags(self, extra: dict[str, str]) -> "MetricPoint":
        """Return a copy carrying ``extra`` on top of the existing tags."""
        return self.model_copy(update={"tags": {**self.tags, **extra}})


class RunSummary(BaseModel):
    """Run metadata plus the per-status breakdown, for logs and responses."""
    name: Optional[str] = None
    uuid: Optional[str] = None
    timestamp: datetime
    total_tests: int = 0
    failures: int = 0
    errors: int = 0
    total_duration: float = 0.0
    points: int = 0
    status_counts: dict[str, int] = Field(default_factory=dict)
