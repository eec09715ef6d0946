"""Run-level tag decoration for metric points."""

import json
import logging
from typing import Any, Iterable, Optional

from .models import MetricPoint

logger = logging.getLogger(__name__)


def parse_tags(raw: Optional[str]) -> dict[str, Any]:
    """Parse the custom tag JSON object.

    Unparseable input is not fatal: it is logged and treated as no tags.
    """
    if not raw or raw.strip() in ("", "{}"):
        return {}
    try:
        tags = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse tags: {e}")
        return {}
    if not isinstance(tags, dict):
        logger.warning(f"Failed to parse tags: expected a JSON object, got {type(tags).__name__}")
        return {}
    return tags


def decorate_points(
    points: Iterable[MetricPoint],
    runner_name: Optional[str],
    tags: Optional[dict[str, Any]] = None,
) -> list[MetricPoint]:
    """Add ``runner_name`` and the string-valued custom tags to every point."""
    extra: dict[str, str] = {}
    if runner_name:
        extra["runner_name"] = runner_name

    for key, value in (tags or {}).items():
        if isinstance(value, str):
            extra[key] = value
        else:
            logger.warning(f'Tag "{key}" has non-string value and will be skipped')

    return [point.with_tags(extra) for point in points]
