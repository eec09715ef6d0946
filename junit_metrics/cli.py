"""Command-line uploader for JUnit XML reports.

Usage (CI):
    junit-metrics --junit-file report.xml --runner-name linux-docker \\
        --influx-url https://influx.example.com --influx-org ci \\
        --influx-bucket tests --tags '{"branch": "main"}'

Usage (local check, nothing is written):
    python -m junit_metrics --junit-file report.xml --runner-name local --dry-run

Every option can also come from the config file, CONFIG__SECTION__KEY
variables or the action's INPUT_<NAME> variables (see junit_metrics.config).
The token is best passed as INFLUX_TOKEN.
"""

import argparse
import logging
import sys
from typing import Optional

from .config import load_config
from .service import upload_report
from .tags import parse_tags

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="junit-metrics",
        description="Upload JUnit XML test results to InfluxDB",
    )
    parser.add_argument("--junit-file", help="Path to the JUnit XML report")
    parser.add_argument("--influx-url", help="InfluxDB URL")
    parser.add_argument("--influx-org", help="InfluxDB organization")
    parser.add_argument("--influx-bucket", help="InfluxDB bucket")
    parser.add_argument("--influx-token", help="InfluxDB API token (prefer INFLUX_TOKEN)")
    parser.add_argument("--runner-name", help="Runner name tag added to every point")
    parser.add_argument("--tags", help="Custom tags as a JSON object of strings")
    parser.add_argument("--batch-size", type=int, help="Points per write request (default 100)")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--dry-run", action="store_true", help="Parse and summarize without writing")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")
    return parser


def _apply_args(settings, args) -> None:
    overrides = {
        ("upload", "junit_file"): args.junit_file,
        ("upload", "runner_name"): args.runner_name,
        ("upload", "batch_size"): args.batch_size,
        ("influx", "url"): args.influx_url,
        ("influx", "org"): args.influx_org,
        ("influx", "bucket"): args.influx_bucket,
        ("influx", "token"): args.influx_token,
    }
    for (section, key), value in overrides.items():
        if value is not None:
            setattr(getattr(settings, section), key, value)
    if args.tags is not None:
        settings.upload.tags = parse_tags(args.tags)
    if args.dry_run:
        settings.upload.dry_run = True
    if args.log_level:
        settings.log_level = args.log_level


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_config(args.config)
        _apply_args(settings, args)
        logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
        upload_report(settings)
    except Exception as e:
        if not logging.getLogger().handlers:
            logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error(f"Action failed: {e}")
        logger.debug("Traceback", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
