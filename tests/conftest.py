"""
JUnit Metrics Test Configuration

Shared fixtures for all tests.
"""
import os
from unittest.mock import MagicMock, patch

import pytest

from junit_metrics.config import InfluxConfig, Settings, UploadConfig
from tests.fixtures.reports import SAMPLE_REPORT


# =============================================================================
# FIXTURES: Environment
# =============================================================================

@pytest.fixture(autouse=True)
def clean_env(tmp_path):
    """Isolate tests from config env vars and any config file in the cwd."""
    env = {
        k: v for k, v in os.environ.items()
        if not k.startswith(("CONFIG__", "INPUT_", "INFLUX_", "LOG_LEVEL"))
    }
    env["JUNIT_METRICS_CONFIG"] = str(tmp_path / "missing.yml")
    with patch.dict(os.environ, env, clear=True):
        yield


# =============================================================================
# FIXTURES: Reports and Settings
# =============================================================================

@pytest.fixture
def report_file(tmp_path):
    """SAMPLE_REPORT written to disk."""
    path = tmp_path / "report.xml"
    path.write_text(SAMPLE_REPORT, encoding="utf-8")
    return path


@pytest.fixture
def influx_config() -> InfluxConfig:
    return InfluxConfig(
        url="http://influx.test:8086",
        org="ci",
        bucket="tests",
        token="test-token-12345",
    )


@pytest.fixture
def settings(influx_config, report_file) -> Settings:
    return Settings(
        influx=influx_config,
        upload=UploadConfig(
            junit_file=str(report_file),
            runner_name="linux-docker",
            tags={"branch": "main"},
        ),
    )


# =============================================================================
# FIXTURES: InfluxDB client mock
# =============================================================================

@pytest.fixture
def mock_influx_client():
    """InfluxDBClient stand-in recording every write call."""
    client = MagicMock()
    write_api = MagicMock()
    client.write_api.return_value = write_api
    return client
