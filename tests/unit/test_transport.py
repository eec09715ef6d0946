"""Tests for the InfluxDB transport."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from junit_metrics.models import MetricPoint
from junit_metrics.transformer import parse_junit_xml
from junit_metrics.transport import InfluxWriter, batched, to_influx_point


def _points(n: int) -> list[MetricPoint]:
    ts = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)
    return [
        MetricPoint(tags={"test_name": f"t{i}"}, fields={"duration": float(i)}, timestamp=ts)
        for i in range(n)
    ]


class TestBatched:

    def test_fixed_size_groups(self):
        batches = list(batched(_points(250), 100))
        assert [len(b) for b in batches] == [100, 100, 50]

    def test_order_preserved(self):
        points = _points(7)
        flat = [p for batch in batched(points, 3) for p in batch]
        assert flat == points

    def test_empty(self):
        assert list(batched([], 100)) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            list(batched(_points(1), 0))


class TestToInfluxPoint:

    def test_line_protocol(self):
        point = MetricPoint(
            tags={"test_name": "adds item", "status": "passed"},
            fields={"duration": 1.5, "has_failure": 0, "failure_message": "boom"},
            timestamp=datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc),
        )
        line = to_influx_point(point).to_line_protocol()
        assert line.startswith("test_result,")
        assert "test_name=adds\\ item" in line
        assert "status=passed" in line
        assert "duration=1.5" in line
        assert "has_failure=0i" in line
        assert 'failure_message="boom"' in line
        assert line.endswith(" 1769947200000000000")

    def test_out_of_range_report_timestamps_serialize(self):
        xml = (
            '<testsuites timestamp="0001-01-01T00:00:00+01:00"><testsuite name="s">'
            '<testcase name="a"/>'
            '<testcase name="b" timestamp="9999-12-31T23:59:59-01:00"/>'
            "</testsuite></testsuites>"
        )
        before = datetime.now(timezone.utc)
        points = parse_junit_xml(xml).points
        after = datetime.now(timezone.utc)

        assert before <= points[0].timestamp <= after
        assert points[1].timestamp == points[0].timestamp
        for point in points:
            assert to_influx_point(point).to_line_protocol().startswith("test_result,")


class TestInfluxWriter:

    def test_writes_in_batches(self, influx_config, mock_influx_client):
        with InfluxWriter(influx_config, batch_size=2, client=mock_influx_client) as writer:
            written = writer.write_points(_points(5))

        assert written == 5
        write_api = mock_influx_client.write_api.return_value
        assert write_api.write.call_count == 3
        sizes = [len(c.kwargs["record"]) for c in write_api.write.call_args_list]
        assert sizes == [2, 2, 1]
        first = write_api.write.call_args_list[0].kwargs
        assert first["bucket"] == "tests"
        assert first["org"] == "ci"

    def test_flush_then_close_on_success(self, influx_config, mock_influx_client):
        with InfluxWriter(influx_config, client=mock_influx_client) as writer:
            writer.write_points(_points(1))

        write_api = mock_influx_client.write_api.return_value
        write_api.flush.assert_called_once()
        write_api.close.assert_called_once()
        mock_influx_client.close.assert_called_once()

    def test_closes_on_write_error(self, influx_config, mock_influx_client):
        write_api = mock_influx_client.write_api.return_value
        write_api.write.side_effect = RuntimeError("connection refused")

        with pytest.raises(RuntimeError, match="connection refused"):
            with InfluxWriter(influx_config, client=mock_influx_client) as writer:
                writer.write_points(_points(3))

        write_api.flush.assert_called_once()
        write_api.close.assert_called_once()
        mock_influx_client.close.assert_called_once()

    def test_close_is_idempotent(self, influx_config, mock_influx_client):
        writer = InfluxWriter(influx_config, client=mock_influx_client).open()
        writer.close()
        writer.close()
        mock_influx_client.close.assert_called_once()

    def test_reopen_after_close_fails(self, influx_config, mock_influx_client):
        writer = InfluxWriter(influx_config, client=mock_influx_client)
        writer.close()
        with pytest.raises(RuntimeError):
            writer.open()

    def test_empty_write(self, influx_config, mock_influx_client):
        with InfluxWriter(influx_config, client=mock_influx_client) as writer:
            assert writer.write_points([]) == 0
        mock_influx_client.write_api.return_value.write.assert_not_called()

    def test_builds_client_from_config(self, influx_config):
        with patch("junit_metrics.transport.InfluxDBClient") as client_cls:
            with InfluxWriter(influx_config):
                pass
        client_cls.assert_called_once_with(
            url="http://influx.test:8086",
            token="test-token-12345",
            org="ci",
            timeout=10_000,
            verify_ssl=True,
        )
        client_cls.return_value.close.assert_called_once()

    def test_invalid_batch_size(self, influx_config):
        with pytest.raises(ValueError):
            InfluxWriter(influx_config, batch_size=0, client=MagicMock())
