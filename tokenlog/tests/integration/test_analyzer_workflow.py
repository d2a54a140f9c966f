"""
Integration tests for per-file analysis and project rollups
"""

import json
import pytest
from datetime import datetime, timezone
from tokenlog.services import analyze_log_file, analyze_log_files, export_usage_json

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestAnalyzeLogFile:
    """Test single file analysis"""

    def test_sample_session(self, sample_file):
        """Test every field of the sample session"""
        usage = analyze_log_file(sample_file, now=NOW, tz=timezone.utc)

        assert usage.session_id == "sess-1"
        assert usage.session_label == "Today 10:00"
        assert usage.input_tokens == 300
        assert usage.output_tokens == 150
        assert usage.cache_read == 50
        assert usage.total_tokens == 450
        assert usage.cost_usd == pytest.approx(0.003165)
        assert usage.cache_hit_ratio == pytest.approx(50 / 350)
        assert usage.message_count == 4
        assert usage.timestamp == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert usage.duration_ms == 4000
        assert usage.log_file == str(sample_file)
        assert usage.skipped_lines == 0

    def test_gzip_session(self, sample_gzip_file):
        """Test that compressed logs analyze the same"""
        usage = analyze_log_file(sample_gzip_file, now=NOW, tz=timezone.utc)

        assert usage.session_id == "sess-1"
        assert usage.total_tokens == 450

    def test_session_id_from_file_name(self, tmp_path):
        """Test the fallback id for logs that never name their session"""
        path = tmp_path / "abc123.jsonl"
        path.write_text('{"type":"user","timestamp":"2024-01-01T09:00:00Z"}\n', encoding="utf-8")

        usage = analyze_log_file(path, now=NOW, tz=timezone.utc)

        assert usage.session_id == "abc123"

    def test_empty_log(self, blank_lines_file):
        """Test that a log without timestamps falls back to now"""
        usage = analyze_log_file(blank_lines_file, now=NOW, tz=timezone.utc)

        assert usage.timestamp == NOW
        assert usage.session_label == "Today 12:00"
        assert usage.duration_ms is None
        assert usage.message_count == 0

    def test_skipped_lines_recorded(self, mixed_file):
        """Test that malformed lines show up in the result"""
        usage = analyze_log_file(mixed_file, now=NOW, tz=timezone.utc)

        assert usage.skipped_lines == 2
        assert usage.message_count == 3


class TestAnalyzeLogFiles:
    """Test project rollups"""

    def test_totals(self, sample_file, sample_gzip_file):
        """Test that totals sum every session"""
        project = analyze_log_files([sample_file, sample_gzip_file], project_name="demo",
                                    now=NOW, tz=timezone.utc)

        assert project.project_name == "demo"
        assert len(project.sessions) == 2
        assert project.totals["input_tokens"] == 600
        assert project.totals["total_tokens"] == 900
        assert project.totals["message_count"] == 8
        assert project.totals["session_count"] == 2
        assert project.totals["cache_hit_ratio"] == pytest.approx(100 / 700)

    def test_unreadable_files_are_listed(self, sample_file, tmp_path):
        """Test that one bad file does not sink the rollup"""
        missing = tmp_path / "missing.jsonl"

        project = analyze_log_files([missing, sample_file], now=NOW, tz=timezone.utc)

        assert project.failed_files == [str(missing)]
        assert project.totals["session_count"] == 1

    def test_strict_failures_are_listed(self, mixed_file, sample_file):
        """Test that strict parse failures are treated like unreadable files"""
        project = analyze_log_files([mixed_file, sample_file], now=NOW, tz=timezone.utc,
                                    skip_malformed=False)

        assert project.failed_files == [str(mixed_file)]
        assert len(project.sessions) == 1

    def test_limit(self, sample_file, multi_session_file):
        """Test that limit caps the number of files analyzed"""
        project = analyze_log_files([sample_file, multi_session_file], limit=1, now=NOW)

        assert project.totals["session_count"] == 1

    def test_empty(self):
        """Test a rollup over no files"""
        project = analyze_log_files([])

        assert project.sessions == []
        assert project.totals["cost_usd"] == 0
        assert project.totals["cache_hit_ratio"] == 0.0


class TestExportUsageJson:
    """Test JSON export"""

    def test_round_trip_fields(self, sample_file):
        """Test that the export is valid JSON with ISO timestamps"""
        project = analyze_log_files([sample_file], project_name="demo", now=NOW, tz=timezone.utc)

        data = json.loads(export_usage_json(project))

        assert data["project_name"] == "demo"
        assert data["sessions"][0]["timestamp"] == "2024-01-01T10:00:00+00:00"
        assert data["sessions"][0]["session_label"] == "Today 10:00"
        assert data["failed_files"] == []
