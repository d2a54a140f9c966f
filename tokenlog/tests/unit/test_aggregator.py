"""
Unit tests for token and session aggregation
"""

import pytest
from tokenlog.models import LogEntry, PricingRates, TokenTotals, UNKNOWN_SESSION
from tokenlog.services import (
    TokenCounter,
    SessionAggregator,
    UsageAggregator,
    calculate_token_totals,
    calculate_token_totals_stream,
    extract_session_summaries,
    count_entries_by_type,
    aggregate_file,
    aggregate_files,
    read_jsonl,
)


def _entry(**data) -> LogEntry:
    return LogEntry.from_dict(data)


class TestTokenTotals:
    """Test flat token totals"""

    def test_sample_totals(self, sample_file):
        """Test totals over the sample session"""
        totals = calculate_token_totals(read_jsonl(sample_file))

        assert totals.input == 300
        assert totals.output == 150
        assert totals.cache_read == 50
        assert totals.cache_creation == 0
        assert totals.total == 450
        assert totals.cost_estimate.total_cost == pytest.approx(0.003165)

    def test_total_excludes_cache_tokens(self):
        """Test that total is input plus output only"""
        totals = calculate_token_totals([
            _entry(usage={"input_tokens": 10, "output_tokens": 5,
                          "cache_creation_input_tokens": 100, "cache_read_input_tokens": 200}),
        ])

        assert totals.total == 15
        assert totals.cache_creation == 100
        assert totals.cache_read == 200

    def test_empty_input(self):
        """Test that no entries means zero everything"""
        totals = calculate_token_totals([])

        assert totals == TokenTotals()
        assert totals.cost_estimate.total_cost == 0.0

    def test_custom_rates(self, sample_file):
        """Test that a custom rate table changes only the cost"""
        rates = PricingRates(input_per_million=0.0, output_per_million=1_000_000.0,
                             cache_read_per_million=0.0)

        totals = calculate_token_totals(read_jsonl(sample_file), rates)

        assert totals.output == 150
        assert totals.cost_estimate.total_cost == pytest.approx(150.0)

    def test_stream_variant_matches(self, sample_file, sample_gzip_file):
        """Test totals read straight from plain and gzip files"""
        expected = calculate_token_totals(read_jsonl(sample_file))

        assert calculate_token_totals_stream(sample_file) == expected
        assert calculate_token_totals_stream(sample_gzip_file) == expected

    def test_counter_reset(self):
        """Test that reset clears running counts"""
        counter = TokenCounter()
        counter.add(_entry(usage={"input_tokens": 5}))
        counter.reset()

        assert counter.totals().input == 0


class TestSessionSummaries:
    """Test per-session grouping"""

    def test_single_session(self, sample_file):
        """Test the summary of the sample session"""
        summaries = extract_session_summaries(read_jsonl(sample_file))

        assert len(summaries) == 1
        summary = summaries[0]
        assert summary.session_id == "sess-1"
        assert summary.start_time == "2024-01-01T10:00:00Z"
        assert summary.end_time == "2024-01-01T10:00:04Z"
        assert summary.model == "claude-sonnet-4-20250514"
        assert summary.message_count_by_type == {
            "user": 2, "assistant": 2, "tool": 1, "system": 0, "error": 0,
        }
        assert summary.token_usage.input == 300
        assert summary.token_usage.total == 450

    def test_sorted_by_start_time(self, multi_session_file):
        """Test ordering, with id-less entries grouped as unknown and last"""
        summaries = extract_session_summaries(read_jsonl(multi_session_file))

        assert [s.session_id for s in summaries] == ["early", "late", UNKNOWN_SESSION]

    def test_last_model_wins(self, multi_session_file):
        """Test that the most recent model is reported"""
        summaries = {s.session_id: s for s in extract_session_summaries(read_jsonl(multi_session_file))}

        assert summaries["early"].model == "model-b"
        assert summaries["late"].model is None

    def test_unknown_session(self, multi_session_file):
        """Test the bucket for entries without a session id"""
        summaries = {s.session_id: s for s in extract_session_summaries(read_jsonl(multi_session_file))}
        unknown = summaries[UNKNOWN_SESSION]

        assert unknown.start_time is None
        assert unknown.end_time is None
        assert unknown.message_count_by_type["system"] == 1

    def test_per_session_tokens(self, multi_session_file):
        """Test that tokens stay with their session"""
        summaries = {s.session_id: s for s in extract_session_summaries(read_jsonl(multi_session_file))}

        assert summaries["early"].token_usage.input == 11
        assert summaries["early"].token_usage.output == 22
        assert summaries["late"].token_usage.cache_read == 7

    def test_ties_keep_first_seen_order(self):
        """Test that sessions with equal start times keep input order"""
        summaries = extract_session_summaries([
            _entry(session_id="b", timestamp="2024-01-01T00:00:00Z"),
            _entry(session_id="a", timestamp="2024-01-01T00:00:00Z"),
            _entry(session_id="c"),
            _entry(session_id="d"),
        ])

        assert [s.session_id for s in summaries] == ["b", "a", "c", "d"]

    def test_unexpected_type_counted(self):
        """Test that types outside the usual set are still counted"""
        summaries = extract_session_summaries([_entry(session_id="s", type="summary")])

        assert summaries[0].message_count_by_type["summary"] == 1
        assert summaries[0].message_count_by_type["user"] == 0

    def test_summaries_are_immutable(self, sample_file):
        """Test that callers get a tuple they cannot reorder in place"""
        summaries = extract_session_summaries(read_jsonl(sample_file))

        assert isinstance(summaries, tuple)
        with pytest.raises(AttributeError):
            summaries.sort()

    def test_empty_input(self):
        """Test that no entries means no sessions"""
        assert extract_session_summaries([]) == ()
        assert len(SessionAggregator()) == 0


class TestEntryCounts:
    """Test entry counting by type"""

    def test_counts_sample(self, sample_file):
        """Test per-type counts of the sample log"""
        assert count_entries_by_type(sample_file) == {"user": 2, "assistant": 2, "tool": 1}

    def test_untyped_entries(self, tmp_path):
        """Test that entries without a type are counted as unknown"""
        path = tmp_path / "untyped.jsonl"
        path.write_text('{"foo": 1}\n{"type": "user"}\n', encoding="utf-8")

        assert count_entries_by_type(path) == {"unknown": 1, "user": 1}


class TestUsageAggregator:
    """Test single pass reports"""

    def test_report(self, sample_file):
        """Test that one pass produces totals and sessions together"""
        report, stats = aggregate_file(sample_file)

        assert report.entry_count == 5
        assert report.totals.total == 450
        assert [s.session_id for s in report.sessions] == ["sess-1"]
        assert stats.parsed_lines == 5

    def test_several_files(self, sample_file, multi_session_file):
        """Test that sessions from several files are merged into one report"""
        report, all_stats = aggregate_files([sample_file, multi_session_file])

        assert [s.session_id for s in report.sessions] == ["early", "sess-1", "late", UNKNOWN_SESSION]
        assert report.totals.input == 300 + 16
        assert len(all_stats) == 2

    def test_report_to_dict(self, sample_file):
        """Test that reports convert to plain dictionaries"""
        report, _ = aggregate_file(sample_file)
        data = report.to_dict()

        assert data["entry_count"] == 5
        assert data["totals"]["input"] == 300
        assert data["sessions"][0]["token_usage"]["cost_estimate"]["total_cost"] == pytest.approx(0.003165)

    def test_reset(self, sample_file):
        """Test that reset discards everything folded so far"""
        aggregator = UsageAggregator()
        aggregator.consume(read_jsonl(sample_file))
        aggregator.reset()
        report = aggregator.report()

        assert report.entry_count == 0
        assert report.sessions == ()
