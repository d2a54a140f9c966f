"""
Services layer - application orchestration.
"""

from tokenlog.services.pipeline import (
    LogStream, stream_jsonl, stream_jsonl_with_meta, read_jsonl, parse_jsonl_string
)
from tokenlog.services.aggregator import (
    TokenCounter,
    SessionAggregator,
    UsageAggregator,
    calculate_token_totals,
    calculate_token_totals_stream,
    extract_session_summaries,
    count_entries_by_type,
    aggregate_file,
    aggregate_files,
)
from tokenlog.services.analyzer import analyze_log_file, analyze_log_files, export_usage_json


__all__ = [
    'LogStream',
    'stream_jsonl',
    'stream_jsonl_with_meta',
    'read_jsonl',
    'parse_jsonl_string',
    'TokenCounter',
    'SessionAggregator',
    'UsageAggregator',
    'calculate_token_totals',
    'calculate_token_totals_stream',
    'extract_session_summaries',
    'count_entries_by_type',
    'aggregate_file',
    'aggregate_files',
    'analyze_log_file',
    'analyze_log_files',
    'export_usage_json',
]
