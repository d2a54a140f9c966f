"""
tokenlog - Streaming token usage analytics for assistant session logs

Reads the line-delimited JSON logs an AI coding assistant records per
session (plain or gzip), tolerating malformed lines, and turns them into
token totals, cost estimates and per-session summaries.

Layers:
- Models: Pure data structures (LogEntry, TokenTotals, SessionSummary)
- Protocols: Interface contracts (LineSourceProtocol, RecordParserProtocol)
- Context: Domain implementations (decoding, parsing, pricing, labeling)
- Services: Orchestration (LogStream pipeline, aggregators, analyzer)
- CLI: User interface (analyze, sessions, count, export commands)
"""

__version__ = "1.0.0"
__license__ = "MIT"

from tokenlog import models, protocols
from tokenlog.exceptions import LogReadError, ParseFailure, InvalidArgument
from tokenlog.models import (
    LogEntry, TokenUsage, ParseError, ParseResult, ParserStats, StreamOptions,
    PricingRates, DEFAULT_PRICING, CostEstimate, TokenTotals, SessionSummary,
)
from tokenlog.context import (
    LineDecoder, RecordParser, calculate_cost, format_session_label,
)
from tokenlog.services import (
    LogStream,
    stream_jsonl,
    stream_jsonl_with_meta,
    read_jsonl,
    parse_jsonl_string,
    UsageAggregator,
    calculate_token_totals,
    extract_session_summaries,
)

__all__ = [
    'models',
    'protocols',
    'LogReadError',
    'ParseFailure',
    'InvalidArgument',
    'LogEntry',
    'TokenUsage',
    'ParseError',
    'ParseResult',
    'ParserStats',
    'StreamOptions',
    'PricingRates',
    'DEFAULT_PRICING',
    'CostEstimate',
    'TokenTotals',
    'SessionSummary',
    'LineDecoder',
    'RecordParser',
    'calculate_cost',
    'format_session_label',
    'LogStream',
    'stream_jsonl',
    'stream_jsonl_with_meta',
    'read_jsonl',
    'parse_jsonl_string',
    'UsageAggregator',
    'calculate_token_totals',
    'extract_session_summaries',
]
