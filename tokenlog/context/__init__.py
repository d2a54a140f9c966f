"""
Context layer - domain-specific implementations.
"""

from tokenlog.context.decoding import LineDecoder, is_gzip_file, get_file_size
from tokenlog.context.parsing import RecordParser, parse_jsonl_line
from tokenlog.context.pricing import (
    calculate_cost, calculate_cache_hit_ratio, format_cost, format_number, format_percent
)
from tokenlog.context.labeling import format_session_label, parse_timestamp

__all__ = [
    'LineDecoder',
    'is_gzip_file',
    'get_file_size',
    'RecordParser',
    'parse_jsonl_line',
    'calculate_cost',
    'calculate_cache_hit_ratio',
    'format_cost',
    'format_number',
    'format_percent',
    'format_session_label',
    'parse_timestamp',
]
