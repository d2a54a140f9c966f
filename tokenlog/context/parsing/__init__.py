"""
Parsing context: text lines to log entries.
"""

from tokenlog.context.parsing.record_parser import RecordParser, parse_jsonl_line, truncate_snippet

__all__ = [
    'RecordParser',
    'parse_jsonl_line',
    'truncate_snippet',
]
