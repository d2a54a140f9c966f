"""
Record Parser: one text line -> LogEntry | ParseError | nothing

Line classes:
- Blank lines and '#' comment lines are ignored (hand-edited fixtures use them)
- A JSON object becomes a LogEntry
- Anything else (bad JSON, or JSON that is not an object) becomes a ParseError

The parser never raises for bad input. Whether a ParseError aborts the run
is decided by the pipeline.
"""

import json
from typing import Callable, Optional, Union

from tokenlog.models import LogEntry, ParseError, MAX_SNIPPET_LENGTH
from tokenlog.protocols import RecordParserProtocol

COMMENT_PREFIX = '#'


def truncate_snippet(line: str, limit: int = MAX_SNIPPET_LENGTH) -> str:
    """Cut a raw line down to at most ``limit`` characters for diagnostics."""
    return line if len(line) <= limit else line[:limit]


class RecordParser(RecordParserProtocol):
    """
    Loose JSONL record parser.

    Not a schema validator: any JSON object is accepted and unknown fields
    are preserved on the resulting entry.
    """

    def __init__(self, decoder: Optional[json.JSONDecoder] = None):
        self.decoder = decoder or json.JSONDecoder()

    def parse_line(self, line: str, line_number: int) -> Optional[Union[LogEntry, ParseError]]:
        """
        Interpret one line.

        Args:
            line: Line text, terminator already removed
            line_number: 1-based physical line number

        Returns:
            LogEntry, ParseError, or None for blank/comment lines

        Examples:
            >>> RecordParser().parse_line('{"type": "user"}', 1).entry_type
            'user'
            >>> RecordParser().parse_line('   ', 2) is None
            True
        """
        stripped = line.strip()
        if not stripped or stripped.startswith(COMMENT_PREFIX):
            return None

        try:
            data = self.decoder.decode(stripped)
        except (ValueError, RecursionError) as e:
            return ParseError(line_number=line_number, raw=truncate_snippet(line), message=str(e))

        if not isinstance(data, dict):
            return ParseError(
                line_number=line_number,
                raw=truncate_snippet(line),
                message=f"Expected a JSON object, got {type(data).__name__}",
            )

        return LogEntry.from_dict(data)


_default_parser = RecordParser()


def parse_jsonl_line(line: str, line_number: int = 0,
                     on_error: Optional[Callable[[ParseError], None]] = None) -> Optional[LogEntry]:
    """
    Parse a single line, reporting malformed input through ``on_error``.

    Returns:
        LogEntry, or None for blank, comment and malformed lines
    """
    result = _default_parser.parse_line(line, line_number)
    if isinstance(result, ParseError):
        if on_error is not None:
            on_error(result)
        return None
    return result
