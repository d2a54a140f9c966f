"""
Protocols (interfaces) for tokenlog components.

This module defines abstract contracts that implementations must follow.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Tuple, Union, Optional
from tokenlog.models import LogEntry, ParseError

__all__ = [
    'LineSourceProtocol',
    'RecordParserProtocol',
    'AggregatorProtocol',
]


class LineSourceProtocol(ABC):
    """Protocol for turning a byte source into numbered text lines."""

    @abstractmethod
    def __iter__(self) -> Iterator[Tuple[int, str]]:
        """
        Iterate over the source's lines.

        Returns:
            Iterator of (1-based line number, line text without terminator)
        """
        pass

    @property
    @abstractmethod
    def total_bytes(self) -> int:
        """Return the source size in bytes, or 0 when unknown."""
        pass

    @property
    @abstractmethod
    def bytes_read(self) -> int:
        """Return the number of raw bytes consumed so far."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release any resources held by the source."""
        pass


class RecordParserProtocol(ABC):
    """Protocol for interpreting a single log line."""

    @abstractmethod
    def parse_line(self, line: str, line_number: int) -> Optional[Union[LogEntry, ParseError]]:
        """
        Interpret one line of text.

        Args:
            line: Line text without its terminator
            line_number: 1-based physical line number

        Returns:
            LogEntry for a record, ParseError for malformed input,
            None for lines that are intentionally ignored
        """
        pass


class AggregatorProtocol(ABC):
    """Protocol for folding log entries into running state."""

    @abstractmethod
    def add(self, entry: LogEntry) -> None:
        """Fold one entry into the running state."""
        pass

    def consume(self, entries) -> 'AggregatorProtocol':
        """Fold every entry of an iterable, one at a time."""
        for entry in entries:
            self.add(entry)
        return self

    @abstractmethod
    def reset(self) -> None:
        """Discard all accumulated state."""
        pass
