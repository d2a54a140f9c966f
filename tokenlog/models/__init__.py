"""
Data models for tokenlog.

This module contains pure data structures with no business logic beyond
construction from decoded JSON and conversion back to dictionaries.
"""

from dataclasses import dataclass, field as dataclass_field, asdict
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple
from enum import Enum

__all__ = [
    'EntryType',
    'TokenUsage',
    'LogEntry',
    'ParseError',
    'ParseResult',
    'ParserStats',
    'StreamOptions',
    'PricingRates',
    'DEFAULT_PRICING',
    'CostEstimate',
    'TokenTotals',
    'SessionSummary',
    'UsageReport',
    'SessionUsage',
    'ProjectUsage',
    'UNKNOWN_SESSION',
    'MAX_SNIPPET_LENGTH',
]

UNKNOWN_SESSION = "unknown"
MAX_SNIPPET_LENGTH = 200


class EntryType(Enum):
    """Entry kinds emitted by the session recorder."""
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"
    SYSTEM = "system"
    ERROR = "error"
    SESSION = "session"


# Wire key aliases, first match wins
_INPUT_KEYS = ('input_tokens',)
_OUTPUT_KEYS = ('output_tokens',)
_CACHE_CREATION_KEYS = ('cache_creation_input_tokens', 'cache_creation_tokens')
_CACHE_READ_KEYS = ('cache_read_input_tokens', 'cache_read_tokens', 'cache_read')


def _token_count(data: Dict[str, Any], keys: Iterable[str]) -> int:
    """First usable non-negative integer count among the aliases, else 0."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, int) and value >= 0:
            return value
        if isinstance(value, float) and value.is_integer() and value >= 0:
            return int(value)
    return 0


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


@dataclass
class TokenUsage:
    """Token counts reported for one entry. Absent fields count as 0."""
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'TokenUsage':
        """Create from the recorder's ``usage`` object."""
        return TokenUsage(
            input_tokens=_token_count(data, _INPUT_KEYS),
            output_tokens=_token_count(data, _OUTPUT_KEYS),
            cache_creation_tokens=_token_count(data, _CACHE_CREATION_KEYS),
            cache_read_tokens=_token_count(data, _CACHE_READ_KEYS),
        )

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class LogEntry:
    """
    One decoded line of a session log.

    The fields the engine reads are lifted out of the JSON object; the full
    object is kept in ``data`` so producers' extra fields survive untouched.
    """
    entry_type: Optional[str] = None
    timestamp: Optional[str] = None
    session_id: Optional[str] = None
    model: Optional[str] = None
    usage: Optional[TokenUsage] = None
    data: Dict[str, Any] = dataclass_field(default_factory=dict)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'LogEntry':
        """
        Build an entry from a decoded JSON object.

        Recorders differ in where they put things: ``session_id`` or
        ``sessionId``, and ``usage``/``model`` either at the top level or
        nested under ``message``. Top-level values win.

        Args:
            data: Decoded JSON object

        Returns:
            LogEntry wrapping ``data``
        """
        message = data.get('message')
        if not isinstance(message, dict):
            message = {}

        usage_data = data.get('usage')
        if not isinstance(usage_data, dict):
            usage_data = message.get('usage')

        return LogEntry(
            entry_type=_optional_str(data.get('type')),
            timestamp=_optional_str(data.get('timestamp')),
            session_id=_optional_str(data.get('session_id')) or _optional_str(data.get('sessionId')),
            model=_optional_str(data.get('model')) or _optional_str(message.get('model')),
            usage=TokenUsage.from_dict(usage_data) if isinstance(usage_data, dict) else None,
            data=data,
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Read any field of the decoded JSON object."""
        return self.data.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return self.data


@dataclass(frozen=True)
class ParseError:
    """A line that could not be decoded as a log entry."""
    line_number: int  # 1-based physical line
    raw: str  # truncated to MAX_SNIPPET_LENGTH
    message: str


@dataclass(frozen=True)
class ParseResult:
    """A decoded entry together with where it came from."""
    entry: LogEntry
    line_number: int
    raw: str


@dataclass
class ParserStats:
    """Counters for one full pass over a log source."""
    total_lines: int = 0
    parsed_lines: int = 0
    skipped_lines: int = 0
    ignored_lines: int = 0  # blank and comment lines
    filtered_lines: int = 0  # valid entries dropped by the type filter
    bytes_processed: int = 0
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class StreamOptions:
    """Options recognised by the streaming pipeline."""
    filter_types: FrozenSet[str] = frozenset()
    on_error: Optional[Callable[[ParseError], None]] = None
    on_progress: Optional[Callable[[int, int], None]] = None
    skip_malformed: bool = True
    compressed: Optional[bool] = None  # None: decide from the file suffix
    chunk_size: int = 64 * 1024
    encoding: str = 'utf-8'

    def __post_init__(self):
        if self.filter_types is None:
            self.filter_types = frozenset()
        elif isinstance(self.filter_types, str):
            self.filter_types = frozenset([self.filter_types])
        else:
            self.filter_types = frozenset(self.filter_types)
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")


@dataclass(frozen=True)
class PricingRates:
    """USD per million tokens."""
    input_per_million: float = 3.00
    output_per_million: float = 15.00
    cache_read_per_million: float = 0.30


DEFAULT_PRICING = PricingRates()


@dataclass(frozen=True)
class CostEstimate:
    """Estimated spend in USD."""
    input_cost: float = 0.0
    output_cost: float = 0.0
    cache_read_cost: float = 0.0
    total_cost: float = 0.0


@dataclass(frozen=True)
class TokenTotals:
    """Summed token counts with their cost estimate."""
    input: int = 0
    output: int = 0
    cache_creation: int = 0
    cache_read: int = 0
    total: int = 0
    cost_estimate: CostEstimate = CostEstimate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SessionSummary:
    """Aggregated view of one session, valid once a pass has finished."""
    session_id: str
    start_time: Optional[str]
    end_time: Optional[str]
    model: Optional[str]
    message_count_by_type: Dict[str, int]
    token_usage: TokenTotals

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UsageReport:
    """Result of a single aggregation pass."""
    totals: TokenTotals
    sessions: Tuple[SessionSummary, ...]
    entry_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totals': self.totals.to_dict(),
            'sessions': [s.to_dict() for s in self.sessions],
            'entry_count': self.entry_count,
        }


@dataclass
class SessionUsage:
    """Usage for a single session log file."""
    session_id: str
    session_label: str
    input_tokens: int
    output_tokens: int
    cache_creation: int
    cache_read: int
    total_tokens: int
    cost_usd: float
    cache_hit_ratio: float
    message_count: int
    timestamp: datetime
    duration_ms: Optional[int] = None
    log_file: str = ""
    skipped_lines: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return data


@dataclass
class ProjectUsage:
    """Usage summed over several session log files."""
    project_name: str
    sessions: List[SessionUsage]
    totals: Dict[str, Any]
    failed_files: List[str] = dataclass_field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'project_name': self.project_name,
            'sessions': [s.to_dict() for s in self.sessions],
            'totals': dict(self.totals),
            'failed_files': list(self.failed_files),
        }
