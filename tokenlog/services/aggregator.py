"""
Aggregator: fold LogEntry sequences into token totals and session summaries

Single pass, streaming-safe: entries are folded one at a time, so an
aggregator can sit directly on a LogStream without materialising the log.

- TokenCounter: four running counters for whole-input totals
- SessionAggregator: per-session running state keyed by session id
- UsageAggregator: both of the above in one pass
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from tokenlog.context.decoding.line_decoder import Source
from tokenlog.context.pricing import calculate_cost
from tokenlog.models import (
    EntryType,
    LogEntry,
    ParserStats,
    PricingRates,
    DEFAULT_PRICING,
    SessionSummary,
    StreamOptions,
    TokenTotals,
    UsageReport,
    UNKNOWN_SESSION,
)
from tokenlog.protocols import AggregatorProtocol
from tokenlog.services.pipeline import LogStream

logger = logging.getLogger(__name__)

# Message kinds every summary reports, even at zero
COUNTED_TYPES = (
    EntryType.USER.value,
    EntryType.ASSISTANT.value,
    EntryType.TOOL.value,
    EntryType.SYSTEM.value,
    EntryType.ERROR.value,
)


class TokenCounter(AggregatorProtocol):
    """Running token counts across every entry it sees."""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.input = 0
        self.output = 0
        self.cache_creation = 0
        self.cache_read = 0

    def add(self, entry: LogEntry) -> None:
        usage = entry.usage
        if usage is None:
            return
        self.input += usage.input_tokens
        self.output += usage.output_tokens
        self.cache_creation += usage.cache_creation_tokens
        self.cache_read += usage.cache_read_tokens

    def totals(self, rates: PricingRates = DEFAULT_PRICING) -> TokenTotals:
        """Freeze the counters into TokenTotals with a cost estimate."""
        return TokenTotals(
            input=self.input,
            output=self.output,
            cache_creation=self.cache_creation,
            cache_read=self.cache_read,
            total=self.input + self.output,
            cost_estimate=calculate_cost(self.input, self.output, self.cache_read, rates),
        )


class _SessionState:
    """Mutable, in-progress summary of one session."""

    __slots__ = ('session_id', 'order', 'start_time', 'end_time', 'model', 'counts', 'tokens')

    def __init__(self, session_id: str, order: int):
        self.session_id = session_id
        self.order = order
        self.start_time: Optional[str] = None
        self.end_time: Optional[str] = None
        self.model: Optional[str] = None
        self.counts: Dict[str, int] = {t: 0 for t in COUNTED_TYPES}
        self.tokens = TokenCounter()

    def add(self, entry: LogEntry) -> None:
        ts = entry.timestamp
        if ts:
            if self.start_time is None or ts < self.start_time:
                self.start_time = ts
            if self.end_time is None or ts > self.end_time:
                self.end_time = ts
        if entry.model:
            self.model = entry.model
        if entry.entry_type:
            self.counts[entry.entry_type] = self.counts.get(entry.entry_type, 0) + 1
        self.tokens.add(entry)

    def finalize(self, rates: PricingRates) -> SessionSummary:
        return SessionSummary(
            session_id=self.session_id,
            start_time=self.start_time,
            end_time=self.end_time,
            model=self.model,
            message_count_by_type=dict(self.counts),
            token_usage=self.tokens.totals(rates),
        )


class SessionAggregator(AggregatorProtocol):
    """
    Groups entries by session id.

    Entries without a session id are grouped under "unknown". Summaries are
    only meaningful once all input has been folded in.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self._sessions: Dict[str, _SessionState] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def add(self, entry: LogEntry) -> None:
        session_id = entry.session_id or UNKNOWN_SESSION
        state = self._sessions.get(session_id)
        if state is None:
            state = _SessionState(session_id, len(self._sessions))
            self._sessions[session_id] = state
        state.add(entry)

    def summaries(self, rates: PricingRates = DEFAULT_PRICING) -> Tuple[SessionSummary, ...]:
        """
        Finalize every session.

        Returned as a tuple sorted ascending by start time. ISO-8601 strings
        in one format and timezone sort correctly as plain strings; sessions
        without any timestamp go last, ties keep first-seen order.
        """
        ordered = sorted(
            self._sessions.values(),
            key=lambda s: (s.start_time is None, s.start_time or '', s.order),
        )
        return tuple(state.finalize(rates) for state in ordered)


class UsageAggregator(AggregatorProtocol):
    """Whole-input totals and per-session summaries from one pass."""

    def __init__(self, rates: PricingRates = DEFAULT_PRICING):
        self.rates = rates
        self.reset()

    def reset(self) -> None:
        self.counter = TokenCounter()
        self.sessions = SessionAggregator()
        self.entry_count = 0

    def add(self, entry: LogEntry) -> None:
        self.entry_count += 1
        self.counter.add(entry)
        self.sessions.add(entry)

    def report(self) -> UsageReport:
        return UsageReport(
            totals=self.counter.totals(self.rates),
            sessions=self.sessions.summaries(self.rates),
            entry_count=self.entry_count,
        )


def calculate_token_totals(entries: Iterable[LogEntry],
                           rates: PricingRates = DEFAULT_PRICING) -> TokenTotals:
    """Flat token totals over all entries, no session grouping."""
    return TokenCounter().consume(entries).totals(rates)


def extract_session_summaries(entries: Iterable[LogEntry],
                              rates: PricingRates = DEFAULT_PRICING) -> Tuple[SessionSummary, ...]:
    """One SessionSummary per distinct session id, sorted by start time."""
    return SessionAggregator().consume(entries).summaries(rates)


def calculate_token_totals_stream(source: Source, rates: PricingRates = DEFAULT_PRICING,
                                  options: Optional[StreamOptions] = None,
                                  **overrides) -> TokenTotals:
    """Flat token totals read straight from a log file."""
    return calculate_token_totals(LogStream(source, options, **overrides), rates)


def count_entries_by_type(source: Source, options: Optional[StreamOptions] = None,
                          **overrides) -> Dict[str, int]:
    """Count entries per ``type``; untyped entries are counted as "unknown"."""
    counts: Counter = Counter()
    for entry in LogStream(source, options, **overrides):
        counts[entry.entry_type or 'unknown'] += 1
    return dict(counts)


def aggregate_file(source: Source, rates: PricingRates = DEFAULT_PRICING,
                   options: Optional[StreamOptions] = None,
                   **overrides) -> Tuple[UsageReport, ParserStats]:
    """Stream one log through a UsageAggregator."""
    stream = LogStream(source, options, **overrides)
    report = UsageAggregator(rates).consume(stream).report()
    return report, stream.stats


def aggregate_files(sources: Iterable[Source], rates: PricingRates = DEFAULT_PRICING,
                    options: Optional[StreamOptions] = None,
                    **overrides) -> Tuple[UsageReport, List[ParserStats]]:
    """
    Fold several logs into one report, reading them in the given order.

    Sessions that span files (same session id) are merged.
    """
    aggregator = UsageAggregator(rates)
    all_stats: List[ParserStats] = []
    for source in sources:
        stream = LogStream(source, options, **overrides)
        aggregator.consume(stream)
        all_stats.append(stream.stats)
        logger.debug("Aggregated %s", source)
    return aggregator.report(), all_stats
