"""
Analyzer: per-file session usage and multi-file project rollups

The recorder writes one log file per session, so a file maps to one
SessionUsage row. A ProjectUsage sums a list of such files; which files
belong to a project is decided by the caller.
"""

import json
import logging
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Iterable, List, Optional

from tokenlog.context.decoding.line_decoder import Source
from tokenlog.context.labeling import format_session_label, parse_timestamp
from tokenlog.context.pricing import calculate_cache_hit_ratio
from tokenlog.exceptions import LogReadError, ParseFailure
from tokenlog.models import (
    EntryType,
    PricingRates,
    DEFAULT_PRICING,
    ProjectUsage,
    SessionUsage,
    StreamOptions,
)
from tokenlog.services.aggregator import TokenCounter
from tokenlog.services.pipeline import LogStream

logger = logging.getLogger(__name__)

MESSAGE_TYPES = frozenset([EntryType.USER.value, EntryType.ASSISTANT.value])


def _as_utc(value: datetime) -> datetime:
    # Recorders write UTC; a missing offset is read as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def analyze_log_file(path: Source, now: Optional[datetime] = None,
                     rates: PricingRates = DEFAULT_PRICING, tz: Optional[tzinfo] = None,
                     options: Optional[StreamOptions] = None, **overrides) -> SessionUsage:
    """
    Summarize one session log file.

    Args:
        path: Session log (plain or gzip)
        now: Reference time for the session label and missing timestamps
        rates: Pricing table
        tz: Timezone for the session label (default: local time)
        options: Stream options for reading the file

    Returns:
        SessionUsage for the file

    Raises:
        LogReadError: If the file cannot be read
        ParseFailure: If strict parsing was requested and a line is malformed
    """
    stream = LogStream(path, options, **overrides)
    counter = TokenCounter()
    message_count = 0
    session_id: Optional[str] = None
    first: Optional[datetime] = None
    last: Optional[datetime] = None

    for entry in stream:
        moment = parse_timestamp(entry.timestamp)
        if moment is not None:
            moment = _as_utc(moment)
            if first is None or moment < first:
                first = moment
            if last is None or moment > last:
                last = moment

        if session_id is None and entry.session_id:
            session_id = entry.session_id

        if entry.entry_type in MESSAGE_TYPES:
            message_count += 1

        counter.add(entry)

    totals = counter.totals(rates)
    reference = now if now is not None else datetime.now(timezone.utc)
    timestamp = first or _as_utc(reference)
    duration_ms = int((last - first).total_seconds() * 1000) if first and last else None
    name = str(getattr(path, 'name', '<stream>')) if hasattr(path, 'read') else str(path)

    return SessionUsage(
        session_id=session_id or Path(name).name.split('.')[0],
        session_label=format_session_label(timestamp, now=reference, tz=tz),
        input_tokens=totals.input,
        output_tokens=totals.output,
        cache_creation=totals.cache_creation,
        cache_read=totals.cache_read,
        total_tokens=totals.total,
        cost_usd=totals.cost_estimate.total_cost,
        cache_hit_ratio=calculate_cache_hit_ratio(totals.input, totals.cache_read),
        message_count=message_count,
        timestamp=timestamp,
        duration_ms=duration_ms,
        log_file=name,
        skipped_lines=stream.stats.skipped_lines if stream.stats else 0,
    )


def analyze_log_files(paths: Iterable[Source], project_name: str = "",
                      limit: Optional[int] = None, now: Optional[datetime] = None,
                      rates: PricingRates = DEFAULT_PRICING, tz: Optional[tzinfo] = None,
                      options: Optional[StreamOptions] = None, **overrides) -> ProjectUsage:
    """
    Summarize several session logs and total them.

    Files that cannot be read are logged, listed in ``failed_files`` and left
    out of the totals; the remaining files are still analyzed.

    Args:
        paths: Session log files, in display order
        project_name: Name carried into the result
        limit: Analyze at most this many files
    """
    paths = list(paths)
    if limit is not None:
        paths = paths[:limit]

    sessions: List[SessionUsage] = []
    failed: List[str] = []
    for path in paths:
        try:
            sessions.append(analyze_log_file(path, now=now, rates=rates, tz=tz,
                                             options=options, **overrides))
        except (LogReadError, ParseFailure) as e:
            logger.warning("Could not analyze %s: %s", path, e)
            failed.append(str(path))

    totals = {
        'input_tokens': sum(s.input_tokens for s in sessions),
        'output_tokens': sum(s.output_tokens for s in sessions),
        'cache_creation': sum(s.cache_creation for s in sessions),
        'cache_read': sum(s.cache_read for s in sessions),
        'total_tokens': sum(s.total_tokens for s in sessions),
        'cost_usd': sum(s.cost_usd for s in sessions),
        'message_count': sum(s.message_count for s in sessions),
        'session_count': len(sessions),
    }
    totals['cache_hit_ratio'] = calculate_cache_hit_ratio(totals['input_tokens'], totals['cache_read'])

    return ProjectUsage(
        project_name=project_name,
        sessions=sessions,
        totals=totals,
        failed_files=failed,
    )


def export_usage_json(usage: ProjectUsage) -> str:
    """Serialize a ProjectUsage as pretty-printed JSON."""
    return json.dumps(usage.to_dict(), indent=2)
