"""
CLI commands for tokenlog.

The commands take explicit log file paths; finding the recorder's log
directory is left to the caller (shell globbing works well).
"""

import sys
from contextlib import contextmanager
from datetime import timezone
from pathlib import Path
from typing import Dict

import click
from rich.console import Console
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn

from tokenlog.context.labeling import format_session_label, parse_timestamp
from tokenlog.context.pricing import format_cost, format_number, format_percent
from tokenlog.exceptions import LogReadError, ParseFailure
from tokenlog.models import PricingRates, DEFAULT_PRICING, StreamOptions, TokenTotals
from tokenlog.services import (
    LogStream,
    TokenCounter,
    UsageAggregator,
    analyze_log_files,
    count_entries_by_type,
    export_usage_json,
)


def pricing_options(func):
    """Attach the per-million-token rate options to a command."""
    func = click.option('--cache-read-rate', type=click.FloatRange(min=0),
                        default=DEFAULT_PRICING.cache_read_per_million, show_default=True,
                        help='USD per million cache-read tokens')(func)
    func = click.option('--output-rate', type=click.FloatRange(min=0),
                        default=DEFAULT_PRICING.output_per_million, show_default=True,
                        help='USD per million output tokens')(func)
    func = click.option('--input-rate', type=click.FloatRange(min=0),
                        default=DEFAULT_PRICING.input_per_million, show_default=True,
                        help='USD per million input tokens')(func)
    return func


def _rates(input_rate: float, output_rate: float, cache_read_rate: float) -> PricingRates:
    return PricingRates(
        input_per_million=input_rate,
        output_per_million=output_rate,
        cache_read_per_million=cache_read_rate,
    )


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@contextmanager
def _progress_bar(enabled: bool, description: str):
    """Yield an on_progress callback, backed by a rich bar when enabled."""
    if not enabled:
        yield None
        return

    with Progress(
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        console=Console(stderr=True),
        transient=True,
    ) as progress:
        task = progress.add_task(description, total=None)

        def on_progress(bytes_read: int, total_bytes: int) -> None:
            progress.update(task, completed=bytes_read, total=total_bytes)

        yield on_progress


def _echo_totals(totals: TokenTotals) -> None:
    click.echo(f"  Input tokens:    {format_number(totals.input)}")
    click.echo(f"  Output tokens:   {format_number(totals.output)}")
    click.echo(f"  Cache creation:  {format_number(totals.cache_creation)}")
    click.echo(f"  Cache read:      {format_number(totals.cache_read)}")
    click.echo(f"  Total tokens:    {format_number(totals.total)}")
    click.echo(f"  Estimated cost:  {format_cost(totals.cost_estimate.total_cost)}")


@click.command()
@click.argument('paths', nargs=-1, required=True)
@click.option('--type', '-t', 'types', multiple=True,
              help='Only count entries of this type (repeatable)')
@click.option('--strict', is_flag=True, help='Stop at the first malformed line')
@click.option('--progress', is_flag=True, help='Show a progress bar while reading')
@pricing_options
def analyze(paths, types, strict, progress, input_rate, output_rate, cache_read_rate):
    """
    Show token totals and estimated cost for session logs.

    Example:
        tokenlog analyze ~/logs/*.jsonl --type assistant
    """
    rates = _rates(input_rate, output_rate, cache_read_rate)
    overall = UsageAggregator(rates)

    for path in paths:
        counter = TokenCounter()
        with _progress_bar(progress, Path(path).name) as on_progress:
            options = StreamOptions(filter_types=frozenset(types), skip_malformed=not strict,
                                    on_progress=on_progress)
            stream = LogStream(path, options)
            try:
                for entry in stream:
                    counter.add(entry)
                    overall.add(entry)
            except LogReadError as e:
                _fail(f"Could not read {path}: {e}")
            except ParseFailure as e:
                _fail(f"{path}: line {e.line_number}: {e.error.message}")

        stats = stream.stats
        click.echo(f"\n{path}")
        click.echo(f"  Entries:         {format_number(stats.parsed_lines)} "
                   f"of {format_number(stats.total_lines)} lines")
        if stats.skipped_lines:
            click.echo(f"  Skipped:         {format_number(stats.skipped_lines)} malformed line(s)")
        _echo_totals(counter.totals(rates))

    if len(paths) > 1:
        report = overall.report()
        click.echo("\n=== Total ===")
        click.echo(f"  Entries:         {format_number(report.entry_count)}")
        _echo_totals(report.totals)


@click.command()
@click.argument('paths', nargs=-1, required=True)
@click.option('--now', 'now_text', help='Reference time for labels (ISO-8601, default: now)')
@click.option('--utc', is_flag=True, help='Label sessions in UTC instead of local time')
@pricing_options
def sessions(paths, now_text, utc, input_rate, output_rate, cache_read_rate):
    """
    List sessions found in logs, oldest first.

    Example:
        tokenlog sessions ~/logs/*.jsonl
    """
    now = None
    if now_text:
        now = parse_timestamp(now_text)
        if now is None:
            _fail(f"Invalid --now timestamp: {now_text}")
    zone = timezone.utc if utc else None

    aggregator = UsageAggregator(_rates(input_rate, output_rate, cache_read_rate))
    skipped: Dict[str, int] = {}
    for path in paths:
        stream = LogStream(path)
        try:
            aggregator.consume(stream)
        except LogReadError as e:
            _fail(f"Could not read {path}: {e}")
        if stream.stats.skipped_lines:
            skipped[path] = stream.stats.skipped_lines

    report = aggregator.report()
    if not report.sessions:
        click.echo("No sessions found.")
        return

    for summary in report.sessions:
        if summary.start_time and parse_timestamp(summary.start_time) is not None:
            label = format_session_label(summary.start_time, now=now, tz=zone)
        else:
            label = '-'
        usage = summary.token_usage
        messages = sum(summary.message_count_by_type.values())
        click.echo(
            f"{label:<18} {summary.session_id}  "
            f"in={format_number(usage.input)} out={format_number(usage.output)} "
            f"cache={format_number(usage.cache_read)} msgs={messages} "
            f"cost={format_cost(usage.cost_estimate.total_cost)}"
        )

    for path, n in skipped.items():
        click.echo(f"Skipped {n} malformed line(s) in {path}", err=True)


@click.command()
@click.argument('paths', nargs=-1, required=True)
def count(paths):
    """
    Count entries per type.

    Example:
        tokenlog count session.jsonl.gz
    """
    totals: Dict[str, int] = {}
    for path in paths:
        try:
            counts = count_entries_by_type(path)
        except LogReadError as e:
            _fail(f"Could not read {path}: {e}")
        for entry_type, n in counts.items():
            totals[entry_type] = totals.get(entry_type, 0) + n

    for entry_type in sorted(totals):
        click.echo(f"{entry_type:<12} {format_number(totals[entry_type])}")


@click.command()
@click.argument('paths', nargs=-1, required=True)
@click.option('--output', '-o', help='Write JSON here instead of stdout')
@click.option('--project', 'project_name', default='', help='Project name stored in the export')
@click.option('--limit', type=click.IntRange(min=1), help='Analyze at most this many files')
@pricing_options
def export(paths, output, project_name, limit, input_rate, output_rate, cache_read_rate):
    """
    Export per-session usage as JSON.

    Example:
        tokenlog export ~/logs/*.jsonl -o usage.json
    """
    usage = analyze_log_files(paths, project_name=project_name, limit=limit,
                              rates=_rates(input_rate, output_rate, cache_read_rate))
    for failed in usage.failed_files:
        click.echo(f"Warning: could not analyze {failed}", err=True)

    data = export_usage_json(usage)
    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(data + "\n", encoding='utf-8')
        click.echo(f"✓ Exported {usage.totals['session_count']} session(s) to {output_path}")
        click.echo(f"  Cache hit ratio: {format_percent(usage.totals['cache_hit_ratio'])}")
    else:
        click.echo(data)
