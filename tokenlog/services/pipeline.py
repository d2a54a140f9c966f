"""
Streaming Pipeline: Line Decoder + Record Parser -> lazy LogEntry sequence

    stream = LogStream("session.jsonl.gz", filter_types={"assistant"},
                       on_error=errors.append)
    for entry in stream:
        ...
    stream.stats  # ParserStats, available once the stream is drained

Guarantees:
- Entries come out in file order
- Malformed lines are reported through on_error and counted, then skipped
  (or raise ParseFailure when skip_malformed=False)
- on_progress gets (bytes_read, total_bytes) per raw chunk (total_bytes is 0
  while the size is unknown), and exactly one final call with
  bytes_read == total_bytes when the stream is drained
- Files are closed on exhaustion, early break/close, and errors
- A stream is single-use; create a new one to read the source again
"""

import dataclasses
import io
import logging
import time
from typing import Generator, Iterator, List, Optional, Union

from tokenlog.context.decoding import LineDecoder
from tokenlog.context.decoding.line_decoder import Source
from tokenlog.context.parsing import RecordParser
from tokenlog.exceptions import ParseFailure
from tokenlog.models import LogEntry, ParseError, ParseResult, ParserStats, StreamOptions
from tokenlog.protocols import RecordParserProtocol

logger = logging.getLogger(__name__)


class LogStream:
    """
    One pass over one log source.

    Options can be given as a StreamOptions instance, as keyword arguments,
    or both (keywords override the instance).
    """

    def __init__(self, source: Source, options: Optional[StreamOptions] = None,
                 parser: Optional[RecordParserProtocol] = None, **overrides):
        if options is None:
            options = StreamOptions(**overrides)
        elif overrides:
            options = dataclasses.replace(options, **overrides)
        self.source = source
        self.options = options
        self.parser = parser or RecordParser()
        self.stats: Optional[ParserStats] = None

        self._decoder: Optional[LineDecoder] = None
        self._generator: Optional[Generator] = None

    def __iter__(self) -> Generator[LogEntry, None, ParserStats]:
        self._generator = self._run(with_meta=False)
        return self._generator

    def with_meta(self) -> Generator[ParseResult, None, ParserStats]:
        """Iterate (entry, line_number, raw) results instead of bare entries."""
        self._generator = self._run(with_meta=True)
        return self._generator

    def close(self) -> None:
        """Stop the stream early and release the underlying file."""
        if self._generator is not None:
            self._generator.close()
        if self._decoder is not None:
            self._decoder.close()

    def __enter__(self) -> 'LogStream':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _on_bytes(self, bytes_read: int) -> None:
        on_progress = self.options.on_progress
        if on_progress is None or self._decoder is None:
            return
        total = self._decoder.total_bytes
        # The equal/over-total report is saved for end-of-stream; a total of
        # 0 means the size is unknown
        if bytes_read < total or total == 0:
            on_progress(bytes_read, total)

    def _run(self, with_meta: bool) -> Generator[Union[LogEntry, ParseResult], None, ParserStats]:
        if self._decoder is not None:
            raise RuntimeError("LogStream can only be consumed once; create a new one to re-read")

        opts = self.options
        stats = ParserStats()
        started = time.perf_counter()

        self._decoder = decoder = LineDecoder(
            self.source,
            compressed=opts.compressed,
            on_bytes=self._on_bytes,
            chunk_size=opts.chunk_size,
            encoding=opts.encoding,
        )
        lines = iter(decoder)
        try:
            for line_number, line in lines:
                stats.total_lines += 1
                result = self.parser.parse_line(line, line_number)

                if result is None:
                    stats.ignored_lines += 1
                    continue

                if isinstance(result, ParseError):
                    stats.skipped_lines += 1
                    if opts.on_error is not None:
                        opts.on_error(result)
                    if not opts.skip_malformed:
                        raise ParseFailure(result)
                    continue

                if opts.filter_types and result.entry_type not in opts.filter_types:
                    stats.filtered_lines += 1
                    continue

                stats.parsed_lines += 1
                if with_meta:
                    yield ParseResult(entry=result, line_number=line_number, raw=line)
                else:
                    yield result
        finally:
            lines.close()

        stats.bytes_processed = decoder.bytes_read
        if opts.on_progress is not None:
            final = max(decoder.total_bytes, decoder.bytes_read)
            opts.on_progress(final, final)

        stats.duration_ms = (time.perf_counter() - started) * 1000
        self.stats = stats

        if stats.skipped_lines:
            logger.info("Skipped %d malformed line(s) in %s", stats.skipped_lines,
                        decoder.name or '<stream>')
        logger.debug("Finished %s: %s", decoder.name or '<stream>', stats)
        return stats


def stream_jsonl(source: Source, options: Optional[StreamOptions] = None,
                 **overrides) -> Generator[LogEntry, None, ParserStats]:
    """
    Lazily stream the entries of a JSONL log.

    The generator's return value (StopIteration.value) is the ParserStats.
    """
    return iter(LogStream(source, options, **overrides))


def stream_jsonl_with_meta(source: Source, options: Optional[StreamOptions] = None,
                           **overrides) -> Generator[ParseResult, None, ParserStats]:
    """Like stream_jsonl, but yields ParseResult (entry, line number, raw text)."""
    return LogStream(source, options, **overrides).with_meta()


def read_jsonl(source: Source, options: Optional[StreamOptions] = None,
               **overrides) -> List[LogEntry]:
    """Read a whole log into a list. Prefer stream_jsonl for large files."""
    return list(stream_jsonl(source, options, **overrides))


def parse_jsonl_string(content: str, options: Optional[StreamOptions] = None,
                       **overrides) -> Iterator[LogEntry]:
    """Parse JSONL text that is already in memory."""
    overrides.setdefault('compressed', False)
    if options is not None:
        encoding = overrides.get('encoding', options.encoding)
    else:
        encoding = overrides.get('encoding', 'utf-8')
    return stream_jsonl(io.BytesIO(content.encode(encoding)), options, **overrides)
