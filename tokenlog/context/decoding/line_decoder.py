"""
Line Decoder: sequential byte source -> numbered text lines

Turns a log file (plain or whole-file gzip) into text lines without ever
holding more than one chunk plus one partial line in memory:
- LF and CRLF both terminate a line
- The last line does not need a terminator
- No line length limit beyond available memory
- Raw (on-disk) byte counts are reported as chunks are read, for progress

The decoder knows nothing about JSON; it only produces lines.
"""

import gzip
import io
import logging
import os
import zlib
from typing import BinaryIO, Callable, Iterator, Optional, Tuple, Union

from tokenlog.exceptions import LogReadError
from tokenlog.protocols import LineSourceProtocol

logger = logging.getLogger(__name__)

GZIP_SUFFIXES = ('.gz', '.gzip')
DEFAULT_CHUNK_SIZE = 64 * 1024

Source = Union[str, os.PathLike, BinaryIO]


def is_gzip_file(path: Union[str, os.PathLike]) -> bool:
    """
    Decide from the file name whether a log is gzip compressed.

    Examples:
        >>> is_gzip_file('session.jsonl.gz')
        True
        >>> is_gzip_file('session.jsonl')
        False
    """
    return str(path).lower().endswith(GZIP_SUFFIXES)


def get_file_size(path: Union[str, os.PathLike]) -> int:
    """Return the size of a file in bytes, or 0 if it cannot be stat'ed."""
    try:
        return os.stat(path).st_size
    except OSError:
        return 0


class _CountingReader:
    """Wraps a binary stream and reports cumulative bytes read from it."""

    def __init__(self, fileobj: BinaryIO, on_read: Callable[[int], None]):
        self._fileobj = fileobj
        self._on_read = on_read
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._fileobj.read(size)
        if chunk:
            self.bytes_read += len(chunk)
            self._on_read(self.bytes_read)
        return chunk

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False


class LineDecoder(LineSourceProtocol):
    """
    Forward-only line reader over a path or an opened binary stream.

    Files opened by the decoder are closed when iteration ends, when the
    iterator is closed early, or when an error propagates. Streams handed in
    by the caller are left open.
    """

    def __init__(self, source: Source, compressed: Optional[bool] = None,
                 on_bytes: Optional[Callable[[int], None]] = None,
                 chunk_size: int = DEFAULT_CHUNK_SIZE, encoding: str = 'utf-8'):
        """
        Args:
            source: File path, or a binary stream opened for reading
            compressed: Force gzip handling on/off; None decides from the
                ``.gz``/``.gzip`` suffix of the path (or the stream's name)
            on_bytes: Called with the cumulative raw byte count per chunk
            chunk_size: Bytes requested per read
            encoding: Text encoding of the lines
        """
        self.source = source
        self._is_stream = hasattr(source, 'read')
        if compressed is None:
            compressed = is_gzip_file(self.name) if self.name else False
        self.compressed = compressed
        self.on_bytes = on_bytes
        self.chunk_size = chunk_size
        self.encoding = encoding

        self._total_bytes: Optional[int] = None
        self._counter: Optional[_CountingReader] = None
        self._owned_file: Optional[BinaryIO] = None
        self._gzip_file: Optional[gzip.GzipFile] = None
        self._started = False

    @property
    def name(self) -> str:
        """Path of the source, or '' for anonymous streams."""
        if self._is_stream:
            name = getattr(self.source, 'name', '')
            return name if isinstance(name, str) else ''
        return os.fspath(self.source)

    @property
    def total_bytes(self) -> int:
        if self._total_bytes is None:
            if self._is_stream:
                return self._stream_size(self.source)
            return get_file_size(self.source)
        return self._total_bytes

    @property
    def bytes_read(self) -> int:
        return self._counter.bytes_read if self._counter else 0

    @staticmethod
    def _stream_size(stream: BinaryIO) -> int:
        """Remaining size of a seekable stream; the position is restored."""
        try:
            if not stream.seekable():
                return 0
            position = stream.tell()
            end = stream.seek(0, io.SEEK_END)
            stream.seek(position)
            return max(end - position, 0)
        except (OSError, ValueError):
            return 0

    def _report(self, count: int) -> None:
        if self.on_bytes is not None:
            self.on_bytes(count)

    def _open(self):
        """Open the source and return the object to read decoded bytes from."""
        label = self.name or '<stream>'
        if self._is_stream:
            raw = self.source
            self._total_bytes = self._stream_size(raw)
        else:
            try:
                raw = open(self.source, 'rb')
            except OSError as e:
                raise LogReadError(f"Cannot open {label}: {e}", path=label) from e
            self._owned_file = raw
            try:
                self._total_bytes = os.fstat(raw.fileno()).st_size
            except OSError:
                self._total_bytes = get_file_size(self.source)

        self._counter = _CountingReader(raw, self._report)
        logger.debug("Opened %s (%d bytes, gzip=%s)", label, self._total_bytes, self.compressed)

        if self.compressed:
            self._gzip_file = gzip.GzipFile(fileobj=self._counter, mode='rb')
            return self._gzip_file
        return self._counter

    def _decode(self, raw_line: bytes, line_number: int) -> str:
        text = raw_line.decode(self.encoding, errors='replace')
        if text.endswith('\r'):
            text = text[:-1]
        if line_number == 1 and text.startswith('\ufeff'):
            text = text[1:]
        return text

    def __iter__(self) -> Iterator[Tuple[int, str]]:
        if self._started:
            raise RuntimeError("LineDecoder can only be iterated once")
        self._started = True

        label = self.name or '<stream>'
        reader = self._open()
        try:
            buffer = bytearray()
            line_number = 0
            while True:
                try:
                    chunk = reader.read(self.chunk_size)
                except (OSError, EOFError, zlib.error) as e:
                    raise LogReadError(f"Cannot read {label}: {e}", path=label) from e
                if not chunk:
                    break

                # Bytes already in the buffer hold no newline
                scan_from = len(buffer)
                buffer += chunk
                start = 0
                while True:
                    end = buffer.find(b'\n', max(start, scan_from))
                    if end < 0:
                        break
                    line_number += 1
                    yield line_number, self._decode(buffer[start:end], line_number)
                    start = end + 1
                del buffer[:start]

            if buffer:
                line_number += 1
                yield line_number, self._decode(buffer, line_number)
        finally:
            self.close()

    def close(self) -> None:
        """Release the gzip context and any file this decoder opened."""
        if self._gzip_file is not None:
            self._gzip_file.close()
            self._gzip_file = None
        if self._owned_file is not None:
            self._owned_file.close()
            self._owned_file = None
            logger.debug("Closed %s", self.name)

    @property
    def closed(self) -> bool:
        return self._owned_file is None and self._gzip_file is None
