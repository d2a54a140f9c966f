"""
Decoding context: byte sources to text lines.
"""

from tokenlog.context.decoding.line_decoder import (
    LineDecoder, is_gzip_file, get_file_size, GZIP_SUFFIXES, DEFAULT_CHUNK_SIZE
)

__all__ = [
    'LineDecoder',
    'is_gzip_file',
    'get_file_size',
    'GZIP_SUFFIXES',
    'DEFAULT_CHUNK_SIZE',
]
