"""
Command line interface for tokenlog.
"""

from tokenlog.cli.commands import analyze, sessions, count, export

__all__ = [
    'analyze',
    'sessions',
    'count',
    'export',
]
