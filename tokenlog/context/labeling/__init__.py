"""
Labeling context: human-readable session labels.
"""

from tokenlog.context.labeling.session_labels import format_session_label, parse_timestamp

__all__ = [
    'format_session_label',
    'parse_timestamp',
]
