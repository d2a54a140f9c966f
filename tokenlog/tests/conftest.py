"""
Pytest configuration and shared fixtures for tokenlog tests
"""

import gzip
import pytest
from pathlib import Path
from typing import List

SAMPLE_LINES = [
    '{"type":"user","timestamp":"2024-01-01T10:00:00Z","content":"Hello","session_id":"sess-1"}',
    '{"type":"assistant","timestamp":"2024-01-01T10:00:01Z","content":"Hi there!",'
    '"model":"claude-sonnet-4-20250514","usage":{"input_tokens":100,"output_tokens":50},'
    '"session_id":"sess-1"}',
    '{"type":"tool","timestamp":"2024-01-01T10:00:02Z","name":"Read","result":"file contents",'
    '"session_id":"sess-1"}',
    '{"type":"user","timestamp":"2024-01-01T10:00:03Z","content":"Read this file","session_id":"sess-1"}',
    '{"type":"assistant","timestamp":"2024-01-01T10:00:04Z","content":"Done!",'
    '"model":"claude-sonnet-4-20250514","usage":{"input_tokens":200,"output_tokens":100,'
    '"cache_read_input_tokens":50},"session_id":"sess-1"}',
]

SAMPLE_JSONL = "\n".join(SAMPLE_LINES)


@pytest.fixture
def sample_lines() -> List[str]:
    """The five lines of a short single-session log"""
    return list(SAMPLE_LINES)


@pytest.fixture
def sample_jsonl() -> str:
    """Sample log content, no trailing newline"""
    return SAMPLE_JSONL


@pytest.fixture
def sample_file(tmp_path) -> Path:
    """Sample log written to disk"""
    path = tmp_path / "session.jsonl"
    path.write_text(SAMPLE_JSONL + "\n", encoding="utf-8")
    return path


@pytest.fixture
def sample_gzip_file(tmp_path) -> Path:
    """Same content as sample_file, gzip compressed"""
    path = tmp_path / "session.jsonl.gz"
    with gzip.open(path, "wb") as f:
        f.write((SAMPLE_JSONL + "\n").encode("utf-8"))
    return path


@pytest.fixture
def mixed_file(tmp_path) -> Path:
    """Valid entries with malformed lines at 2 and 4"""
    path = tmp_path / "mixed.jsonl"
    path.write_text(
        '{"type":"user","session_id":"s1"}\n'
        '{not json\n'
        '{"type":"assistant","session_id":"s1","usage":{"input_tokens":10,"output_tokens":5}}\n'
        '[1, 2, 3]\n'
        '{"type":"user","session_id":"s1"}\n',
        encoding="utf-8",
    )
    return path


@pytest.fixture
def blank_lines_file(tmp_path) -> Path:
    """Three blank lines, nothing else"""
    path = tmp_path / "blank.jsonl"
    path.write_text("\n\n\n", encoding="utf-8")
    return path


@pytest.fixture
def commented_file(tmp_path) -> Path:
    """Hand-written fixture style: comments and blank lines between entries"""
    path = tmp_path / "commented.jsonl"
    path.write_text(
        "# recorded by hand\n"
        '{"type":"user","session_id":"s1"}\n'
        "\n"
        "  # indented comment\n"
        '{"type":"assistant","session_id":"s1"}\n',
        encoding="utf-8",
    )
    return path


@pytest.fixture
def multi_session_file(tmp_path) -> Path:
    """Three sessions written out of start-time order, one entry without an id"""
    path = tmp_path / "multi.jsonl"
    path.write_text(
        '{"type":"user","timestamp":"2024-01-02T09:00:00Z","session_id":"late"}\n'
        '{"type":"user","timestamp":"2024-01-01T08:00:00Z","session_id":"early"}\n'
        '{"type":"assistant","timestamp":"2024-01-01T08:05:00Z","session_id":"early",'
        '"model":"model-a","usage":{"input_tokens":10,"output_tokens":20}}\n'
        '{"type":"assistant","timestamp":"2024-01-01T08:10:00Z","session_id":"early",'
        '"model":"model-b","usage":{"input_tokens":1,"output_tokens":2}}\n'
        '{"type":"system","content":"no session here"}\n'
        '{"type":"assistant","timestamp":"2024-01-02T09:01:00Z","session_id":"late",'
        '"usage":{"input_tokens":5,"output_tokens":5,"cache_read_input_tokens":7}}\n',
        encoding="utf-8",
    )
    return path


@pytest.fixture
def large_log_file(tmp_path) -> Path:
    """Log large enough to span many read chunks"""
    path = tmp_path / "large.jsonl"
    line = (
        '{"type":"assistant","timestamp":"2024-01-01T10:00:00Z","session_id":"bulk",'
        '"usage":{"input_tokens":3,"output_tokens":2}}\n'
    )
    path.write_text(line * 5000, encoding="utf-8")
    return path
