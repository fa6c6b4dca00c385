"""Version-control history extraction."""

from retrotrace.extraction.exec_pool import ExecError, ExecMetrics, ExecPool, ExecResult
from retrotrace.extraction.history_scanner import (
    CommitHistoryScanner,
    FileStat,
    LogEntry,
    group_commits_by_month,
    parse_log_line,
    parse_log_output,
    parse_stat_output,
    parse_timestamp,
)

__all__ = [
    "ExecPool",
    "ExecResult",
    "ExecMetrics",
    "ExecError",
    "CommitHistoryScanner",
    "LogEntry",
    "FileStat",
    "parse_log_line",
    "parse_log_output",
    "parse_stat_output",
    "parse_timestamp",
    "group_commits_by_month",
]
