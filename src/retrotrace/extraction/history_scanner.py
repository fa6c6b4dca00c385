"""Commit history scanning.

Reads a bounded, newest-first commit listing from ``git log`` and resolves
each commit's changed files and line counts with one ``git show --stat``
lookup per commit, run through an ExecPool.
"""

import math
import re
from collections import OrderedDict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

import structlog

from retrotrace.extraction.exec_pool import ExecPool, ExecResult
from retrotrace.models import Commit, ScanConfig

logger = structlog.get_logger(__name__)

LOG_FORMAT = "--format=%H|%an|%ai|%s"
GIT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %z"
STAT_WIDTH = 4096

_HASH_RE = re.compile(r"^[0-9a-f]{7,64}$")
# "src/file.py | 15 +++++---" (a zero-line entry has no symbols)
_STAT_LINE_RE = re.compile(r"^\s*(?P<path>.+?)\s+\|\s+(?P<changes>\d+)(?:\s+(?P<symbols>[+-]+))?\s*$")
# "assets/logo.png | Bin 0 -> 2048 bytes"
_STAT_BINARY_RE = re.compile(r"^\s*(?P<path>.+?)\s+\|\s+Bin\b")


class LogEntry(NamedTuple):
    """One parsed line of the log listing."""

    hash: str
    author: str
    timestamp: datetime
    message: str


class FileStat(NamedTuple):
    """Changed files and line totals parsed from stat output."""

    files: List[str]
    insertions: int
    deletions: int


EMPTY_STAT = FileStat(files=[], insertions=0, deletions=0)


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse a git ``%ai`` timestamp (or ISO-8601) into an aware UTC datetime."""
    value = value.strip()
    if not value:
        return None
    try:
        parsed = datetime.strptime(value, GIT_TIMESTAMP_FORMAT)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_log_line(line: str) -> Optional[LogEntry]:
    """Parse ``hash|author|timestamp|subject``; returns None for malformed lines.

    The subject may itself contain ``|``.
    """
    parts = line.strip().split("|", 3)
    if len(parts) < 3:
        return None

    commit_hash = parts[0].strip()
    if not _HASH_RE.match(commit_hash):
        return None

    timestamp = parse_timestamp(parts[2])
    if timestamp is None:
        return None

    return LogEntry(
        hash=commit_hash,
        author=parts[1].strip() or "unknown",
        timestamp=timestamp,
        message=parts[3].strip() if len(parts) > 3 else "",
    )


def parse_log_output(output: str) -> List[LogEntry]:
    """Parse the full log listing, skipping malformed lines."""
    entries = []
    for line in output.splitlines():
        if not line.strip():
            continue
        entry = parse_log_line(line)
        if entry is None:
            logger.debug("malformed_log_line_skipped", line=line[:80])
            continue
        entries.append(entry)
    return entries


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_stat_output(output: str) -> FileStat:
    """Parse ``git show --stat`` output.

    Each file's change count is split between insertions and deletions in
    proportion to its ``+``/``-`` symbols. Binary files are listed with no
    line changes.
    """
    files: List[str] = []
    insertions = 0.0
    deletions = 0.0

    for line in output.splitlines():
        binary = _STAT_BINARY_RE.match(line)
        if binary:
            files.append(binary.group("path").strip())
            continue

        match = _STAT_LINE_RE.match(line)
        if not match:
            continue

        files.append(match.group("path").strip())
        changes = int(match.group("changes"))
        symbols = match.group("symbols") or ""
        pluses = symbols.count("+")
        minuses = symbols.count("-")
        if pluses + minuses == 0:
            continue
        insertions += changes * pluses / (pluses + minuses)
        deletions += changes * minuses / (pluses + minuses)

    return FileStat(files=files, insertions=_round_half_up(insertions), deletions=_round_half_up(deletions))


def group_commits_by_month(commits: List[Commit]) -> Dict[str, List[Commit]]:
    """Group commits by the first day of their UTC month (``YYYY-MM-01``)."""
    groups: Dict[str, List[Commit]] = OrderedDict()
    for commit in commits:
        key = commit.timestamp.astimezone(timezone.utc).strftime("%Y-%m-01")
        groups.setdefault(key, []).append(commit)
    return groups


class CommitHistoryScanner:
    """Scans a repository's commit log into Commit models."""

    def __init__(
        self,
        workspace_root: Path,
        config: ScanConfig,
        exec_pool: ExecPool,
        log_timeout: float = 30.0,
    ) -> None:
        """Initialize the scanner.

        Args:
            workspace_root: Repository working directory
            config: Scan options
            exec_pool: Pool that runs every git subprocess
            log_timeout: Seconds allowed for the log listing itself
        """
        self.workspace_root = Path(workspace_root)
        self.config = config
        self.exec_pool = exec_pool
        self.log_timeout = log_timeout

    def build_log_command(self) -> List[str]:
        command = ["git", "log", LOG_FORMAT]
        if self.config.skip_merges:
            command.append("--no-merges")
        command.extend(["-n", str(self.config.max_commits)])
        return command

    def build_stat_command(self, commit_hash: str) -> List[str]:
        return ["git", "show", f"--stat={STAT_WIDTH}", "--format=", commit_hash]

    def scan_history(self) -> List[Commit]:
        """Scan the log, newest first.

        Returns:
            Up to ``max_commits`` commits. An unavailable repository or a
            failed log command yields an empty list.
        """
        result = self.exec_pool.run(self.build_log_command(), self.workspace_root, timeout=self.log_timeout)
        if not result.ok:
            logger.warning(
                "git_log_failed",
                workspace=str(self.workspace_root),
                returncode=result.returncode,
                timed_out=result.timed_out,
                error=result.stderr.strip()[:200],
            )
            return []

        entries = parse_log_output(result.stdout)[: self.config.max_commits]
        stat_results = self.exec_pool.run_many(
            [self.build_stat_command(entry.hash) for entry in entries],
            self.workspace_root,
        )

        commits = []
        for entry, stat_result in zip(entries, stat_results):
            stat = self._resolve_stat(entry.hash, stat_result)
            commits.append(
                Commit(
                    hash=entry.hash,
                    author=entry.author,
                    timestamp=entry.timestamp,
                    message=entry.message,
                    files=stat.files,
                    insertions=stat.insertions,
                    deletions=stat.deletions,
                )
            )

        logger.info("history_scanned", commits=len(commits), workspace=str(self.workspace_root))
        return commits

    def _resolve_stat(self, commit_hash: str, result: ExecResult) -> FileStat:
        if not result.ok:
            logger.warning(
                "stat_lookup_failed",
                commit_hash=commit_hash[:7],
                timed_out=result.timed_out,
                error=result.stderr.strip()[:200],
            )
            return EMPTY_STAT
        return parse_stat_output(result.stdout)
