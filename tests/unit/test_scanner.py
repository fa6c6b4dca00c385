"""Unit tests for commit history scanning."""

from datetime import datetime, timezone

import pytest

from retrotrace.extraction import (
    CommitHistoryScanner,
    ExecPool,
    group_commits_by_month,
    parse_log_line,
    parse_log_output,
    parse_stat_output,
    parse_timestamp,
)
from retrotrace.models import ScanConfig

HASH_A = "a" * 40
HASH_B = "b" * 40


class FakeGitPool(ExecPool):
    """ExecPool answering ``git log`` and ``git show`` from canned output."""

    def __init__(self, log=(0, "", ""), stats=None, **kwargs):
        super().__init__(**kwargs)
        self.log = log
        self.stats = stats or {}
        self.commands = []

    def _execute(self, command, cwd, timeout):
        self.commands.append(command)
        if command[1] == "log":
            return self.log
        return self.stats.get(command[-1], (0, "", ""))


class TestParseLogLine:
    """Tests for parsing one log line."""

    def test_well_formed_line(self):
        entry = parse_log_line(f"{HASH_A}|Jane Doe|2025-10-01 09:30:00 +0000|feat: add auth")

        assert entry.hash == HASH_A
        assert entry.author == "Jane Doe"
        assert entry.timestamp == datetime(2025, 10, 1, 9, 30, tzinfo=timezone.utc)
        assert entry.message == "feat: add auth"

    def test_subject_may_contain_pipes(self):
        entry = parse_log_line(f"{HASH_A}|Jane|2025-10-01 09:30:00 +0000|fix: a | b | c")

        assert entry.message == "fix: a | b | c"

    def test_offset_is_converted_to_utc(self):
        entry = parse_log_line(f"{HASH_A}|Jane|2025-10-05 01:00:00 +0200|chore")

        assert entry.timestamp == datetime(2025, 10, 4, 23, 0, tzinfo=timezone.utc)

    def test_missing_author_defaults_to_unknown(self):
        entry = parse_log_line(f"{HASH_A}||2025-10-01 09:30:00 +0000|chore")

        assert entry.author == "unknown"

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "not a log line",
            "zzzz|Jane|2025-10-01 09:30:00 +0000|bad hash",
            f"{HASH_A}|Jane|yesterday|bad timestamp",
        ],
    )
    def test_malformed_lines(self, line):
        assert parse_log_line(line) is None

    def test_parse_log_output_skips_malformed_lines(self):
        output = "\n".join(
            [
                f"{HASH_A}|Jane|2025-10-02 10:00:00 +0000|second",
                "garbage",
                "",
                f"{HASH_B}|John|2025-10-01 10:00:00 +0000|first",
            ]
        )

        entries = parse_log_output(output)

        assert [e.hash for e in entries] == [HASH_A, HASH_B]

    def test_parse_timestamp_accepts_iso(self):
        assert parse_timestamp("2025-10-01T09:30:00Z") == datetime(2025, 10, 1, 9, 30, tzinfo=timezone.utc)


class TestParseStatOutput:
    """Tests for stat parsing and the insertion/deletion split."""

    def test_split_by_symbols(self):
        output = (
            " src/a.py   | 10 ++++++----\n"
            " tests/b.py |  4 ++++\n"
            " 2 files changed, 10 insertions(+), 4 deletions(-)\n"
        )

        stat = parse_stat_output(output)

        assert stat.files == ["src/a.py", "tests/b.py"]
        assert stat.insertions == 10
        assert stat.deletions == 4

    def test_proportional_split(self):
        stat = parse_stat_output(" main.py | 3 ++-\n")

        assert stat.insertions == 2
        assert stat.deletions == 1

    def test_binary_files_are_listed_without_lines(self):
        output = " assets/logo.png | Bin 0 -> 2048 bytes\n src/app.py | 2 ++\n"

        stat = parse_stat_output(output)

        assert stat.files == ["assets/logo.png", "src/app.py"]
        assert stat.insertions == 2
        assert stat.deletions == 0

    def test_empty_output(self):
        stat = parse_stat_output("")

        assert stat.files == []
        assert stat.insertions == 0
        assert stat.deletions == 0


class TestGroupByMonth:
    """Tests for group_commits_by_month."""

    def test_groups_by_utc_month(self, make_commit):
        commits = [
            make_commit("a", ["x.py"], days_ago=1),
            make_commit("b", ["x.py"], days_ago=2),
            make_commit("c", ["x.py"], days_ago=40),
        ]

        groups = group_commits_by_month(commits)

        assert list(groups.keys()) == ["2025-10-01", "2025-09-01"]
        assert len(groups["2025-10-01"]) == 2
        assert len(groups["2025-09-01"]) == 1


class TestScannerCommands:
    """Tests for the git commands the scanner issues."""

    def test_log_command_skips_merges(self, tmp_path):
        scanner = CommitHistoryScanner(tmp_path, ScanConfig(max_commits=50), ExecPool())

        assert scanner.build_log_command() == ["git", "log", "--format=%H|%an|%ai|%s", "--no-merges", "-n", "50"]

    def test_log_command_with_merges(self, tmp_path):
        scanner = CommitHistoryScanner(tmp_path, ScanConfig(skip_merges=False), ExecPool())

        assert "--no-merges" not in scanner.build_log_command()

    def test_stat_command(self, tmp_path):
        scanner = CommitHistoryScanner(tmp_path, ScanConfig(), ExecPool())

        assert scanner.build_stat_command(HASH_A) == ["git", "show", "--stat=4096", "--format=", HASH_A]


class TestScanHistory:
    """Tests for CommitHistoryScanner.scan_history."""

    def test_failed_log_returns_empty(self, tmp_path):
        pool = FakeGitPool(log=(128, "", "fatal: not a git repository"))
        scanner = CommitHistoryScanner(tmp_path, ScanConfig(), pool)

        assert scanner.scan_history() == []

    def test_failed_stat_yields_empty_file_list(self, tmp_path):
        log = (
            f"{HASH_A}|Jane|2025-10-02 10:00:00 +0000|feat: add auth\n"
            f"{HASH_B}|John|2025-10-01 10:00:00 +0000|initial\n"
        )
        pool = FakeGitPool(
            log=(0, log, ""),
            stats={
                HASH_A: (-9, "", "Timeout: killed"),
                HASH_B: (0, " README.md | 1 +\n", ""),
            },
        )
        scanner = CommitHistoryScanner(tmp_path, ScanConfig(), pool)

        commits = scanner.scan_history()

        assert [c.hash for c in commits] == [HASH_A, HASH_B]
        assert commits[0].files == []
        assert commits[0].lines_changed == 0
        assert commits[1].files == ["README.md"]
        assert commits[1].insertions == 1

    def test_max_commits_is_enforced(self, tmp_path):
        log = "\n".join(
            f"{str(i) * 40}|Jane|2025-10-0{i} 10:00:00 +0000|commit {i}" for i in range(1, 4)
        )
        pool = FakeGitPool(log=(0, log, ""))
        scanner = CommitHistoryScanner(tmp_path, ScanConfig(max_commits=2), pool)

        assert len(scanner.scan_history()) == 2

    def test_not_a_repository(self, tmp_path):
        scanner = CommitHistoryScanner(tmp_path, ScanConfig(), ExecPool(default_timeout=10.0))

        assert scanner.scan_history() == []

    def test_real_repository(self, test_repo):
        scanner = CommitHistoryScanner(test_repo, ScanConfig(), ExecPool(pool_size=2, default_timeout=10.0))

        commits = scanner.scan_history()

        assert [c.message for c in commits] == ["Fix: Update hello message", "Add main.py", "Initial commit"]
        assert commits[0].files == ["main.py"]
        assert commits[0].insertions == 1
        assert commits[0].deletions == 1
        assert commits[2].files == ["README.md"]
        assert all(c.author == "Test User" for c in commits)
        assert all(c.timestamp.tzinfo is not None for c in commits)
