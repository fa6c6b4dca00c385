"""Heuristic commit classification.

A commit is classified by an ordered table of rules: the first rule whose
predicate holds decides the category. Path patterns used by the rules also
drive the file buckets of ``DiffMetadata``.
"""

import fnmatch
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from retrotrace.models import CategoryType, CommitCategory, DiffMetadata, FileBuckets

CONFIG_FILE_PATTERNS: Tuple[str, ...] = (
    "package.json",
    ".env",
    ".env.*",
    "tsconfig*.json",
    "webpack.config.*",
    "vite.config.*",
    "rollup.config.*",
    "*.config.js",
    "*.config.ts",
    "*.config.mjs",
    "pyproject.toml",
    "setup.cfg",
    "requirements*.txt",
    "Cargo.toml",
    "go.mod",
)

TEST_PATH_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"(^|/)(tests?|__tests__|specs?)/"),
    re.compile(r"(^|/)test_[^/]*$"),
    re.compile(r"[._]test\.[^/]+$"),
    re.compile(r"\.spec\.[^/]+$"),
)

DOC_PATH_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"(^|/)docs?/"),
    re.compile(r"(^|/)(README|CHANGELOG)[^/]*$", re.IGNORECASE),
    re.compile(r"\.(md|rst|adoc)$", re.IGNORECASE),
)

FIX_KEYWORDS_RE = re.compile(r"\b(fix|bug|patch|resolve)\b")

CONFIG_MAX_FILES = 5
REFACTOR_MIN_FILES = 15
REFACTOR_MIN_LINES = 200


def is_config_file(path: str) -> bool:
    name = path.rsplit("/", 1)[-1]
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in CONFIG_FILE_PATTERNS)


def is_test_file(path: str) -> bool:
    return any(pattern.search(path) for pattern in TEST_PATH_PATTERNS)


def is_doc_file(path: str) -> bool:
    return any(pattern.search(path) for pattern in DOC_PATH_PATTERNS)


@dataclass(frozen=True)
class CommitSignals:
    """What the rules look at: lower-cased message, paths and magnitude."""

    message: str
    files: Tuple[str, ...]
    lines_changed: int
    has_config: bool
    has_tests: bool

    @classmethod
    def from_commit(cls, message: str, files: Sequence[str], lines_changed: int) -> "CommitSignals":
        return cls(
            message=message.lower(),
            files=tuple(files),
            lines_changed=lines_changed,
            has_config=any(is_config_file(f) for f in files),
            has_tests=any(is_test_file(f) for f in files),
        )


@dataclass(frozen=True)
class ClassificationRule:
    """One row of the classification table."""

    name: str
    category: CategoryType
    confidence: float
    predicate: Callable[[CommitSignals], bool]
    explain: Callable[[CommitSignals], str]

    def apply(self, signals: CommitSignals) -> Optional[CommitCategory]:
        if not self.predicate(signals):
            return None
        return CommitCategory(type=self.category, confidence=self.confidence, reasoning=self.explain(signals))


def _is_large_change(signals: CommitSignals) -> bool:
    return len(signals.files) > REFACTOR_MIN_FILES and signals.lines_changed > REFACTOR_MIN_LINES


DEFAULT_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        name="config",
        category="config",
        confidence=0.9,
        predicate=lambda s: s.has_config and len(s.files) <= CONFIG_MAX_FILES,
        explain=lambda s: f"Config file modifications: {', '.join(s.files)}",
    ),
    ClassificationRule(
        name="test",
        category="test",
        confidence=0.85,
        predicate=lambda s: s.has_tests and ("test" in s.message or "fix" in s.message),
        explain=lambda s: "Test files modified",
    ),
    ClassificationRule(
        name="refactor",
        category="refactor",
        confidence=0.9,
        predicate=lambda s: "refactor" in s.message or _is_large_change(s),
        explain=lambda s: (
            "Refactor mentioned in commit message"
            if "refactor" in s.message
            else "Large-scale file modifications"
        ),
    ),
    ClassificationRule(
        name="fix",
        category="fix",
        confidence=0.88,
        predicate=lambda s: FIX_KEYWORDS_RE.search(s.message) is not None,
        explain=lambda s: "Bug fix keywords detected",
    ),
    ClassificationRule(
        name="feature",
        category="feature",
        confidence=0.82,
        predicate=lambda s: any(k in s.message for k in ("feat", "add", "implement")),
        explain=lambda s: "Feature-related keywords detected",
    ),
    ClassificationRule(
        name="docs",
        category="docs",
        confidence=0.75,
        predicate=lambda s: "doc" in s.message or "readme" in s.message,
        explain=lambda s: "Documentation keywords detected",
    ),
)

UNKNOWN_CATEGORY = CommitCategory(type="unknown", confidence=0.5, reasoning="Cannot classify commit")


class CommitClassifier:
    """Derives a category and diff metadata for a commit."""

    def __init__(self, rules: Sequence[ClassificationRule] = DEFAULT_RULES) -> None:
        self.rules: List[ClassificationRule] = list(rules)

    def classify(self, message: str, files: Sequence[str], total_lines_changed: int) -> CommitCategory:
        """Classify a commit; the first matching rule wins.

        Args:
            message: Commit message (subject line)
            files: Changed file paths
            total_lines_changed: Insertions plus deletions

        Returns:
            CommitCategory, ``unknown`` with confidence 0.5 if no rule matches
        """
        signals = CommitSignals.from_commit(message, files, total_lines_changed)
        for rule in self.rules:
            category = rule.apply(signals)
            if category is not None:
                return category
        return UNKNOWN_CATEGORY

    def extract_metadata(self, files: Sequence[str], insertions: int, deletions: int) -> DiffMetadata:
        """Bucket files by kind and sum the diff magnitude.

        A path lands in exactly one bucket, checked as config, tests, docs,
        then code.
        """
        buckets = FileBuckets()
        for path in files:
            if is_config_file(path):
                buckets.config.append(path)
            elif is_test_file(path):
                buckets.tests.append(path)
            elif is_doc_file(path):
                buckets.docs.append(path)
            else:
                buckets.code.append(path)

        return DiffMetadata(
            total_files=len(files),
            total_lines_changed=insertions + deletions,
            insertions=insertions,
            deletions=deletions,
            categories=buckets,
        )

    def is_significant(self, metadata: DiffMetadata) -> bool:
        """Whether a commit is worth an event.

        Any config change is significant regardless of size; other commits
        need more than 5 files or more than 50 changed lines.
        """
        return metadata.total_files > 5 or metadata.total_lines_changed > 50 or metadata.has_config
