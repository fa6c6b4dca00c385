"""Bounded execution pool for git subprocess calls.

Every git invocation made while scanning history goes through an
``ExecPool``: at most ``pool_size`` subprocesses run at once and each one
is killed after its timeout. The pool is an explicit object handed to its
users; there is no shared module-level instance.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import git
import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)

_TIMEOUT_MARKER = "Timeout:"


class ExecError(RuntimeError):
    """Raised by ``ExecResult.check`` for a failed or timed-out command."""

    def __init__(self, command: Sequence[str], result: "ExecResult") -> None:
        self.command = list(command)
        self.result = result
        reason = "timed out" if result.timed_out else f"exited with {result.returncode}"
        super().__init__(f"Command {' '.join(self.command)!r} {reason}: {result.stderr.strip()}")


class ExecResult(BaseModel):
    """Outcome of a single pooled command."""

    command: List[str] = Field(default_factory=list, description="Executed argv")
    returncode: int = Field(0, description="Process exit status, -1 if it could not start")
    stdout: str = Field("", description="Captured standard output")
    stderr: str = Field("", description="Captured standard error")
    duration_ms: float = Field(0.0, description="Wall-clock duration in milliseconds")
    timed_out: bool = Field(False, description="Whether the command was killed by its timeout")

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    def check(self) -> "ExecResult":
        """Return self, or raise ExecError if the command did not succeed."""
        if not self.ok:
            raise ExecError(self.command, self)
        return self


class LatencyStats(BaseModel):
    """Latency percentiles in milliseconds."""

    p50: float = 0.0
    p90: float = 0.0
    p99: float = 0.0
    max: float = 0.0


class ExecMetrics(BaseModel):
    """Counters collected by an ExecPool."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    timed_out: int = 0
    latency: LatencyStats = Field(default_factory=LatencyStats)


def _percentile(sorted_values: List[float], fraction: float) -> float:
    if not sorted_values:
        return 0.0
    index = min(len(sorted_values) - 1, int(len(sorted_values) * fraction))
    return sorted_values[index]


class ExecPool:
    """Runs git commands with bounded concurrency and per-call timeouts."""

    def __init__(self, pool_size: int = 2, default_timeout: float = 2.0) -> None:
        """Initialize the pool.

        Args:
            pool_size: Maximum number of commands running at the same time
            default_timeout: Seconds before a command is killed

        Raises:
            ValueError: If pool_size or default_timeout is not positive
        """
        if pool_size < 1:
            raise ValueError(f"pool_size must be at least 1, got {pool_size}")
        if default_timeout <= 0:
            raise ValueError(f"default_timeout must be positive, got {default_timeout}")

        self.pool_size = pool_size
        self.default_timeout = default_timeout
        self._slots = threading.BoundedSemaphore(pool_size)
        self._lock = threading.Lock()

        # Metrics
        self._latencies: List[float] = []
        self._total = 0
        self._successful = 0
        self._failed = 0
        self._timed_out = 0

    def run(
        self,
        command: Sequence[str],
        cwd: Path,
        timeout: Optional[float] = None,
    ) -> ExecResult:
        """Run one command once a pool slot is free.

        Args:
            command: Full argv, starting with ``git``
            cwd: Working directory
            timeout: Seconds before the command is killed (default: pool timeout)

        Returns:
            ExecResult. Failures and timeouts are reported in the result,
            never raised.
        """
        timeout = timeout or self.default_timeout
        argv = list(command)

        with self._slots:
            start = time.monotonic()
            try:
                status, stdout, stderr = self._execute(argv, Path(cwd), timeout)
            except (git.exc.CommandError, OSError) as e:
                status, stdout, stderr = -1, "", str(e)
            duration_ms = (time.monotonic() - start) * 1000

        timed_out = status != 0 and (
            stderr.startswith(_TIMEOUT_MARKER) or duration_ms >= timeout * 1000
        )
        result = ExecResult(
            command=argv,
            returncode=status,
            stdout=stdout,
            stderr=stderr,
            duration_ms=duration_ms,
            timed_out=timed_out,
        )
        self._record(result)

        if timed_out:
            logger.warning("command_timed_out", command=" ".join(argv[:3]), timeout=timeout)
        elif not result.ok:
            logger.debug("command_failed", command=" ".join(argv[:3]), returncode=status)

        return result

    def run_many(
        self,
        commands: Sequence[Sequence[str]],
        cwd: Path,
        timeout: Optional[float] = None,
    ) -> List[ExecResult]:
        """Run several commands concurrently, at most ``pool_size`` at a time.

        Returns:
            One ExecResult per command, in the same order as ``commands``
        """
        if not commands:
            return []

        with ThreadPoolExecutor(
            max_workers=self.pool_size, thread_name_prefix="retrotrace-exec"
        ) as executor:
            return list(executor.map(lambda command: self.run(command, cwd, timeout), commands))

    def metrics(self) -> ExecMetrics:
        """Snapshot of the counters collected so far."""
        with self._lock:
            latencies = sorted(self._latencies)
            return ExecMetrics(
                total=self._total,
                successful=self._successful,
                failed=self._failed,
                timed_out=self._timed_out,
                latency=LatencyStats(
                    p50=_percentile(latencies, 0.50),
                    p90=_percentile(latencies, 0.90),
                    p99=_percentile(latencies, 0.99),
                    max=latencies[-1] if latencies else 0.0,
                ),
            )

    def _execute(self, command: List[str], cwd: Path, timeout: float) -> Tuple[int, str, str]:
        """Run the command through GitPython and return (status, stdout, stderr)."""
        return git.Git(str(cwd)).execute(
            command,
            with_extended_output=True,
            with_exceptions=False,
            kill_after_timeout=timeout,
        )

    def _record(self, result: ExecResult) -> None:
        with self._lock:
            self._total += 1
            if result.timed_out:
                self._timed_out += 1
            elif result.ok:
                self._successful += 1
                self._latencies.append(result.duration_ms)
            else:
                self._failed += 1
