"""Reconstruction orchestrator - drives the pipeline end to end."""

from pathlib import Path
from typing import List, Optional, Sequence

import structlog

from retrotrace.analysis import CommitClassifier, ConfidenceEstimator, TemporalWeighter
from retrotrace.extraction import CommitHistoryScanner, ExecPool
from retrotrace.models import Commit, ReconstructionConfig, ReconstructionResult, RetroactivePattern, SyntheticEvent
from retrotrace.reconstruction.store import CorruptBucketError, TraceStore
from retrotrace.synthesis import EventSynthesizer, PatternInferencer

logger = structlog.get_logger(__name__)


def average_confidence(events: Sequence[SyntheticEvent]) -> float:
    if not events:
        return 0.0
    return sum(event.metadata.confidence for event in events) / len(events)


def build_summary(commits: int, events: int, patterns: int, confidence: float) -> str:
    return (
        "Retroactive reconstruction summary\n"
        f"Commits analyzed: {commits}\n"
        f"Events generated: {events}\n"
        f"Patterns detected: {patterns}\n"
        f"Average confidence: {confidence * 100:.1f}%"
    )


class ReconstructionOrchestrator:
    """Reconstructs a plausible activity history from the commit log.

    Coordinates scanning, event synthesis, pattern inference and
    persistence. Every stage is contained: a failing stage degrades to an
    empty result and a warning, and ``reconstruct`` always returns.
    """

    def __init__(
        self,
        workspace_root: Path,
        config: Optional[ReconstructionConfig] = None,
        exec_pool: Optional[ExecPool] = None,
        scanner: Optional[CommitHistoryScanner] = None,
        synthesizer: Optional[EventSynthesizer] = None,
        inferencer: Optional[PatternInferencer] = None,
        store: Optional[TraceStore] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            workspace_root: Repository working directory
            config: Run settings (default: ReconstructionConfig())
            exec_pool: Pool for git subprocesses (default: built from config)
            scanner: History scanner (default: built from config and pool)
            synthesizer: Event synthesizer (default: built from config)
            inferencer: Pattern inferencer
            store: Event and pattern store (default: under config.reasoning_dir)
        """
        self.workspace_root = Path(workspace_root)
        self.config = config or ReconstructionConfig()
        self.exec_pool = exec_pool or ExecPool(self.config.exec_pool_size, self.config.exec_timeout)
        self.scanner = scanner or CommitHistoryScanner(
            self.workspace_root,
            self.config.scan_config(),
            self.exec_pool,
            log_timeout=self.config.log_timeout,
        )
        self.synthesizer = synthesizer or EventSynthesizer(
            classifier=CommitClassifier(),
            estimator=ConfidenceEstimator(),
            weighter=TemporalWeighter(self.config.decay_rate),
            max_age_months=self.config.max_age_months,
        )
        self.inferencer = inferencer or PatternInferencer()
        self.store = store or TraceStore(self.config.resolve_reasoning_dir(self.workspace_root))

    def should_reconstruct(self) -> bool:
        """False once any day bucket holds an observed (non-synthetic) event."""
        return not self.store.has_observed_events()

    def reconstruct(self) -> ReconstructionResult:
        """Run scan, synthesis, inference and persistence.

        Returns:
            ReconstructionResult; degraded stages are listed in ``warnings``
        """
        logger.info("reconstruction_started", workspace=str(self.workspace_root))
        warnings: List[str] = []

        commits = self._scan(warnings)
        events = self._synthesize(commits, warnings)
        patterns = self._infer(events, warnings)
        self._persist(events, patterns, warnings)

        confidence = average_confidence(events)
        result = ReconstructionResult(
            commits_analyzed=len(commits),
            events_generated=len(events),
            patterns_detected=len(patterns),
            average_confidence=confidence,
            summary=build_summary(len(commits), len(events), len(patterns), confidence),
            warnings=warnings,
        )

        logger.info(
            "reconstruction_completed",
            commits=result.commits_analyzed,
            events=result.events_generated,
            patterns=result.patterns_detected,
            average_confidence=round(confidence, 3),
            warnings=len(warnings),
        )
        return result

    def _scan(self, warnings: List[str]) -> List[Commit]:
        try:
            commits = self.scanner.scan_history()
        except Exception as e:
            logger.warning("scan_stage_failed", error=str(e), exc_info=True)
            warnings.append(f"History scan failed: {e}")
            return []
        if not commits:
            warnings.append("No commits found in history")
        return commits

    def _synthesize(self, commits: List[Commit], warnings: List[str]) -> List[SyntheticEvent]:
        # Log order (newest first); the inferencer sorts chronologically itself.
        try:
            return self.synthesizer.synthesize_events(commits)
        except Exception as e:
            logger.warning("synthesis_stage_failed", error=str(e), exc_info=True)
            warnings.append(f"Event synthesis failed: {e}")
            return []

    def _infer(self, events: List[SyntheticEvent], warnings: List[str]) -> List[RetroactivePattern]:
        try:
            return self.inferencer.infer_patterns(events)
        except Exception as e:
            logger.warning("inference_stage_failed", error=str(e), exc_info=True)
            warnings.append(f"Pattern inference failed: {e}")
            return []

    def _persist(
        self,
        events: List[SyntheticEvent],
        patterns: List[RetroactivePattern],
        warnings: List[str],
    ) -> None:
        # The two stores are written independently; one may succeed without the other.
        try:
            self.store.merge_events(self.synthesizer.group_events_by_date(events))
        except OSError as e:
            logger.warning("event_store_write_failed", error=str(e))
            warnings.append(f"Could not persist events: {e}")

        try:
            self.store.merge_patterns(patterns)
        except (CorruptBucketError, OSError) as e:
            logger.warning("pattern_store_write_failed", error=str(e))
            warnings.append(f"Could not persist patterns: {e}")
