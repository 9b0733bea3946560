# log_analysis/pipeline.py
"""
The enrichment pipeline run for every decoded log record.

A run walks a fixed sequence of stages, each consuming the previous stage's
output:

    NOTIFYING -> FETCHING_SNAPSHOT -> ANALYZING -> REPLYING -> DONE

Any failure moves the run to ABORTED. The failure is only logged; nothing is
posted to Slack about it and nothing is retried.
"""
import itertools
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from .claude_analyzer import ClaudeAnalyzer
from .errors import LogAnalysisError
from .github_snapshot import GitHubSnapshotFetcher
from .models import AppSettings, LogRecord
from .slack_notifier import SlackNotifier

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    NOTIFYING = "notifying"
    FETCHING_SNAPSHOT = "fetching_snapshot"
    ANALYZING = "analyzing"
    REPLYING = "replying"
    DONE = "done"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineStage.DONE, PipelineStage.ABORTED)


@dataclass
class PipelineRun:
    """Everything one run produces, owned by that run alone."""
    record: LogRecord
    thread_ts: Optional[str] = None
    snapshot: Optional[str] = None
    analysis: Optional[str] = None


class ErrorPipeline:
    """
    Drives the notifier, snapshot fetcher and analyzer for a single record.
    Stages run strictly in order on the calling thread.
    """

    def __init__(
        self,
        notifier: SlackNotifier,
        fetcher: GitHubSnapshotFetcher,
        analyzer: ClaudeAnalyzer,
    ):
        self.notifier = notifier
        self.fetcher = fetcher
        self.analyzer = analyzer
        self._handlers: Dict[PipelineStage, Callable[[PipelineRun], PipelineStage]] = {
            PipelineStage.NOTIFYING: self._notify,
            PipelineStage.FETCHING_SNAPSHOT: self._fetch_snapshot,
            PipelineStage.ANALYZING: self._analyze,
            PipelineStage.REPLYING: self._reply,
        }

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ErrorPipeline":
        """Builds a pipeline whose clients each hold their own HTTP session."""
        return cls(
            notifier=SlackNotifier(settings),
            fetcher=GitHubSnapshotFetcher(settings),
            analyzer=ClaudeAnalyzer(settings),
        )

    def close(self) -> None:
        """Closes the HTTP sessions held by the clients of this run."""
        for client in (self.notifier, self.fetcher, self.analyzer):
            client.session.close()

    def run(self, record: LogRecord) -> PipelineStage:
        """Runs every stage for `record` and returns the terminal stage reached."""
        run = PipelineRun(record=record)
        stage = PipelineStage.NOTIFYING
        while not stage.is_terminal:
            try:
                stage = self._handlers[stage](run)
            except LogAnalysisError as e:
                logger.error(f"Pipeline aborted in stage '{stage.value}': {type(e).__name__}: {e}")
                return PipelineStage.ABORTED
            except Exception:
                logger.exception(f"Pipeline aborted in stage '{stage.value}' by an unexpected error")
                return PipelineStage.ABORTED
        return stage

    # Stage handlers
    def _notify(self, run: PipelineRun) -> PipelineStage:
        run.thread_ts = self.notifier.post_error_alert(run.record)
        logger.info(f"Sent Slack notification, thread_ts: {run.thread_ts}")
        return PipelineStage.FETCHING_SNAPSHOT

    def _fetch_snapshot(self, run: PipelineRun) -> PipelineStage:
        run.snapshot = self.fetcher.fetch_snapshot()
        logger.info(f"Retrieved GitHub code, total size: {len(run.snapshot.encode('utf-8'))} bytes")
        return PipelineStage.ANALYZING

    def _analyze(self, run: PipelineRun) -> PipelineStage:
        run.analysis = self.analyzer.analyze(run.record, run.snapshot)
        logger.info("Received Claude analysis")
        return PipelineStage.REPLYING

    def _reply(self, run: PipelineRun) -> PipelineStage:
        self.notifier.post_thread_reply(run.thread_ts, run.analysis)
        logger.info("Sent analysis to Slack thread")
        return PipelineStage.DONE


class PipelineLauncher:
    """
    Starts one detached daemon thread per record and returns immediately.

    There is no cap on how many runs are in flight at once: every accepted
    event gets its own thread for as long as its external calls take.
    """

    def __init__(
        self,
        settings: AppSettings,
        pipeline_factory: Callable[[AppSettings], ErrorPipeline] = ErrorPipeline.from_settings,
    ):
        self.settings = settings
        self.pipeline_factory = pipeline_factory
        self._counter = itertools.count(1)

    def submit(self, record: LogRecord) -> threading.Thread:
        thread = threading.Thread(
            target=self._run,
            args=(record,),
            name=f"error-pipeline-{next(self._counter)}",
            daemon=True,
        )
        thread.start()
        return thread

    def _run(self, record: LogRecord) -> None:
        try:
            pipeline = self.pipeline_factory(self.settings)
        except LogAnalysisError as e:
            logger.error(f"Pipeline could not start: {type(e).__name__}: {e}")
            return
        try:
            pipeline.run(record)
        finally:
            pipeline.close()
