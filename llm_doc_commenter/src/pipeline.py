"""
Per-file pipeline and batch runner.

Chains the components for every file:

    extract -> analyze -> (documentation source) -> synthesize -> apply/preview

The documentation source is asked once per batch with the reports of every
file that has gaps. Files are processed one after the other. A failure in
one file is recorded on its FileResult and the batch moves on; only a
failed restore is treated as critical.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

import click

from .constants import DEFAULT_WINDOW_LINES
from .exceptions import (
    BackupFailure,
    CommitFailure,
    ReadError,
    RestoreFailure,
    StaleSnapshotError,
)
from .extractor import StructuralExtractor
from .gaps import DocumentationGapAnalyzer, FileGapReport
from .mutation import MutationAttempt, MutationEngine
from .sources import DocumentationSource, TemplateSource
from .synthesizer import CommentInsertion, CommentSynthesizer
from ..utils.logger_setup import get_logger
from ..utils.response_schemas import ElementDocumentation

logger = get_logger(__name__)


class FileStatus(Enum):
    """Outcome of one file in a batch."""
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    PREVIEWED = "previewed"
    READ_ERROR = "read_error"
    STALE = "stale"
    BACKUP_FAILED = "backup_failed"
    COMMIT_FAILED = "commit_failed"
    RESTORE_FAILED = "restore_failed"


ERROR_STATUSES = frozenset({
    FileStatus.READ_ERROR,
    FileStatus.STALE,
    FileStatus.BACKUP_FAILED,
    FileStatus.COMMIT_FAILED,
    FileStatus.RESTORE_FAILED,
})


@dataclass
class FileResult:
    """What happened to one file."""
    file_path: str
    status: FileStatus
    report: Optional[FileGapReport] = None
    insertions: List[CommentInsertion] = field(default_factory=list)
    attempt: Optional[MutationAttempt] = None
    error: Optional[str] = None

    @property
    def comments_added(self) -> int:
        if self.attempt is None or not self.attempt.changed:
            return 0
        return len(self.attempt.applied)


@dataclass
class BatchResult:
    """Outcome of a whole run."""
    files: List[FileResult] = field(default_factory=list)

    def by_status(self, status: FileStatus) -> List[FileResult]:
        return [r for r in self.files if r.status == status]

    @property
    def errors(self) -> List[FileResult]:
        return [r for r in self.files if r.status in ERROR_STATUSES]

    @property
    def critical(self) -> bool:
        """True when a file could not be restored and needs manual recovery."""
        return any(r.status == FileStatus.RESTORE_FAILED for r in self.files)

    @property
    def comments_added(self) -> int:
        return sum(r.comments_added for r in self.files)


class CommentPipeline:
    """Runs the full extraction-to-mutation pipeline over files."""

    def __init__(
        self,
        source: Optional[DocumentationSource] = None,
        window_lines: int = DEFAULT_WINDOW_LINES,
        only_functions: bool = False,
        dry_run: bool = False,
        engine: Optional[MutationEngine] = None,
        echo: Callable[[str], None] = click.echo
    ):
        """
        Initialize CommentPipeline.

        Args:
            source: Documentation source (default: templates only)
            window_lines: Lines above an element searched for existing comments
            only_functions: Do not document classes
            dry_run: Preview instead of writing
            engine: MutationEngine to use (default: one with window_lines)
            echo: Output function used for previews
        """
        self.source = source or TemplateSource()
        self.only_functions = only_functions
        self.dry_run = dry_run
        self.echo = echo
        self.extractor = StructuralExtractor()
        self.analyzer = DocumentationGapAnalyzer(window_lines=window_lines)
        self.synthesizer = CommentSynthesizer()
        self.engine = engine or MutationEngine(window_lines=window_lines)

    def analyze(self, paths: Sequence[Union[str, Path]]) -> BatchResult:
        """
        Extract and analyze files without synthesizing anything.

        Returns:
            BatchResult whose files are UNCHANGED with a report, or READ_ERROR
        """
        batch = BatchResult()
        for path in paths:
            try:
                structure = self.extractor.extract_file(path)
            except ReadError as e:
                logger.error(str(e))
                batch.files.append(FileResult(str(path), FileStatus.READ_ERROR, error=str(e)))
                continue
            report = self.analyzer.analyze(structure)
            batch.files.append(FileResult(str(path), FileStatus.UNCHANGED, report=report))
        return batch

    def run(self, paths: Sequence[Union[str, Path]]) -> BatchResult:
        """
        Document every file in paths.

        Args:
            paths: Files to process, in order

        Returns:
            BatchResult with one FileResult per path
        """
        batch = self.analyze(paths)
        reports = [r.report for r in batch.files if r.report is not None]
        pending = [report for report in reports if report.gaps]

        payload = self.source(pending) if pending else None
        if pending:
            found = len(payload) if payload else 0
            logger.info(f"Documentation source supplied text for {found} element(s)")

        for result in batch.files:
            if result.report is None or not result.report.gaps:
                continue
            self._process(result, payload)

        self._log_summary(batch)
        return batch

    def process_file(self, path: Union[str, Path]) -> FileResult:
        """Run the pipeline for a single file."""
        return self.run([path]).files[0]

    def _process(self, result: FileResult,
                 payload: Optional[Dict[str, ElementDocumentation]]):
        report = result.report
        result.insertions = self.synthesizer.synthesize_all(
            report, payload, only_functions=self.only_functions
        )
        if not result.insertions:
            return

        try:
            if self.dry_run:
                self.engine.preview(result.file_path, result.insertions, echo=self.echo)
                result.status = FileStatus.PREVIEWED
                return
            result.attempt = self.engine.apply(result.file_path, result.insertions)
            result.status = FileStatus.UPDATED if result.attempt.changed else FileStatus.UNCHANGED
        except ReadError as e:
            self._record(result, FileStatus.READ_ERROR, e)
        except StaleSnapshotError as e:
            self._record(result, FileStatus.STALE, e)
        except BackupFailure as e:
            self._record(result, FileStatus.BACKUP_FAILED, e)
        except CommitFailure as e:
            self._record(result, FileStatus.COMMIT_FAILED, e)
        except RestoreFailure as e:
            result.attempt = e.attempt
            result.status = FileStatus.RESTORE_FAILED
            result.error = str(e)
            logger.critical(f"{result.file_path}: manual recovery needed from {e.backup_path}")

    def _record(self, result: FileResult, status: FileStatus, error: Exception):
        result.status = status
        result.error = str(error)
        result.attempt = getattr(error, 'attempt', None)
        logger.error(f"{result.file_path}: {error}")

    def _log_summary(self, batch: BatchResult):
        logger.info(
            f"Processed {len(batch.files)} file(s): "
            f"{len(batch.by_status(FileStatus.UPDATED))} updated, "
            f"{len(batch.by_status(FileStatus.PREVIEWED))} previewed, "
            f"{len(batch.errors)} error(s), {batch.comments_added} comment(s) added"
        )
