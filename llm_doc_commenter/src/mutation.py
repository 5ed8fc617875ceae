"""
Atomic, all-or-nothing insertion of comment blocks into one file.

Every call to MutationEngine.apply() walks an explicit state machine and
records the states it went through on a MutationAttempt:

    NOT_STARTED -> BACKED_UP -> COMMITTED -> CLEANED_UP
    NOT_STARTED -> ABORTED                    (backup could not be made)
    BACKED_UP -> FAILED -> RESTORED           (raises CommitFailure)
    BACKED_UP -> FAILED -> RESTORE_FAILED     (raises RestoreFailure)

Line Number Convention:
    CommentInsertion.insertion_line is EXTERNAL (1-indexed). The buffer is a
    list of lines accessed with INTERNAL (0-indexed) indices:
        insert_idx = insertion_line - 1

Insertions are applied from the bottom of the file to the top so that an
insertion never shifts the lines a later one points at.

Concurrent mutation of the same file from several processes is not guarded.
"""

import os
import shutil
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Sequence, Tuple, Union

import click

from .constants import BACKUP_SUFFIX, DEFAULT_WINDOW_LINES
from .exceptions import (
    BackupFailure,
    CommitFailure,
    ReadError,
    RestoreFailure,
    StaleSnapshotError,
)
from .extractor import digest_bytes
from .languages import CommentSyntax, language_for_path
from .synthesizer import CommentInsertion
from ..utils.logger_setup import get_logger

logger = get_logger(__name__)


class MutationState(Enum):
    """States of one mutation attempt."""
    NOT_STARTED = "not_started"
    BACKED_UP = "backed_up"
    COMMITTED = "committed"
    CLEANED_UP = "cleaned_up"
    FAILED = "failed"
    RESTORED = "restored"
    RESTORE_FAILED = "restore_failed"
    ABORTED = "aborted"


@dataclass
class MutationAttempt:
    """Record of one apply() call on one file."""
    file_path: str
    backup_path: str
    state: MutationState = MutationState.NOT_STARTED
    history: List[MutationState] = field(default_factory=lambda: [MutationState.NOT_STARTED])
    applied: List[CommentInsertion] = field(default_factory=list)
    skipped: List[CommentInsertion] = field(default_factory=list)

    def transition(self, state: MutationState):
        logger.debug(f"{self.file_path}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    @property
    def changed(self) -> bool:
        """True when the file on disk now contains new comments."""
        return bool(self.applied) and self.state in (
            MutationState.COMMITTED, MutationState.CLEANED_UP
        )


@dataclass
class RenderResult:
    """Outcome of applying insertions to an in-memory buffer."""
    lines: List[str]
    blocks: List[Tuple[CommentInsertion, int, int]]
    applied: List[CommentInsertion]
    skipped: List[CommentInsertion]


class MutationEngine:
    """Applies CommentInsertions to files with backup, commit and restore."""

    def __init__(
        self,
        window_lines: int = DEFAULT_WINDOW_LINES,
        backup_suffix: str = BACKUP_SUFFIX
    ):
        """
        Initialize MutationEngine.

        Args:
            window_lines: Lines above an insertion searched for an existing comment
            backup_suffix: Suffix of the sibling backup file
        """
        if window_lines < 1:
            raise ValueError(f"window_lines must be at least 1: {window_lines}")
        self.window_lines = window_lines
        self.backup_suffix = backup_suffix

    def backup_path_for(self, file_path: Union[str, Path]) -> Path:
        path = Path(file_path)
        return path.with_name(path.name + self.backup_suffix)

    def apply(
        self,
        file_path: Union[str, Path],
        insertions: Sequence[CommentInsertion]
    ) -> MutationAttempt:
        """
        Insert comment blocks into a file, all or nothing.

        Args:
            file_path: File to mutate
            insertions: Insertions computed from the file's current contents

        Returns:
            MutationAttempt in state CLEANED_UP, or COMMITTED when the backup
            could not be deleted afterwards. An empty batch returns an
            attempt that never left NOT_STARTED.

        Raises:
            ReadError: If the file cannot be read or decoded
            StaleSnapshotError: If the file changed since the insertions were computed
            BackupFailure: If the backup cannot be made (file untouched)
            CommitFailure: If writing failed and the original was restored
            RestoreFailure: If writing failed and the original could not be restored
        """
        path = Path(file_path)
        backup_path = self.backup_path_for(path)
        attempt = MutationAttempt(file_path=str(path), backup_path=str(backup_path))

        if not insertions:
            return attempt

        data = self._read(path)
        self._check_snapshot(path, data, insertions)
        text = self._decode(path, data)

        try:
            self._backup(path, backup_path)
        except OSError as e:
            attempt.transition(MutationState.ABORTED)
            logger.error(f"Backup of {path} failed: {e}")
            error = BackupFailure(f"Cannot back up {path} to {backup_path}: {e}", path)
            error.attempt = attempt
            raise error from e
        attempt.transition(MutationState.BACKED_UP)

        try:
            result = self.render(path, text, insertions)
            attempt.applied = result.applied
            attempt.skipped = result.skipped
            if result.applied:
                self._commit(path, self._encode(result.lines))
        except Exception as e:
            attempt.transition(MutationState.FAILED)
            logger.error(f"Applying comments to {path} failed: {e}")
            try:
                self._restore(backup_path, path)
            except Exception as restore_error:
                attempt.transition(MutationState.RESTORE_FAILED)
                logger.critical(
                    f"CRITICAL: Failed to restore '{path}' from backup '{backup_path}'. "
                    f"The backup has been kept for manual recovery."
                )
                error = RestoreFailure(
                    f"CRITICAL: Failed to restore '{path}' from backup '{backup_path}': "
                    f"{restore_error}. Original error: {e}",
                    path,
                    backup_path
                )
                error.attempt = attempt
                raise error from restore_error
            attempt.transition(MutationState.RESTORED)
            self._remove_backup(backup_path)
            error = CommitFailure(f"Failed to apply comments to {path}: {e}", path)
            error.attempt = attempt
            raise error from e

        attempt.transition(MutationState.COMMITTED)
        if self._remove_backup(backup_path):
            attempt.transition(MutationState.CLEANED_UP)

        if result.applied:
            logger.info(
                f"{path}: inserted {len(result.applied)} comment(s), "
                f"skipped {len(result.skipped)}"
            )
        else:
            logger.info(f"{path}: all {len(result.skipped)} comment(s) already present")
        return attempt

    def preview(
        self,
        file_path: Union[str, Path],
        insertions: Sequence[CommentInsertion],
        echo: Callable[[str], None] = click.echo,
        context: Tuple[int, int] = (2, 3)
    ) -> str:
        """
        Show what apply() would do without touching the file system.

        Inserted lines are printed with a '>>>' marker, surrounding lines of
        the would-be file for context. No backup or temp file is created.

        Args:
            file_path: File the insertions target
            insertions: Insertions to preview
            echo: Output function (default: click.echo)
            context: Number of lines shown (before, after) each inserted block

        Returns:
            The would-be file content
        """
        path = Path(file_path)
        data = self._read(path)
        self._check_snapshot(path, data, insertions)
        text = self._decode(path, data)
        result = self.render(path, text, insertions)

        echo(f"\n📝 Preview for {path}:")
        echo("=" * 70)
        if not result.applied:
            echo("   (no changes)")

        before, after = context
        for insertion, start, length in sorted(result.blocks, key=lambda b: b[1]):
            element = insertion.element
            echo(f"\n🔍 {element.category.value}: {element.name} (line {element.line_number})")
            echo("-" * 40)
            first = max(0, start - before)
            last = min(len(result.lines), start + length + after)
            for row in range(first, last):
                marker = '>>> ' if start <= row < start + length else '    '
                echo(f"{marker}{row + 1}: {result.lines[row].rstrip(chr(13))}")

        for insertion in result.skipped:
            element = insertion.element
            echo(f"\n⏭️  {element.category.value}: {element.name} already documented, skipped")

        return "\n".join(result.lines)

    def render(
        self,
        file_path: Union[str, Path],
        text: str,
        insertions: Sequence[CommentInsertion]
    ) -> RenderResult:
        """
        Apply insertions to text in memory.

        Insertions run in descending insertion_line order; on equal lines the
        element further down the file goes first. A point that falls inside
        a block comment or a multi-line string moves up to the line where it
        opened. The duplicate guard is evaluated against the buffer as it is
        at that point.
        """
        language = language_for_path(file_path)
        syntax = language.comment_syntax if language else CommentSyntax(line_prefixes=())
        eol = '\r' if '\r\n' in text else ''
        lines = text.split('\n')

        ordered = sorted(
            insertions,
            key=lambda i: (i.insertion_line, i.element.line_number, i.element.offset),
            reverse=True
        )

        applied = []
        skipped = []
        # (insertion, rows from the end of the buffer, block length); the
        # distance to the end does not change when blocks are added above
        placed = []
        # Rows above every insertion point so far are untouched, so openers
        # computed on the original buffer stay valid
        rows = len(lines)
        openers = syntax.open_constructs(lines)

        for insertion in ordered:
            index = min(insertion.insertion_index, rows)
            # Never split an open block comment or multi-line string
            opened_at = openers[index]
            if opened_at is not None:
                logger.debug(
                    f"{file_path}: moving comment for '{insertion.element.name}' "
                    f"from line {index + 1} up to line {opened_at + 1}"
                )
                index = opened_at
            if self.already_documented(lines, index, insertion.element.name, syntax):
                skipped.append(insertion)
                logger.debug(
                    f"{file_path}: comment for '{insertion.element.name}' already present, skipping"
                )
                continue

            indent = insertion.element.indent
            block = [indent + line + eol for line in insertion.content.split('\n')]
            lines[index:index] = block
            placed.append((insertion, len(lines) - index, len(block)))
            applied.append(insertion)

        blocks = [
            (insertion, len(lines) - from_end, length)
            for insertion, from_end, length in placed
        ]
        return RenderResult(lines=lines, blocks=blocks, applied=applied, skipped=skipped)

    def already_documented(
        self,
        lines: Sequence[str],
        index: int,
        name: str,
        syntax: CommentSyntax
    ) -> bool:
        """
        Check whether a comment mentioning name already sits above index.

        Looks at the window_lines rows before index. Each comment line found
        there is expanded into its whole contiguous comment block (up and
        down), and the block is searched for name as a plain substring.
        """
        row = max(0, index - self.window_lines)
        while row < index:
            if not syntax.is_comment_line(lines[row]):
                row += 1
                continue
            top = row
            while top > 0 and syntax.is_comment_line(lines[top - 1]):
                top -= 1
            bottom = row
            while bottom + 1 < len(lines) and syntax.is_comment_line(lines[bottom + 1]):
                bottom += 1
            if name in '\n'.join(lines[top:bottom + 1]):
                return True
            row = bottom + 1
        return False

    def _read(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise ReadError(f"Cannot read {path}: {e}", path) from e

    def _decode(self, path: Path, data: bytes) -> str:
        try:
            return data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ReadError(f"Cannot decode {path} as UTF-8: {e}", path) from e

    def _check_snapshot(self, path: Path, data: bytes, insertions: Sequence[CommentInsertion]):
        current = digest_bytes(data)
        for insertion in insertions:
            if insertion.snapshot_digest and insertion.snapshot_digest != current:
                raise StaleSnapshotError(
                    f"{path} changed after its comments were computed; "
                    f"extract it again before applying",
                    path
                )

    def _encode(self, lines: List[str]) -> bytes:
        return "\n".join(lines).encode("utf-8")

    def _backup(self, path: Path, backup_path: Path):
        """Copy the original next to itself. An existing backup is never overwritten."""
        if backup_path.exists():
            raise FileExistsError(
                f"Backup path '{backup_path}' already exists; it may hold the only "
                f"intact copy from an earlier failed run"
            )
        shutil.copy2(path, backup_path)

    def _commit(self, path: Path, data: bytes):
        """Write data to a temp file in the same directory and move it over path."""
        temp_path = None
        try:
            # Temp file must be in same directory for atomic rename to work
            temp_fd, temp_path_str = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            temp_path = Path(temp_path_str)
            with os.fdopen(temp_fd, 'wb') as f:
                f.write(data)
            shutil.copymode(path, temp_path)
            os.replace(temp_path, path)
        finally:
            if temp_path and temp_path.exists():
                temp_path.unlink()

    def _restore(self, backup_path: Path, path: Path):
        shutil.copy2(backup_path, path)

    def _remove_backup(self, backup_path: Path) -> bool:
        try:
            backup_path.unlink()
            return True
        except OSError as e:
            logger.warning(f"Could not remove backup {backup_path}: {e}")
            return False
