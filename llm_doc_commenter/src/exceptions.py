"""
Error kinds raised by the commenting core.

Name candidates that fail their identifier grammar are dropped silently
during extraction and have no exception class.
"""

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class DocCommenterError(Exception):
    """Base class for all llm-doc-commenter errors."""

    def __init__(self, message: str, file_path: Optional[PathLike] = None):
        super().__init__(message)
        self.file_path = str(file_path) if file_path is not None else None


class ReadError(DocCommenterError):
    """Raised when a source file is missing, unreadable or not valid UTF-8."""
    pass


class StaleSnapshotError(DocCommenterError):
    """Raised when a file changed after the insertions for it were computed."""
    pass


class MutationError(DocCommenterError):
    """
    Base class for errors raised while mutating a file.

    The engine attaches the MutationAttempt that failed as `attempt`.
    """
    attempt = None


class BackupFailure(MutationError):
    """Raised when the backup copy cannot be made. The file is untouched."""
    pass


class CommitFailure(MutationError):
    """Raised when applying or committing failed and the original was restored."""
    pass


class RestoreFailure(MutationError):
    """
    Raised when the original could not be restored from its backup.

    This is the one state the engine cannot heal on its own: the file may be
    inconsistent and the backup is left in place for manual recovery.
    """

    def __init__(self, message: str, file_path: PathLike, backup_path: PathLike):
        super().__init__(message, file_path)
        self.backup_path = str(backup_path)
