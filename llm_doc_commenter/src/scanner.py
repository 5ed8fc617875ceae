"""
Collects the source files a run looks at.

A file is kept when its extension is in the language table, no part of
its path below the scanned directory matches an exclude pattern, and it
is not larger than scanning.max_file_size_mb. Backup and temporary files
from the mutation engine carry a non-source extension and drop out on
their own.
"""

import os
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterator, List, Optional, Set

from .config import Config
from .languages import supported_extensions
from ..utils.logger_setup import get_logger

logger = get_logger(__name__)


@dataclass
class ScanResult:
    """Files found, sorted, plus what was passed over."""
    files: List[Path] = field(default_factory=list)
    skipped_large: List[str] = field(default_factory=list)
    missing_paths: List[str] = field(default_factory=list)


class Scanner:

    def __init__(self, config: Config):
        self.config = config
        self.extensions = supported_extensions()
        self.exclude = list(config.scanning.exclude)
        self.max_bytes = config.scanning.max_file_size_mb * 1024 * 1024

    def scan(self, paths: Optional[List[str]] = None) -> ScanResult:
        """
        Walk files and directories and return the source files in them.

        Args:
            paths: Files or directories; defaults to scanning.paths

        Returns:
            ScanResult; a file reached twice is listed once
        """
        result = ScanResult()
        seen: Set[Path] = set()

        for raw in (self.config.scanning.paths if paths is None else paths):
            root = Path(raw)
            if not root.exists():
                logger.warning(f"Path does not exist: {raw}")
                result.missing_paths.append(raw)
                continue

            for candidate in self._walk(root):
                resolved = candidate.resolve()
                if resolved in seen or not self._accept(candidate, result):
                    continue
                seen.add(resolved)
                result.files.append(candidate)

        result.files.sort(key=str)
        logger.info(
            f"Collected {len(result.files)} source file(s), "
            f"{len(result.skipped_large)} too large, {len(result.missing_paths)} missing"
        )
        return result

    def _walk(self, root: Path) -> Iterator[Path]:
        if root.is_file():
            yield root
            return

        for directory, subdirs, filenames in os.walk(root):
            # Pruning in place stops os.walk from descending
            subdirs[:] = [name for name in subdirs if not self._excluded(name)]
            for filename in filenames:
                yield Path(directory) / filename

    def _accept(self, path: Path, result: ScanResult) -> bool:
        if path.suffix.lower() not in self.extensions or self._excluded(path.name):
            return False

        try:
            size = path.stat().st_size
        except OSError as e:
            logger.warning(f"Cannot stat {path}: {e}")
            return False

        if size > self.max_bytes:
            logger.info(f"Skipping {path}: {size} bytes exceeds the size limit")
            result.skipped_large.append(str(path))
            return False
        return True

    def _excluded(self, name: str) -> bool:
        return any(fnmatch(name, pattern) for pattern in self.exclude)
