"""
Detection of missing documentation sections.

An element is documented when a comment in the lines just above it carries
both a technical and a simple explanation marker. Only functions and
classes are analyzed; imports and exports never need a comment.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .constants import DEFAULT_WINDOW_LINES, SIMPLE_MARKERS, TECHNICAL_MARKERS
from .extractor import CodeStructure, StructuralElement
from .languages import LANGUAGES, CommentSyntax
from ..utils.logger_setup import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DocumentationGap:
    """An element missing at least one of the two documentation sections."""
    element: StructuralElement
    missing_technical: bool
    missing_simple: bool


@dataclass
class FileGapReport:
    """Gap analysis result for one file."""
    structure: CodeStructure
    missing_technical: List[StructuralElement] = field(default_factory=list)
    missing_simple: List[StructuralElement] = field(default_factory=list)
    gaps: List[DocumentationGap] = field(default_factory=list)
    total_elements: int = 0

    @property
    def file_path(self) -> str:
        return self.structure.file_path

    @property
    def has_missing_docs(self) -> bool:
        return bool(self.missing_technical or self.missing_simple)


def comment_segments(text: str, syntax: CommentSyntax) -> List[str]:
    """
    Split text into the comment segments it contains.

    Block comments form one segment each, a run of consecutive line
    comments forms one segment. A block close that appears before any block
    open means the text starts inside a block, so everything up to that
    close is a segment too. An unterminated block runs to the end.
    """
    segments = []
    pos = 0
    opener, closer = syntax.block_open, syntax.block_close

    if opener and closer:
        first_close = text.find(closer)
        first_open = text.find(opener)
        if first_close != -1 and (first_open == -1 or first_close < first_open):
            segments.append(text[:first_close])
            pos = first_close + len(closer)

    run: List[str] = []
    run_end = -1

    while pos < len(text):
        start, token = _next_comment_start(text, pos, syntax)
        if start == -1:
            break

        if token == opener:
            if run:
                segments.append('\n'.join(run))
                run = []
            close = text.find(closer, start + len(opener))
            if close == -1:
                segments.append(text[start:])
                break
            segments.append(text[start:close + len(closer)])
            pos = close + len(closer)
            continue

        end = text.find('\n', start)
        end = len(text) if end == -1 else end
        # A line comment continues the run only if nothing but a newline
        # and indentation separates it from the previous one
        if run and text[run_end:start].strip():
            segments.append('\n'.join(run))
            run = []
        run.append(text[start:end])
        run_end = end
        pos = end

    if run:
        segments.append('\n'.join(run))
    return segments


def _next_comment_start(text: str, pos: int, syntax: CommentSyntax) -> Tuple[int, Optional[str]]:
    best, best_token = -1, None
    tokens = list(syntax.line_prefixes)
    if syntax.block_open:
        tokens.append(syntax.block_open)
    for token in tokens:
        found = text.find(token, pos)
        if found != -1 and (best == -1 or found < best):
            best, best_token = found, token
    return best, best_token


def find_markers(segments: Sequence[str]) -> Tuple[bool, bool]:
    """Return (has_technical, has_simple) over a list of comment segments."""
    has_technical = False
    has_simple = False
    for segment in segments:
        lowered = segment.lower()
        if not has_technical and any(m in lowered for m in TECHNICAL_MARKERS):
            has_technical = True
        if not has_simple and any(m in lowered for m in SIMPLE_MARKERS):
            has_simple = True
    return has_technical, has_simple


class DocumentationGapAnalyzer:
    """Decides which functions and classes lack technical or simple docs."""

    def __init__(self, window_lines: int = DEFAULT_WINDOW_LINES):
        """
        Initialize DocumentationGapAnalyzer.

        Args:
            window_lines: Number of lines above an element searched for comments
        """
        if window_lines < 1:
            raise ValueError(f"window_lines must be at least 1: {window_lines}")
        self.window_lines = window_lines

    def check_element(
        self,
        lines: Sequence[str],
        element: StructuralElement,
        syntax: CommentSyntax
    ) -> Tuple[bool, bool]:
        """
        Look for existing documentation above one element.

        Args:
            lines: Snapshot split on '\\n'
            element: Element to check
            syntax: Comment syntax of the element's language

        Returns:
            Tuple[bool, bool]: (has_technical, has_simple)
        """
        end = element.line_number - 1
        start = max(0, end - self.window_lines)
        if end <= start:
            return False, False
        window = '\n'.join(lines[start:end])
        return find_markers(comment_segments(window, syntax))

    def analyze(self, structure: CodeStructure) -> FileGapReport:
        """
        Analyze every function and class of a structure.

        Args:
            structure: Result of StructuralExtractor for one file

        Returns:
            FileGapReport listing the gaps in element order
        """
        report = FileGapReport(structure=structure)
        if structure.language is None:
            return report

        syntax = LANGUAGES[structure.language].comment_syntax
        lines = structure.content.split('\n')
        elements = sorted(
            structure.functions + structure.classes,
            key=lambda e: e.offset
        )
        report.total_elements = len(elements)

        for element in elements:
            has_technical, has_simple = self.check_element(lines, element, syntax)
            if not has_technical:
                report.missing_technical.append(element)
            if not has_simple:
                report.missing_simple.append(element)
            if not (has_technical and has_simple):
                report.gaps.append(DocumentationGap(
                    element=element,
                    missing_technical=not has_technical,
                    missing_simple=not has_simple,
                ))

        if report.gaps:
            logger.info(
                f"{structure.file_path}: {len(report.gaps)} of "
                f"{report.total_elements} element(s) need documentation"
            )
        return report
