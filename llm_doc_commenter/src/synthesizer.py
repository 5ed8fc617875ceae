"""
Comment synthesis.

Turns documentation gaps into CommentInsertions. Synthesis is pure: it reads
nothing from disk and the same inputs always give the same comment. When the
documentation payload has no entry for an element, a fallback template is
used instead.

Comment layout (block style shown, hash style uses '#' for every line):

    /** function add
     * Technical Explanation:
     * ...
     *
     * Simple Explanation:
     * ...
     */

The element reference on the header line lets the mutation engine recognize
comments it wrote earlier.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from .constants import SIMPLE_LABEL, TECHNICAL_LABEL
from .extractor import StructuralElement
from .gaps import FileGapReport
from .languages import BLOCK_STYLE, LANGUAGES, CommentStyle, ElementCategory
from ..utils.logger_setup import get_logger
from ..utils.response_schemas import ElementDocumentation, element_key
from ..utils.text_normalizer import wrap_and_normalize

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommentInsertion:
    """
    A comment block to insert into one file.

    insertion_line is 1-indexed and equals max(1, element line - 1); the
    content goes in front of that line. snapshot_digest identifies the file
    contents the line numbers were computed from.
    """
    file_path: str
    element: StructuralElement
    insertion_line: int
    content: str
    snapshot_digest: str

    @property
    def insertion_index(self) -> int:
        return self.insertion_line - 1


def insertion_line_for(element: StructuralElement) -> int:
    return max(1, element.line_number - 1)


def fallback_documentation(element: StructuralElement) -> ElementDocumentation:
    """Template documentation for an element nobody wrote text for."""
    if element.category == ElementCategory.CLASS:
        technical = (
            f"The class '{element.name}' encapsulates related data and behavior.\n"
            "It implements specific logic and offers a defined interface."
        )
        simple = (
            "This class is like a blueprint: it describes how something is "
            "built and how it works."
        )
    else:
        technical = f"The function '{element.name}' performs a specific operation."
        if element.signature:
            technical += f"\nSignature: {element.signature}"
        simple = (
            "This function is like a tool: it takes something in and gives "
            "something back."
        )
    return ElementDocumentation.model_construct(technical=technical, simple=simple)


class CommentSynthesizer:
    """Builds comment blocks from documentation payloads or templates."""

    def __init__(self, max_line_length: int = 79):
        self.max_line_length = max_line_length

    def synthesize(
        self,
        element: StructuralElement,
        documentation: Optional[ElementDocumentation] = None,
        style: CommentStyle = BLOCK_STYLE,
        file_path: str = "",
        snapshot_digest: str = ""
    ) -> CommentInsertion:
        """
        Build the insertion for one element.

        Args:
            element: Function or class to document
            documentation: Text from the documentation source (optional)
            style: Comment style of the target language
            file_path: File the element belongs to
            snapshot_digest: Digest of the snapshot the element came from

        Returns:
            CommentInsertion placed at max(1, line - 1)
        """
        if documentation is None:
            documentation = fallback_documentation(element)

        lines = [f"{style.opener} {element.category.value} {element.name}"]
        lines.append(style.prefix + TECHNICAL_LABEL)
        lines.extend(self._paragraph(documentation.technical, style))
        lines.append(style.blank)
        lines.append(style.prefix + SIMPLE_LABEL)
        lines.extend(self._paragraph(documentation.simple, style))
        lines.append(style.closer)

        return CommentInsertion(
            file_path=file_path,
            element=element,
            insertion_line=insertion_line_for(element),
            content='\n'.join(lines),
            snapshot_digest=snapshot_digest,
        )

    def synthesize_all(
        self,
        report: FileGapReport,
        payload: Optional[Dict[str, ElementDocumentation]] = None,
        only_functions: bool = False
    ) -> List[CommentInsertion]:
        """
        Build insertions for every gap of a file.

        Args:
            report: Gap report of one file
            payload: Documentation keyed by element_key() (optional)
            only_functions: Skip classes

        Returns:
            List of insertions in element order
        """
        structure = report.structure
        if structure.language is None:
            return []
        style = LANGUAGES[structure.language].comment_style
        payload = payload or {}

        insertions = []
        fallbacks = 0
        for gap in report.gaps:
            element = gap.element
            if only_functions and element.category != ElementCategory.FUNCTION:
                continue
            documentation = payload.get(
                element_key(structure.file_path, element.name, element.line_number)
            )
            if documentation is None:
                fallbacks += 1
            insertions.append(self.synthesize(
                element,
                documentation,
                style=style,
                file_path=structure.file_path,
                snapshot_digest=structure.content_digest,
            ))

        if fallbacks:
            logger.debug(f"{structure.file_path}: {fallbacks} comment(s) use the fallback template")
        return insertions

    def _paragraph(self, text: str, style: CommentStyle) -> List[str]:
        """Wrap one section and prefix every line with the comment prefix."""
        text = text.replace('\r\n', '\n').replace('\r', '\n')
        if style.closer.strip() == '*/':
            # Keep payload text from ending the comment block early
            text = text.replace('*/', '* /')
        width = max(20, self.max_line_length - len(style.prefix))
        wrapped = wrap_and_normalize(text.strip('\n'), max_length=width)
        return [style.prefix + line if line else style.blank for line in wrapped.split('\n')]
