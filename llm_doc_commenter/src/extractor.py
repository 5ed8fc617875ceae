"""
Structural extraction of functions, classes, imports and exports.

Works on raw text with the bounded rules from the language table; there is
no parsing and no notion of scope. Line numbers are resolved once from the
snapshot that was read, so every element of a CodeStructure refers to the
same version of the file.

Line Number Convention:
    line_number is 1-indexed, as shown in editors. It is computed as
    1 + (number of newline characters before the match offset).
"""

import hashlib
import re
from bisect import bisect_left
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .exceptions import ReadError
from .languages import ElementCategory, ExtractionRule, Language, language_for_path
from ..utils.logger_setup import get_logger

logger = get_logger(__name__)

FUNCTION_NAME = re.compile(r'[A-Za-z_$][A-Za-z0-9_$]{0,63}')
CLASS_NAME = re.compile(r'[A-Z][A-Za-z0-9_$]{0,63}')
IMPORT_PATH = re.compile(r'[^\x00-\x1f\x7f<>"\'|?;`]{1,256}')

BINARY_SAMPLE_SIZE = 8192
BINARY_CONTROL_RATIO = 0.30
_TEXT_CONTROLS = frozenset('\t\n\r\f\v')
_INDENT = re.compile(r'[ \t]*')


@dataclass(frozen=True)
class StructuralElement:
    """A named landmark found in a source file."""
    name: str
    category: ElementCategory
    line_number: int
    offset: int
    signature: Optional[str] = None
    import_path: Optional[str] = None
    indent: str = ""


@dataclass(frozen=True)
class CodeStructure:
    """Everything extracted from one snapshot of one file."""
    file_path: str
    language: Optional[str]
    content: str
    content_digest: str
    functions: Tuple[StructuralElement, ...] = ()
    classes: Tuple[StructuralElement, ...] = ()
    imports: Tuple[StructuralElement, ...] = ()
    exports: Tuple[StructuralElement, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.functions or self.classes or self.imports or self.exports)


def digest_bytes(data: bytes) -> str:
    """Digest used to tie insertions to the snapshot they were computed from."""
    return hashlib.sha256(data).hexdigest()


def looks_binary(text: str) -> bool:
    """True for text with a NUL, or too many control characters near the start."""
    if '\x00' in text:
        return True
    sample = text[:BINARY_SAMPLE_SIZE]
    if not sample:
        return False
    controls = sum(1 for ch in sample if ord(ch) < 32 and ch not in _TEXT_CONTROLS)
    return controls / len(sample) > BINARY_CONTROL_RATIO


def is_valid_name(category: ElementCategory, name: str) -> bool:
    """Check a candidate against the grammar of its category."""
    if category == ElementCategory.CLASS:
        return CLASS_NAME.fullmatch(name) is not None
    if category == ElementCategory.IMPORT:
        return IMPORT_PATH.fullmatch(name) is not None
    return FUNCTION_NAME.fullmatch(name) is not None


class _LineIndex:
    """Newline and delimiter offsets of one snapshot, searched by bisection."""

    def __init__(self, text: str, delimiter=None):
        self.text = text
        self.newlines = [m.start() for m in re.finditer('\n', text)]
        self.delimiters = (
            [m.start() for m in delimiter.finditer(text)] if delimiter is not None else []
        )

    def line_of(self, offset: int) -> int:
        return bisect_left(self.newlines, offset) + 1

    def line_start(self, line_number: int) -> int:
        return self.newlines[line_number - 2] + 1 if line_number > 1 else 0

    def line_text(self, line_number: int) -> str:
        start = self.line_start(line_number)
        end = self.newlines[line_number - 1] if line_number - 1 < len(self.newlines) else len(self.text)
        return self.text[start:end]

    def indent_of(self, line_number: int) -> str:
        return _INDENT.match(self.text, self.line_start(line_number)).group()

    def signature_from(self, offset: int) -> str:
        i = bisect_left(self.delimiters, offset)
        end = self.delimiters[i] if i < len(self.delimiters) else len(self.text)
        return self.text[offset:end].strip()


class StructuralExtractor:
    """Extracts a CodeStructure from a file or from text."""

    def extract_file(self, file_path: Union[str, Path]) -> CodeStructure:
        """
        Read a file and extract its structure.

        Args:
            file_path: Path of the source file

        Returns:
            CodeStructure for the current file contents. Files with an
            unknown extension or binary-looking content give an empty
            structure.

        Raises:
            ReadError: If the file is missing, unreadable or not valid UTF-8
        """
        path_str = str(file_path)
        if language_for_path(path_str) is None:
            logger.debug(f"Unsupported extension, skipping: {path_str}")
            return CodeStructure(path_str, None, "", digest_bytes(b""))

        try:
            data = Path(file_path).read_bytes()
        except OSError as e:
            raise ReadError(f"Cannot read {path_str}: {e}", path_str) from e

        try:
            text = data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ReadError(f"Cannot decode {path_str} as UTF-8: {e}", path_str) from e

        return self.extract_text(path_str, text)

    def extract_text(self, file_path: Union[str, Path], text: str) -> CodeStructure:
        """
        Extract the structure of text as if it were the content of file_path.

        The extension of file_path selects the language.
        """
        path_str = str(file_path)
        language = language_for_path(path_str)
        digest = digest_bytes(text.encode('utf-8'))

        if language is None:
            return CodeStructure(path_str, None, text, digest)
        if looks_binary(text):
            logger.debug(f"Binary-looking content, skipping: {path_str}")
            return CodeStructure(path_str, language.tag, text, digest)

        index = _LineIndex(text, language.signature_delimiter)
        found: Dict[Tuple[ElementCategory, str, int], StructuralElement] = {}

        for rule in language.rules:
            for match in rule.pattern.finditer(text):
                for offset, candidate in self._candidates(rule, match):
                    if not self._admit(language, rule, match, candidate):
                        continue
                    line_number = index.line_of(offset)
                    # Commented-out code and code quoted in doc comments
                    if language.comment_syntax.is_comment_line(index.line_text(line_number)):
                        continue
                    element = self._build_element(rule, match, index, offset, candidate, line_number)
                    key = (element.category, element.name, element.line_number)
                    # Several rules can find the same element; keep the earliest match
                    if key not in found or element.offset < found[key].offset:
                        found[key] = element

        buckets: Dict[ElementCategory, List[StructuralElement]] = {c: [] for c in ElementCategory}
        for element in sorted(found.values(), key=lambda e: e.offset):
            buckets[element.category].append(element)

        structure = CodeStructure(
            file_path=path_str,
            language=language.tag,
            content=text,
            content_digest=digest,
            functions=tuple(buckets[ElementCategory.FUNCTION]),
            classes=tuple(buckets[ElementCategory.CLASS]),
            imports=tuple(buckets[ElementCategory.IMPORT]),
            exports=tuple(buckets[ElementCategory.EXPORT]),
        )
        logger.debug(
            f"{path_str}: {len(structure.functions)} function(s), "
            f"{len(structure.classes)} class(es), {len(structure.imports)} import(s), "
            f"{len(structure.exports)} export(s)"
        )
        return structure

    def _candidates(self, rule: ExtractionRule, match) -> Iterator[Tuple[int, str]]:
        """Yield (offset, candidate) pairs for one match."""
        group = rule.group
        if rule.splitter is None:
            yield match.start(), match.group(group)
            return
        base = match.start(group)
        for relative, candidate in rule.splitter(match.group(group)):
            yield base + relative, candidate

    def _admit(self, language: Language, rule: ExtractionRule, match, candidate: str) -> bool:
        if not is_valid_name(rule.category, candidate):
            return False
        if rule.category in (ElementCategory.FUNCTION, ElementCategory.EXPORT):
            if candidate in language.reserved:
                return False
            if 'ret' in rule.pattern.groupindex:
                ret = match.group('ret')
                if ret is not None and ret in language.reserved:
                    return False
        return True

    def _build_element(
        self,
        rule: ExtractionRule,
        match,
        index: _LineIndex,
        offset: int,
        candidate: str,
        line_number: int
    ) -> StructuralElement:
        signature = None
        if rule.category == ElementCategory.FUNCTION:
            signature = index.signature_from(match.start())
        import_path = candidate if rule.category == ElementCategory.IMPORT else None
        return StructuralElement(
            name=candidate,
            category=rule.category,
            line_number=line_number,
            offset=offset,
            signature=signature,
            import_path=import_path,
            indent=index.indent_of(line_number),
        )
