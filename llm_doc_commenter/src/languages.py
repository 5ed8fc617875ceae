"""
Closed language table for structural extraction.

Each supported language is one Language value that owns its ordered list of
extraction rules, its reserved words, the delimiter that ends a function
signature and its comment syntax. There is no subclassing and no fallback
parser: a file whose extension is not in EXTENSION_TABLE gets an empty
structure.

Every rule is bounded. Repetitions are either capped ({0,N}) or run over a
negated class that stops at a fixed delimiter, and identifier captures are
guarded by a negative look-behind so that a long run of word characters is
only ever tried from its first position. This keeps matching linear in the
input length even for adversarial text such as 'a' * 100000.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Iterator, List, Optional, Pattern, Sequence, Tuple, Union


class ElementCategory(Enum):
    """Kinds of structural elements."""
    FUNCTION = "function"
    CLASS = "class"
    IMPORT = "import"
    EXPORT = "export"


# Candidates yielded by a splitter: (offset relative to the group, text)
Splitter = Callable[[str], Iterator[Tuple[int, str]]]


@dataclass(frozen=True)
class ExtractionRule:
    """One bounded pattern producing candidates of a single category.

    The pattern captures either a single candidate in the `name` (or `path`)
    group, or a list in the `items` group that `splitter` breaks apart.
    An optional `ret` group is checked against the reserved words too.
    """
    category: ElementCategory
    pattern: Pattern
    splitter: Optional[Splitter] = None

    @property
    def group(self) -> str:
        if self.splitter is not None:
            return 'items'
        if self.category == ElementCategory.IMPORT:
            return 'path'
        return 'name'


def _find_unescaped(line: str, start: int, token: str) -> int:
    """Index of the first token at or after start not preceded by an odd run of backslashes."""
    hit = line.find(token, start)
    while hit >= 0:
        slashes = 0
        while hit - slashes - 1 >= start and line[hit - slashes - 1] == '\\':
            slashes += 1
        if slashes % 2 == 0:
            return hit
        hit = line.find(token, hit + 1)
    return -1


@dataclass(frozen=True)
class CommentSyntax:
    """How existing comments, and strings that may span lines, are recognized in a language."""
    line_prefixes: Tuple[str, ...]
    block_open: Optional[str] = None
    block_close: Optional[str] = None
    multiline_strings: Tuple[str, ...] = ()

    def open_constructs(self, lines: Sequence[str]) -> List[Optional[int]]:
        """
        For each row, and for the position after the last row, the row where
        a block comment or multi-line string still open at its start began,
        or None where the row starts in plain code.

        Single-line strings are skipped so that delimiters inside them do not
        count. Heredocs and regex literals are not recognized.
        """
        openers: List[Optional[int]] = []
        closer = None
        opened_at = None
        for number, line in enumerate(lines):
            openers.append(opened_at)
            pos = 0
            while pos < len(line):
                if closer is not None:
                    if closer == self.block_close:
                        end = line.find(closer, pos)
                    else:
                        end = _find_unescaped(line, pos, closer)
                    if end < 0:
                        break
                    pos = end + len(closer)
                    closer = opened_at = None
                    continue

                if any(line.startswith(prefix, pos) for prefix in self.line_prefixes):
                    break
                if self.block_open and line.startswith(self.block_open, pos):
                    closer, opened_at = self.block_close, number
                    pos += len(self.block_open)
                    continue
                delimiter = next(
                    (d for d in self.multiline_strings if line.startswith(d, pos)), None
                )
                if delimiter:
                    closer, opened_at = delimiter, number
                    pos += len(delimiter)
                    continue
                if line[pos] in ('"', "'"):
                    end = _find_unescaped(line, pos + 1, line[pos])
                    pos = len(line) if end < 0 else end + 1
                    continue
                pos += 1
        openers.append(opened_at)
        return openers

    def open_construct(self, lines: Sequence[str], row: int) -> Optional[int]:
        """Opener row of the construct open at the start of row, or None."""
        return self.open_constructs(lines[:row])[-1]

    def is_comment_line(self, line: str) -> bool:
        """True for a line that, stripped, starts like a comment or a comment continuation."""
        stripped = line.strip()
        if not stripped:
            return False
        if any(stripped.startswith(prefix) for prefix in self.line_prefixes):
            return True
        if self.block_open and (
            stripped.startswith(self.block_open) or stripped.startswith(self.block_close)
        ):
            return True
        # Continuation lines of C-style block comments
        return self.block_open == '/*' and stripped.startswith('*')


@dataclass(frozen=True)
class CommentStyle:
    """How synthesized comment blocks are rendered in a language."""
    opener: str
    prefix: str
    closer: str

    @property
    def blank(self) -> str:
        return self.prefix.rstrip()


BLOCK_STYLE = CommentStyle(opener="/**", prefix=" * ", closer=" */")
HASH_STYLE = CommentStyle(opener="#", prefix="# ", closer="#")

C_COMMENTS = CommentSyntax(line_prefixes=("//",), block_open="/*", block_close="*/")
JS_COMMENTS = CommentSyntax(
    line_prefixes=("//",), block_open="/*", block_close="*/", multiline_strings=("`",)
)
JAVA_COMMENTS = CommentSyntax(
    line_prefixes=("//",), block_open="/*", block_close="*/", multiline_strings=('"""',)
)
PHP_COMMENTS = CommentSyntax(line_prefixes=("//", "#"), block_open="/*", block_close="*/")
PYTHON_COMMENTS = CommentSyntax(line_prefixes=("#",), multiline_strings=('"""', "'''"))
RUBY_COMMENTS = CommentSyntax(line_prefixes=("#",), block_open="=begin", block_close="=end")


@dataclass(frozen=True)
class Language:
    """A supported language and everything extraction needs to know about it."""
    tag: str
    rules: Tuple[ExtractionRule, ...]
    signature_delimiter: Pattern
    comment_syntax: CommentSyntax
    comment_style: CommentStyle
    reserved: FrozenSet[str] = field(default_factory=frozenset)


def _rx(pattern: str) -> Pattern:
    return re.compile(pattern, re.MULTILINE)


# ============================================================================
# Splitters for multi-valued captures
# ============================================================================

_LIST_ITEM = re.compile(r'[^,]{1,512}')
_QUOTED_ITEM = re.compile(r'''(['"])([^'"\r\n]{1,256})\1''')


def split_export_list(text: str) -> Iterator[Tuple[int, str]]:
    """Split `a, b as c` into ('a', 'c'), the names visible to importers."""
    for match in _LIST_ITEM.finditer(text):
        item = match.group()
        parts = item.split()
        if not parts:
            continue
        if len(parts) >= 3 and parts[-2] == 'as':
            candidate = parts[-1]
            yield match.start() + item.rfind(candidate), candidate
        elif len(parts) == 1:
            yield match.start() + item.find(parts[0]), parts[0]
        else:
            # Not a plain name: hand the raw item to validation, which drops it
            candidate = item.strip()
            yield match.start() + item.find(candidate), candidate


def split_python_imports(text: str) -> Iterator[Tuple[int, str]]:
    """Split `os, sys as system` into the imported module paths."""
    for match in _LIST_ITEM.finditer(text):
        item = match.group()
        parts = item.split()
        if parts:
            yield match.start() + item.find(parts[0]), parts[0]


def split_quoted(text: str) -> Iterator[Tuple[int, str]]:
    """Yield every quoted string in a list literal or grouped import."""
    for match in _QUOTED_ITEM.finditer(text):
        yield match.start(2), match.group(2)


# ============================================================================
# Rule tables
# ============================================================================

FUNC = ElementCategory.FUNCTION
CLS = ElementCategory.CLASS
IMP = ElementCategory.IMPORT
EXP = ElementCategory.EXPORT

_JS_NB = r'(?<![\w$.])'
_JS_ID = r'[\w$]{1,64}'

JAVASCRIPT_RULES = (
    # function name(  /  async function name(  /  function* name(
    ExtractionRule(FUNC, _rx(_JS_NB + r'function\b[ \t]{0,8}\*?[ \t\r\n]{0,16}(?P<name>' + _JS_ID + r')[ \t\r\n]{0,16}\(')),
    # const name = function / const name = async function
    ExtractionRule(FUNC, _rx(_JS_NB + r'(?:const|let|var)[ \t]{1,8}(?P<name>' + _JS_ID + r')[ \t]{0,8}(?::[^=\n]{1,128})?=[ \t\r\n]{0,16}(?:async[ \t]{1,8})?function\b')),
    # const name = (a, b) => / const name = async x =>
    ExtractionRule(FUNC, _rx(_JS_NB + r'(?:const|let|var)[ \t]{1,8}(?P<name>' + _JS_ID + r')[ \t]{0,8}(?::[^=\n]{1,128})?=[ \t\r\n]{0,16}(?:async[ \t]{1,8})?(?:\([^()]{0,512}\)|' + _JS_ID + r')[ \t]{0,8}(?::[^=\n{]{1,128})?=>')),
    # name: function
    ExtractionRule(FUNC, _rx(_JS_NB + r'(?P<name>' + _JS_ID + r')[ \t]{0,8}:[ \t]{0,8}(?:async[ \t]{1,8})?function\b')),
    # indented method shorthand: name(args) {
    ExtractionRule(FUNC, _rx(r'^[ \t]{1,32}(?:(?:static|async|get|set|public|private|protected)[ \t]{1,8}){0,4}(?P<name>' + _JS_ID + r')[ \t]{0,8}\([^()\n]{0,256}\)[ \t]{0,8}(?::[^{}\n]{1,128})?\{')),
    ExtractionRule(CLS, _rx(_JS_NB + r'class[ \t]{1,8}(?P<name>' + _JS_ID + r')')),
    ExtractionRule(IMP, _rx(_JS_NB + r'import\b[^;\'"]{0,512}?\bfrom[ \t]{0,8}[\'"](?P<path>[^\'"\r\n]{1,256})[\'"]')),
    ExtractionRule(IMP, _rx(_JS_NB + r'import[ \t]{0,8}[\'"](?P<path>[^\'"\r\n]{1,256})[\'"]')),
    ExtractionRule(IMP, _rx(_JS_NB + r'(?:require|import)[ \t]{0,8}\([ \t]{0,8}[\'"](?P<path>[^\'"\r\n]{1,256})[\'"][ \t]{0,8}\)')),
    ExtractionRule(EXP, _rx(_JS_NB + r'export[ \t]{1,8}(?:default[ \t]{1,8})?(?:async[ \t]{1,8})?(?:function\*?|class|const|let|var|interface|type|enum)[ \t]{1,8}\*?[ \t]{0,8}(?P<name>' + _JS_ID + r')')),
    ExtractionRule(EXP, _rx(_JS_NB + r'export[ \t]{0,8}\{(?P<items>[^{}]{1,512})\}'), splitter=split_export_list),
    ExtractionRule(EXP, _rx(_JS_NB + r'export[ \t]{1,8}default[ \t]{1,8}(?P<name>' + _JS_ID + r')[ \t]{0,8};?[ \t]{0,8}\r?$')),
    ExtractionRule(EXP, _rx(_JS_NB + r'(?:module\.)?exports\.(?P<name>' + _JS_ID + r')[ \t]{0,8}=(?![=>])')),
)

TYPESCRIPT_RULES = JAVASCRIPT_RULES + (
    ExtractionRule(CLS, _rx(_JS_NB + r'(?:interface|enum)[ \t]{1,8}(?P<name>' + _JS_ID + r')')),
)

PYTHON_RULES = (
    ExtractionRule(FUNC, _rx(r'^[ \t]{0,64}(?:async[ \t]{1,8})?def[ \t]{1,8}(?P<name>\w{1,64})[ \t]{0,8}\(')),
    ExtractionRule(CLS, _rx(r'^[ \t]{0,64}class[ \t]{1,8}(?P<name>\w{1,64})')),
    ExtractionRule(IMP, _rx(r'^[ \t]{0,64}from[ \t]{1,8}(?P<path>[\w.]{1,256})[ \t]{1,8}import\b')),
    ExtractionRule(IMP, _rx(r'^[ \t]{0,64}import[ \t]{1,8}(?P<items>[\w., \t]{1,512})'), splitter=split_python_imports),
    ExtractionRule(EXP, _rx(r'^__all__[ \t]{0,8}(?::[^=\n]{0,64})?\+?=[ \t]{0,8}[\[(](?P<items>[^\[\]()]{0,4096})[\])]'), splitter=split_quoted),
)


def _c_family_method_rule(modifiers: str, throws: bool) -> ExtractionRule:
    throws_clause = r'(?:throws[ \t]{1,8}[\w$., \t\r\n]{1,256})?' if throws else ''
    return ExtractionRule(FUNC, _rx(
        r'^[ \t]{0,32}(?:(?:' + modifiers + r')[ \t]{1,8}){0,8}'
        r'(?:<[^<>\n]{1,128}>[ \t]{1,8})?'
        r'(?P<ret>[\w$.<>\[\],?]{1,128})[ \t]{1,8}'
        r'(?P<name>[\w$]{1,64})[ \t]{0,8}\([^()]{0,1024}\)[ \t\r\n]{0,32}'
        + throws_clause + r'\{'
    ))


JAVA_RULES = (
    _c_family_method_rule(
        r'public|private|protected|static|final|abstract|synchronized|native|default|strictfp',
        throws=True
    ),
    ExtractionRule(CLS, _rx(r'(?<![\w$.])(?:class|interface|enum|record)[ \t]{1,8}(?P<name>[\w$]{1,64})')),
    ExtractionRule(IMP, _rx(r'^[ \t]{0,16}import[ \t]{1,8}(?:static[ \t]{1,8})?(?P<path>[\w$.*]{1,256})[ \t]{0,8};')),
)

CSHARP_RULES = (
    _c_family_method_rule(
        r'public|private|protected|internal|static|virtual|override|abstract|sealed|'
        r'async|extern|unsafe|partial|readonly|new',
        throws=False
    ),
    ExtractionRule(CLS, _rx(r'(?<![\w$.])(?:class|interface|struct|enum|record)[ \t]{1,8}(?P<name>\w{1,64})')),
    ExtractionRule(IMP, _rx(r'^[ \t]{0,16}using[ \t]{1,8}(?:static[ \t]{1,8})?(?P<path>[\w.]{1,256})[ \t]{0,8};')),
)

_C_FUNCTION = (
    r'^[ \t]{0,16}(?:(?:static|inline|extern|const|unsigned|signed|volatile|register|'
    r'struct|enum|union|virtual|constexpr)[ \t]{1,8}){0,6}'
    r'(?P<ret>[\w:<>,]{1,128})[ \t*&]{1,16}'
    r'(?:\w{1,64}::){0,4}(?P<name>\w{1,64})[ \t]{0,8}\([^()]{0,1024}\)'
    r'(?:[ \t]{1,8}(?:const|noexcept|override|final)){0,4}[ \t\r\n]{0,32}\{'
)
_C_INCLUDE = r'^[ \t]{0,16}#[ \t]{0,8}include[ \t]{0,8}[<"](?P<path>[^<>"\r\n]{1,256})[>"]'

C_RULES = (
    ExtractionRule(FUNC, _rx(_C_FUNCTION)),
    ExtractionRule(CLS, _rx(r'(?<![\w$.])struct[ \t]{1,8}(?P<name>\w{1,64})[ \t\r\n]{0,16}\{')),
    ExtractionRule(IMP, _rx(_C_INCLUDE)),
)

CPP_RULES = (
    ExtractionRule(FUNC, _rx(_C_FUNCTION)),
    ExtractionRule(CLS, _rx(r'(?<![\w$.])(?:class|struct)[ \t]{1,8}(?P<name>\w{1,64})')),
    ExtractionRule(IMP, _rx(_C_INCLUDE)),
)

PHP_RULES = (
    ExtractionRule(FUNC, _rx(r'(?<![\w$.])function[ \t]{1,8}&?[ \t]{0,8}(?P<name>\w{1,64})[ \t]{0,8}\(')),
    ExtractionRule(CLS, _rx(r'(?<![\w$.])(?:class|interface|trait|enum)[ \t]{1,8}(?P<name>\w{1,64})')),
    ExtractionRule(IMP, _rx(r'^[ \t]{0,16}use[ \t]{1,8}(?:function[ \t]{1,8}|const[ \t]{1,8})?(?P<path>[\w\\]{1,256})')),
    ExtractionRule(IMP, _rx(r'(?<![\w$.])(?:require|include)(?:_once)?[ \t(]{0,8}[\'"](?P<path>[^\'"\r\n]{1,256})[\'"]')),
)

RUBY_RULES = (
    ExtractionRule(FUNC, _rx(r'^[ \t]{0,64}def[ \t]{1,8}(?:self\.)?(?P<name>\w{1,64})')),
    ExtractionRule(CLS, _rx(r'^[ \t]{0,64}(?:class|module)[ \t]{1,8}(?P<name>\w{1,64})')),
    ExtractionRule(IMP, _rx(r'^[ \t]{0,16}(?:require_relative|require|load)[ \t(]{1,8}[\'"](?P<path>[^\'"\r\n]{1,256})[\'"]')),
)

GO_RULES = (
    ExtractionRule(FUNC, _rx(r'^func[ \t]{1,8}(?:\([^()\n]{0,256}\)[ \t]{0,8})?(?P<name>\w{1,64})[ \t]{0,8}(?:\[[^\[\]\n]{0,256}\])?\(')),
    ExtractionRule(CLS, _rx(r'^type[ \t]{1,8}(?P<name>\w{1,64})(?:\[[^\[\]\n]{0,256}\])?[ \t]{1,8}(?:struct|interface)\b')),
    ExtractionRule(IMP, _rx(r'^import[ \t]{1,8}(?:[\w.]{1,64}[ \t]{1,8})?"(?P<path>[^"\r\n]{1,256})"')),
    ExtractionRule(IMP, _rx(r'^import[ \t]{0,8}\((?P<items>[^()]{0,8192})\)'), splitter=split_quoted),
)

_BRACE = _rx(r'(?<!\\)\{')
_PY_COLON = _rx(r':[ \t]{0,64}(?:#[^\r\n]{0,4096})?\r?$')
_LINE_END = _rx(r'[;\n]')

_C_RESERVED = frozenset({
    'if', 'else', 'for', 'while', 'do', 'switch', 'case', 'return', 'sizeof',
    'catch', 'new', 'delete', 'throw', 'try', 'goto',
})
_JAVA_RESERVED = frozenset({
    'if', 'else', 'for', 'while', 'do', 'switch', 'case', 'return', 'catch',
    'new', 'throw', 'try', 'synchronized', 'super', 'this', 'finally', 'yield',
})
_CSHARP_RESERVED = _JAVA_RESERVED | frozenset({'foreach', 'using', 'lock', 'fixed', 'await'})
_JS_RESERVED = frozenset({
    'if', 'else', 'for', 'while', 'do', 'switch', 'case', 'return', 'catch',
    'function', 'with', 'typeof', 'new', 'throw', 'try', 'await', 'yield',
})

LANGUAGES: Dict[str, Language] = {
    'javascript': Language('javascript', JAVASCRIPT_RULES, _BRACE, JS_COMMENTS, BLOCK_STYLE, _JS_RESERVED),
    'typescript': Language('typescript', TYPESCRIPT_RULES, _BRACE, JS_COMMENTS, BLOCK_STYLE, _JS_RESERVED),
    'python': Language('python', PYTHON_RULES, _PY_COLON, PYTHON_COMMENTS, HASH_STYLE),
    'java': Language('java', JAVA_RULES, _BRACE, JAVA_COMMENTS, BLOCK_STYLE, _JAVA_RESERVED),
    'csharp': Language('csharp', CSHARP_RULES, _BRACE, C_COMMENTS, BLOCK_STYLE, _CSHARP_RESERVED),
    'c': Language('c', C_RULES, _BRACE, C_COMMENTS, BLOCK_STYLE, _C_RESERVED),
    'cpp': Language('cpp', CPP_RULES, _BRACE, C_COMMENTS, BLOCK_STYLE, _C_RESERVED),
    'php': Language('php', PHP_RULES, _BRACE, PHP_COMMENTS, BLOCK_STYLE, _C_RESERVED),
    'ruby': Language('ruby', RUBY_RULES, _LINE_END, RUBY_COMMENTS, HASH_STYLE),
    'go': Language('go', GO_RULES, _BRACE, JS_COMMENTS, BLOCK_STYLE, _C_RESERVED),
}

EXTENSION_TABLE: Dict[str, str] = {
    '.js': 'javascript',
    '.jsx': 'javascript',
    '.mjs': 'javascript',
    '.cjs': 'javascript',
    '.ts': 'typescript',
    '.tsx': 'typescript',
    '.py': 'python',
    '.java': 'java',
    '.c': 'c',
    '.h': 'c',
    '.cpp': 'cpp',
    '.cc': 'cpp',
    '.cxx': 'cpp',
    '.hpp': 'cpp',
    '.hh': 'cpp',
    '.cs': 'csharp',
    '.php': 'php',
    '.rb': 'ruby',
    '.go': 'go',
}


def language_for_path(path: Union[str, Path]) -> Optional[Language]:
    """Look up the language of a file by its extension (case-insensitive)."""
    tag = EXTENSION_TABLE.get(Path(path).suffix.lower())
    return LANGUAGES[tag] if tag else None


def supported_extensions() -> FrozenSet[str]:
    return frozenset(EXTENSION_TABLE)
