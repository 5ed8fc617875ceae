"""
Plain-text helpers for comment bodies.

Comment text is dedented, wrapped at a fixed width and, when it came from
an assistant, stripped of any comment delimiters it was already wearing.
"""

import re

_OPENER = re.compile(r'^/\*\*?')
_CLOSER = re.compile(r'\*/$')
_LINE_PREFIX = re.compile(r'^[*#]\s*')


def wrap_line(line: str, max_length: int = 79) -> list[str]:
    """
    Break one line into pieces of at most max_length characters.

    Every piece keeps the line's leading whitespace. Words are never split,
    so a word longer than the width ends up on a piece of its own.
    """
    if len(line) <= max_length:
        return [line]

    body = line.lstrip()
    indent = line[:len(line) - len(body)]

    pieces = []
    current = ''
    for word in body.split():
        candidate = f"{current} {word}" if current else word
        if current and len(indent) + len(candidate) > max_length:
            pieces.append(indent + current)
            current = word
        else:
            current = candidate
    if current:
        pieces.append(indent + current)

    return pieces


def wrap_and_normalize(text: str, max_length: int = 79) -> str:
    """
    Dedent text by its common margin and wrap every line.

    Relative indentation survives, trailing whitespace does not, and blank
    lines stay blank. Used by the response schemas and the synthesizer.

    Args:
        text: Text to wrap (can be multi-line)
        max_length: Maximum line length (default 79)
    """
    if not text:
        return text

    lines = [line.rstrip() for line in text.split('\n')]
    margin = min((len(line) - len(line.lstrip()) for line in lines if line), default=0)

    result = []
    for line in lines:
        if line:
            result.extend(wrap_line(line[margin:], max_length=max_length))
        else:
            result.append('')

    return '\n'.join(result)


def _undecorate(line: str) -> str:
    line = _OPENER.sub('', line.strip())
    line = _CLOSER.sub('', line).strip()
    return _LINE_PREFIX.sub('', line)


def strip_comment_decoration(text: str) -> str:
    """
    Turn '/** ... */', ' * ' or '# ' formatted text back into prose.

    Assistants sometimes answer with a ready-made comment even when asked
    for plain sentences; the synthesizer applies its own layout.
    """
    return '\n'.join(_undecorate(line) for line in text.strip().split('\n')).strip()
