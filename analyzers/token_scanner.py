"""
String- and nesting-aware scanning over JavaScript/TypeScript source text.

These helpers never fail: unbalanced or truncated input yields the best
partial answer (or -1 / None) instead of an exception.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

QUOTES = ('"', "'", '`')
OPENERS = '([{'
CLOSERS = ')]}'
PAIRS = {'(': ')', '[': ']', '{': '}'}
# A '/' after one of these (or at the start of the text) opens a regex literal
REGEX_PRECEDERS = '(,=:[!&|?{};'


@dataclass(frozen=True)
class ArgumentSpan:
    """One call argument as written, plus where scanning stopped"""
    expression: str
    end_index: int    # index of the terminating ',' or ')', len(text) if unterminated
    terminator: str   # ',', ')' or '' at end of text


def find_string_end(text: str, start_index: int) -> int:
    """Index of the quote closing the literal opened at start_index, or -1."""
    quote = text[start_index]
    escaped = False
    for i in range(start_index + 1, len(text)):
        ch = text[i]
        if escaped:
            escaped = False
        elif ch == '\\':
            escaped = True
        elif ch == quote:
            return i
    return -1


def find_matching_close(text: str, open_index: int) -> int:
    """
    Index of the bracket closing the one at open_index, or -1.

    Only the bracket type found at open_index is counted; string literals and
    backslash escapes are skipped.
    """
    opener = text[open_index]
    closer = PAIRS.get(opener)
    if closer is None:
        return -1

    depth = 0
    in_string = None
    escaped = False

    for i in range(open_index, len(text)):
        ch = text[i]

        if escaped:
            escaped = False
            continue
        if ch == '\\':
            escaped = True
            continue
        if in_string:
            if ch == in_string:
                in_string = None
            continue
        if ch in QUOTES:
            in_string = ch
            continue

        if ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return i

    return -1


def extract_first_argument(text: str, start_index: int) -> Optional[ArgumentSpan]:
    """
    Read the first call argument starting just after an open paren.

    Tracks ()[]{} nesting and string state; stops at the first top-level
    ',' or ')'. Returns None when nothing but whitespace is left.
    """
    chars: List[str] = []
    in_string = None
    escaped = False
    depth = 0

    for i in range(start_index, len(text)):
        ch = text[i]

        if escaped:
            chars.append(ch)
            escaped = False
            continue
        if ch == '\\':
            chars.append(ch)
            escaped = True
            continue
        if in_string:
            chars.append(ch)
            if ch == in_string:
                in_string = None
            continue
        if ch in QUOTES:
            chars.append(ch)
            in_string = ch
            continue

        if ch in OPENERS:
            depth += 1
            chars.append(ch)
            continue
        if ch in CLOSERS and depth > 0:
            depth -= 1
            chars.append(ch)
            continue
        if ch in (',', ')') and depth == 0:
            return ArgumentSpan(''.join(chars).strip(), i, ch)

        chars.append(ch)

    expression = ''.join(chars).strip()
    if expression:
        return ArgumentSpan(expression, len(text), '')
    return None


def extract_call_arguments(text: str, open_paren_index: int) -> Optional[List[str]]:
    """All top-level arguments of the call whose '(' is at open_paren_index."""
    close_index = find_matching_close(text, open_paren_index)
    if close_index == -1:
        return None
    inner = text[open_paren_index + 1:close_index]
    if not inner.strip():
        return []
    return split_top_level(inner, (',',))


def split_top_level(expression: str, separators: Sequence[str]) -> List[str]:
    """
    Split on separators that sit outside strings and brackets.

    Parts are stripped; empty parts are kept so callers can tell
    `'a' +` apart from `'a'`.
    """
    ordered = sorted(separators, key=len, reverse=True)
    parts: List[str] = []
    current: List[str] = []
    in_string = None
    escaped = False
    depth = 0
    i = 0

    while i < len(expression):
        ch = expression[i]

        if escaped:
            current.append(ch)
            escaped = False
            i += 1
            continue
        if ch == '\\':
            current.append(ch)
            escaped = True
            i += 1
            continue
        if in_string:
            current.append(ch)
            if ch == in_string:
                in_string = None
            i += 1
            continue
        if ch in QUOTES:
            current.append(ch)
            in_string = ch
            i += 1
            continue

        if ch in OPENERS:
            depth += 1
        elif ch in CLOSERS and depth > 0:
            depth -= 1
        elif depth == 0:
            separator = next((sep for sep in ordered if expression.startswith(sep, i)), None)
            if separator:
                parts.append(''.join(current).strip())
                current = []
                i += len(separator)
                continue

        current.append(ch)
        i += 1

    parts.append(''.join(current).strip())
    return parts


def blank_comments(text: str) -> str:
    """
    Replace // and /* */ comments with spaces, keeping every newline.

    The result has the same length and line structure as the input, so
    offsets computed on it map straight back to the original text. Regex
    literals are skipped unchanged, so slashes inside them never start a
    comment. Quote state for '...' and "..." ends at a newline, which bounds
    the damage of a literal that was not recognised.
    """
    out = list(text)
    in_string = None
    escaped = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == in_string:
                in_string = None
            elif ch == '\n' and in_string != '`':
                in_string = None
            i += 1
            continue

        if ch in QUOTES:
            in_string = ch
            i += 1
            continue

        if ch == '/' and i + 1 < n and text[i + 1] == '/':
            while i < n and text[i] != '\n':
                out[i] = ' '
                i += 1
            continue

        if ch == '/' and i + 1 < n and text[i + 1] == '*':
            end = text.find('*/', i + 2)
            end = n if end == -1 else end + 2
            for j in range(i, end):
                if text[j] != '\n':
                    out[j] = ' '
            i = end
            continue

        if ch == '/' and _opens_regex(text, i):
            end = _regex_literal_end(text, i)
            if end != -1:
                i = end
                continue

        i += 1

    return ''.join(out)


def _opens_regex(text: str, index: int) -> bool:
    j = index - 1
    while j >= 0 and text[j] in ' \t\r':
        j -= 1
    return j < 0 or text[j] == '\n' or text[j] in REGEX_PRECEDERS


def _regex_literal_end(text: str, start: int) -> int:
    """Index just past the closing '/' of the regex literal at start, or -1"""
    in_class = False
    escaped = False
    i = start + 1

    while i < len(text):
        ch = text[i]
        if ch == '\n':
            return -1
        if escaped:
            escaped = False
        elif ch == '\\':
            escaped = True
        elif ch == '[':
            in_class = True
        elif ch == ']':
            in_class = False
        elif ch == '/' and not in_class:
            return i + 1
        i += 1

    return -1
