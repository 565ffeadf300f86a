"""
Best-effort resolver for route path expressions.

Handles the shapes Express code uses to build paths:

- "/api/v1"
- API_PREFIX
- API_PREFIX + "/audio"
- `${API_PREFIX}/audio`
- path.join("/api", "v1")
- PREFIX || "/fallback"

Everything here is pure: the constant table is read, never written.
"""

import re
from typing import Dict, List, Optional

from analyzers.path_utils import join_paths, normalize_path
from analyzers.token_scanner import QUOTES, find_matching_close, find_string_end, split_top_level

_TEMPLATE = re.compile(r'^`([^`]+)`$', re.DOTALL)
_PLACEHOLDER = re.compile(r'\$\{([^}]+)\}')
_IDENTIFIER = re.compile(r'^[\w$]+$')
_PATH_JOIN = re.compile(r'^(?:path\.posix|path|posix)\s*\.\s*join\s*\(')


def unwrap_parens(expr: str) -> str:
    """Drop parentheses that wrap the whole expression."""
    trimmed = expr.strip()
    while trimmed.startswith('(') and find_matching_close(trimmed, 0) == len(trimmed) - 1:
        inner = trimmed[1:-1].strip()
        if not inner:
            break
        trimmed = inner
    return trimmed


def string_literal_body(expr: str) -> Optional[str]:
    """Body of a single quoted/backtick literal spanning the whole expression."""
    if not expr or expr[0] not in QUOTES:
        return None
    if find_string_end(expr, 0) != len(expr) - 1:
        return None
    return expr[1:-1]


def interpolate(template: str, constants: Dict[str, str]) -> str:
    """Substitute ${name} placeholders; unknown names become ''."""
    return _PLACEHOLDER.sub(lambda m: constants.get(m.group(1).strip(), ''), template)


def resolve_path_expression(expr: str, constants: Dict[str, str]) -> Optional[str]:
    """
    Resolve a path expression to a concrete normalized path.

    Tried in order, first success wins: quoted literal, bare template,
    `||`/`??` alternatives, path.join(...), `+` concatenation, known
    constant. Returns None when the expression is out of reach.
    """
    expr = unwrap_parens(expr)
    if not expr:
        return None

    body = string_literal_body(expr)
    if body is not None:
        return normalize_path(interpolate(body, constants))

    template = _TEMPLATE.match(expr)
    if template:
        return normalize_path(interpolate(template.group(1), constants))

    alternatives = split_top_level(expr, ('||', '??'))
    if len(alternatives) > 1:
        for alternative in alternatives:
            resolved = resolve_path_expression(alternative, constants)
            if resolved:
                return resolved

    joined = _resolve_path_join(expr, constants)
    if joined:
        return joined

    pieces = split_top_level(expr, ('+',))
    if len(pieces) > 1:
        return _resolve_concatenation(pieces, constants)

    if _IDENTIFIER.match(expr) and expr in constants:
        return normalize_path(constants[expr])

    return None


def _resolve_path_join(expr: str, constants: Dict[str, str]) -> Optional[str]:
    match = _PATH_JOIN.match(expr)
    if not match:
        return None

    open_index = match.end() - 1
    if find_matching_close(expr, open_index) != len(expr) - 1:
        return None

    args = [arg for arg in split_top_level(expr[open_index + 1:-1], (',',)) if arg]
    if not args:
        return None

    built = ''
    for arg in args:
        resolved_arg = resolve_path_expression(arg, constants)
        if not resolved_arg:
            return None
        built = join_paths(built, resolved_arg) if built else resolved_arg

    return normalize_path(built)


def _resolve_concatenation(pieces: List[str], constants: Dict[str, str]) -> Optional[str]:
    result = ''
    for piece in pieces:
        piece = unwrap_parens(piece)
        body = string_literal_body(piece)
        if body is not None:
            result += interpolate(body, constants)
        elif _IDENTIFIER.match(piece) and piece in constants:
            result += constants[piece]
        else:
            # no arithmetic, no calls
            return None
    return normalize_path(result)


def fallback_path_from_expression(expr: str) -> str:
    """Readable stand-in for an expression that did not resolve."""
    trimmed = unwrap_parens(expr)

    body = string_literal_body(trimmed)
    if body is not None:
        return normalize_path(body)

    if trimmed.startswith('/'):
        return normalize_path(trimmed)

    return trimmed or '/'


def split_route_path_expressions(expr: str) -> List[str]:
    """Split an array literal of paths into its elements; anything else stays whole."""
    trimmed = expr.strip()
    if not (trimmed.startswith('[') and find_matching_close(trimmed, 0) == len(trimmed) - 1):
        return [trimmed]

    parts = [part for part in split_top_level(trimmed[1:-1], (',',)) if part]
    return parts or [trimmed]
