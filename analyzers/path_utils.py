"""
Path helpers shared by the resolver, the mount graph and the route assembler.
"""

import re

_SLASH_RUN = re.compile(r'/+')
_SOURCE_EXTENSION = re.compile(r'\.(?:js|ts|jsx|tsx|mjs|cjs|mts|cts)$', re.IGNORECASE)


def normalize_path(path: str) -> str:
    """Single leading slash, no repeated slashes, never empty."""
    if not path:
        return '/'
    if not path.startswith('/'):
        path = '/' + path
    return _SLASH_RUN.sub('/', path)


def normalize_mount_prefix(prefix: str) -> str:
    """Normalized prefix without trailing slash; the root mount is ''."""
    return normalize_path(prefix).rstrip('/')


def join_paths(prefix: str, route: str) -> str:
    if not prefix and not route:
        return '/'
    if not prefix:
        return normalize_path(route)
    if not route:
        return normalize_path(prefix)

    joined = f"{prefix.rstrip('/')}/{route.lstrip('/')}"
    return normalize_path(joined)


def strip_extension(file_path: str) -> str:
    return _SOURCE_EXTENSION.sub('', file_path)


def count_segments(path: str) -> int:
    return len([segment for segment in path.split('/') if segment])
