"""
Route assembly: local routes x resolved prefixes -> final route list.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from models import FileAnalysis, LocalRoute, Receiver, RouteNode
from analyzers.path_utils import join_paths, normalize_path


class RouteAssembler:
    """Builds the sorted, de-duplicated RouteNode list of a scan"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def assemble(self, analyses: List[FileAnalysis], prefixes: Dict[str, Set[str]],
                 app_prefixes: Optional[Dict[str, str]] = None) -> List[RouteNode]:
        app_prefixes = app_prefixes or {}
        seen: Set[Tuple[str, str, str, int]] = set()
        nodes: List[RouteNode] = []

        for analysis in analyses:
            file_prefixes = sorted(prefixes.get(analysis.file_id, set()))
            app_prefix = app_prefixes.get(analysis.file_id)

            for route in analysis.routes:
                for full_path in self._full_paths(route, file_prefixes, app_prefix):
                    key = (route.method, full_path, analysis.file_id, route.line)
                    if key in seen:
                        continue
                    seen.add(key)
                    nodes.append(RouteNode(
                        method=route.method,
                        path=route.path,
                        full_path=full_path,
                        raw_path=route.path_expression,
                        resolved_path=route.resolved_path,
                        file_id=analysis.file_id,
                        line=route.line,
                        column=route.column,
                    ))

        nodes.sort(key=lambda n: (n.full_path, n.method, n.file_id, n.line, n.column))
        self.logger.debug(f"Assembled {len(nodes)} routes from {len(analyses)} files")
        return nodes

    def _full_paths(self, route: LocalRoute, file_prefixes: List[str],
                    app_prefix: Optional[str]) -> List[str]:
        base = route.resolved_path or route.path
        concrete = route.resolved_path is not None or base.startswith('/')
        display = normalize_path(base) if concrete else (base or '/')

        if route.receiver is Receiver.ROUTER and any(file_prefixes):
            return [self._combine(prefix, base, display, concrete) for prefix in file_prefixes]

        if route.receiver is Receiver.APP and app_prefix:
            return [self._combine(app_prefix, base, display, concrete)]

        return [display if display.startswith('/') else '/' + display]

    @staticmethod
    def _combine(prefix: str, base: str, display: str, concrete: bool) -> str:
        if not prefix:
            return display if display.startswith('/') else '/' + display
        if concrete:
            return join_paths(normalize_path(prefix), base)
        # Unresolved expression text is kept verbatim after the prefix
        return prefix.rstrip('/') + '/' + display
