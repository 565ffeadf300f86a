"""
Cross-file mount graph.

Turns each file's mount statements into file -> file edges by following the
router identifier through the mounting file's own require/import table.
"""

import os
import logging
from typing import List, Dict, Optional, Set

from models import FileAnalysis, MountEdge, MountStatement
from analyzers.expression_resolver import resolve_path_expression, split_route_path_expressions
from analyzers.path_utils import normalize_mount_prefix, strip_extension


class MountGraphBuilder:
    """Builds mount edges between files of one scan"""

    def __init__(self, analyses: List[FileAnalysis]):
        self.logger = logging.getLogger(__name__)
        self.analyses = analyses
        self.path_index = self._build_path_index(analyses)

    @staticmethod
    def _build_path_index(analyses: List[FileAnalysis]) -> Dict[str, str]:
        """Extension-stripped absolute path -> file id (first file wins)"""
        index: Dict[str, str] = {}
        for analysis in analyses:
            key = strip_extension(os.path.normpath(analysis.file_id))
            index.setdefault(key, analysis.file_id)
        return index

    def build(self) -> Set[MountEdge]:
        edges: Set[MountEdge] = set()

        for analysis in self.analyses:
            for mount in analysis.mounts:
                target = self._resolve_target(analysis, mount)
                if not target:
                    continue

                for prefix in self._resolve_prefixes(mount.prefix_expression, analysis.constants):
                    edges.add(MountEdge(analysis.file_id, target, prefix))

        self.logger.debug(f"Mount graph: {len(edges)} edges across {len(self.analyses)} files")
        return edges

    def app_prefixes(self) -> Dict[str, str]:
        """
        Per file, the longest resolved prefix among its app-level `use` calls.

        A guess at where root-level declarations end up; files whose `use`
        prefixes are all unresolved (or that have none) are absent.
        """
        guesses: Dict[str, str] = {}

        for analysis in self.analyses:
            best = ''
            for expression in analysis.app_use_prefix_expressions:
                for piece in split_route_path_expressions(expression):
                    resolved = resolve_path_expression(piece, analysis.constants)
                    prefix = normalize_mount_prefix(resolved or '')
                    if len(prefix) > len(best):
                        best = prefix
            if best:
                guesses[analysis.file_id] = best

        return guesses

    def _resolve_target(self, analysis: FileAnalysis, mount: MountStatement) -> Optional[str]:
        """File id of the router a mount statement points at, if it is in the corpus"""
        specifier = mount.module_source
        if specifier is None and mount.router_identifier:
            binding = analysis.find_binding(mount.router_identifier)
            specifier = binding.source if binding else None

        if not specifier:
            self.logger.debug(
                f"{analysis.file_id}:{mount.line + 1}: no module binding for "
                f"'{mount.router_identifier}', mount ignored"
            )
            return None

        if not specifier.startswith('.'):
            self.logger.debug(f"{analysis.file_id}:{mount.line + 1}: '{specifier}' is a package, mount ignored")
            return None

        base = os.path.normpath(os.path.join(os.path.dirname(analysis.file_id), specifier))
        base = strip_extension(base)

        target = self.path_index.get(base) or self.path_index.get(os.path.join(base, 'index'))
        if not target:
            self.logger.debug(f"{analysis.file_id}:{mount.line + 1}: '{specifier}' not found in corpus")
        return target

    def _resolve_prefixes(self, expression: str, constants: Dict[str, str]) -> List[str]:
        """Normalized prefixes of a mount; unresolved pieces count as the root mount"""
        if not expression:
            return ['']

        prefixes = []
        for piece in split_route_path_expressions(expression):
            resolved = resolve_path_expression(piece, constants)
            prefix = normalize_mount_prefix(resolved or '')
            if prefix not in prefixes:
                prefixes.append(prefix)
        return prefixes or ['']
