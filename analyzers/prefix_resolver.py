"""
Prefix fixpoint over the mount graph.

Computes, for every file, the set of prefixes under which its router
declarations can be reached from an entry file (a file nothing mounts).
"""

import logging
from typing import Dict, Iterable, Set, Tuple

from models import MountEdge
from analyzers.path_utils import count_segments, join_paths, normalize_mount_prefix


class PrefixResolver:
    """
    Monotone relaxation of per-file prefix sets.

    Mutually mounting files with non-empty prefixes would grow prefixes
    forever, and cycles of multi-prefix mounts double the prefix sets on
    every trip, so three caps apply:

    - a combined prefix longer than max_prefix_segments segments is dropped
    - a file holds at most max_prefixes_per_file prefixes
    - at most max_fixpoint_passes passes run
    """

    def __init__(self, max_prefix_segments: int = 32, max_fixpoint_passes: int = 100,
                 max_prefixes_per_file: int = 256):
        self.logger = logging.getLogger(__name__)
        self.max_prefix_segments = max_prefix_segments
        self.max_fixpoint_passes = max_fixpoint_passes
        self.max_prefixes_per_file = max_prefixes_per_file

    def resolve(self, file_ids: Iterable[str], edges: Iterable[MountEdge]) -> Dict[str, Set[str]]:
        ordered_edges = sorted(edges, key=lambda e: (e.source_file, e.target_file, e.prefix))
        mounted = {edge.target_file for edge in ordered_edges}

        prefixes: Dict[str, Set[str]] = {}
        for file_id in file_ids:
            prefixes[file_id] = set() if file_id in mounted else {''}
        for edge in ordered_edges:
            prefixes.setdefault(edge.source_file, set() if edge.source_file in mounted else {''})
            prefixes.setdefault(edge.target_file, set())

        truncated_edges: Set[Tuple[str, str, str]] = set()
        full_files: Set[str] = set()
        passes = 0
        changed = True

        while changed:
            if passes >= self.max_fixpoint_passes:
                self.logger.warning(
                    f"Prefix resolution stopped after {passes} passes; "
                    f"mount graph likely contains a cycle"
                )
                break

            changed = False
            passes += 1

            for edge in ordered_edges:
                source_prefixes = sorted(prefixes[edge.source_file])
                target_prefixes = prefixes[edge.target_file]

                for source_prefix in source_prefixes:
                    combined = self.combine(source_prefix, edge.prefix)

                    if count_segments(combined) > self.max_prefix_segments:
                        key = (edge.source_file, edge.target_file, edge.prefix)
                        if key not in truncated_edges:
                            truncated_edges.add(key)
                            self.logger.warning(
                                f"Dropping prefixes longer than {self.max_prefix_segments} segments "
                                f"for mount {edge.source_file} -> {edge.target_file}"
                            )
                        continue

                    if combined in target_prefixes:
                        continue

                    if len(target_prefixes) >= self.max_prefixes_per_file:
                        if edge.target_file not in full_files:
                            full_files.add(edge.target_file)
                            self.logger.warning(
                                f"{edge.target_file} reached {self.max_prefixes_per_file} prefixes; "
                                f"dropping further prefixes for it"
                            )
                        continue

                    target_prefixes.add(combined)
                    changed = True

        self.logger.debug(f"Prefix resolution converged in {passes} passes over {len(ordered_edges)} edges")
        return prefixes

    @staticmethod
    def combine(outer: str, inner: str) -> str:
        """Prefix of a router mounted under `inner` by a file reachable under `outer`"""
        if outer and inner:
            return normalize_mount_prefix(join_paths(outer, inner))
        if not inner:
            return normalize_mount_prefix(outer)
        return normalize_mount_prefix(inner)

