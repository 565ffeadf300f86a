"""
Analyzers package for the MountMap Express Route Mapper.
"""

from .source_corpus import SourceCorpus, FileSystemCorpus, InMemoryCorpus, CorpusAccessError, UnreadableFileError
from .mount_graph import MountGraphBuilder
from .prefix_resolver import PrefixResolver
from .route_assembler import RouteAssembler
from .base_url_detector import BaseUrlDetector

__all__ = [
    'SourceCorpus', 'FileSystemCorpus', 'InMemoryCorpus', 'CorpusAccessError', 'UnreadableFileError',
    'MountGraphBuilder', 'PrefixResolver', 'RouteAssembler', 'BaseUrlDetector'
]
