#!/usr/bin/env python3
"""
Data models for MountMap
Defines all data structures shared by the extractor, the mount graph and the CLI
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field

class HTTPMethod(Enum):
    """HTTP methods recognised on Express receivers"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"
    ALL = "ALL"

class Receiver(Enum):
    """Structural kind of the identifier a routing call is made on"""
    APP = "app"
    ROUTER = "router"

class DeclarationKind(Enum):
    """Shape of a route declaration"""
    DIRECT = "direct"    # router.get('/x', h) / router['get']('/x', h)
    CHAINED = "chained"  # router.route('/x').get(h).post(h)

class BindingKind(Enum):
    """How a module was bound to a local identifier"""
    REQUIRE = "require"
    IMPORT = "import"

@dataclass(frozen=True)
class LocalRoute:
    """A route declaration as seen within a single file, before prefixes apply"""
    method: str
    receiver: Receiver
    kind: DeclarationKind
    path_expression: str           # raw text of one path expression
    path: str                      # resolved path, else fallback text
    resolved_path: Optional[str] = None
    line: int = 0                  # zero based
    column: int = 0                # zero based

@dataclass(frozen=True)
class ModuleBinding:
    """Local identifier bound to a module specifier"""
    name: str
    source: str
    kind: BindingKind = BindingKind.REQUIRE

    @property
    def is_relative(self) -> bool:
        return self.source.startswith('.')

@dataclass(frozen=True)
class MountStatement:
    """A `<receiver>.use(prefix, router)` call"""
    receiver: Receiver
    prefix_expression: str                   # '' for app.use(router)
    router_identifier: Optional[str] = None
    module_source: Optional[str] = None      # app.use('/x', require('./x'))
    line: int = 0

@dataclass
class FileAnalysis:
    """Everything the extractor learned about one file"""
    file_id: str
    constants: Dict[str, str] = field(default_factory=dict)
    requires: List[ModuleBinding] = field(default_factory=list)
    imports: List[ModuleBinding] = field(default_factory=list)
    app_use_prefix_expressions: List[str] = field(default_factory=list)
    mounts: List[MountStatement] = field(default_factory=list)
    routes: List[LocalRoute] = field(default_factory=list)

    def find_binding(self, name: str) -> Optional[ModuleBinding]:
        """Look a name up in the require table first, then the import table"""
        for binding in self.requires:
            if binding.name == name:
                return binding
        for binding in self.imports:
            if binding.name == name:
                return binding
        return None

@dataclass(frozen=True)
class MountEdge:
    """source_file mounts the router defined in target_file under prefix"""
    source_file: str
    target_file: str
    prefix: str = ""   # normalized mount prefix, '' when unresolved or '/'

class RouteNode(BaseModel):
    """Fully-qualified route record produced by a scan"""
    method: str
    path: str                              # as written / resolved in the file
    full_path: str                         # prefixes applied
    raw_path: Optional[str] = None         # raw path expression
    resolved_path: Optional[str] = None    # set when the expression evaluated
    file_id: str
    line: int = 0
    column: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for export"""
        return {
            'method': self.method,
            'path': self.path,
            'full_path': self.full_path,
            'raw_path': self.raw_path,
            'resolved_path': self.resolved_path,
            'file': self.file_id,
            'line': self.line,
            'column': self.column,
        }

class ScanConfig(BaseModel):
    """Scan configuration model"""
    repo_path: str
    include_extensions: List[str] = Field(default_factory=lambda: [".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs"])
    exclude_dirs: List[str] = Field(default_factory=lambda: ["node_modules", ".git", "dist", "build", "coverage", "vendor"])
    max_workers: Optional[int] = None  # executor default when not specified
    chain_window: int = 400
    max_prefix_segments: int = 32
    max_fixpoint_passes: int = 100
    max_prefixes_per_file: int = 256
    detect_base_url: bool = True
    base_url_keys: List[str] = Field(default_factory=lambda: [
        "BASE_URL", "API_BASE_URL", "API_URL", "VITE_API_URL", "NEXT_PUBLIC_API_URL"
    ])
    env_file_limit: int = 3
    output_format: str = "terminal"

@dataclass
class ScanResult:
    """Complete scan results"""
    routes: List[RouteNode] = field(default_factory=list)
    base_url: Optional[str] = None
    files_analyzed: int = 0
    total_files: int = 0
    errors: List[str] = field(default_factory=list)
    scan_duration_seconds: float = 0.0
    scan_time: datetime = field(default_factory=datetime.now)

    @property
    def total_routes(self) -> int:
        return len(self.routes)

    def get_summary(self) -> Dict[str, Any]:
        """Get scan summary statistics"""
        routes_by_method: Dict[str, int] = {}
        for route in self.routes:
            routes_by_method[route.method] = routes_by_method.get(route.method, 0) + 1

        return {
            'total_routes': self.total_routes,
            'routes_by_method': routes_by_method,
            'unresolved_routes': sum(1 for r in self.routes if r.resolved_path is None),
            'files_analyzed': self.files_analyzed,
            'total_files': self.total_files,
            'base_url': self.base_url,
            'scan_time': self.scan_time.isoformat(),
            'errors': len(self.errors)
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON export"""
        return {
            'summary': self.get_summary(),
            'routes': [route.to_dict() for route in self.routes],
            'errors': list(self.errors),
        }
