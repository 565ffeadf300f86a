#!/usr/bin/env python3
"""
Configuration Management for MountMap

Layered configuration:
- Built-in defaults
- YAML/JSON configuration files (user, project, $MOUNTMAP_CONFIG)
- Environment variable overrides
- Command-line overrides (applied when building a ScanConfig)
"""

import os
import yaml
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field

from models import ScanConfig

logger = logging.getLogger(__name__)

VALID_OUTPUT_FORMATS = ['terminal', 'json']

@dataclass
class DiscoverySettings:
    """Which files take part in a scan"""
    include_extensions: List[str] = field(default_factory=lambda: [".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs"])
    exclude_dirs: List[str] = field(default_factory=lambda: ["node_modules", ".git", "dist", "build", "coverage", "vendor"])

@dataclass
class AnalysisSettings:
    """Extractor and prefix resolution limits"""
    chain_window: int = 400
    max_prefix_segments: int = 32
    max_fixpoint_passes: int = 100
    max_prefixes_per_file: int = 256

@dataclass
class BaseUrlSettings:
    """Base URL hint detection"""
    enabled: bool = True
    keys: List[str] = field(default_factory=lambda: [
        "BASE_URL", "API_BASE_URL", "API_URL", "VITE_API_URL", "NEXT_PUBLIC_API_URL"
    ])
    max_env_files: int = 3

@dataclass
class PerformanceSettings:
    """Performance settings"""
    max_workers: Optional[int] = None

@dataclass
class OutputSettings:
    """Output configuration"""
    default_format: str = "terminal"

@dataclass
class MountMapConfig:
    """Complete MountMap configuration"""
    version: str = "1.0"
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)
    analysis: AnalysisSettings = field(default_factory=AnalysisSettings)
    base_url: BaseUrlSettings = field(default_factory=BaseUrlSettings)
    performance: PerformanceSettings = field(default_factory=PerformanceSettings)
    output: OutputSettings = field(default_factory=OutputSettings)

class ConfigurationManager:
    """
    Loads, merges and validates MountMap configuration.

    Later sources win: files in the order given, then environment variables.
    Unknown keys are ignored; unreadable files are logged and skipped.
    """

    SECTIONS = ('discovery', 'analysis', 'base_url', 'performance', 'output')

    def __init__(self, config_paths: Optional[List[str]] = None):
        """
        Initialize configuration manager.

        Args:
            config_paths: Configuration files to load; defaults are searched when None
        """
        self.logger = logging.getLogger(__name__)
        self.config_paths = config_paths if config_paths is not None else self._get_default_config_paths()
        self.config = MountMapConfig()
        self._load_configurations()

    def _get_default_config_paths(self) -> List[str]:
        """Get default configuration file paths"""
        paths = []

        # User configuration
        home_config = Path.home() / ".mountmap" / "config.yaml"
        if home_config.exists():
            paths.append(str(home_config))

        # Project-local configuration
        for config_name in ["mountmap.yaml", "mountmap.yml", ".mountmap.yaml"]:
            if os.path.exists(config_name):
                paths.append(config_name)

        # Environment variable override
        env_config = os.getenv("MOUNTMAP_CONFIG")
        if env_config and os.path.exists(env_config):
            paths.append(env_config)

        return paths

    def _load_configurations(self):
        """Load and merge configurations from all sources"""
        self.logger.debug(f"Loading configurations from: {self.config_paths}")

        for config_path in self.config_paths:
            try:
                self._load_config_file(config_path)
                self.logger.debug(f"Loaded configuration from: {config_path}")
            except (OSError, ValueError, yaml.YAMLError) as e:
                self.logger.warning(f"Failed to load config {config_path}: {e}")

        self._load_environment_overrides()
        self._validate_configuration()

    def _load_config_file(self, config_path: str):
        """Load configuration from a file"""
        with open(config_path, 'r') as f:
            if config_path.endswith('.json'):
                config_data = json.load(f)
            else:
                config_data = yaml.safe_load(f)

        if config_data is not None and not isinstance(config_data, dict):
            raise ValueError("top level must be a mapping")

        self._merge_config(config_data)

    def _merge_config(self, new_config: Optional[Dict[str, Any]]):
        """Merge new configuration with existing configuration"""
        if not new_config:
            return

        for section_name in self.SECTIONS:
            section_data = new_config.get(section_name)
            if not isinstance(section_data, dict):
                continue

            section = getattr(self.config, section_name)
            for key, value in section_data.items():
                if hasattr(section, key):
                    setattr(section, key, value)
                else:
                    self.logger.debug(f"Ignoring unknown setting {section_name}.{key}")

    def _load_environment_overrides(self):
        """Load configuration overrides from environment variables"""
        if os.getenv('MOUNTMAP_MAX_WORKERS'):
            try:
                self.config.performance.max_workers = int(os.getenv('MOUNTMAP_MAX_WORKERS'))
            except ValueError:
                self.logger.warning("Ignoring non-numeric MOUNTMAP_MAX_WORKERS")

        if os.getenv('MOUNTMAP_MAX_PREFIX_SEGMENTS'):
            try:
                self.config.analysis.max_prefix_segments = int(os.getenv('MOUNTMAP_MAX_PREFIX_SEGMENTS'))
            except ValueError:
                self.logger.warning("Ignoring non-numeric MOUNTMAP_MAX_PREFIX_SEGMENTS")

        if os.getenv('MOUNTMAP_BASE_URL_DETECTION'):
            self.config.base_url.enabled = os.getenv('MOUNTMAP_BASE_URL_DETECTION').lower() in ('1', 'true', 'yes', 'on')

        if os.getenv('MOUNTMAP_OUTPUT_FORMAT'):
            self.config.output.default_format = os.getenv('MOUNTMAP_OUTPUT_FORMAT').lower()

    def _validate_configuration(self):
        """Clamp out-of-range values back to something usable"""
        analysis = self.config.analysis
        performance = self.config.performance

        if performance.max_workers is not None and performance.max_workers < 1:
            self.logger.warning("max_workers must be at least 1, using executor default")
            performance.max_workers = None

        if analysis.chain_window < 1:
            self.logger.warning("chain_window too low, setting to 400")
            analysis.chain_window = 400

        if analysis.max_prefix_segments < 1:
            self.logger.warning("max_prefix_segments too low, setting to 1")
            analysis.max_prefix_segments = 1

        if analysis.max_fixpoint_passes < 1:
            self.logger.warning("max_fixpoint_passes too low, setting to 1")
            analysis.max_fixpoint_passes = 1

        if analysis.max_prefixes_per_file < 1:
            self.logger.warning("max_prefixes_per_file too low, setting to 1")
            analysis.max_prefixes_per_file = 1

        if self.config.base_url.max_env_files < 0:
            self.config.base_url.max_env_files = 0

        if self.config.output.default_format not in VALID_OUTPUT_FORMATS:
            self.logger.warning(f"Invalid output format '{self.config.output.default_format}', using 'terminal'")
            self.config.output.default_format = 'terminal'

        extensions = [ext if ext.startswith('.') else f'.{ext}' for ext in self.config.discovery.include_extensions]
        self.config.discovery.include_extensions = [ext.lower() for ext in extensions]

    def build_scan_config(self, repo_path: str, **overrides) -> ScanConfig:
        """
        ScanConfig for one scan. Overrides whose value is None are ignored.
        """
        values = {
            'repo_path': repo_path,
            'include_extensions': list(self.config.discovery.include_extensions),
            'exclude_dirs': list(self.config.discovery.exclude_dirs),
            'max_workers': self.config.performance.max_workers,
            'chain_window': self.config.analysis.chain_window,
            'max_prefix_segments': self.config.analysis.max_prefix_segments,
            'max_fixpoint_passes': self.config.analysis.max_fixpoint_passes,
            'max_prefixes_per_file': self.config.analysis.max_prefixes_per_file,
            'detect_base_url': self.config.base_url.enabled,
            'base_url_keys': list(self.config.base_url.keys),
            'env_file_limit': self.config.base_url.max_env_files,
            'output_format': self.config.output.default_format,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return ScanConfig(**values)

    def create_example_config(self, output_path: str):
        """Create an example configuration file with all options"""
        example_config = {
            'version': '1.0',
            'discovery': {
                'include_extensions': ['.js', '.ts', '.mjs', '.cjs'],
                'exclude_dirs': ['node_modules', '.git', 'dist', 'build', 'coverage', 'vendor', 'test']
            },
            'analysis': {
                'chain_window': 400,
                'max_prefix_segments': 32,
                'max_fixpoint_passes': 100,
                'max_prefixes_per_file': 256
            },
            'base_url': {
                'enabled': True,
                'keys': ['BASE_URL', 'API_BASE_URL', 'API_URL'],
                'max_env_files': 3
            },
            'performance': {
                'max_workers': 8
            },
            'output': {
                'default_format': 'terminal'
            }
        }

        with open(output_path, 'w') as f:
            yaml.dump(example_config, f, default_flow_style=False, indent=2, sort_keys=False)

        self.logger.info(f"Example configuration created: {output_path}")

# Global configuration manager instance
_config_manager: Optional[ConfigurationManager] = None

def get_config_manager(config_paths: Optional[List[str]] = None) -> ConfigurationManager:
    """Get or create global configuration manager instance"""
    global _config_manager
    if _config_manager is None or config_paths:
        _config_manager = ConfigurationManager(config_paths)
    return _config_manager
