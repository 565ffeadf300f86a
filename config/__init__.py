"""
Configuration package for the MountMap Express Route Mapper.
"""

from .settings import ConfigurationManager, MountMapConfig, get_config_manager

__all__ = ['ConfigurationManager', 'MountMapConfig', 'get_config_manager']
