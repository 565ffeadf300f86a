"""
Route detectors package for the MountMap Express Route Mapper.
"""

from .base_detector import BaseDetector
from .express_detector import ExpressDetector

__all__ = ['BaseDetector', 'ExpressDetector']
