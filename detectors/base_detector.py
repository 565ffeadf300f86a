from abc import ABC, abstractmethod
from typing import List
import os
import logging

from models import FileAnalysis

class BaseDetector(ABC):
    """
    Abstract base class for per-file route extractors.
    Each framework detector should inherit from this class.
    """

    def __init__(self, framework: str):
        self.framework = framework
        self.logger = logging.getLogger(f"detector.{framework.lower()}")

    @abstractmethod
    def analyze(self, file_id: str, content: str) -> FileAnalysis:
        """
        Extract routing constructs from the given file content.

        Args:
            file_id: Identifier (absolute path) of the file being analyzed
            content: File content as string

        Returns:
            FileAnalysis describing constants, bindings, mounts and routes
        """
        pass

    def can_handle_file(self, file_path: str) -> bool:
        """
        Check if this detector can handle the given file.
        Override this method for custom file detection logic.

        Args:
            file_path: Path to the file

        Returns:
            True if this detector can handle the file
        """
        extensions = self.get_supported_extensions()
        if not extensions:
            return True
        return os.path.splitext(file_path)[1].lower() in extensions

    def get_supported_extensions(self) -> List[str]:
        """
        Get list of file extensions this detector supports.
        Override this method to specify supported extensions.

        Returns:
            List of file extensions (e.g., ['.ts', '.js'])
        """
        return []

    def preprocess_content(self, content: str) -> str:
        """
        Preprocess file content before analysis.
        Override this method for custom preprocessing. Implementations must
        keep character offsets stable so positions map back to the source.

        Args:
            content: Original file content

        Returns:
            Preprocessed content
        """
        return content

    def log_detection_result(self, file_path: str, analysis: FileAnalysis):
        """
        Log detection results.

        Args:
            file_path: Path to the analyzed file
            analysis: Result of the analysis
        """
        self.logger.debug(
            f"Detected {len(analysis.routes)} routes and {len(analysis.mounts)} mounts "
            f"in {file_path} using {self.framework} detector"
        )
