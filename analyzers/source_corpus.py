"""
Source corpus providers: where the scanner gets file ids and file text from.
"""

import os
import time
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

# Generated bundles above this size are not worth scanning
MAX_FILE_SIZE = 10 * 1024 * 1024


class CorpusAccessError(Exception):
    """The corpus (or one of its files) could not be read"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class UnreadableFileError(CorpusAccessError):
    """A single file could not be read; the rest of the corpus is fine"""
    pass


class SourceCorpus(ABC):
    """Snapshot of candidate source files"""

    @abstractmethod
    def list_files(self) -> List[str]:
        """Return the ids (absolute paths) of all candidate files, sorted"""
        pass

    @abstractmethod
    def read_text(self, file_id: str) -> str:
        """Return the text of one file; raise UnreadableFileError on failure"""
        pass


class FileSystemCorpus(SourceCorpus):
    """Source files under a directory, skipping dependency and build output"""

    def __init__(self, root: str, extensions: Iterable[str], exclude_dirs: Iterable[str]):
        self.root = os.path.abspath(root)
        self.extensions = {ext.lower() for ext in extensions}
        self.exclude_dirs = set(exclude_dirs)

    def list_files(self) -> List[str]:
        root_path = Path(self.root)
        if not root_path.exists():
            raise CorpusAccessError(f"Repository path does not exist: {self.root}", self.root)
        if not root_path.is_dir():
            raise CorpusAccessError(f"Repository path is not a directory: {self.root}", self.root)

        start_time = time.time()
        files = []

        def on_error(error: OSError):
            if os.path.abspath(error.filename or '') == self.root:
                raise CorpusAccessError(f"Cannot list {self.root}: {error}", self.root) from error
            logger.warning(f"Skipping unreadable directory {error.filename}: {error.strerror}")

        for root, dirs, filenames in os.walk(self.root, onerror=on_error):
            dirs[:] = sorted(d for d in dirs if d not in self.exclude_dirs)

            for filename in filenames:
                file_path = Path(root) / filename
                if file_path.suffix.lower() not in self.extensions:
                    continue
                try:
                    if file_path.stat().st_size >= MAX_FILE_SIZE:
                        logger.debug(f"Skipping oversized file {file_path}")
                        continue
                except OSError:
                    continue
                files.append(str(file_path))

        files.sort()
        logger.debug(f"File discovery complete in {time.time() - start_time:.2f}s: {len(files)} files found")
        return files

    def read_text(self, file_id: str) -> str:
        try:
            with open(file_id, 'r', encoding='utf-8', errors='ignore') as f:
                return f.read()
        except OSError as e:
            raise UnreadableFileError(f"Cannot read {file_id}: {e}", file_id) from e


class InMemoryCorpus(SourceCorpus):
    """Corpus backed by a {file_id: text} mapping"""

    def __init__(self, files: Dict[str, str]):
        self.files = dict(files)

    def list_files(self) -> List[str]:
        return sorted(self.files)

    def read_text(self, file_id: str) -> str:
        if file_id not in self.files:
            raise UnreadableFileError(f"Unknown file: {file_id}", file_id)
        return self.files[file_id]
