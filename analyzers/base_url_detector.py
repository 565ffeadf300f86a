"""
Base URL hint from .env files in the scan root.
"""

import re
import logging
from pathlib import Path
from typing import List, Optional

DEFAULT_BASE_URL_KEYS = ['BASE_URL', 'API_BASE_URL', 'API_URL', 'VITE_API_URL', 'NEXT_PUBLIC_API_URL']


class BaseUrlDetector:
    """Looks for BASE_URL-style keys in up to `max_files` .env* files"""

    def __init__(self, keys: Optional[List[str]] = None, max_files: int = 3):
        self.logger = logging.getLogger(__name__)
        self.keys = list(keys) if keys else list(DEFAULT_BASE_URL_KEYS)
        self.max_files = max_files
        self.key_patterns = [
            re.compile(rf'^{re.escape(key)}\s*=\s*(.+)$', re.MULTILINE) for key in self.keys
        ]

    def detect(self, root: str) -> Optional[str]:
        root_path = Path(root)
        if not root_path.is_dir():
            return None

        env_files = sorted(p for p in root_path.glob('.env*') if p.is_file())[:self.max_files]

        for env_file in env_files:
            try:
                text = env_file.read_text(encoding='utf-8', errors='ignore')
            except OSError as e:
                self.logger.debug(f"Skipping unreadable env file {env_file}: {e}")
                continue

            value = self._find_value(text)
            if value:
                self.logger.debug(f"Base URL hint found in {env_file.name}")
                return value

        return None

    def _find_value(self, text: str) -> Optional[str]:
        for pattern in self.key_patterns:
            match = pattern.search(text)
            if match:
                value = self._unquote(match.group(1).strip())
                if value:
                    return value
        return None

    @staticmethod
    def _unquote(value: str) -> str:
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            return value[1:-1].strip()
        return value
