"""Disk storage for uploaded asset files.

Files land under ``<upload_path>/project_<project_id>/`` with a sanitized
base name plus a unique suffix, so two uploads of ``Script.pdf`` never
collide.
"""

import logging
import os
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..constants import ALLOWED_EXTENSIONS, COMMON_EXTENSIONS
from ..exceptions import ValidationError
from ..utils.helpers import sanitize_filename

logger = logging.getLogger(__name__)


@dataclass
class StoredFile:
    path: str
    size: int


class AssetStorage:
    """Validates and writes uploads below a root directory."""

    def __init__(self, upload_path: str, max_file_size: int):
        self.root = Path(upload_path)
        self.max_file_size = max_file_size

    def validate(self, filename: str, size: int, category: Optional[str] = None) -> None:
        """Check extension whitelist (per category) and size limit."""
        ext = os.path.splitext(filename)[1].lower()

        if category and category in ALLOWED_EXTENSIONS:
            if ext not in ALLOWED_EXTENSIONS[category]:
                raise ValidationError(f"File type {ext} not allowed for category {category}")
        elif ext not in COMMON_EXTENSIONS:
            raise ValidationError(f"File type {ext} not allowed")

        if size > self.max_file_size:
            max_mb = self.max_file_size / 1024 / 1024
            raise ValidationError(f"File too large. Maximum size is {max_mb:g}MB")

    def build_path(self, project_id: str, filename: str) -> Path:
        base, ext = os.path.splitext(os.path.basename(filename))
        unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return self.root / f"project_{project_id}" / f"{sanitize_filename(base)}-{unique}{ext}"

    def save(self, project_id: str, filename: str, content: bytes, category: Optional[str] = None) -> StoredFile:
        self.validate(filename, len(content), category)

        target = self.build_path(project_id, filename)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

        logger.info(f"Stored upload {filename} as {target} ({len(content)} bytes)")
        return StoredFile(path=str(target), size=len(content))

    def exists(self, path: Optional[str]) -> bool:
        return bool(path) and os.path.isfile(path)

    def delete(self, path: Optional[str]) -> bool:
        """Remove a stored file. A missing file is logged, not raised."""
        if not path:
            return False
        try:
            os.remove(path)
            return True
        except OSError as e:
            logger.error(f"Error deleting physical file {path}: {e}")
            return False
