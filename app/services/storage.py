"""
Local upload storage addressed by object key.
"""
import logging
import os
from pathlib import Path

from app.core.config import UPLOAD_DIR

logger = logging.getLogger(__name__)


class LocalUploadStorage:
    def __init__(self, root: str = UPLOAD_DIR):
        self.root = Path(root).resolve()

    def path_for(self, object_key: str) -> Path:
        """
        Resolve an object key under the upload root.

        Raises:
            ValueError: if the key escapes the upload root
        """
        path = (self.root / object_key.lstrip("/")).resolve()
        if path != self.root and self.root not in path.parents:
            raise ValueError(f"Object key outside upload root: {object_key}")
        return path

    def exists(self, object_key: str) -> bool:
        if not object_key:
            return False
        try:
            return self.path_for(object_key).is_file()
        except ValueError:
            logger.warning(f"Rejected object key: {object_key!r}")
            return False

    def save(self, object_key: str, content: bytes) -> str:
        path = self.path_for(object_key)
        os.makedirs(path.parent, exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)
        return object_key

    def delete(self, object_key: str) -> bool:
        try:
            path = self.path_for(object_key)
        except ValueError:
            return False
        if path.is_file():
            path.unlink()
            return True
        return False
