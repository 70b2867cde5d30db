"""Binary storage for product images.

Files live under ``MEDIA_ROOT/<bucket>/<path>`` and are served by the app
at ``MEDIA_URL``.
"""
import logging
from pathlib import Path, PurePosixPath

from storefront.core.exceptions import PersistenceError, ValidationError

logger = logging.getLogger(__name__)


class LocalMediaStorage:
    def __init__(self, root: str, base_url: str = "/media"):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _resolve(self, bucket: str, path: str) -> Path:
        relative = PurePosixPath(bucket) / PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts:
            raise ValidationError(f"Invalid storage path: {relative}")
        return self.root.joinpath(*relative.parts)

    def upload(self, bucket: str, path: str, content: bytes) -> str:
        """Write ``content`` and return its public URL."""
        if not content:
            raise ValidationError("Cannot upload an empty file")
        target = self._resolve(bucket, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise PersistenceError(f"Upload failed for {bucket}/{path}: {e}") from e
        logger.info(f"Stored {len(content)} bytes at {bucket}/{path}")
        return f"{self.base_url}/{bucket}/{path}"
