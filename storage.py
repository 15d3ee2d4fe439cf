"""
Object storage for uploaded images.

Buckets are directories under STORAGE_DIR; objects are write-once files
served back by the API under /storage/{bucket}/{key}.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import PUBLIC_BASE_URL, STORAGE_DIR
from errors import StoreError

logger = logging.getLogger(__name__)

PROFILE_PHOTOS = "profile-photos"
PROJECT_IMAGES = "portfolio-images"
BUCKETS = (PROFILE_PHOTOS, PROJECT_IMAGES)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_EXT = re.compile(r"[^a-z0-9]")
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


@dataclass
class UploadedFile:
    filename: str
    data: bytes
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        if "." not in self.filename:
            return "bin"
        return _EXT.sub("", self.filename.rsplit(".", 1)[-1].lower()) or "bin"


def key_prefix(value: str) -> str:
    """Make an owner id (an email, a uuid) usable at the start of an object key."""
    return _UNSAFE.sub("-", value).lstrip("._-") or "object"


class ObjectStorage:
    def __init__(self, root: str = STORAGE_DIR, base_url: str = PUBLIC_BASE_URL):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def path_for(self, bucket: str, key: str) -> Optional[Path]:
        if bucket not in BUCKETS or not _SAFE_KEY.match(key):
            return None
        return self.root / bucket / key

    def upload(self, bucket: str, key: str, data: bytes) -> Optional[StoreError]:
        if bucket not in BUCKETS:
            return StoreError("Bucket not found", code="bucket_not_found")
        path = self.path_for(bucket, key)
        if path is None:
            return StoreError(f"Invalid key: {key}", code="invalid_key")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "xb") as fh:
                fh.write(data)
        except FileExistsError:
            return StoreError("The resource already exists", code="duplicate")
        except OSError as exc:
            logger.warning("Upload of %s/%s failed: %s", bucket, key, exc)
            return StoreError(str(exc), code="io_error")

        logger.info("Stored %s/%s (%d bytes)", bucket, key, len(data))
        return None

    def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self.base_url}/storage/{bucket}/{key}"


storage = ObjectStorage()
