"""
Blob storage for assessment uploads.

The upload flow is two-step: the API hands the client a one-time upload URL that embeds
the callback path and a token, the client posts the file there, and the callback redeems
the token, stores the blob and attaches it to the assessment. The bucket is always chosen
by the server. LocalBlobstore keeps blobs on disk under upload_dir, points upload URLs
straight at the callback and keeps issued tokens in process memory.
"""
from __future__ import annotations

import re
import secrets
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import urlencode

from config import settings

DEFAULT_BUCKET = "default"


class BlobstoreService(Protocol):
    def create_upload_url(self, callback_path: str, bucket: Optional[str] = None) -> str:
        ...

    def redeem_upload_token(self, callback_path: str, token: Optional[str]) -> bool:
        """True once per token issued for callback_path. The token is spent either way."""
        ...

    def store(self, bucket: Optional[str], filename: str, content: bytes) -> str:
        ...


def upload_bucket() -> Optional[str]:
    """Production uploads go to the named bucket; everything else uses the default one."""
    if settings.is_production and settings.upload_bucket:
        return settings.upload_bucket
    return None


def _safe_name(filename: str) -> str:
    name = Path(filename).name
    return re.sub(r"[^A-Za-z0-9._-]", "_", name) or "upload"


class LocalBlobstore:
    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self._tokens: dict[str, set[str]] = {}

    def create_upload_url(self, callback_path: str, bucket: Optional[str] = None) -> str:
        token = secrets.token_urlsafe(16)
        self._tokens.setdefault(callback_path, set()).add(token)
        query = urlencode({"bucket": bucket or DEFAULT_BUCKET, "token": token})
        return f"{self.base_url}{callback_path}?{query}"

    def redeem_upload_token(self, callback_path: str, token: Optional[str]) -> bool:
        issued = self._tokens.get(callback_path)
        if not token or not issued or token not in issued:
            return False
        issued.discard(token)
        if not issued:
            del self._tokens[callback_path]
        return True

    def _bucket_dir(self, bucket: Optional[str]) -> Path:
        root = self.root.resolve()
        directory = (root / (bucket or DEFAULT_BUCKET)).resolve()
        if directory == root or not directory.is_relative_to(root):
            raise ValueError(f"Bucket {bucket!r} is outside the upload root")
        return directory

    def store(self, bucket: Optional[str], filename: str, content: bytes) -> str:
        """Write the blob and return its key, unique within the bucket."""
        directory = self._bucket_dir(bucket)
        directory.mkdir(parents=True, exist_ok=True)
        blob_key = f"{secrets.token_hex(16)}-{_safe_name(filename)}"
        (directory / blob_key).write_bytes(content)
        return blob_key


_blobstore: Optional[BlobstoreService] = None


def get_blobstore() -> BlobstoreService:
    global _blobstore
    if _blobstore is None:
        _blobstore = LocalBlobstore(settings.upload_dir, settings.public_base_url)
    return _blobstore


def set_blobstore(blobstore: Optional[BlobstoreService]) -> None:
    """Swap the process blobstore (tests, alternative storage backends)."""
    global _blobstore
    _blobstore = blobstore
