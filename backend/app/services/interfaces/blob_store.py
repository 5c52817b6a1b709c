"""
Blob store interface for event backdrop images.
"""

import os
import uuid
from abc import ABC, abstractmethod

import anyio


class BlobStore(ABC):
    @abstractmethod
    async def upload(self, data: bytes, filename: str) -> str:
        """Store `data` and return its public URL."""
        pass


class LocalBlobStore(BlobStore):
    """Writes blobs under a media directory served at `base_url`."""

    def __init__(self, root: str, base_url: str):
        self.root = root
        self.base_url = base_url.rstrip("/")

    async def upload(self, data: bytes, filename: str) -> str:
        extension = os.path.splitext(filename)[1].lower()
        name = f"{uuid.uuid4().hex}{extension}"
        directory = anyio.Path(self.root) / "backdrops"
        await directory.mkdir(parents=True, exist_ok=True)
        await (directory / name).write_bytes(data)
        return f"{self.base_url}/backdrops/{name}"
