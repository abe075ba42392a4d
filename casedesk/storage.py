"""Object storage for evidence files."""

from __future__ import annotations

import abc
import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Union

from .database import NotFoundError, RepositoryError

log = logging.getLogger(__name__)

EVIDENCE_BUCKET = "evidence-bucket"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

Payload = Union[bytes, bytearray, memoryview, BinaryIO]


@dataclass(frozen=True)
class StoredObject:
    name: str
    data: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


class ObjectStore(abc.ABC):
    """A bucket-and-key object store."""

    @abc.abstractmethod
    def bucket_exists(self, bucket: str) -> bool:
        """Whether the bucket exists."""

    @abc.abstractmethod
    def make_bucket(self, bucket: str) -> None:
        """Create a bucket; fail if it already exists."""

    @abc.abstractmethod
    def put_object(
        self, bucket: str, name: str, data: Payload, content_type: str = DEFAULT_CONTENT_TYPE
    ) -> StoredObject:
        """Store an object, replacing any object of the same name."""

    @abc.abstractmethod
    def get_object(self, bucket: str, name: str) -> StoredObject:
        """Fetch an object; raise NotFoundError if absent."""

    @abc.abstractmethod
    def remove_object(self, bucket: str, name: str) -> None:
        """Delete an object; removing an absent object is not an error."""


class DirectoryObjectStore(ObjectStore):
    """Object store kept in a directory tree, one sub-directory per bucket."""

    def __init__(self, root: Union[str, os.PathLike]) -> None:
        self._root = Path(root)

    @staticmethod
    def _check_bucket(bucket: str) -> str:
        if not bucket or bucket in (".", "..") or "/" in bucket or "\\" in bucket:
            raise ValueError(f"invalid bucket name: {bucket!r}")
        return bucket

    @staticmethod
    def _check_name(name: str) -> PurePosixPath:
        path = PurePosixPath(name)
        if not name or "\\" in name or path.is_absolute() or any(
            part in ("", ".", "..") for part in name.split("/")
        ):
            raise ValueError(f"invalid object name: {name!r}")
        return path

    def _bucket_dir(self, bucket: str) -> Path:
        return self._root / self._check_bucket(bucket)

    def _paths(self, bucket: str, name: str) -> tuple[Path, Path]:
        bucket_dir = self._bucket_dir(bucket)
        if not bucket_dir.is_dir():
            raise NotFoundError(f"bucket {bucket!r} does not exist")
        rel = self._check_name(name)
        return bucket_dir / "objects" / rel, bucket_dir / "meta" / rel

    def bucket_exists(self, bucket: str) -> bool:
        return self._bucket_dir(bucket).is_dir()

    def make_bucket(self, bucket: str) -> None:
        bucket_dir = self._bucket_dir(bucket)
        if bucket_dir.exists():
            raise RepositoryError(f"bucket {bucket!r} already exists")
        (bucket_dir / "objects").mkdir(parents=True)
        (bucket_dir / "meta").mkdir()

    def put_object(
        self, bucket: str, name: str, data: Payload, content_type: str = DEFAULT_CONTENT_TYPE
    ) -> StoredObject:
        data_path, meta_path = self._paths(bucket, name)
        payload = data.read() if hasattr(data, "read") else bytes(data)
        data_path.parent.mkdir(parents=True, exist_ok=True)
        meta_path.parent.mkdir(parents=True, exist_ok=True)
        data_path.write_bytes(payload)
        meta_path.write_text(content_type, encoding="utf-8")
        return StoredObject(name, payload, content_type)

    def get_object(self, bucket: str, name: str) -> StoredObject:
        data_path, meta_path = self._paths(bucket, name)
        if not data_path.is_file():
            raise NotFoundError(f"object {name!r} not found in {bucket!r}")
        content_type = (
            meta_path.read_text(encoding="utf-8") if meta_path.is_file() else DEFAULT_CONTENT_TYPE
        )
        return StoredObject(name, data_path.read_bytes(), content_type)

    def remove_object(self, bucket: str, name: str) -> None:
        data_path, meta_path = self._paths(bucket, name)
        data_path.unlink(missing_ok=True)
        meta_path.unlink(missing_ok=True)


def ensure_bucket(store: ObjectStore, bucket: str = EVIDENCE_BUCKET) -> bool:
    """Create the bucket if missing; return True when it was created."""
    if store.bucket_exists(bucket):
        return False
    store.make_bucket(bucket)
    log.info("Successfully created the bucket with the name: %s", bucket)
    return True