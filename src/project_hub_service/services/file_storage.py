"""Upload storage under the public web root."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from project_hub_service.core.exceptions import NotFound, ServiceError, ValidationFailed
from project_hub_service.logging import get_logger

ALLOWED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "text/plain",
        "text/csv",
        "application/zip",
        "application/x-zip-compressed",
        "image/jpeg",
        "image/png",
    }
)


class FileStorage:
    """
    Stores uploaded files below ``public_root`` and hands out public paths.

    A public path looks like ``/uploads/documents/file-1700000000000-42.pdf``
    and maps onto ``<public_root>/uploads/documents/...`` on disk.
    """

    def __init__(self, public_root: str, max_file_size: int) -> None:
        self._public_root = Path(public_root)
        self._max_file_size = max_file_size
        self._logger = get_logger(__name__)

        self._public_root.mkdir(parents=True, exist_ok=True)

    def validate_upload(self, content: bytes, content_type: str) -> None:
        """Reject uploads that are too large or of a disallowed type."""
        if len(content) > self._max_file_size:
            raise ServiceError(
                "FILE_TOO_LARGE",
                f"File exceeds maximum size of {self._max_file_size} bytes",
                413,
                {},
            )
        if content_type not in ALLOWED_MIME_TYPES:
            allowed = ", ".join(sorted(ALLOWED_MIME_TYPES))
            raise ValidationFailed(f"File type not allowed. Allowed types: {allowed}")

    def save(self, folder: str, field_name: str, original_name: str, content: bytes) -> str:
        """Write ``content`` and return its public path."""
        suffix = PurePosixPath(original_name).suffix
        unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"  # nosec B311
        public_path = PurePosixPath("/uploads") / folder / f"{field_name}-{unique}{suffix}"

        target = self.resolve(str(public_path))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        self._logger.info(
            "File stored", extra={"path": str(public_path), "size_bytes": len(content)}
        )
        return str(public_path)

    def resolve(self, public_path: str) -> Path:
        """Map a public path to a location on disk, refusing anything outside the root."""
        root = self._public_root.resolve()
        candidate = (root / public_path.lstrip("/")).resolve()
        if not candidate.is_relative_to(root):
            raise NotFound("File not found")
        return candidate

    def exists(self, public_path: str) -> bool:
        try:
            return self.resolve(public_path).is_file()
        except NotFound:
            return False

    def read(self, public_path: str) -> bytes:
        path = self.resolve(public_path)
        if not path.is_file():
            raise NotFound("File not found")
        return path.read_bytes()

    def delete(self, public_path: str | None) -> None:
        """Remove a stored file. A file that is already gone counts as removed."""
        if not public_path:
            return
        path = self.resolve(public_path)
        path.unlink(missing_ok=True)
        self._logger.info("File removed", extra={"path": public_path})


@dataclass(frozen=True)
class UploadedFile:
    """A file received in a multipart request, fully read into memory."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)
