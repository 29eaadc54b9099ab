"""On-disk storage for task attachments."""
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable

from taskmanager.errors import ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass
class StoredFile:
    filename: str
    path: Path
    size: int


class AttachmentStorage:
    """Writes uploaded files under ``root`` using system-generated names.

    The client-supplied file name is never used to build a path; stored names
    are random UUIDs, so two uploads can not collide.
    """

    def __init__(self, root, max_bytes: int):
        self.root = Path(root)
        self.max_bytes = max_bytes

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def save(self, stream: BinaryIO, suffix: str = ".pdf") -> StoredFile:
        """Stream ``stream`` to disk, aborting once it exceeds ``max_bytes``."""
        self.ensure_root()
        filename = f"{uuid.uuid4().hex}{suffix}"
        path = self.root / filename
        total_size = 0

        try:
            with open(path, "wb") as target:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    total_size += len(chunk)
                    if total_size > self.max_bytes:
                        raise ValidationError(
                            f"File too large. Maximum size: {self.max_bytes / (1024 * 1024):.0f}MB"
                        )
                    target.write(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            raise

        logger.debug("Stored attachment %s (%d bytes)", filename, total_size)
        return StoredFile(filename=filename, path=path, size=total_size)

    def remove(self, path) -> bool:
        """Best-effort delete; failures are logged and leave the file orphaned."""
        try:
            Path(path).unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove stored file %s", path, exc_info=True)
            return False
        return True

    def remove_all(self, paths: Iterable) -> None:
        for path in paths:
            self.remove(path)

    def exists(self, path) -> bool:
        return Path(path).is_file()

