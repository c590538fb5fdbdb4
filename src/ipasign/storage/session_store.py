"""Per-request storage for uploaded signing inputs."""

import asyncio
import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Dict
from uuid import uuid4

from ipasign.core.exceptions import FileTooLargeError
from ipasign.storage.local import sanitize_filename

logger = logging.getLogger(__name__)


class UploadKind(str, Enum):
    """Upload kind enumeration, valued by multipart field name."""

    IPA = "ipa"  # Application package
    CERTIFICATE = "certificate"  # PKCS#12 credential
    PROVISION = "provision"  # Provisioning profile

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]


_EXTENSIONS = {
    UploadKind.IPA: ".ipa",
    UploadKind.CERTIFICATE: ".p12",
    UploadKind.PROVISION: ".mobileprovision",
}

ALLOWED_EXTENSIONS = tuple(_EXTENSIONS.values())


@dataclass
class StoredUpload:
    """An uploaded file persisted inside a session directory."""

    kind: UploadKind
    original_name: str
    path: Path
    size_bytes: int = 0


@dataclass
class UploadSession:
    """Ephemeral storage for one signing request."""

    session_id: str
    directory: Path
    files: Dict[UploadKind, StoredUpload] = field(default_factory=dict)

    def path_of(self, kind: UploadKind) -> Path:
        return self.files[kind].path


class PartWriter:
    """Incremental writer for one multipart file part.

    Counts bytes as they arrive and refuses the chunk that would take the
    part past the size limit. Disk writes run in a worker thread.
    """

    def __init__(self, stored: StoredUpload, handle: BinaryIO, max_file_size: int):
        self.stored = stored
        self.max_file_size = max_file_size
        self._handle = handle

    async def write(self, data: bytes) -> None:
        """Append a chunk to the part.

        Raises:
            FileTooLargeError: If the part would exceed the configured maximum
        """
        if self.stored.size_bytes + len(data) > self.max_file_size:
            raise FileTooLargeError(
                f"File size exceeds maximum allowed size of {self.max_file_size} bytes"
            )
        await asyncio.to_thread(self._handle.write, data)
        self.stored.size_bytes += len(data)

    async def close(self) -> None:
        await asyncio.to_thread(self._handle.close)


class SessionFileStore:
    """Filesystem store for upload sessions."""

    def __init__(self, base_path: Path, max_file_size: int):
        self.base_path = Path(base_path)
        self.max_file_size = max_file_size

    def create_session(self) -> UploadSession:
        """Allocate a uniquely named session directory."""
        session_id = str(uuid4())
        directory = self.base_path / session_id
        directory.mkdir(parents=True, exist_ok=False)
        logger.debug("Upload session created", extra={"session_dir": str(directory)})
        return UploadSession(session_id=session_id, directory=directory)

    def open_part(self, session: UploadSession, kind: UploadKind, file_name: str) -> PartWriter:
        """Start storing an uploaded part inside the session directory.

        The part is registered on the session right away, so a partially
        written file is still removed by teardown.

        Args:
            session: Target upload session
            kind: Which of the three inputs this part is
            file_name: Original client-side file name

        Returns:
            Writer for the part's content
        """
        target_path = session.directory / sanitize_filename(file_name)
        stored = StoredUpload(kind=kind, original_name=file_name, path=target_path)
        handle = open(target_path, "wb")
        session.files[kind] = stored
        return PartWriter(stored, handle, self.max_file_size)

    async def teardown(self, session: UploadSession) -> None:
        """Remove the session directory and everything in it.

        Never raises; files that never arrived are fine.
        """
        try:
            await asyncio.to_thread(shutil.rmtree, session.directory)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(
                "Failed to remove upload session directory",
                extra={"session_dir": str(session.directory), "error": str(e)},
            )
