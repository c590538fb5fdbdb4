"""Local filesystem artifact registry."""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from ipasign.core.exceptions import ArtifactNotFoundError, InvalidFilenameError
from ipasign.storage.base import ArtifactRecord, ArtifactStore

logger = logging.getLogger(__name__)

PACKAGE_EXTENSION = ".ipa"

_ARTIFACT_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9._-]*$")


def sanitize_filename(filename: str) -> str:
    """Remove path traversal and dangerous characters."""
    safe = filename.replace("../", "").replace("..\\", "")
    safe = safe.replace("/", "_").replace("\\", "_")
    safe = re.sub(r"[^a-zA-Z0-9._-]", "_", safe)
    safe = re.sub(r"\.{2,}", ".", safe).lstrip(".-")
    return safe[:255] or "unnamed"


def is_artifact_name(name: str) -> bool:
    return len(name) <= 255 and ".." not in name and bool(_ARTIFACT_NAME_RE.match(name))


def validate_artifact_name(name: str) -> str:
    """Check that name is a plain file name inside the output directory.

    Raises:
        InvalidFilenameError: If name could escape the output directory
    """
    if not is_artifact_name(name):
        raise InvalidFilenameError()
    return name


class LocalArtifactStore(ArtifactStore):
    """Artifact registry backed by a directory listing.

    There is no index: metadata is recomputed from stat() on every call.
    """

    def __init__(self, base_path: Path):
        self.base_path = Path(base_path)

    def path_for(self, name: str) -> Path:
        return self.base_path / validate_artifact_name(name)

    def get(self, name: str) -> ArtifactRecord | None:
        path = self.path_for(name)
        if not path.is_file():
            return None
        return self._record(path)

    def list_all(self) -> list[ArtifactRecord]:
        if not self.base_path.is_dir():
            return []

        records = []
        for path in self.base_path.iterdir():
            # Hand-placed files that delete/manifest could not address are skipped
            if not path.name.endswith(PACKAGE_EXTENSION) or not is_artifact_name(path.name):
                continue
            if not path.is_file():
                continue
            try:
                records.append(self._record(path))
            except FileNotFoundError:
                # Deleted between listing and stat
                continue

        records.sort(key=lambda record: record.created_at, reverse=True)
        return records

    def delete(self, name: str) -> None:
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError:
            raise ArtifactNotFoundError()
        logger.info("Artifact deleted", extra={"artifact": name})

    @staticmethod
    def _record(path: Path) -> ArtifactRecord:
        stat = path.stat()
        # Birth time where the platform reports it; artifacts are written once
        created = getattr(stat, "st_birthtime", stat.st_mtime)
        return ArtifactRecord(
            name=path.name,
            path=path,
            size_bytes=stat.st_size,
            created_at=datetime.fromtimestamp(created, tz=timezone.utc),
        )
