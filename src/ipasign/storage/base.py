"""Abstract artifact registry interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass
class ArtifactRecord:
    """Signed artifact metadata."""

    name: str
    path: Path
    size_bytes: int
    created_at: datetime


class ArtifactStore(ABC):
    """Abstract base class for signed artifact registries."""

    @abstractmethod
    def path_for(self, name: str) -> Path:
        """Resolve the filesystem path of an artifact.

        Args:
            name: Artifact file name

        Returns:
            Path the artifact lives (or will live) at

        Raises:
            InvalidFilenameError: If name is not a plain artifact file name
        """
        pass

    @abstractmethod
    def get(self, name: str) -> ArtifactRecord | None:
        """Return artifact metadata, or None when it does not exist."""
        pass

    @abstractmethod
    def list_all(self) -> list[ArtifactRecord]:
        """List all artifacts, newest first."""
        pass

    @abstractmethod
    def delete(self, name: str) -> None:
        """Delete an artifact.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist
        """
        pass
