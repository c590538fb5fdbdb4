"""Request-scoped dependencies for the API routers."""

from fastapi import Request

from ipasign.core.config import settings
from ipasign.services.zsign import SigningPool
from ipasign.storage.base import ArtifactStore
from ipasign.storage.local import LocalArtifactStore
from ipasign.storage.session_store import SessionFileStore


def get_artifact_store() -> ArtifactStore:
    return LocalArtifactStore(settings.output_path)


def get_session_store() -> SessionFileStore:
    return SessionFileStore(settings.upload_path, settings.MAX_FILE_SIZE)


def get_signing_pool(request: Request) -> SigningPool:
    """The application's shared pool, built by create_app()."""
    return request.app.state.signing_pool
