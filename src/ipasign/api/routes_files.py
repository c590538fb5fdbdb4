"""Signed artifact registry and manifest routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from ipasign.api.deps import get_artifact_store
from ipasign.core.exceptions import ArtifactNotFoundError, IpaSignError
from ipasign.models.signing import DeleteResponse, FileEntry, FileListResponse
from ipasign.services import publisher
from ipasign.services.manifest import MANIFEST_MEDIA_TYPE, build_manifest
from ipasign.storage.base import ArtifactStore

router = APIRouter(prefix="/api", tags=["files"])
logger = logging.getLogger(__name__)


@router.get("/files", response_model=FileListResponse)
async def list_files(
    artifact_store: ArtifactStore = Depends(get_artifact_store),
) -> FileListResponse:
    """List signed IPAs, newest first."""
    try:
        records = artifact_store.list_all()
    except OSError as e:
        logger.error(f"Failed to list artifacts: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list files")

    return FileListResponse(
        files=[
            FileEntry(
                name=record.name,
                size=record.size_bytes,
                created=record.created_at,
                download_url=publisher.download_url(record.name),
            )
            for record in records
        ]
    )


@router.delete("/files/{filename}", response_model=DeleteResponse)
async def delete_file(
    filename: str,
    artifact_store: ArtifactStore = Depends(get_artifact_store),
) -> DeleteResponse:
    """Delete a signed IPA."""
    try:
        artifact_store.delete(filename)
    except IpaSignError:
        raise
    except OSError as e:
        logger.error(f"Failed to delete artifact {filename}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete file")

    return DeleteResponse()


@router.get("/manifest/{filename}")
async def get_manifest(
    filename: str,
    artifact_store: ArtifactStore = Depends(get_artifact_store),
) -> Response:
    """OTA install manifest for a signed IPA."""
    if artifact_store.get(filename) is None:
        raise ArtifactNotFoundError()

    manifest = build_manifest(publisher.download_url(filename))
    return Response(content=manifest, media_type=MANIFEST_MEDIA_TYPE)
