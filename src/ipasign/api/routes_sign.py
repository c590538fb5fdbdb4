"""Signing API routes."""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from ipasign.api.deps import get_artifact_store, get_session_store, get_signing_pool
from ipasign.core.config import settings
from ipasign.core.exceptions import IpaSignError
from ipasign.models.signing import SignedFileData, SignResponse
from ipasign.services.intake import receive_upload
from ipasign.services.signer import sign_package
from ipasign.services.zsign import SigningPool
from ipasign.storage.base import ArtifactStore
from ipasign.storage.session_store import ALLOWED_EXTENSIONS, SessionFileStore

router = APIRouter(prefix="/api", tags=["sign"])
ui_router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "ui" / "templates"))
logger = logging.getLogger(__name__)


@router.post("/sign", response_model=SignResponse)
async def sign_ipa(
    request: Request,
    session_store: SessionFileStore = Depends(get_session_store),
    artifact_store: ArtifactStore = Depends(get_artifact_store),
    pool: SigningPool = Depends(get_signing_pool),
) -> SignResponse:
    """Resign an uploaded IPA with the uploaded certificate and profile.

    Expects multipart/form-data with `ipa`, `certificate` and `provision`
    files plus optional `password` and `bundleId` fields. The body is
    parsed as it streams in.
    """
    try:
        upload = await receive_upload(
            request.stream(),
            request.headers.get("content-type"),
            session_store,
        )
        artifact = await sign_package(upload, session_store, artifact_store, pool)

        return SignResponse(
            data=SignedFileData(
                file_name=artifact.file_name,
                download_url=artifact.download_url,
                install_url=artifact.install_url,
                size=artifact.size_bytes,
            )
        )

    except IpaSignError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during signing: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@ui_router.get("/", response_class=HTMLResponse)
async def index_page(request: Request):
    """Serve the signing UI page."""
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "service_name": settings.SERVICE_NAME,
            "max_file_size_mb": settings.MAX_FILE_SIZE // (1024 * 1024),
            "allowed_extensions": ALLOWED_EXTENSIONS,
        },
    )
