"""Orchestrator for the sign and publish pipeline."""

import logging
import time
from pathlib import Path
from typing import NamedTuple

from ipasign.core.config import settings
from ipasign.core.logging import session_id_context
from ipasign.services import publisher
from ipasign.services.intake import SignUpload
from ipasign.services.zsign import SigningPool, build_sign_command
from ipasign.storage.base import ArtifactStore
from ipasign.storage.local import sanitize_filename
from ipasign.storage.session_store import SessionFileStore, UploadKind

logger = logging.getLogger(__name__)


class SignedArtifact(NamedTuple):
    """Publication details of a freshly signed package."""
    file_name: str
    download_url: str
    install_url: str
    size_bytes: int


def build_output_name(package_name: str, timestamp_ms: int | None = None) -> str:
    """Name a signed artifact after its input package: <stem>_signed_<ms>.ipa."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    stem = Path(sanitize_filename(package_name)).stem[:200]
    return f"{stem}_signed_{timestamp_ms}{UploadKind.IPA.extension}"


async def sign_package(
    upload: SignUpload,
    session_store: SessionFileStore,
    artifact_store: ArtifactStore,
    pool: SigningPool,
) -> SignedArtifact:
    """Run zsign on staged inputs and publish the result.

    The session directory is removed once zsign has run, whether it
    succeeded or not.

    Args:
        upload: Staged inputs and signing parameters
        session_store: Store owning the upload session
        artifact_store: Where the signed package is written
        pool: Concurrency limit for zsign processes

    Returns:
        The published artifact

    Raises:
        SigningError: If zsign fails
    """
    session = upload.session
    token = session_id_context.set(session.session_id)
    try:
        output_name = build_output_name(session.files[UploadKind.IPA].original_name)
        output_path = artifact_store.path_for(output_name)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        cmd = build_sign_command(
            tool=settings.ZSIGN_PATH,
            certificate=session.path_of(UploadKind.CERTIFICATE),
            profile=session.path_of(UploadKind.PROVISION),
            package=session.path_of(UploadKind.IPA),
            output=output_path,
            password=upload.password,
            bundle_id=upload.bundle_id,
        )
        await pool.run(cmd, timeout=settings.SIGN_TIMEOUT_SECONDS)
    finally:
        await session_store.teardown(session)
        session_id_context.reset(token)

    record = artifact_store.get(output_name)
    if record is None:
        logger.warning("zsign succeeded but produced no output", extra={"artifact": output_name})

    artifact = SignedArtifact(
        file_name=output_name,
        download_url=publisher.download_url(output_name),
        install_url=publisher.install_url(output_name),
        size_bytes=record.size_bytes if record else 0,
    )
    logger.info(
        "IPA signed successfully",
        extra={"artifact": output_name, "size": artifact.size_bytes},
    )
    return artifact
