"""Health check endpoint for the IPA signing service."""

from fastapi import APIRouter

from ipasign.core.config import settings
from ipasign.models.signing import HealthResponse
from ipasign.services.zsign import get_zsign_version

router = APIRouter(prefix="/api")


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint.

    Always answers 200. Whether zsign can be executed is reported in the
    payload rather than through the status code.

    Returns:
        HealthResponse: status, zsign availability and zsign version
    """
    version = await get_zsign_version(settings.ZSIGN_PATH)
    return HealthResponse(
        zsign="available" if version is not None else "not found",
        version=version or "unknown",
    )
