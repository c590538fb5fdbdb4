"""Signing API data models."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignedFileData(CamelModel):
    """Details of a freshly signed package."""

    file_name: str
    download_url: str
    install_url: str
    size: int


class SignResponse(CamelModel):
    """Response model for a successful signing request."""

    success: bool = True
    message: str = "IPA signed successfully"
    data: SignedFileData


class FileEntry(CamelModel):
    """A signed artifact in the output directory."""

    name: str
    size: int
    created: datetime
    download_url: str


class FileListResponse(CamelModel):
    """Response model for the artifact listing."""

    success: bool = True
    files: List[FileEntry]


class DeleteResponse(CamelModel):
    """Response model for artifact deletion."""

    success: bool = True
    message: str = "File deleted successfully"


class HealthResponse(CamelModel):
    """Response model for the health check."""

    status: Literal["ok"] = "ok"
    zsign: Literal["available", "not found"]
    version: str


class ErrorResponse(CamelModel):
    """Error payload returned by every failing endpoint."""

    success: bool = False
    error: str
    details: Optional[str] = None
