"""Custom exceptions for the IPA signing service."""


class IpaSignError(Exception):
    """Base exception for the signing service.

    Subclasses carry the HTTP status the API layer answers with.
    """

    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class UploadValidationError(IpaSignError):
    """Exception raised when an upload request is malformed."""

    status_code = 400


class MissingFilesError(UploadValidationError):
    """Exception raised when one of the three required files is absent."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "Missing required files. Please upload IPA, P12 certificate, and provisioning profile."
        )


class InvalidFileTypeError(UploadValidationError):
    """Exception raised when an uploaded file has a disallowed extension."""
    pass


class FileTooLargeError(UploadValidationError):
    """Exception raised when a file exceeds the size limit."""
    pass


class InvalidFilenameError(UploadValidationError):
    """Exception raised when an artifact name fails validation."""

    def __init__(self, message: str = "Invalid file name"):
        super().__init__(message)


class SigningError(IpaSignError):
    """Exception raised when zsign fails; details hold its raw output."""

    status_code = 500


class ArtifactNotFoundError(IpaSignError):
    """Exception raised when a signed artifact does not exist."""

    status_code = 404

    def __init__(self, message: str = "File not found"):
        super().__init__(message)
