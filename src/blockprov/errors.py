"""Error handling module for blockprov.

This module defines error codes, exception classes, and response models.

Error Response Format:
{
    "error": {
        "code": "PROVISION_TIMEOUT",
        "message": "Timed out waiting for volume to become available"
    }
}

Usage:
    from blockprov.errors import InvalidAccessModeError, is_not_found

    raise InvalidAccessModeError(["ReadWriteMany"])
"""

from enum import Enum

from pydantic import BaseModel

# Provider error codes meaning the resource does not exist. OCI cannot
# distinguish a missing volume from a missing permission on it.
NOT_FOUND_SERVICE_CODES = frozenset({
    "NotAuthorizedOrNotFound",
    "NotFound",
})


class ErrorCode(str, Enum):
    """Error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    VOLUME_LIFECYCLE_FAILED = "VOLUME_LIFECYCLE_FAILED"
    PROVISION_TIMEOUT = "PROVISION_TIMEOUT"
    VOLUME_NOT_FOUND = "VOLUME_NOT_FOUND"
    MISSING_VOLUME_HANDLE = "MISSING_VOLUME_HANDLE"
    METADATA_UNAVAILABLE = "METADATA_UNAVAILABLE"


class ErrorDetail(BaseModel):
    """Error detail containing code and message."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Error response format."""

    error: ErrorDetail


class ProvisionerError(Exception):
    """Base exception for blockprov.

    Attributes:
        code: The error code from ErrorCode enum.
        message: Human-readable error message.
    """

    def __init__(self, code: ErrorCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse model."""
        return ErrorResponse(
            error=ErrorDetail(code=self.code.value, message=self.message)
        )


# =============================================================================
# Validation
# =============================================================================


class ValidationError(ProvisionerError):
    """Request rejected before any API call."""

    def __init__(self, message: str = "Invalid volume request") -> None:
        super().__init__(ErrorCode.VALIDATION_FAILED, message)


class InvalidAccessModeError(ValidationError):
    """Access modes other than exactly ReadWriteOnce were requested."""

    def __init__(self, access_modes: list[str]) -> None:
        self.access_modes = list(access_modes)
        super().__init__(
            f"invalid access modes {self.access_modes} specified. "
            "Only ReadWriteOnce is supported"
        )


class MissingCapacityError(ValidationError):
    """Request carries no usable storage capacity."""

    def __init__(self, message: str = "could not determine volume size for request") -> None:
        super().__init__(message)


# =============================================================================
# Provider / transport
# =============================================================================


class TransportError(ProvisionerError):
    """API or network failure on a storage or metadata call.

    Attributes:
        status: HTTP status returned by the provider, if any.
        service_code: Provider error code (e.g. "NotAuthorizedOrNotFound").
    """

    def __init__(
        self,
        message: str = "Storage API call failed",
        *,
        status: int | None = None,
        service_code: str | None = None,
    ) -> None:
        self.status = status
        self.service_code = service_code
        super().__init__(ErrorCode.TRANSPORT_ERROR, message)


class VolumeLifecycleError(ProvisionerError):
    """Volume reached a terminal failure state (faulty, terminating, terminated)."""

    def __init__(self, volume_id: str, lifecycle_state: str) -> None:
        self.volume_id = volume_id
        self.lifecycle_state = lifecycle_state
        super().__init__(
            ErrorCode.VOLUME_LIFECYCLE_FAILED,
            f"volume {volume_id!r} has lifecycle state {lifecycle_state!r}",
        )


class ProvisionTimeoutError(ProvisionerError):
    """Volume did not become available within the provisioning timeout."""

    def __init__(self, volume_id: str, timeout: float) -> None:
        self.volume_id = volume_id
        self.timeout = timeout
        super().__init__(
            ErrorCode.PROVISION_TIMEOUT,
            f"timed out after {timeout:g}s waiting for volume {volume_id!r} to become available",
        )


class VolumeNotFoundError(ProvisionerError):
    """Volume does not exist, or the caller may not see it.

    Attributes:
        status: HTTP status returned by the provider, if any.
        service_code: Provider error code (e.g. "NotAuthorizedOrNotFound").
    """

    def __init__(
        self,
        message: str = "Volume not found",
        *,
        status: int | None = None,
        service_code: str | None = None,
    ) -> None:
        self.status = status
        self.service_code = service_code
        super().__init__(ErrorCode.VOLUME_NOT_FOUND, message)


class MissingVolumeHandleError(ProvisionerError):
    """Descriptor was not produced by this provisioner."""

    def __init__(self, message: str = "volume id annotation not found on volume") -> None:
        super().__init__(ErrorCode.MISSING_VOLUME_HANDLE, message)


class MetadataError(ProvisionerError):
    """Instance metadata could not be read."""

    def __init__(self, message: str = "Instance metadata unavailable") -> None:
        super().__init__(ErrorCode.METADATA_UNAVAILABLE, message)


# =============================================================================
# Classification
# =============================================================================


def is_not_found(exc: BaseException) -> bool:
    """Check if an error means the resource is already absent."""
    if isinstance(exc, VolumeNotFoundError):
        return True
    if isinstance(exc, TransportError):
        if exc.status == 404:
            return True
        return exc.service_code in NOT_FOUND_SERVICE_CODES
    return False
