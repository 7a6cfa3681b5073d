"""Log event types for structured logging."""

from enum import StrEnum


class LogEvent(StrEnum):
    """Log event types for the provisioner.

    Used with logger.info/warning/error extra dict:
        logger.info("message", extra={"event": LogEvent.VOLUME_CREATED, ...})
    """

    # Provisioning
    PROVISION_STARTED = "provision_started"
    VOLUME_ROUNDED = "volume_rounded"
    VOLUME_CREATED = "volume_created"
    VOLUME_STATE = "volume_state"
    VOLUME_AVAILABLE = "volume_available"
    PROVISION_COMPLETED = "provision_completed"
    PROVISION_FAILED = "provision_failed"
    PROVISION_TIMEOUT = "provision_timeout"

    # Compensating deletion after a failed provision
    CLEANUP_COMPLETED = "cleanup_completed"
    CLEANUP_FAILED = "cleanup_failed"

    # Deletion
    VOLUME_DELETING = "volume_deleting"
    VOLUME_DELETED = "volume_deleted"
    VOLUME_NOT_FOUND = "volume_not_found"
    DELETE_FAILED = "delete_failed"

    # Metadata
    REGION_RESOLVED = "region_resolved"
    METADATA_FAILED = "metadata_failed"


class ErrorClass(StrEnum):
    """Error classification for structured error logging."""

    VALIDATION = "validation"  # Rejected before any API call
    TRANSPORT = "transport"  # API/network failure
    LIFECYCLE = "lifecycle"  # Volume reached a terminal failure state
    TIMEOUT = "timeout"  # Gave up waiting
