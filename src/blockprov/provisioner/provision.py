"""Block volume provisioning.

provision() drives a volume from request to descriptor:

1. Validate access modes (no API call on failure)
2. Size the volume in MiB, applying the minimum-size floor
3. Create the volume (optionally from a backup)
4. Poll until AVAILABLE, FAILED or timed out
5. On success resolve the region and build the descriptor
6. On failure delete the volume best-effort and raise the polling error

A volume that becomes available but whose region cannot be resolved is left
in place; reconciliation is expected to delete it.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from blockprov import metrics
from blockprov.errors import (
    InvalidAccessModeError,
    MissingCapacityError,
    ProvisionerError,
    ProvisionTimeoutError,
    ValidationError,
    VolumeLifecycleError,
)
from blockprov.infra.storage import CreateVolumeDetails, with_call_timeout
from blockprov.logging_schema import ErrorClass, LogEvent
from blockprov.models import (
    LABEL_ZONE_FAILURE_DOMAIN,
    LABEL_ZONE_REGION,
    OCI_VOLUME_ID,
    AccessMode,
    VolumeDescriptor,
    VolumeRequest,
)
from blockprov.provisioner.poller import AvailabilityPoller
from blockprov.sizes import MIB, apply_minimum_floor, compute_allocation_units

if TYPE_CHECKING:
    from blockprov.config import ProvisionerConfig
    from blockprov.infra.metadata import InstanceMetadataClient
    from blockprov.infra.storage import BlockStorageClient

logger = logging.getLogger(__name__)


def _error_class(exc: ProvisionerError) -> ErrorClass:
    if isinstance(exc, ProvisionTimeoutError):
        return ErrorClass.TIMEOUT
    if isinstance(exc, VolumeLifecycleError):
        return ErrorClass.LIFECYCLE
    if isinstance(exc, ValidationError):
        return ErrorClass.VALIDATION
    return ErrorClass.TRANSPORT


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ProvisionerError):
        return exc.code.value
    return "UNEXPECTED"


def validate_access_modes(access_modes: list[str]) -> None:
    """Only a single ReadWriteOnce mode is supported."""
    if list(access_modes) != [AccessMode.READ_WRITE_ONCE.value]:
        raise InvalidAccessModeError(access_modes)


class VolumeProvisioner:
    """Provisions OCI block volumes."""

    def __init__(
        self,
        config: ProvisionerConfig,
        client: BlockStorageClient,
        metadata: InstanceMetadataClient,
        poller: AvailabilityPoller | None = None,
    ) -> None:
        self._config = config
        self._client = client
        self._metadata = metadata
        self._poller = poller or AvailabilityPoller(client, interval=config.poll_interval)
        self._log_context = {
            "compartment_id": client.compartment_id,
            "tenancy_id": client.tenancy_id,
        }

    async def provision(
        self, request: VolumeRequest, availability_domain: str
    ) -> VolumeDescriptor:
        """Provision a block volume for the request.

        Raises:
            ValidationError: Unsupported access modes or missing capacity.
            TransportError: An API call failed.
            VolumeLifecycleError: Volume ended up FAULTY/TERMINATING/TERMINATED.
            ProvisionTimeoutError: Volume did not become available in time.
            MetadataError: Region could not be resolved.
        """
        started = time.monotonic()
        try:
            descriptor = await self._provision(request, availability_domain)
        except Exception as exc:
            metrics.PROVISION_DURATION.labels(outcome="error").observe(time.monotonic() - started)
            metrics.PROVISION_ERRORS.labels(error_code=_error_code(exc)).inc()
            raise
        metrics.PROVISION_DURATION.labels(outcome="success").observe(time.monotonic() - started)
        return descriptor

    async def _provision(
        self, request: VolumeRequest, availability_domain: str
    ) -> VolumeDescriptor:
        validate_access_modes(request.access_modes)

        if request.capacity is None or request.capacity <= 0:
            raise MissingCapacityError()

        capacity = request.capacity
        size_mb = compute_allocation_units(capacity, MIB)
        log_extra = {
            **self._log_context,
            "claim": request.name,
            "availability_domain": availability_domain,
            "volume_size_mb": size_mb,
        }
        logger.info(
            "Provisioning volume",
            extra={"event": LogEvent.PROVISION_STARTED, **log_extra},
        )

        capacity, rounded = apply_minimum_floor(
            capacity,
            self._config.min_volume_size,
            self._config.volume_rounding_enabled,
            request.rounding_enabled,
        )
        if rounded:
            size_mb = compute_allocation_units(capacity, MIB)
            metrics.VOLUMES_ROUNDED.inc()
            logger.warning(
                "Attempted to provision volume with a capacity less than the minimum. "
                "Rounding up to ensure volume creation.",
                extra={
                    "event": LogEvent.VOLUME_ROUNDED,
                    **log_extra,
                    "rounded_volume_size_mb": size_mb,
                },
            )
            log_extra["volume_size_mb"] = size_mb

        backup_id = request.backup_id
        if backup_id:
            log_extra["volume_backup_id"] = backup_id
            logger.info("Creating volume from backup", extra=log_extra)

        details = CreateVolumeDetails(
            availability_domain=availability_domain,
            compartment_id=self._client.compartment_id,
            display_name=f"{self._config.volume_name_prefix}{request.name}",
            size_in_mbs=size_mb,
            source_backup_id=backup_id,
        )

        # Nothing exists yet, so a failure here needs no cleanup
        volume = await with_call_timeout(
            self._client.create_volume(details),
            self._client.timeout,
            "CreateVolume",
        )
        log_extra["volume_id"] = volume.id
        logger.info(
            "Waiting for volume to become available",
            extra={"event": LogEvent.VOLUME_CREATED, **log_extra},
        )

        try:
            await self._poller.wait_until_available(volume.id, self._config.timeout)
        except ProvisionerError as exc:
            is_timeout = isinstance(exc, ProvisionTimeoutError)
            logger.error(
                "Volume did not become available: %s",
                exc.message,
                extra={
                    "event": LogEvent.PROVISION_TIMEOUT if is_timeout else LogEvent.PROVISION_FAILED,
                    "error_class": _error_class(exc),
                    **log_extra,
                },
            )
            await self._discard_volume(volume.id)
            raise

        logger.info(
            "Volume available",
            extra={"event": LogEvent.VOLUME_AVAILABLE, **log_extra},
        )

        region = await self._resolve_region()

        descriptor = VolumeDescriptor(
            name=volume.id,
            annotations={OCI_VOLUME_ID: volume.id},
            labels={
                LABEL_ZONE_REGION: region,
                LABEL_ZONE_FAILURE_DOMAIN: availability_domain,
            },
            capacity=capacity,
            access_modes=list(request.access_modes),
            reclaim_policy=request.reclaim_policy,
            mount_options=list(request.mount_options),
            fs_type=request.fs_type,
        )
        logger.info(
            "Volume provisioned",
            extra={"event": LogEvent.PROVISION_COMPLETED, **log_extra, "region": region},
        )
        return descriptor

    async def _resolve_region(self) -> str:
        """Region from the configured override, else instance metadata."""
        if self._config.region_override:
            return self._config.region_override
        instance = await self._metadata.get()
        logger.debug(
            "Resolved region from instance metadata",
            extra={"event": LogEvent.REGION_RESOLVED, "region": instance.region},
        )
        return instance.region

    async def _discard_volume(self, volume_id: str) -> None:
        """Delete a volume that failed to provision.

        The outcome is logged and counted, never raised: the caller reports
        the provisioning error, and a failed cleanup leaves an orphaned volume
        for reconciliation.
        """
        try:
            await with_call_timeout(
                self._client.delete_volume(volume_id),
                self._client.timeout,
                "DeleteVolume",
            )
        except Exception as exc:
            metrics.CLEANUP_TOTAL.labels(result="failed").inc()
            logger.warning(
                "Failed to delete volume after failed provision",
                extra={
                    "event": LogEvent.CLEANUP_FAILED,
                    **self._log_context,
                    "volume_id": volume_id,
                    "error": str(exc),
                },
            )
            return

        metrics.CLEANUP_TOTAL.labels(result="deleted").inc()
        logger.info(
            "Deleted volume after failed provision",
            extra={
                "event": LogEvent.CLEANUP_COMPLETED,
                **self._log_context,
                "volume_id": volume_id,
            },
        )
