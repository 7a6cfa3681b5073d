"""Block volume deletion.

Deletion is idempotent: a volume that is already gone counts as deleted.
There are no retries here; the caller re-invokes delete on transient errors.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from blockprov import metrics
from blockprov.errors import MissingVolumeHandleError, ProvisionerError, is_not_found
from blockprov.infra.storage import with_call_timeout
from blockprov.logging_schema import LogEvent

if TYPE_CHECKING:
    from blockprov.infra.storage import BlockStorageClient
    from blockprov.models import VolumeDescriptor

logger = logging.getLogger(__name__)


class VolumeDeleter:
    """Deletes volumes created by VolumeProvisioner."""

    def __init__(self, client: BlockStorageClient) -> None:
        self._client = client
        self._log_context = {
            "compartment_id": client.compartment_id,
            "tenancy_id": client.tenancy_id,
        }

    async def delete(self, descriptor: VolumeDescriptor) -> None:
        """Delete the volume behind a descriptor.

        Raises:
            MissingVolumeHandleError: Descriptor has no volume id annotation.
            TransportError: Delete failed for a reason other than not found.
        """
        volume_id = descriptor.volume_id
        if not volume_id:
            raise MissingVolumeHandleError()

        log_extra = {**self._log_context, "volume_id": volume_id}
        logger.info("Deleting volume", extra={"event": LogEvent.VOLUME_DELETING, **log_extra})

        try:
            result = await with_call_timeout(
                self._client.delete_volume(volume_id),
                self._client.timeout,
                "DeleteVolume",
            )
        except ProvisionerError as exc:
            # OCI cannot tell a deleted volume from a missing permission; both stop retries
            if is_not_found(exc):
                metrics.DELETE_TOTAL.labels(result="not_found").inc()
                logger.info(
                    "Volume was not found. Unable to delete it.",
                    extra={"event": LogEvent.VOLUME_NOT_FOUND, **log_extra, "error": exc.message},
                )
                return
            metrics.DELETE_TOTAL.labels(result="error").inc()
            logger.error(
                "Failed to delete volume",
                extra={"event": LogEvent.DELETE_FAILED, **log_extra, "error": exc.message},
            )
            raise

        if result.status_code == 404:
            metrics.DELETE_TOTAL.labels(result="not_found").inc()
            logger.info(
                "Volume was not found. Unable to delete it.",
                extra={"event": LogEvent.VOLUME_NOT_FOUND, **log_extra},
            )
            return

        metrics.DELETE_TOTAL.labels(result="deleted").inc()
        logger.info("Volume deleted", extra={"event": LogEvent.VOLUME_DELETED, **log_extra})
