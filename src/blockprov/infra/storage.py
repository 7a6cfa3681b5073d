"""Block storage client for the provisioner.

BlockStorageClient is the interface the provisioner talks to. OCIBlockStorageClient
implements it on top of the OCI Python SDK; SDK calls are blocking and are
dispatched with asyncio.to_thread.

SDK errors are translated at this boundary:
- oci ServiceError 404 or NotAuthorizedOrNotFound -> VolumeNotFoundError
- any other oci ServiceError -> TransportError (status and service code preserved)
- oci RequestException -> TransportError
"""

from __future__ import annotations

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from enum import StrEnum
from typing import TYPE_CHECKING, Any, TypeVar

import oci
from oci.exceptions import RequestException, ServiceError
from pydantic import BaseModel

from blockprov.errors import NOT_FOUND_SERVICE_CODES, TransportError, VolumeNotFoundError

if TYPE_CHECKING:
    from blockprov.config import StorageConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Pydantic Models
# =============================================================================


class LifecycleState(StrEnum):
    """Block volume lifecycle states reported by the provider."""

    PROVISIONING = "PROVISIONING"
    RESTORING = "RESTORING"
    AVAILABLE = "AVAILABLE"
    TERMINATING = "TERMINATING"
    TERMINATED = "TERMINATED"
    FAULTY = "FAULTY"


class CreateVolumeDetails(BaseModel):
    """Volume creation payload."""

    availability_domain: str
    compartment_id: str
    display_name: str
    size_in_mbs: int
    source_backup_id: str | None = None

    model_config = {"frozen": True}

    def to_sdk(self) -> oci.core.models.CreateVolumeDetails:
        """Convert to OCI SDK model."""
        details = oci.core.models.CreateVolumeDetails(
            availability_domain=self.availability_domain,
            compartment_id=self.compartment_id,
            display_name=self.display_name,
            size_in_mbs=self.size_in_mbs,
        )
        if self.source_backup_id:
            details.source_details = oci.core.models.VolumeSourceFromVolumeBackupDetails(
                id=self.source_backup_id
            )
        return details


class Volume(BaseModel):
    id: str
    lifecycle_state: str

    model_config = {"frozen": True}


class DeleteVolumeResult(BaseModel):
    status_code: int

    model_config = {"frozen": True}


# =============================================================================
# Interface
# =============================================================================


class BlockStorageClient(ABC):
    """Interface for block volume operations.

    Implementations must be safe to share between concurrent provisions.
    """

    @property
    @abstractmethod
    def compartment_id(self) -> str: ...

    @property
    @abstractmethod
    def tenancy_id(self) -> str: ...

    @property
    @abstractmethod
    def timeout(self) -> float:
        """Per-call timeout in seconds."""
        ...

    @abstractmethod
    async def create_volume(self, details: CreateVolumeDetails) -> Volume:
        """Create a volume. Returns immediately; the volume is usually still provisioning."""
        ...

    @abstractmethod
    async def get_volume(self, volume_id: str) -> Volume: ...

    @abstractmethod
    async def delete_volume(self, volume_id: str) -> DeleteVolumeResult:
        """Delete a volume.

        Raises VolumeNotFoundError when the volume is already gone and
        TransportError on any other failure. A missing volume may also surface
        as a 404 result.
        """
        ...


async def with_call_timeout(call: Awaitable[T], timeout: float, operation: str) -> T:
    """Bound a single storage call by the per-call timeout.

    Expiry is reported as a TransportError so it is never mistaken for the
    overall provisioning deadline.
    """
    try:
        async with asyncio.timeout(timeout):
            return await call
    except TimeoutError as exc:
        raise TransportError(f"{operation} timed out after {timeout:g}s") from exc


# =============================================================================
# OCI SDK implementation
# =============================================================================


class OCIBlockStorageClient(BlockStorageClient):
    """BlockStorageClient backed by oci.core.BlockstorageClient."""

    def __init__(
        self,
        sdk_client: Any,
        compartment_id: str,
        tenancy_id: str,
        timeout: float = 60.0,
    ) -> None:
        self._sdk = sdk_client
        self._compartment_id = compartment_id
        self._tenancy_id = tenancy_id
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: StorageConfig) -> OCIBlockStorageClient:
        """Build an SDK client from a config file profile or instance principals."""
        if config.use_instance_principals:
            signer = oci.auth.signers.InstancePrincipalsSecurityTokenSigner()
            sdk_client = oci.core.BlockstorageClient(
                config={}, signer=signer, timeout=config.call_timeout
            )
            tenancy_id = config.tenancy_id or signer.tenancy_id
        else:
            oci_config = oci.config.from_file(
                file_location=os.path.expanduser(config.config_file),
                profile_name=config.profile,
            )
            oci.config.validate_config(oci_config)
            sdk_client = oci.core.BlockstorageClient(oci_config, timeout=config.call_timeout)
            tenancy_id = config.tenancy_id or oci_config["tenancy"]

        return cls(
            sdk_client,
            compartment_id=config.compartment_id or tenancy_id,
            tenancy_id=tenancy_id,
            timeout=config.call_timeout,
        )

    @property
    def compartment_id(self) -> str:
        return self._compartment_id

    @property
    def tenancy_id(self) -> str:
        return self._tenancy_id

    @property
    def timeout(self) -> float:
        return self._timeout

    async def _invoke(self, operation: str, method: Any, *args: Any) -> Any:
        try:
            return await asyncio.to_thread(method, *args)
        except ServiceError as exc:
            if exc.status == 404 or exc.code in NOT_FOUND_SERVICE_CODES:
                raise VolumeNotFoundError(
                    f"{operation} failed: {exc.message}",
                    status=exc.status,
                    service_code=exc.code,
                ) from exc
            raise TransportError(
                f"{operation} failed: {exc.message}",
                status=exc.status,
                service_code=exc.code,
            ) from exc
        except RequestException as exc:
            raise TransportError(f"{operation} failed: {exc}") from exc

    async def create_volume(self, details: CreateVolumeDetails) -> Volume:
        resp = await self._invoke("CreateVolume", self._sdk.create_volume, details.to_sdk())
        return Volume(id=resp.data.id, lifecycle_state=resp.data.lifecycle_state)

    async def get_volume(self, volume_id: str) -> Volume:
        resp = await self._invoke("GetVolume", self._sdk.get_volume, volume_id)
        return Volume(id=resp.data.id, lifecycle_state=resp.data.lifecycle_state)

    async def delete_volume(self, volume_id: str) -> DeleteVolumeResult:
        resp = await self._invoke("DeleteVolume", self._sdk.delete_volume, volume_id)
        return DeleteVolumeResult(status_code=resp.status)
