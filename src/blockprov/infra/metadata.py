"""OCI instance metadata client.

Reads the metadata of the instance the provisioner runs on. Only the region
is needed today, to label provisioned volumes.
"""

import logging

import httpx
from pydantic import BaseModel, ConfigDict, Field

from blockprov.errors import MetadataError
from blockprov.logging_schema import LogEvent

logger = logging.getLogger(__name__)


class InstanceMetadata(BaseModel):
    """Subset of /opc/v1/instance/ we care about."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    region: str
    availability_domain: str = Field(default="", alias="availabilityDomain")
    compartment_id: str = Field(default="", alias="compartmentId")
    canonical_region_name: str = Field(default="", alias="canonicalRegionName")


class InstanceMetadataClient:
    """HTTP client for the instance metadata service."""

    def __init__(self, endpoint: str, timeout: float = 10.0) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._endpoint,
                timeout=self._timeout,
            )
        return self._client

    async def get(self) -> InstanceMetadata:
        """Fetch instance metadata.

        Raises:
            MetadataError: On any transport, status or decoding failure.
        """
        client = await self._get_client()
        try:
            resp = await client.get("/instance/")
            resp.raise_for_status()
            return InstanceMetadata.model_validate(resp.json())
        except httpx.HTTPError as exc:
            logger.warning(
                "Failed to read instance metadata",
                extra={"event": LogEvent.METADATA_FAILED, "error": str(exc)},
            )
            raise MetadataError(f"failed to read instance metadata: {exc}") from exc
        except ValueError as exc:
            # json decoding and pydantic validation errors
            logger.warning(
                "Invalid instance metadata",
                extra={"event": LogEvent.METADATA_FAILED, "error": str(exc)},
            )
            raise MetadataError(f"invalid instance metadata: {exc}") from exc

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
