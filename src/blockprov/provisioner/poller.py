"""Volume availability poller.

States:
    POLLING -> READY      provider reports AVAILABLE
    POLLING -> FAILED     provider reports FAULTY, TERMINATING or TERMINATED
    POLLING -> POLLING    any other state; sleep poll_interval and poll again
    POLLING -> TIMED_OUT  overall deadline passed

The first poll happens immediately. A single deadline covers the whole loop
and cancels an in-flight status call or sleep. Each status call is further
bounded by the client's per-call timeout; a transport error aborts the loop
without retrying.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel

from blockprov.errors import (
    ProvisionTimeoutError,
    TransportError,
    VolumeLifecycleError,
    VolumeNotFoundError,
)
from blockprov.infra.storage import LifecycleState, with_call_timeout
from blockprov.logging_schema import LogEvent

if TYPE_CHECKING:
    from blockprov.infra.storage import BlockStorageClient

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0

# These never self-heal
TERMINAL_FAILURE_STATES = frozenset({
    LifecycleState.FAULTY.value,
    LifecycleState.TERMINATED.value,
    LifecycleState.TERMINATING.value,
})


class PollState(StrEnum):
    POLLING = "polling"
    READY = "ready"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class PollOutcome(BaseModel):
    """Classification of a single availability check."""

    state: PollState
    lifecycle_state: str
    reason: str | None = None

    model_config = {"frozen": True}


def classify_lifecycle_state(lifecycle_state: str) -> PollOutcome:
    if lifecycle_state == LifecycleState.AVAILABLE.value:
        return PollOutcome(state=PollState.READY, lifecycle_state=lifecycle_state)
    if lifecycle_state in TERMINAL_FAILURE_STATES:
        return PollOutcome(
            state=PollState.FAILED,
            lifecycle_state=lifecycle_state,
            reason=f"volume has lifecycle state {lifecycle_state!r}",
        )
    return PollOutcome(state=PollState.POLLING, lifecycle_state=lifecycle_state)


class AvailabilityPoller:
    """Waits for a newly created volume to become available."""

    def __init__(
        self,
        client: BlockStorageClient,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._client = client
        self._interval = interval

    async def check(self, volume_id: str) -> PollOutcome:
        """Query the volume once and classify its lifecycle state."""
        volume = await with_call_timeout(
            self._client.get_volume(volume_id),
            self._client.timeout,
            "GetVolume",
        )
        logger.debug(
            "Volume state",
            extra={
                "event": LogEvent.VOLUME_STATE,
                "volume_id": volume_id,
                "lifecycle_state": volume.lifecycle_state,
            },
        )
        return classify_lifecycle_state(volume.lifecycle_state)

    async def wait_until_available(self, volume_id: str, timeout: float) -> PollState:
        """Poll until the volume is available.

        Returns:
            PollState.READY

        Raises:
            VolumeLifecycleError: Volume reached a terminal failure state.
            ProvisionTimeoutError: Deadline passed before the volume was ready.
            TransportError: A status query failed.
        """
        deadline = asyncio.get_running_loop().time() + timeout
        try:
            async with asyncio.timeout_at(deadline):
                while True:
                    try:
                        outcome = await self.check(volume_id)
                    except (TransportError, VolumeNotFoundError) as exc:
                        raise TransportError(
                            f"failed to provision volume {volume_id!r}: {exc.message}",
                            status=exc.status,
                            service_code=exc.service_code,
                        ) from exc

                    if outcome.state is PollState.READY:
                        return PollState.READY
                    if outcome.state is PollState.FAILED:
                        raise VolumeLifecycleError(volume_id, outcome.lifecycle_state)

                    await asyncio.sleep(self._interval)
        except TimeoutError as exc:
            raise ProvisionTimeoutError(volume_id, timeout) from exc
