"""Tests for logging setup."""

import json
import logging
from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock

import pytest

from blockprov.config import LoggingConfig, ProvisionerConfig
from blockprov.logging import ProvisionerJsonFormatter, RateLimitFilter, setup_logging
from blockprov.logging_schema import LogEvent
from blockprov.models import VolumeRequest
from blockprov.provisioner.provision import VolumeProvisioner
from blockprov.sizes import GIB


def _record(
    msg: str, level: int = logging.INFO, lineno: int = 10, **extra: Any
) -> logging.LogRecord:
    record = logging.LogRecord(
        name="blockprov.test",
        level=level,
        pathname="test.py",
        lineno=lineno,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _state(volume_id: str = "ocid1.volume.a", state: str = "PROVISIONING") -> logging.LogRecord:
    return _record(
        "Volume state",
        level=logging.DEBUG,
        event=LogEvent.VOLUME_STATE,
        volume_id=volume_id,
        lifecycle_state=state,
    )


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestRateLimitFilter:
    """Tests for RateLimitFilter."""

    def test_repeated_state_suppressed(self) -> None:
        f = RateLimitFilter(rate_limit_seconds=60)

        assert f.filter(_state()) is True
        assert f.filter(_state()) is False

    def test_state_change_passes(self) -> None:
        f = RateLimitFilter(rate_limit_seconds=60)

        assert f.filter(_state(state="PROVISIONING")) is True
        assert f.filter(_state(state="AVAILABLE")) is True

    def test_other_volume_passes(self) -> None:
        f = RateLimitFilter(rate_limit_seconds=60)

        assert f.filter(_state(volume_id="ocid1.volume.a")) is True
        assert f.filter(_state(volume_id="ocid1.volume.b")) is True

    @pytest.mark.parametrize(
        "event",
        [LogEvent.PROVISION_STARTED, LogEvent.VOLUME_ROUNDED, LogEvent.VOLUME_DELETED, None],
    )
    def test_other_events_never_suppressed(self, event: LogEvent | None) -> None:
        """Fixed-message lines for different volumes all pass."""
        f = RateLimitFilter(rate_limit_seconds=60)

        assert f.filter(_record("Provisioning volume", event=event, claim="a")) is True
        assert f.filter(_record("Provisioning volume", event=event, claim="b")) is True
        assert f.filter(_record("Provisioning volume", event=event, claim="b")) is True

    def test_plain_string_event_matches(self) -> None:
        f = RateLimitFilter(rate_limit_seconds=60)
        record = _state()
        record.event = "volume_state"

        assert f.filter(record) is True
        assert f.filter(_state()) is False

    def test_errors_always_pass(self) -> None:
        f = RateLimitFilter(rate_limit_seconds=60)

        for _ in range(2):
            record = _state()
            record.levelno = logging.ERROR
            assert f.filter(record) is True

    def test_zero_window_passes_everything(self) -> None:
        f = RateLimitFilter(rate_limit_seconds=0)

        assert f.filter(_state()) is True
        assert f.filter(_state()) is True

    def test_cache_is_bounded(self) -> None:
        f = RateLimitFilter(rate_limit_seconds=60, max_cache_size=150)

        for i in range(200):
            f.filter(_state(volume_id=f"ocid1.volume.{i}"))

        assert len(f._last_log) <= 150


class TestProvisionerJsonFormatter:
    """Tests for the JSON formatter."""

    def test_standard_fields(self) -> None:
        formatter = ProvisionerJsonFormatter(LoggingConfig(service_name="prov-test"))
        record = _record("Volume provisioned", lineno=42)
        record.event = "provision_completed"
        record.volume_id = "ocid1.volume.oc1.phx.x"

        data = json.loads(formatter.format(record))

        assert data["message"] == "Volume provisioned"
        assert data["level"] == "INFO"
        assert data["logger"] == "blockprov.test"
        assert data["service"] == "prov-test"
        assert data["lineno"] == 42
        assert data["event"] == "provision_completed"
        assert data["volume_id"] == "ocid1.volume.oc1.phx.x"
        assert "timestamp" in data


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.mark.usefixtures("restore_root_logger")
    def test_text_format(self) -> None:
        setup_logging(LoggingConfig(level="debug", format="text"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert not isinstance(handler.formatter, ProvisionerJsonFormatter)
        assert any(isinstance(f, RateLimitFilter) for f in handler.filters)

    @pytest.mark.usefixtures("restore_root_logger")
    def test_json_format(self) -> None:
        setup_logging(LoggingConfig(format="json"))

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, ProvisionerJsonFormatter)
        assert logging.getLogger("oci").level == logging.WARNING

    @pytest.mark.usefixtures("restore_root_logger")
    def test_unknown_level_defaults_to_info(self) -> None:
        setup_logging(LoggingConfig(level="chatty"))

        assert logging.getLogger().level == logging.INFO

    @pytest.mark.usefixtures("restore_root_logger")
    async def test_rounding_warning_logged_per_claim(
        self,
        provisioner_config: ProvisionerConfig,
        mock_storage_client: AsyncMock,
        mock_metadata: AsyncMock,
        availability_domain: str,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Back-to-back claims each get their own provisioning lines."""
        setup_logging(LoggingConfig(format="json"))
        provisioner = VolumeProvisioner(provisioner_config, mock_storage_client, mock_metadata)

        for claim in ("claim-a", "claim-b"):
            request = VolumeRequest(
                name=claim, capacity=40 * GIB, access_modes=["ReadWriteOnce"]
            )
            await provisioner.provision(request, availability_domain)

        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line]
        rounded = [line["claim"] for line in lines if line.get("event") == "volume_rounded"]
        completed = [
            line["claim"] for line in lines if line.get("event") == "provision_completed"
        ]
        assert rounded == ["claim-a", "claim-b"]
        assert completed == ["claim-a", "claim-b"]
