"""Logging configuration for the provisioner.

Supports two formats:
- text: Human-readable for local development
- json: Structured logging for production (log aggregation)
"""

import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import json as jsonlogger

from blockprov.config import LoggingConfig
from blockprov.logging_schema import LogEvent


class RateLimitFilter(logging.Filter):
    """Filter to prevent log storms from repeated volume state lines.

    Polling logs the state of a volume every few seconds while waiting for it
    to become available. Only those events are rate limited, per volume and
    lifecycle state; every other record passes, since provisioning and
    deletion lines carry the volume identity in ``extra`` rather than in the
    message.

    Args:
        rate_limit_seconds: Minimum seconds between identical state lines (default: 5)
        max_cache_size: Maximum number of keys to track (default: 1000)
        events: Event types subject to rate limiting (default: volume state)
    """

    def __init__(
        self,
        rate_limit_seconds: float = 5.0,
        max_cache_size: int = 1000,
        events: frozenset[str] = frozenset({LogEvent.VOLUME_STATE.value}),
        name: str = "",
    ) -> None:
        super().__init__(name)
        self._rate_limit = rate_limit_seconds
        self._max_cache = max_cache_size
        self._events = events
        self._last_log: dict[str, float] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        """Drop a repeated state line seen within the rate limit window."""
        event = getattr(record, "event", None)
        if record.levelno >= logging.ERROR or str(event) not in self._events:
            return True

        key = ":".join((
            record.name,
            str(event),
            str(getattr(record, "volume_id", "")),
            str(getattr(record, "lifecycle_state", "")),
        ))

        now = time.monotonic()
        last_time = self._last_log.get(key)

        if last_time is not None and now - last_time < self._rate_limit:
            return False

        self._last_log[key] = now

        if len(self._last_log) > self._max_cache:
            oldest_keys = sorted(self._last_log, key=self._last_log.get)[:100]  # type: ignore[arg-type]
            for old_key in oldest_keys:
                del self._last_log[old_key]

        return True


class ProvisionerJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter with standard fields for log aggregation.

    Adds:
    - timestamp: ISO 8601 format with timezone
    - level: Log level name
    - logger: Logger name
    - service: Service identifier
    - pid: Process ID
    """

    def __init__(self, config: LoggingConfig, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._service = config.service_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = self._service
        log_record["pid"] = record.process

        # Source location for debugging
        log_record["filename"] = record.filename
        log_record["lineno"] = record.lineno

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging(config: LoggingConfig) -> None:
    """Configure logging for the provisioner.

    Args:
        config: Logging configuration settings.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    if config.format == "json":
        formatter: logging.Formatter = ProvisionerJsonFormatter(config)
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(RateLimitFilter(rate_limit_seconds=5.0))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Suppress verbose HTTP client logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("oci").setLevel(logging.WARNING)
