"""Runtime configuration for the LAN printer service."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field

from lan_printer.const import (
    DEFAULT_USER_NAME,
    LIVENESS_WINDOW_SECONDS,
    LOGGER,
    MAX_PAYLOAD_BYTES,
    PROBE_TIMEOUT_SECONDS,
    SPOOLER_TIMEOUT_SECONDS,
    SUBMIT_TIMEOUT_SECONDS,
    SWEEP_INTERVAL_SECONDS,
)

# Environment variable names
ENV_DISCOVERY_ENABLED = "PRINTER_DISCOVERY"
ENV_MAX_FILE_SIZE = "PRINT_MAX_FILE_SIZE"
ENV_SWEEP_INTERVAL = "PRINTER_SWEEP_INTERVAL"
ENV_LIVENESS_WINDOW = "PRINTER_LIVENESS_WINDOW"
ENV_PROBE_TIMEOUT = "PRINTER_PROBE_TIMEOUT"
ENV_SUBMIT_TIMEOUT = "IPP_SUBMIT_TIMEOUT"
ENV_SPOOLER_TIMEOUT = "SPOOLER_TIMEOUT"
ENV_USER_NAME = "PRINT_USER_NAME"
ENV_SPOOL_DIR = "PRINT_SPOOL_DIR"


def _env_number(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        LOGGER.warning("Ignoring invalid %s=%r, using %s", key, raw, default)
        return default
    if value <= 0:
        LOGGER.warning("Ignoring non-positive %s=%r, using %s", key, raw, default)
        return default
    return value


@dataclass(frozen=True)
class ServiceConfig:
    """Settings for discovery, probing and job submission."""

    discovery_enabled: bool = False
    max_payload_bytes: int = MAX_PAYLOAD_BYTES
    sweep_interval: float = SWEEP_INTERVAL_SECONDS
    liveness_window: float = LIVENESS_WINDOW_SECONDS
    probe_timeout: float = PROBE_TIMEOUT_SECONDS
    submit_timeout: float = SUBMIT_TIMEOUT_SECONDS
    spooler_timeout: float = SPOOLER_TIMEOUT_SECONDS
    user_name: str = DEFAULT_USER_NAME
    spool_dir: str = field(default_factory=tempfile.gettempdir)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ServiceConfig:
        """
        Build the configuration from environment variables.

        Arguments:
            env: The mapping to read; defaults to ``os.environ``.

        Returns:
            The configuration, with defaults for missing or invalid values.

        """
        env = os.environ if env is None else env
        return cls(
            discovery_enabled=env.get(ENV_DISCOVERY_ENABLED, "").lower() == "true",
            max_payload_bytes=int(
                _env_number(env, ENV_MAX_FILE_SIZE, MAX_PAYLOAD_BYTES)
            ),
            sweep_interval=_env_number(
                env, ENV_SWEEP_INTERVAL, SWEEP_INTERVAL_SECONDS
            ),
            liveness_window=_env_number(
                env, ENV_LIVENESS_WINDOW, LIVENESS_WINDOW_SECONDS
            ),
            probe_timeout=_env_number(env, ENV_PROBE_TIMEOUT, PROBE_TIMEOUT_SECONDS),
            submit_timeout=_env_number(
                env, ENV_SUBMIT_TIMEOUT, SUBMIT_TIMEOUT_SECONDS
            ),
            spooler_timeout=_env_number(
                env, ENV_SPOOLER_TIMEOUT, SPOOLER_TIMEOUT_SECONDS
            ),
            user_name=env.get(ENV_USER_NAME) or DEFAULT_USER_NAME,
            spool_dir=env.get(ENV_SPOOL_DIR) or tempfile.gettempdir(),
        )
