"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ticketsync.utils.time_utils import DEFAULT_TIME_BUFFER_MINUTES

DEFAULT_IMPORT_BATCH_SIZE = 20

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(environ: Mapping[str, str], name: str) -> bool:
    return environ.get(name, "").strip().lower() in _TRUE_VALUES


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Behaviour switches shared by the reconciliation and import services.

    Attributes:
        test_mode: Log intended remote/inventory writes instead of performing them
        live_logging: Log the same detail while still performing the writes
        time_buffer_minutes: Tolerance used when matching times of day
        import_batch_size: Records fetched per resumable import step
    """

    test_mode: bool = False
    live_logging: bool = False
    time_buffer_minutes: int = DEFAULT_TIME_BUFFER_MINUTES
    import_batch_size: int = DEFAULT_IMPORT_BATCH_SIZE

    @property
    def should_log_operations(self) -> bool:
        return self.test_mode or self.live_logging

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from TICKETSYNC_* environment variables.

        Raises:
            ValueError: If a numeric variable is not a positive integer
        """
        if environ is None:
            environ = os.environ
        return cls(
            test_mode=_env_flag(environ, "TICKETSYNC_TEST_MODE"),
            live_logging=_env_flag(environ, "TICKETSYNC_LIVE_LOGGING"),
            time_buffer_minutes=_env_int(
                environ, "TICKETSYNC_TIME_BUFFER_MINUTES", DEFAULT_TIME_BUFFER_MINUTES
            ),
            import_batch_size=_env_int(
                environ, "TICKETSYNC_IMPORT_BATCH_SIZE", DEFAULT_IMPORT_BATCH_SIZE
            ),
        )
