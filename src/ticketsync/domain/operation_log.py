"""Persisted audit trail of simulated and live-logged operations."""

import json
import logging
from typing import Any, Mapping, Optional, Union

from ticketsync.config import Settings
from ticketsync.database.base import Database
from ticketsync.domain.entities import OperationLogEntry

logger = logging.getLogger(__name__)

MAX_OPERATION_LOGS = 1000


class OperationLogService:
    """Records what reconciliation did, or would have done in test mode."""

    def __init__(self, db: Database, settings: Settings):
        """Initialize operation log service.

        Args:
            db: Database instance
            settings: Runtime settings; nothing is recorded unless test mode
                or live logging is enabled
        """
        self.db = db
        self.settings = settings

    def log_operation(
        self,
        source: str,
        operation: str,
        details: Union[str, Mapping[str, Any]],
    ) -> Optional[int]:
        """Record an operation when test mode or live logging is on.

        Args:
            source: Subsystem the operation belongs to (e.g. "Eventbrite")
            operation: Short operation name
            details: Free text or a mapping serialised as JSON

        Returns:
            ID of the stored record, or None when logging is disabled
        """
        if not self.settings.should_log_operations:
            return None

        if not isinstance(details, str):
            details = json.dumps(details, default=str, sort_keys=True)

        prefix = "[TEST MODE] " if self.settings.test_mode else ""
        logger.info("%s%s %s: %s", prefix, source, operation, details)

        record_id = self.db.add_operation_log(
            source=source,
            operation=operation,
            details=details,
            test_mode=self.settings.test_mode,
        )
        self.db.prune_operation_logs(keep=MAX_OPERATION_LOGS)
        return record_id

    def recent(self, limit: int = 100) -> list[OperationLogEntry]:
        """Return the newest records first."""
        return self.db.list_operation_logs(limit=limit)

    def clear(self) -> int:
        """Delete every record. Returns number deleted."""
        return self.db.clear_operation_logs()
