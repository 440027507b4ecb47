import logging
import uuid
from datetime import datetime, timezone
from typing import List

from curator.db import Database, LOGS_KEY
from curator.models import LogEntry, Severity

logger = logging.getLogger(__name__)

MAX_ENTRIES = 100

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class AuditLog:
    """
    Operator-facing history of every action, newest first.
    Only the most recent MAX_ENTRIES entries are kept.
    """

    def __init__(self, store: Database):
        self.store = store

    def append(self, message: str, severity: Severity = Severity.INFO) -> LogEntry:
        entry = LogEntry(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc).isoformat(),
            message=message,
            severity=severity,
        )
        logger.log(_LEVELS[severity], message)

        entries = self.store.load(LOGS_KEY, [])
        self.store.save(LOGS_KEY, [entry.to_dict()] + entries[:MAX_ENTRIES - 1])
        return entry

    def info(self, message: str) -> LogEntry:
        return self.append(message, Severity.INFO)

    def success(self, message: str) -> LogEntry:
        return self.append(message, Severity.SUCCESS)

    def warning(self, message: str) -> LogEntry:
        return self.append(message, Severity.WARNING)

    def error(self, message: str) -> LogEntry:
        return self.append(message, Severity.ERROR)

    def list(self) -> List[LogEntry]:
        return [LogEntry.from_dict(e) for e in self.store.load(LOGS_KEY, [])]
