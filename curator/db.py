import copy
import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any

import sqlite_utils
from sqlite_utils.db import NotFoundError

from curator.errors import StoreError

logger = logging.getLogger(__name__)

CONFIG_KEY = "config"
ARTICLES_KEY = "articles"
REPORTS_KEY = "reports"
LOGS_KEY = "logs"


class Database:
    def __init__(self, db_path: str = "curator.db", enabled: bool = True):
        """
        Keyed record store.

        Args:
            db_path: Path to SQLite database file
            enabled: If False, records live in an in-memory dict for this process only
        """
        self.enabled = enabled
        self.db_path = db_path

        if self.enabled:
            self.db = sqlite_utils.Database(db_path)
            self.init_db()
            self._memory = None
            logger.info(f"Database enabled: {db_path}")
        else:
            self.db = None
            self._memory = {}
            logger.info("Database disabled - records are kept in memory for this run only")

    def init_db(self):
        """Initialize database schema (only when enabled)"""
        if not self.enabled:
            return

        self.db["records"].create({
            "key": str,
            "value": str,  # JSON document
            "updated_at": str,
        }, pk="key", if_not_exists=True)

    def load(self, key: str, default: Any = None) -> Any:
        """
        Return the value stored under key, or default when there is none.
        Callers get their own copy; mutating it does not touch the store.
        """
        if not self.enabled:
            if key not in self._memory:
                return default
            return copy.deepcopy(self._memory[key])

        try:
            row = self.db["records"].get(key)
        except NotFoundError:
            return default
        return json.loads(row["value"])

    def save(self, key: str, value: Any):
        """
        Replace the value stored under key. Either the whole value is written or
        nothing is; failures are raised as StoreError.
        """
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Value for '{key}' is not serializable: {e}") from e

        if not self.enabled:
            self._memory[key] = json.loads(payload)
            return

        try:
            self.db["records"].upsert({
                "key": key,
                "value": payload,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }, pk="key")
        except sqlite3.Error as e:
            logger.error(f"Error saving record {key}: {e}")
            raise StoreError(f"Could not save '{key}': {e}") from e
