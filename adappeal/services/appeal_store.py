"""
Appeal idempotency store.

Records which (creative, policy topic) pairs have already had an appeal
attempted, keyed as ``"<creative_id>::<topic>"``. A key is written once
and never overwritten; only an explicit operator clear removes it.

Table DDL lives in ``sql/create_ad_appeal_records.sql``.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..core.config import Config
from ..core.database import get_supabase_client
from ..core.exceptions import AppealStoreError

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "::"


def appeal_key(creative_id: str, topic: str) -> str:
    """Build the idempotency key for a creative/topic pair."""
    return f"{creative_id}{KEY_SEPARATOR}{topic}"


def split_appeal_key(key: str) -> Tuple[str, str]:
    """Inverse of appeal_key. Topics may themselves contain the separator."""
    creative_id, sep, topic = key.partition(KEY_SEPARATOR)
    if not sep:
        raise ValueError(f"Not an appeal key: {key!r}")
    return creative_id, topic


class AppealStore(ABC):
    """
    Durable key -> timestamp mapping shared by all runs for one account.

    Implementations must never overwrite an existing key.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[datetime]:
        """Return when the key was first appealed, or None if never."""

    @abstractmethod
    def set(self, key: str, timestamp: datetime) -> None:
        """
        Record the first successful appeal for key.

        Raises:
            AppealStoreError: If the record could not be persisted.
        """

    @abstractmethod
    def list_records(self, creative_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """List stored records, optionally for a single creative."""

    @abstractmethod
    def clear(self, creative_id: Optional[str] = None, topic: Optional[str] = None) -> int:
        """Operator reset. Returns the number of records removed."""

    def has_appealed(self, creative_id: str, topic: str) -> bool:
        return self.get(appeal_key(creative_id, topic)) is not None


class InMemoryAppealStore(AppealStore):
    """Process-local store, for tests and throwaway runs."""

    def __init__(self, records: Optional[Dict[str, datetime]] = None, scope: str = "memory"):
        self.scope = scope
        self._records: Dict[str, datetime] = dict(records or {})

    def get(self, key: str) -> Optional[datetime]:
        return self._records.get(key)

    def set(self, key: str, timestamp: datetime) -> None:
        if key in self._records:
            raise AppealStoreError(f"Appeal record already exists: {key}")
        self._records[key] = timestamp

    def list_records(self, creative_id: Optional[str] = None) -> List[Dict[str, Any]]:
        rows = []
        for key, ts in sorted(self._records.items()):
            cid, topic = split_appeal_key(key)
            if creative_id is not None and cid != creative_id:
                continue
            rows.append({"appeal_key": key, "creative_id": cid, "topic": topic, "appealed_at": ts})
        return rows

    def clear(self, creative_id: Optional[str] = None, topic: Optional[str] = None) -> int:
        doomed = [
            row["appeal_key"] for row in self.list_records(creative_id)
            if topic is None or row["topic"] == topic
        ]
        for key in doomed:
            del self._records[key]
        return len(doomed)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: str) -> bool:
        return key in self._records


class SupabaseAppealStore(AppealStore):
    """Appeal records persisted in Supabase, scoped to one ads account."""

    def __init__(self, scope: str, table: Optional[str] = None, db=None):
        """
        Args:
            scope: Account the records belong to (the Google Ads customer id).
            table: Table name (if None, uses Config.APPEAL_RECORDS_TABLE)
            db: Supabase client (if None, uses the shared client)
        """
        if not scope:
            raise ValueError("Appeal store scope is required")
        self.scope = scope
        self.table = table or Config.APPEAL_RECORDS_TABLE
        self._db = db or get_supabase_client()

    def get(self, key: str) -> Optional[datetime]:
        try:
            result = (
                self._db.table(self.table)
                .select("appealed_at")
                .eq("scope", self.scope)
                .eq("appeal_key", key)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise AppealStoreError(f"Failed to read appeal record {key}: {e}") from e

        if not result.data:
            return None
        return _parse_timestamp(result.data[0]["appealed_at"])

    def set(self, key: str, timestamp: datetime) -> None:
        creative_id, topic = split_appeal_key(key)
        row = {
            "scope": self.scope,
            "appeal_key": key,
            "creative_id": creative_id,
            "topic": topic,
            "appealed_at": timestamp.isoformat(),
        }
        # Plain insert: the (scope, appeal_key) primary key rejects a second write.
        try:
            self._db.table(self.table).insert(row).execute()
        except Exception as e:
            raise AppealStoreError(f"Failed to write appeal record {key}: {e}") from e

        logger.debug(f"Recorded appeal {key} at {row['appealed_at']}")

    def list_records(self, creative_id: Optional[str] = None) -> List[Dict[str, Any]]:
        query = (
            self._db.table(self.table)
            .select("appeal_key, creative_id, topic, appealed_at")
            .eq("scope", self.scope)
        )
        if creative_id is not None:
            query = query.eq("creative_id", creative_id)

        try:
            result = query.order("appealed_at").execute()
        except Exception as e:
            raise AppealStoreError(f"Failed to list appeal records: {e}") from e

        rows = result.data or []
        for row in rows:
            row["appealed_at"] = _parse_timestamp(row["appealed_at"])
        return rows

    def clear(self, creative_id: Optional[str] = None, topic: Optional[str] = None) -> int:
        query = self._db.table(self.table).delete().eq("scope", self.scope)
        if creative_id is not None:
            query = query.eq("creative_id", creative_id)
        if topic is not None:
            query = query.eq("topic", topic)

        try:
            result = query.execute()
        except Exception as e:
            raise AppealStoreError(f"Failed to clear appeal records: {e}") from e

        removed = len(result.data or [])
        logger.info(
            f"Cleared {removed} appeal record(s) for scope={self.scope} "
            f"creative={creative_id or '*'} topic={topic or '*'}"
        )
        return removed


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    # PostgREST returns e.g. "2026-10-18T09:30:00.123456+00:00" (or a trailing "Z")
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
