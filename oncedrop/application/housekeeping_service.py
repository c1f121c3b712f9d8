"""
Housekeeping Service

Application service that removes blobs no token can reach any more.
Runs outside the request path (Celery beat); the lifecycle controller
itself never deletes anything.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Set

from oncedrop.domain.errors import ObjectStoreError, RecordStoreError
from oncedrop.domain.object_storage.object_store import IObjectStore
from oncedrop.domain.transfers.entities import TokenRecord, utcnow
from oncedrop.domain.transfers.repositories import TokenRecordRepository
from oncedrop.domain.transfers.value_objects import TransferPolicy

logger = logging.getLogger(__name__)


class HousekeepingService:
    """
    Reaps blobs of consumed or expired tokens and orphaned blobs.

    A blob is reaped when its record is expired, or when its record was
    redeemed longer ago than the locator lifetime. Blobs without any record
    are reaped once older than ``orphan_grace``, which covers uploads whose
    record insert failed and records Redis has already dropped.
    """

    def __init__(
        self,
        record_repository: TokenRecordRepository,
        object_store: IObjectStore,
        clock: Callable[[], datetime] = utcnow,
        locator_ttl_seconds: int = TransferPolicy.LOCATOR_TTL_SECONDS,
        orphan_grace: timedelta = timedelta(hours=1),
    ):
        self.records = record_repository
        self.objects = object_store
        self.clock = clock
        self.locator_ttl = timedelta(seconds=locator_ttl_seconds)
        self.orphan_grace = orphan_grace

    def is_reapable(self, record: TokenRecord, now: datetime) -> bool:
        """Whether the record's blob can no longer be fetched legitimately."""
        if record.purged:
            return False
        if record.is_expired(now):
            return True
        if record.used:
            used_at = record.used_at or record.created_at
            return now - used_at > self.locator_ttl
        return False

    def reap(self) -> Dict[str, object]:
        """
        Run one housekeeping sweep.

        Returns:
            Stats dict with ``objects_purged``, ``orphans_removed`` and
            ``errors`` (list of messages)
        """
        now = self.clock()
        stats = {"objects_purged": 0, "orphans_removed": 0, "errors": []}
        known_tokens: Set[str] = set()

        try:
            for record in self.records.iter_records():
                known_tokens.add(record.id)
                if not self.is_reapable(record, now):
                    continue
                try:
                    self.objects.delete(record.object_key)
                    if self.records.mark_purged(record.id):
                        stats["objects_purged"] += 1
                    else:
                        logger.warning(
                            "Record %s... vanished before it could be marked purged",
                            record.id[:6],
                        )
                except (ObjectStoreError, RecordStoreError) as e:
                    message = f"Failed to purge {record.id[:6]}...: {e}"
                    logger.error(message, exc_info=True)
                    stats["errors"].append(message)
        except RecordStoreError as e:
            # Orphan detection needs the complete record list
            message = f"Record scan failed, skipping orphan sweep: {e}"
            logger.error(message, exc_info=True)
            stats["errors"].append(message)
            return stats

        try:
            for stored in self.objects.list_objects():
                token = TransferPolicy.token_from_object_key(stored.key)
                if not token or token in known_tokens:
                    continue
                if now - stored.updated_at <= self.orphan_grace:
                    continue
                try:
                    self.objects.delete(stored.key)
                    stats["orphans_removed"] += 1
                    logger.info("Removed orphaned object %s", stored.key)
                except ObjectStoreError as e:
                    message = f"Failed to remove orphan {stored.key}: {e}"
                    logger.error(message, exc_info=True)
                    stats["errors"].append(message)
        except ObjectStoreError as e:
            message = f"Object listing failed: {e}"
            logger.error(message, exc_info=True)
            stats["errors"].append(message)

        logger.info(
            "Housekeeping done - purged: %d, orphans: %d, errors: %d",
            stats["objects_purged"],
            stats["orphans_removed"],
            len(stats["errors"]),
        )
        return stats
