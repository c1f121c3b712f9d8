"""
Transfer Services

Token lifecycle controller: issues one-time tokens bound to stored objects
and redeems them at most once.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from oncedrop.domain.errors import ObjectStoreError, RecordStoreError
from oncedrop.domain.object_storage.object_store import IObjectStore

from .entities import TokenRecord, utcnow
from .repositories import TokenRecordRepository
from .results import (
    IssueResult,
    MarkUsedOutcome,
    MetadataResult,
    RedeemResult,
    TransferOutcome,
)
from .validation import validate_upload
from .value_objects import TransferPolicy, TransferToken

logger = logging.getLogger(__name__)

_MARK_OUTCOMES = {
    MarkUsedOutcome.ALREADY_USED: TransferOutcome.ALREADY_USED,
    MarkUsedOutcome.NOT_FOUND: TransferOutcome.NOT_FOUND,
}


class TokenLifecycleController:
    """
    Domain service owning the token lifecycle.

    Coordinates validation, blob storage and record persistence on upload,
    and the atomic check-and-mark on download. No token state is cached
    between calls; every redemption re-reads the record store.

    Storage exceptions never escape: they are logged with full detail and
    reported as ``STORAGE_ERROR``.
    """

    def __init__(
        self,
        record_repository: TokenRecordRepository,
        object_store: IObjectStore,
        clock: Callable[[], datetime] = utcnow,
        locator_ttl_seconds: int = TransferPolicy.LOCATOR_TTL_SECONDS,
        reveal_consumed_metadata: bool = False,
    ):
        """
        Initialize the controller with its adapters.

        Args:
            record_repository: Token record store
            object_store: Blob store
            clock: Source of the current UTC time
            locator_ttl_seconds: Lifetime of retrieval locators
            reveal_consumed_metadata: Whether metadata stays readable after
                the token is consumed or expired
        """
        self.records = record_repository
        self.objects = object_store
        self.clock = clock
        self.locator_ttl_seconds = locator_ttl_seconds
        self.reveal_consumed_metadata = reveal_consumed_metadata

    def issue(
        self,
        payload: bytes,
        declared_mime: Optional[str],
        declared_filename: Optional[str],
    ) -> IssueResult:
        """
        Store an upload and bind a fresh token to it.

        The blob is written before the record is inserted, so a visible
        record always points at a complete blob. If the insert fails the
        blob is left for housekeeping and no token is returned.

        Args:
            payload: Opaque ciphertext
            declared_mime: Sender-declared content type
            declared_filename: Sender-declared, percent-encoded filename

        Returns:
            IssueResult (ISSUED, INVALID or STORAGE_ERROR)
        """
        validation = validate_upload(payload, declared_mime, declared_filename)
        if not validation.is_valid:
            logger.info("Upload rejected: %s", validation.failure.value)
            return IssueResult(TransferOutcome.INVALID, failure=validation.failure)

        accepted = validation.accepted
        token = TransferToken.generate()
        key = TransferPolicy.object_key(token.value)

        try:
            # Declared MIME goes to the record only, never to the store
            self.objects.put(key, payload, TransferPolicy.STORAGE_CONTENT_TYPE)
        except ObjectStoreError:
            logger.exception("Failed to store object for token %s", token.short())
            return IssueResult(TransferOutcome.STORAGE_ERROR)

        record = TokenRecord.create(
            token=token.value,
            original_name=accepted.filename,
            mime=accepted.mime,
            size=len(payload),
            now=self.clock(),
        )

        try:
            inserted = self.records.insert(record)
        except RecordStoreError:
            logger.exception(
                "Failed to insert record for token %s; object %s is orphaned",
                token.short(),
                key,
            )
            return IssueResult(TransferOutcome.STORAGE_ERROR)

        if not inserted:
            logger.error(
                "Token collision on insert for %s; object %s is orphaned",
                token.short(),
                key,
            )
            return IssueResult(TransferOutcome.STORAGE_ERROR)

        logger.info(
            "Issued token %s (%s, %d bytes, expires %s)",
            token.short(),
            record.mime,
            record.size,
            record.expires_at.isoformat(),
        )
        return IssueResult(TransferOutcome.ISSUED, record=record)

    def redeem(self, token: str) -> RedeemResult:
        """
        Consume a token and authorize exactly one retrieval.

        The conditional mark in the record store is the single
        serialization point: of any number of racing callers only one
        gets MARKED, and only that caller receives a locator.

        Args:
            token: Transfer token presented by the receiver

        Returns:
            RedeemResult (REDEEMED, NOT_FOUND, ALREADY_USED, EXPIRED or
            STORAGE_ERROR)
        """
        if not TransferToken.is_well_formed(token):
            return RedeemResult(TransferOutcome.NOT_FOUND)

        short = token[:6]
        now = self.clock()

        try:
            record = self.records.get_by_id(token)
        except RecordStoreError:
            logger.exception("Failed to fetch record for token %s...", short)
            return RedeemResult(TransferOutcome.STORAGE_ERROR)

        if record is None:
            return RedeemResult(TransferOutcome.NOT_FOUND)

        # Expired tokens are refused without being marked
        if record.is_expired(now):
            logger.info("Redemption refused for expired token %s...", short)
            return RedeemResult(TransferOutcome.EXPIRED)

        if record.used:
            return RedeemResult(TransferOutcome.ALREADY_USED)

        try:
            marked = self.records.mark_used_if_unused(token, now)
        except RecordStoreError:
            logger.exception("Failed to mark token %s... as used", short)
            return RedeemResult(TransferOutcome.STORAGE_ERROR)

        if marked is not MarkUsedOutcome.MARKED:
            logger.info("Lost redemption race for token %s...", short)
            return RedeemResult(_MARK_OUTCOMES[marked])

        try:
            locator = self.objects.issue_retrieval_locator(
                record.object_key, self.locator_ttl_seconds
            )
        except ObjectStoreError:
            # The token stays consumed
            logger.exception(
                "Token %s... consumed but no locator could be issued", short
            )
            return RedeemResult(TransferOutcome.STORAGE_ERROR)

        logger.info("Redeemed token %s...", short)
        return RedeemResult(TransferOutcome.REDEEMED, locator=locator)

    def get_metadata(self, token: str) -> MetadataResult:
        """
        Read the declared filename and type without touching ``used``.

        Unless ``reveal_consumed_metadata`` is set, metadata is only shown
        while the token is still redeemable.

        Args:
            token: Transfer token

        Returns:
            MetadataResult (FOUND, NOT_FOUND, ALREADY_USED, EXPIRED or
            STORAGE_ERROR)
        """
        if not TransferToken.is_well_formed(token):
            return MetadataResult(TransferOutcome.NOT_FOUND)

        try:
            record = self.records.get_by_id(token)
        except RecordStoreError:
            logger.exception("Failed to fetch metadata for token %s...", token[:6])
            return MetadataResult(TransferOutcome.STORAGE_ERROR)

        if record is None:
            return MetadataResult(TransferOutcome.NOT_FOUND)

        if not self.reveal_consumed_metadata:
            if record.used:
                return MetadataResult(TransferOutcome.ALREADY_USED)
            if record.is_expired(self.clock()):
                return MetadataResult(TransferOutcome.EXPIRED)

        return MetadataResult(
            TransferOutcome.FOUND, original_name=record.original_name, mime=record.mime
        )
