"""
Offline queue synchronization.

The SyncEngine drains the OfflineQueue against the remote service once,
when the device goes from offline to online. It is not a poller.

Drain Algorithm:
    For each log independently (scans, then cart items):
        for each PENDING record in insertion order:
            call the remote operation
            success            -> SYNCED
            non-2xx / no reply -> FAILED (with reason), continue

    No retries, no backoff, no early termination. FAILED is terminal;
    the caller re-enqueues through OfflineQueue.retry() if it wants to.

Ordering:
    Within one log the drain order equals insertion order, so an
    order-sensitive remote (quantity merges) sees operations in the order
    they happened. Cart items are sent one request per record; the engine
    never merges quantities itself.

Thread Safety:
    Only one drain runs at a time per engine. A second drain requested
    while one is running returns a skipped report immediately.

Usage:
    engine = SyncEngine(queue, remote_client, connectivity_probe)

    # Device front end reports a network change
    report = engine.notify_connectivity(online=True)
    if report:
        for outcome in report.failed:
            ...
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Protocol

from core.exceptions import InvalidStatusTransitionError, RemoteServiceError
from core.runtime import ConnectivityProbe, IdGenerator, utc_now, uuid_id_generator
from core.storage import CART_ITEMS, SCANS
from models.queue_record import RecordStatus
from models.sync_report import SyncOutcome, SyncReport
from services.offline_queue import OfflineQueue
from logging_config import get_logger, get_sync_logger


logger = get_logger(__name__)


class RemoteOperations(Protocol):
    """The two remote calls a drain needs (RemoteCartClient provides them)."""

    def resolve_barcode(self, raw_barcode: str) -> Optional[Dict[str, Any]]: ...

    def add_cart_item(self, product_id: str, quantity: int) -> Dict[str, Any]: ...


class SyncEngine:
    """Drains pending queue records when connectivity returns."""

    def __init__(
        self,
        queue: OfflineQueue,
        remote: RemoteOperations,
        connectivity: ConnectivityProbe,
        id_generator: IdGenerator = uuid_id_generator,
    ):
        self._queue = queue
        self._remote = remote
        self._connectivity = connectivity
        self._new_id = id_generator

        self._last_online = connectivity.is_online()
        self._state_lock = threading.Lock()
        self._drain_lock = threading.Lock()

        logger.info(f"SyncEngine initialized (online={self._last_online})")

    @property
    def is_draining(self) -> bool:
        return self._drain_lock.locked()

    def notify_connectivity(self, online: bool) -> Optional[SyncReport]:
        """
        Record a connectivity change and drain on offline -> online.

        Returns:
            SyncReport if a drain ran, None if the change did not trigger one
        """
        with self._state_lock:
            was_online = self._last_online
            self._last_online = online

        if online and not was_online:
            logger.info("Connectivity restored, draining offline queue")
            return self.drain()

        if not online and was_online:
            logger.info("Device went offline, new operations will be queued")
        return None

    def drain(self) -> SyncReport:
        """
        Run one drain over both logs.

        Returns:
            SyncReport with one outcome per attempted record
        """
        report = SyncReport(pass_id=self._new_id(), started_at=utc_now())
        sync_logger = get_sync_logger(report.pass_id)

        if not self._connectivity.is_online():
            sync_logger.info("Device offline, drain skipped")
            report.skipped = True
            report.skip_reason = "offline"
            report.finished_at = utc_now()
            return report

        if not self._drain_lock.acquire(blocking=False):
            sync_logger.info("Another drain is running, drain skipped")
            report.skipped = True
            report.skip_reason = "already_running"
            report.finished_at = utc_now()
            return report

        try:
            self._drain_scans(report, sync_logger)
            self._drain_cart_items(report, sync_logger)
        finally:
            self._drain_lock.release()

        report.finished_at = utc_now()
        sync_logger.info(
            f"Drain complete: {report.synced_count} synced, {report.failed_count} failed"
        )
        return report

    # =========================================================================
    # PER-LOG DRAINS
    # =========================================================================

    def _drain_scans(self, report: SyncReport, sync_logger) -> None:
        pending = self._queue.pending(SCANS)
        sync_logger.info(f"Draining {len(pending)} pending scans")

        for record in pending:
            try:
                product = self._remote.resolve_barcode(record.barcode)
            except RemoteServiceError as e:
                self._mark_failed(report, SCANS, record.id, e.message, sync_logger)
                continue
            except Exception as e:
                sync_logger.error(f"Unexpected error syncing scan {record.id[:8]}: {e}", exc_info=True)
                self._mark_failed(report, SCANS, record.id, str(e), sync_logger)
                continue

            # A null product is a successful lookup with no catalog match
            self._mark_synced(
                report, SCANS, record.id, sync_logger, resolved_product=product
            )

    def _drain_cart_items(self, report: SyncReport, sync_logger) -> None:
        pending = self._queue.pending(CART_ITEMS)
        sync_logger.info(f"Draining {len(pending)} pending cart items")

        for record in pending:
            try:
                remote_item = self._remote.add_cart_item(record.product_id, record.quantity)
            except RemoteServiceError as e:
                self._mark_failed(report, CART_ITEMS, record.id, e.message, sync_logger)
                continue
            except Exception as e:
                sync_logger.error(f"Unexpected error syncing cart item {record.id[:8]}: {e}", exc_info=True)
                self._mark_failed(report, CART_ITEMS, record.id, str(e), sync_logger)
                continue

            self._mark_synced(
                report, CART_ITEMS, record.id, sync_logger, remote_item=remote_item or {}
            )

    # =========================================================================
    # STATUS UPDATES
    # =========================================================================

    def _mark_synced(self, report: SyncReport, log: str, record_id: str, sync_logger, **fields) -> None:
        if self._apply(log, record_id, RecordStatus.SYNCED, "", sync_logger, **fields):
            report.outcomes.append(SyncOutcome(log, record_id, RecordStatus.SYNCED))
            sync_logger.debug(f"{log} record {record_id[:8]} synced")

    def _mark_failed(self, report: SyncReport, log: str, record_id: str, reason: str, sync_logger) -> None:
        if self._apply(log, record_id, RecordStatus.FAILED, reason, sync_logger):
            report.outcomes.append(SyncOutcome(log, record_id, RecordStatus.FAILED, reason))
            sync_logger.warning(f"{log} record {record_id[:8]} failed: {reason}")

    def _apply(self, log: str, record_id: str, status: RecordStatus, reason: str, sync_logger, **fields) -> bool:
        try:
            return self._queue.update_status(log, record_id, status, reason, **fields)
        except InvalidStatusTransitionError as e:
            # Another writer finished this record first; leave its status alone
            sync_logger.warning(str(e))
            return False
