"""
Scheduled sweeps over all facturas.

Two independent daily jobs:
  * promote_overdue: pending facturas whose due date is before today become
    overdue (one bulk UPDATE, idempotent).
  * notify_due_today: one notice per pending factura due today. Failures are
    isolated per record; re-running the same day sends again.

The engine receives its session factory, notifier and clock at construction;
app/modules/facturas/tasks.py builds one per worker process.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.common.exceptions import NotificationFailure, TransientStoreError
from app.common.timeutils import day_bounds, now_local
from app.modules.auth.models import User
from app.modules.facturas.models import Factura, FacturaStatus
from app.modules.facturas.query import live_query

logger = logging.getLogger(__name__)


@dataclass
class NotificationReport:
    found: int = 0
    sent: int = 0
    failed: int = 0


class SweepEngine:
    def __init__(self, session_factory: Callable, notifier, clock: Callable[[], datetime] = now_local):
        self.session_factory = session_factory
        self.notifier = notifier
        self.clock = clock

    def promote_overdue(self, now: Optional[datetime] = None) -> int:
        """Mark pending facturas due before the start of today as overdue. Returns rows updated."""
        start_of_today, _ = day_bounds(now or self.clock())

        with self.session_factory() as db:
            try:
                updated = (
                    live_query(db)
                    .filter(
                        Factura.status == FacturaStatus.PENDING,
                        Factura.due_date < start_of_today,
                    )
                    .update({Factura.status: FacturaStatus.OVERDUE}, synchronize_session=False)
                )
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise TransientStoreError(str(e))

        if updated:
            logger.info(f"Overdue sweep: marked {updated} facturas as {FacturaStatus.OVERDUE.value}")
        else:
            logger.info("Overdue sweep: no new overdue facturas found")
        return updated

    def notify_due_today(self, now: Optional[datetime] = None) -> NotificationReport:
        """Send one notice per pending factura due within today, inclusive."""
        start, end = day_bounds(now or self.clock())
        report = NotificationReport()

        with self.session_factory() as db:
            try:
                rows = (
                    live_query(db)
                    .join(User, Factura.owner_id == User.id)
                    .add_columns(User.email)
                    .filter(
                        Factura.status == FacturaStatus.PENDING,
                        Factura.due_date >= start,
                        Factura.due_date <= end,
                    )
                    .all()
                )
            except SQLAlchemyError as e:
                raise TransientStoreError(str(e))

        # the session is closed before any mail goes out; rows stay loaded
        report.found = len(rows)
        if not rows:
            logger.info("Due-today sweep: no pending facturas due today")
            return report

        logger.info(f"Due-today sweep: found {report.found} facturas due today")
        for factura, address in rows:
            try:
                if not self.notifier.send(address, factura):
                    raise NotificationFailure(address, "sender reported failure")
                report.sent += 1
            except Exception as e:
                report.failed += 1
                logger.error(f"Due-today notice for factura {factura.id} failed: {e}")

        logger.info(f"Due-today sweep: sent={report.sent} failed={report.failed}")
        return report

    def run_promote_overdue(self) -> Optional[int]:
        """Scheduler entry point; never raises."""
        logger.info("Running sweep: check for overdue facturas...")
        try:
            return self.promote_overdue()
        except Exception:
            logger.exception("Overdue sweep failed")
            return None

    def run_notify_due_today(self) -> Optional[NotificationReport]:
        """Scheduler entry point; never raises."""
        logger.info("Running sweep: check for facturas due today...")
        try:
            return self.notify_due_today()
        except Exception:
            logger.exception("Due-today sweep failed")
            return None
