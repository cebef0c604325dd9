"""
Celery tasks for the daily factura sweeps.

Scheduled from celery beat (see app/core/celery.py). Each task returns a
small summary dict, or {"status": "failed"} when the job raised.
"""
import logging
from dataclasses import asdict

from celery.signals import worker_process_init

from app.core.celery import celery_app
from app.database.database import SessionLocal, engine as db_engine
from app.modules.email.notifier import FacturaDueNotifier
from app.modules.facturas.sweep import SweepEngine

logger = logging.getLogger(__name__)


def build_sweep_engine() -> SweepEngine:
    return SweepEngine(SessionLocal, FacturaDueNotifier())


@worker_process_init.connect
def init_sweep_engine(**kwargs):
    """Cada proceso del worker arma su propio engine al arrancar."""
    # pooled connections inherited from the parent must not be shared after fork
    db_engine.dispose(close=False)
    celery_app.sweep_engine = build_sweep_engine()
    logger.info("Sweep engine ready for worker process")


def get_sweep_engine() -> SweepEngine:
    """Engine of the current worker; built on first use outside a worker (eager runs)."""
    sweep_engine = getattr(celery_app, "sweep_engine", None)
    if sweep_engine is None:
        sweep_engine = celery_app.sweep_engine = build_sweep_engine()
    return sweep_engine


@celery_app.task(name="facturas.promote_overdue")
def promote_overdue_facturas():
    updated = get_sweep_engine().run_promote_overdue()
    if updated is None:
        return {"status": "failed"}
    return {"status": "success", "updated": updated}


@celery_app.task(name="facturas.notify_due_today")
def notify_facturas_due_today():
    report = get_sweep_engine().run_notify_due_today()
    if report is None:
        return {"status": "failed"}
    return {"status": "success", **asdict(report)}
