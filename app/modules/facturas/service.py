from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from decimal import Decimal
from datetime import datetime
from typing import Any, Mapping, Optional
from uuid import UUID
import logging

from app.common.exceptions import NotFound, TransientStoreError, ValidationError
from app.common.timeutils import now_local
from app.modules.facturas.models import Factura, FacturaStatus
from app.modules.facturas.query import ListQuery, Page, scoped_query
from app.modules.facturas.schemas import (
    FacturaCreate, FacturaStatusUpdate, FacturaUpdate, FacturaStats
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class FacturaService:
    """
    Ciclo de vida de facturas de un usuario.

    Todas las operaciones están limitadas al owner_id del llamador: una
    factura de otro usuario se reporta igual que una inexistente.
    """

    def __init__(self, db: Session, clock=now_local):
        self.db = db
        self.clock = clock

    def _get_scoped(self, factura_id: UUID, owner_id: UUID) -> Factura:
        try:
            factura = scoped_query(self.db, owner_id).filter(Factura.id == factura_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Get Factura Error: {e}")
            raise TransientStoreError(str(e))

        if factura is None:
            raise NotFound("Factura")
        return factura

    def _commit(self, factura: Factura, action: str) -> Factura:
        try:
            self.db.commit()
            self.db.refresh(factura)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"{action} Factura rejected by store: {e.orig}")
            raise ValidationError.single("factura", "Factura violates a store constraint")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{action} Factura Error: {e}")
            raise TransientStoreError(str(e))
        return factura

    def create(self, data: FacturaCreate, owner_id: UUID) -> Factura:
        """Crear una factura para el usuario autenticado."""
        factura = Factura(
            label=data.label,
            amount=data.amount,
            due_date=data.due_date,
            paid_date=data.paid_date,
            status=data.status,
            owner_id=owner_id,
        )
        self.db.add(factura)
        factura = self._commit(factura, "Create")
        logger.info(f"Factura created: {factura.id} owner={owner_id}")
        return factura

    def get(self, factura_id: UUID, owner_id: UUID) -> Factura:
        return self._get_scoped(factura_id, owner_id)

    def list(self, owner_id: UUID, params: Mapping[str, Any],
             now: Optional[datetime] = None) -> Page:
        """
        Listar facturas del usuario.

        `params` es el query string sin procesar: year/month, filtros
        (status, label, amount), sortBy/order y page/limit.
        """
        list_query = ListQuery.from_params(params, now=now or self.clock())
        try:
            return list_query.execute(scoped_query(self.db, owner_id))
        except SQLAlchemyError as e:
            logger.error(f"Get Facturas Error: {e}")
            raise TransientStoreError(str(e))

    def update_status(self, factura_id: UUID, data: FacturaStatusUpdate, owner_id: UUID) -> Factura:
        """Actualizar solo status y/o paid_date; los campos ausentes no se tocan."""
        factura = self._get_scoped(factura_id, owner_id)
        fields = data.model_dump(exclude_unset=True)
        return self._apply(factura, fields, "Update Status")

    def update(self, factura_id: UUID, data: FacturaUpdate, owner_id: UUID) -> Factura:
        factura = self._get_scoped(factura_id, owner_id)
        fields = data.model_dump(exclude_unset=True)
        return self._apply(factura, fields, "Update")

    def _apply(self, factura: Factura, fields: Mapping[str, Any], action: str) -> Factura:
        # all supplied fields are set before a single commit
        for name, value in fields.items():
            setattr(factura, name, value)

        factura = self._commit(factura, action)
        logger.info(f"Factura {factura.id} updated: {sorted(fields)}")
        return factura

    def delete(self, factura_id: UUID, owner_id: UUID) -> None:
        """Soft delete; la factura deja de aparecer en todas las consultas."""
        factura = self._get_scoped(factura_id, owner_id)
        factura.soft_delete()
        self._commit(factura, "Delete")
        logger.info(f"Factura deleted: {factura_id}")

    def stats(self, owner_id: UUID) -> FacturaStats:
        """Totales pagado/pendiente y número de vencidas. Nunca devuelve null."""
        base = scoped_query(self.db, owner_id)
        try:
            total_pagado = base.filter(Factura.status == FacturaStatus.PAID).with_entities(
                func.coalesce(func.sum(Factura.amount), 0)
            ).scalar()
            total_pendiente = base.filter(Factura.status == FacturaStatus.PENDING).with_entities(
                func.coalesce(func.sum(Factura.amount), 0)
            ).scalar()
            vencidas = base.filter(Factura.status == FacturaStatus.OVERDUE).count()
        except SQLAlchemyError as e:
            logger.error(f"Get Facturas Stats Error: {e}")
            raise TransientStoreError(str(e))

        return FacturaStats(
            total_pagado=_money(total_pagado),
            total_pendiente=_money(total_pendiente),
            facturas_vencidas=vencidas or 0,
        )


def _money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(ZERO)
