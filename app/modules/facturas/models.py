from app.database.database import Base
from sqlalchemy import Column, String, DateTime, Numeric, Enum, CheckConstraint, Index
from sqlalchemy.orm import relationship
from app.common.mixins import IdMixin, OwnerMixin, TimestampMixin, SoftDeleteMixin
import enum


class FacturaStatus(str, enum.Enum):
    PENDING = "pendiente"   # Estado inicial, pendiente de pago
    PAID = "pagada"         # Pagada
    OVERDUE = "vencida"     # Vencida (la asigna el barrido diario)
    VOIDED = "anulada"      # Anulada


class Factura(Base, IdMixin, OwnerMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "facturas"

    label = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)

    # Wall-clock datetimes in settings.TIMEZONE
    due_date = Column(DateTime, nullable=False, index=True)
    paid_date = Column(DateTime, nullable=True)

    status = Column(
        Enum(
            FacturaStatus,
            name="factura_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        nullable=False,
        default=FacturaStatus.PENDING,
        index=True,
    )

    # Relationships
    owner = relationship("User", back_populates="facturas")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_facturas_amount_non_negative"),
        Index("idx_facturas_status_due_date", "status", "due_date"),
    )
