from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, List
from uuid import UUID
from datetime import date, datetime

from app.common.timeutils import to_wall_clock
from app.modules.facturas.models import FacturaStatus

TWO_PLACES = Decimal("0.01")


def _parse_date_input(v):
    """Acepta 'YYYY-MM-DD' además de datetimes ISO 8601."""
    if isinstance(v, str):
        raw = v.strip()
        if len(raw) == 10:
            try:
                return datetime.combine(date.fromisoformat(raw), datetime.min.time())
            except ValueError:
                raise ValueError('Must be a valid date')
        return raw
    return v


def _check_amount(v: Optional[Decimal]) -> Optional[Decimal]:
    if v is None:
        return v
    if not v.is_finite():
        raise ValueError('Total must be a number')
    if v < 0:
        raise ValueError('Total cannot be negative')
    return v.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _check_label(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError('Factura identifier cannot be empty')
    return v


class FacturaCreate(BaseModel):
    label: str = Field(..., max_length=255)
    amount: Decimal
    due_date: datetime
    paid_date: Optional[datetime] = None
    status: FacturaStatus = FacturaStatus.PENDING

    @field_validator('due_date', 'paid_date', mode='before')
    @classmethod
    def parse_dates(cls, v):
        return _parse_date_input(v)

    @field_validator('label')
    @classmethod
    def validate_label(cls, v):
        return _check_label(v)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        return _check_amount(v)

    @field_validator('due_date', 'paid_date')
    @classmethod
    def to_local_wall_clock(cls, v):
        return to_wall_clock(v)

    @field_validator('status', mode='before')
    @classmethod
    def default_status(cls, v):
        # null or empty status means "use the default"
        return v or FacturaStatus.PENDING


class FacturaStatusUpdate(BaseModel):
    """PATCH parcial: solo se aplican los campos presentes."""
    status: Optional[FacturaStatus] = None
    paid_date: Optional[datetime] = None

    @field_validator('paid_date', mode='before')
    @classmethod
    def parse_dates(cls, v):
        return _parse_date_input(v)

    @field_validator('paid_date')
    @classmethod
    def to_local_wall_clock(cls, v):
        return to_wall_clock(v)

    @model_validator(mode='after')
    def validate_fields(self):
        if not self.model_fields_set:
            raise ValueError('At least one of status or paid_date is required')
        if 'status' in self.model_fields_set and self.status is None:
            raise ValueError('Status must be pendiente, pagada, vencida, or anulada')
        return self


class FacturaUpdate(BaseModel):
    """PUT: cualquier subconjunto de campos; los ausentes no se tocan."""
    label: Optional[str] = Field(None, max_length=255)
    amount: Optional[Decimal] = None
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    status: Optional[FacturaStatus] = None

    @field_validator('due_date', 'paid_date', mode='before')
    @classmethod
    def parse_dates(cls, v):
        return _parse_date_input(v)

    @field_validator('label')
    @classmethod
    def validate_label(cls, v):
        return _check_label(v)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        return _check_amount(v)

    @field_validator('due_date', 'paid_date')
    @classmethod
    def to_local_wall_clock(cls, v):
        return to_wall_clock(v)

    @model_validator(mode='after')
    def reject_nulls(self):
        # paid_date may be cleared explicitly; the rest are required columns
        for field in ('label', 'amount', 'due_date', 'status'):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f'{field} cannot be null')
        return self


class FacturaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    label: str
    amount: Decimal
    due_date: datetime
    paid_date: Optional[datetime] = None
    status: FacturaStatus
    owner_id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FacturaList(BaseModel):
    facturas: List[FacturaOut]
    total_facturas: int
    total_pages: int
    current_page: int


class FacturaStats(BaseModel):
    total_pagado: Decimal = Decimal("0.00")
    total_pendiente: Decimal = Decimal("0.00")
    facturas_vencidas: int = 0
