"""
Query construction for facturas.

Every read goes through `scoped_query` (owner + not deleted) or `live_query`
(not deleted, used by the sweep); nothing in the module queries the table
directly. List requests arrive as untrusted query-string maps and are parsed
into a `ListQuery` with a fixed set of recognized filters.
"""
import math
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import asc, desc
from sqlalchemy.orm import Query, Session

from app.core.config import settings
from app.common.exceptions import ValidationError
from app.common.timeutils import month_bounds, now_local, year_bounds
from app.modules.facturas.models import Factura, FacturaStatus

logger = logging.getLogger(__name__)

# Control query shape, never used as equality filters
RESERVED_PARAMS = frozenset({"page", "sort", "limit", "fields", "order", "sortBy"})

SORTABLE_FIELDS = {
    "created_at": Factura.created_at,
    "updated_at": Factura.updated_at,
    "due_date": Factura.due_date,
    "paid_date": Factura.paid_date,
    "amount": Factura.amount,
    "label": Factura.label,
    "status": Factura.status,
}
DEFAULT_SORT = "created_at"


def live_query(db: Session) -> Query:
    """Facturas not soft-deleted, across all owners."""
    return db.query(Factura).filter(Factura.not_deleted())


def scoped_query(db: Session, owner_id: UUID) -> Query:
    """Facturas visible to one owner."""
    return live_query(db).filter(Factura.owner_id == owner_id)


class FacturaFilters(BaseModel):
    """Filtros de igualdad reconocidos; cualquier otra clave se ignora."""
    model_config = ConfigDict(extra="ignore")

    status: Optional[FacturaStatus] = None
    label: Optional[str] = None
    amount: Optional[Decimal] = Field(None, ge=0)

    @field_validator("status", "label", "amount", mode="before")
    @classmethod
    def blank_as_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def apply(self, query: Query) -> Query:
        if self.status is not None:
            query = query.filter(Factura.status == self.status)
        if self.label is not None:
            query = query.filter(Factura.label == self.label)
        if self.amount is not None:
            query = query.filter(Factura.amount == self.amount)
        return query


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def _window_part(name: str, value: Any, low: int, high: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError.single(name, f"{name} must be an integer")
    if not low <= number <= high:
        raise ValidationError.single(name, f"{name} must be between {low} and {high}")
    return number


def due_date_window(year: Any = None, month: Any = None,
                    now: Optional[datetime] = None) -> Optional[Tuple[datetime, datetime]]:
    """
    Compute the due-date range selected by year/month.

    Month given: the whole month. Only year: the whole year. Month without
    year uses the current year. Neither: no window.
    """
    if year in (None, "") and month in (None, ""):
        return None

    if year in (None, ""):
        filter_year = (now or now_local()).year
    else:
        filter_year = _window_part("year", year, 1, 9999)

    if month in (None, ""):
        return year_bounds(filter_year)
    return month_bounds(filter_year, _window_part("month", month, 1, 12))


@dataclass
class Page:
    records: List[Factura]
    total_count: int
    total_pages: int
    current_page: int


@dataclass
class ListQuery:
    filters: FacturaFilters
    sort_by: str = DEFAULT_SORT
    descending: bool = True
    page: int = 1
    limit: int = 10
    due_window: Optional[Tuple[datetime, datetime]] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(cls, params: Mapping[str, Any], now: Optional[datetime] = None) -> "ListQuery":
        """Parse raw query-string parameters. Bad filter values raise ValidationError."""
        params = dict(params)
        window = due_date_window(params.pop("year", None), params.pop("month", None), now=now)

        filter_values = {k: v for k, v in params.items() if k not in RESERVED_PARAMS}
        try:
            filters = FacturaFilters.model_validate(filter_values)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e)

        sort_by = params.get("sortBy")
        if sort_by not in SORTABLE_FIELDS:
            if sort_by:
                logger.debug(f"Ignoring unknown sort field: {sort_by}")
            sort_by = DEFAULT_SORT

        limit = min(_positive_int(params.get("limit"), settings.DEFAULT_PAGE_SIZE), settings.MAX_PAGE_SIZE)

        return cls(
            filters=filters,
            sort_by=sort_by,
            descending=str(params.get("order", "desc")).lower() != "asc",
            page=_positive_int(params.get("page"), 1),
            limit=limit,
            due_window=window,
        )

    def build(self, base: Query) -> Query:
        """Base restriction first, then the window, then caller filters."""
        query = base
        if self.due_window is not None:
            start, end = self.due_window
            query = query.filter(Factura.due_date.between(start, end))
        return self.filters.apply(query)

    def execute(self, base: Query) -> Page:
        query = self.build(base)
        total = query.count()

        # past the last page: the offset may not even fit a database integer
        if self.offset >= total:
            records = []
        else:
            direction = desc if self.descending else asc
            # id breaks ties so equal timestamps keep a stable order across pages
            records = (
                query.order_by(direction(SORTABLE_FIELDS[self.sort_by]), direction(Factura.id))
                .offset(self.offset)
                .limit(self.limit)
                .all()
            )

        return Page(
            records=records,
            total_count=total,
            total_pages=math.ceil(total / self.limit),
            current_page=self.page,
        )
