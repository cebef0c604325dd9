from fastapi import APIRouter, Request, Response, status
from uuid import UUID

from app.dependencies.dbDependecies import db_dependency
from app.dependencies.userDependencies import user_dependency
from app.modules.facturas.service import FacturaService
from app.modules.facturas.pdf import render_factura_pdf, content_disposition
from app.modules.facturas.schemas import (
    FacturaCreate, FacturaStatusUpdate, FacturaUpdate, FacturaOut, FacturaList
)

facturas_router = APIRouter()


def _out(factura) -> dict:
    return FacturaOut.model_validate(factura).model_dump(mode="json")


@facturas_router.post("", status_code=status.HTTP_201_CREATED)
def create_factura(factura_data: FacturaCreate, current_user: user_dependency, db: db_dependency):
    """
    Crear una nueva factura para el usuario autenticado.

    El status es opcional y por defecto es "pendiente".
    """
    factura = FacturaService(db).create(factura_data, current_user.id)
    return {"status": "success", "data": _out(factura)}


@facturas_router.get("")
def list_facturas(request: Request, current_user: user_dependency, db: db_dependency):
    """
    Listar facturas del usuario.

    Query params:
    - year, month: ventana por fecha de vencimiento (mes 1-12)
    - status, label, amount: filtros exactos
    - sortBy, order (asc|desc): orden, por defecto created_at desc
    - page, limit: paginación
    """
    page = FacturaService(db).list(current_user.id, request.query_params)
    result = FacturaList(
        facturas=[FacturaOut.model_validate(f) for f in page.records],
        total_facturas=page.total_count,
        total_pages=page.total_pages,
        current_page=page.current_page,
    )
    return {"status": "success", "data": result.model_dump(mode="json")}


@facturas_router.get("/stats")
def get_facturas_stats(current_user: user_dependency, db: db_dependency):
    """Totales para el dashboard: pagado, pendiente y número de vencidas."""
    stats = FacturaService(db).stats(current_user.id)
    return {"status": "success", "data": stats.model_dump(mode="json")}


@facturas_router.get("/{factura_id}")
def get_factura(factura_id: UUID, current_user: user_dependency, db: db_dependency):
    factura = FacturaService(db).get(factura_id, current_user.id)
    return {"status": "success", "data": _out(factura)}


@facturas_router.get("/{factura_id}/pdf")
def get_factura_pdf(factura_id: UUID, current_user: user_dependency, db: db_dependency):
    """Descargar la factura en PDF."""
    factura = FacturaService(db).get(factura_id, current_user.id)
    content = render_factura_pdf(factura, current_user.id)
    headers = {"Content-Disposition": content_disposition(factura)}
    return Response(content=content, media_type="application/pdf", headers=headers)


@facturas_router.patch("/{factura_id}/status")
def update_factura_status(
    factura_id: UUID,
    status_data: FacturaStatusUpdate,
    current_user: user_dependency,
    db: db_dependency
):
    """
    Actualizar el status y/o la fecha de pago.

    Solo se modifican los campos enviados; paid_date nunca se asigna implícitamente.
    """
    factura = FacturaService(db).update_status(factura_id, status_data, current_user.id)
    return {"status": "success", "data": _out(factura)}


@facturas_router.put("/{factura_id}")
def update_factura(
    factura_id: UUID,
    factura_data: FacturaUpdate,
    current_user: user_dependency,
    db: db_dependency
):
    factura = FacturaService(db).update(factura_id, factura_data, current_user.id)
    return {"status": "success", "data": _out(factura)}


@facturas_router.delete("/{factura_id}")
def delete_factura(factura_id: UUID, current_user: user_dependency, db: db_dependency):
    FacturaService(db).delete(factura_id, current_user.id)
    return {"status": "success", "message": "Factura deleted successfully"}
