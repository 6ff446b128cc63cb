import io
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ..core.deps import get_current_user, get_db, require_admin
from ..core.utils import local_today
from ..models.user import User
from ..schemas.sales import VentaAnular, VentaCreate, VentaResponse
from ..services import reportes
from ..services import ventas as ventas_service

router = APIRouter(prefix="/ventas", tags=["Ventas"])


@router.get("", response_model=List[VentaResponse])
def list_ventas(
    desde: Optional[date] = Query(None),
    hasta: Optional[date] = Query(None),
    estado: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return ventas_service.listar_ventas(db, desde, hasta, estado, search=search, page=page, limit=limit)


@router.get("/del-dia", response_model=List[VentaResponse])
def ventas_del_dia(
    fecha: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return ventas_service.ventas_del_dia(db, fecha or local_today())


@router.get("/exportar")
def export_ventas(
    desde: date = Query(...),
    hasta: date = Query(...),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    ventas = ventas_service.listar_ventas(db, desde, hasta, limit=100000)
    content = reportes.exportar_ventas(ventas, desde, hasta)
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=ventas_{desde:%Y%m%d}_{hasta:%Y%m%d}.xlsx"},
    )


@router.post("", response_model=VentaResponse)
def create_venta(payload: VentaCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    venta = ventas_service.registrar_venta(db, payload, user.email)
    db.commit()
    db.refresh(venta)
    return venta


@router.get("/{venta_id}", response_model=VentaResponse)
def get_venta(venta_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return ventas_service.obtener_venta(db, venta_id)


@router.post("/{venta_id}/anular", response_model=VentaResponse)
def anular_venta(
    venta_id: int,
    payload: VentaAnular,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    venta = ventas_service.anular_venta(db, venta_id, user.email, payload.motivo)
    db.commit()
    db.refresh(venta)
    return venta
