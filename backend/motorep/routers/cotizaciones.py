from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.deps import get_current_user, get_db
from ..models.user import User
from ..schemas.sales import CotizacionConfirmar, CotizacionCreate, CotizacionResponse, CotizacionUpdate
from ..services import cotizaciones

router = APIRouter(prefix="/cotizaciones", tags=["Cotizaciones"])


@router.get("", response_model=List[CotizacionResponse])
def list_cotizaciones(
    estado: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return cotizaciones.listar_cotizaciones(db, estado, page, limit)


@router.post("", response_model=CotizacionResponse)
def create_cotizacion(payload: CotizacionCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    cotizacion = cotizaciones.crear_cotizacion(db, payload, user.email)
    db.commit()
    db.refresh(cotizacion)
    return cotizacion


@router.get("/{cotizacion_id}", response_model=CotizacionResponse)
def get_cotizacion(cotizacion_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return cotizaciones.obtener_cotizacion(db, cotizacion_id)


@router.put("/{cotizacion_id}", response_model=CotizacionResponse)
def update_cotizacion(
    cotizacion_id: int,
    payload: CotizacionUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    cotizacion = cotizaciones.actualizar_cotizacion(db, cotizacion_id, payload)
    db.commit()
    db.refresh(cotizacion)
    return cotizacion


@router.post("/{cotizacion_id}/confirmar", response_model=CotizacionResponse)
def confirm_cotizacion(
    cotizacion_id: int,
    payload: CotizacionConfirmar,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    cotizacion = cotizaciones.confirmar_cotizacion(db, cotizacion_id, payload, user.email)
    db.commit()
    db.refresh(cotizacion)
    return cotizacion


@router.post("/{cotizacion_id}/cancelar", response_model=CotizacionResponse)
def cancel_cotizacion(cotizacion_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    cotizacion = cotizaciones.cancelar_cotizacion(db, cotizacion_id)
    db.commit()
    db.refresh(cotizacion)
    return cotizacion


@router.delete("/{cotizacion_id}")
def delete_cotizacion(cotizacion_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    cotizaciones.eliminar_cotizacion(db, cotizacion_id)
    db.commit()
    return {"ok": True}
