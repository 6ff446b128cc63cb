from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.deps import get_current_user, get_db, require_admin
from ..models.user import User
from ..schemas.sales import DevolucionCreate, DevolucionRechazar, DevolucionResponse
from ..services import devoluciones

router = APIRouter(prefix="/devoluciones", tags=["Devoluciones"])


@router.get("", response_model=List[DevolucionResponse])
def list_devoluciones(
    estado: Optional[str] = Query(None),
    venta_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return devoluciones.listar_devoluciones(db, estado, venta_id, page, limit)


@router.post("", response_model=DevolucionResponse)
def create_devolucion(payload: DevolucionCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    devolucion = devoluciones.solicitar_devolucion(db, payload, user.email)
    db.commit()
    db.refresh(devolucion)
    return devolucion


@router.get("/{devolucion_id}", response_model=DevolucionResponse)
def get_devolucion(devolucion_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return devoluciones.obtener_devolucion(db, devolucion_id)


@router.post("/{devolucion_id}/aprobar", response_model=DevolucionResponse)
def aprobar(devolucion_id: int, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    devolucion = devoluciones.aprobar_devolucion(db, devolucion_id, user.email)
    db.commit()
    db.refresh(devolucion)
    return devolucion


@router.post("/{devolucion_id}/rechazar", response_model=DevolucionResponse)
def rechazar(
    devolucion_id: int,
    payload: DevolucionRechazar,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    devolucion = devoluciones.rechazar_devolucion(db, devolucion_id, user.email, payload.motivo)
    db.commit()
    db.refresh(devolucion)
    return devolucion
