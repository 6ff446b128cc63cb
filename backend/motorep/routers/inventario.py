from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, selectinload

from ..core.deps import get_current_user, get_db, require_admin
from ..models.inventory import Ingreso, Salida
from ..models.user import User
from ..schemas.inventory import (
    IngresoCreate,
    IngresoResponse,
    SalidaCreate,
    SalidaResponse,
    StockProducto,
)
from ..services import inventario

router = APIRouter(prefix="/inventario", tags=["Inventario"])


# ===========================
#         INGRESOS
# ===========================
@router.get("/ingresos", response_model=List[IngresoResponse])
def list_ingresos(
    estado: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    query = db.query(Ingreso).options(selectinload(Ingreso.lotes))
    if estado:
        query = query.filter(Ingreso.estado == estado)
    return query.order_by(Ingreso.fecha_ingreso.desc(), Ingreso.id.desc()).offset((page - 1) * limit).limit(limit).all()


@router.post("/ingresos", response_model=IngresoResponse)
def create_ingreso(payload: IngresoCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    ingreso = inventario.crear_ingreso(db, payload, user.email)
    db.commit()
    db.refresh(ingreso)
    return ingreso


@router.get("/ingresos/{ingreso_id}", response_model=IngresoResponse)
def get_ingreso(ingreso_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return inventario.obtener_ingreso(db, ingreso_id)


@router.post("/ingresos/{ingreso_id}/confirmar", response_model=IngresoResponse)
def confirm_ingreso(ingreso_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    ingreso = inventario.confirmar_ingreso(db, ingreso_id, user.email)
    db.commit()
    db.refresh(ingreso)
    return ingreso


@router.delete("/ingresos/{ingreso_id}")
def delete_ingreso(ingreso_id: int, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    inventario.eliminar_ingreso(db, ingreso_id)
    db.commit()
    return {"ok": True}


# ===========================
#          SALIDAS
# ===========================
@router.get("/salidas", response_model=List[SalidaResponse])
def list_salidas(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return (
        db.query(Salida)
        .options(selectinload(Salida.items))
        .order_by(Salida.fecha_salida.desc(), Salida.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )


@router.post("/salidas", response_model=SalidaResponse)
def create_salida(payload: SalidaCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    salida = inventario.registrar_salida(db, payload, user.email)
    db.commit()
    db.refresh(salida)
    return salida


@router.get("/salidas/{salida_id}", response_model=SalidaResponse)
def get_salida(salida_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    salida = db.query(Salida).filter(Salida.id == salida_id).first()
    if not salida:
        raise HTTPException(status_code=404, detail="Salida no encontrada")
    return salida


# ===========================
#           STOCK
# ===========================
@router.get("/stock", response_model=List[StockProducto])
def stock(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return inventario.resumen_stock(db, search)
