from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.deps import get_current_user, get_db, require_admin
from ..models.sales import Cliente, Credito, Venta
from ..models.user import User
from ..schemas.sales import ClienteCreate, ClienteResponse, ClienteUpdate, VentaResponse
from ..services import ventas as ventas_service

router = APIRouter(prefix="/clientes", tags=["Clientes"])


def _get_cliente(db: Session, cliente_id: int) -> Cliente:
    cliente = db.query(Cliente).filter(Cliente.id == cliente_id).first()
    if not cliente:
        raise HTTPException(status_code=404, detail="Cliente no encontrado")
    return cliente


def _check_dni(db: Session, dni: Optional[str], cliente_id: Optional[int] = None) -> None:
    if not dni:
        return
    query = db.query(Cliente).filter(Cliente.dni == dni)
    if cliente_id:
        query = query.filter(Cliente.id != cliente_id)
    if query.first():
        raise HTTPException(status_code=409, detail="Ya existe un cliente con ese DNI")


@router.get("", response_model=List[ClienteResponse])
def list_clientes(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    query = db.query(Cliente)
    if search:
        patron = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Cliente.nombre).like(patron),
                func.lower(Cliente.apellido).like(patron),
                func.lower(Cliente.dni).like(patron),
            )
        )
    return query.order_by(Cliente.nombre, Cliente.apellido).offset((page - 1) * limit).limit(limit).all()


@router.post("", response_model=ClienteResponse)
def create_cliente(payload: ClienteCreate, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    dni = (payload.dni or "").strip() or None
    _check_dni(db, dni)
    cliente = Cliente(**payload.model_dump(exclude={"dni"}), dni=dni)
    db.add(cliente)
    db.commit()
    db.refresh(cliente)
    return cliente


@router.get("/{cliente_id}", response_model=ClienteResponse)
def get_cliente(cliente_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return _get_cliente(db, cliente_id)


@router.get("/{cliente_id}/compras", response_model=List[VentaResponse])
def get_compras(
    cliente_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    _get_cliente(db, cliente_id)
    return ventas_service.listar_ventas(db, cliente_id=cliente_id, page=page, limit=limit)


@router.put("/{cliente_id}", response_model=ClienteResponse)
def update_cliente(
    cliente_id: int,
    payload: ClienteUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    cliente = _get_cliente(db, cliente_id)
    data = payload.model_dump(exclude_unset=True)
    if "dni" in data:
        data["dni"] = (data["dni"] or "").strip() or None
        _check_dni(db, data["dni"], cliente.id)
    for key, value in data.items():
        setattr(cliente, key, value)
    db.commit()
    db.refresh(cliente)
    return cliente


@router.delete("/{cliente_id}")
def delete_cliente(cliente_id: int, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    cliente = _get_cliente(db, cliente_id)
    if db.query(Venta.id).filter(Venta.cliente_id == cliente.id).first() or db.query(Credito.id).filter(
        Credito.cliente_id == cliente.id
    ).first():
        raise HTTPException(status_code=409, detail="El cliente tiene ventas o creditos registrados")
    db.delete(cliente)
    db.commit()
    return {"ok": True}
