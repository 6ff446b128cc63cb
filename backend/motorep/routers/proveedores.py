from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.deps import get_current_user, get_db, require_admin
from ..models.inventory import Ingreso, Proveedor
from ..models.user import User
from ..schemas.inventory import ProveedorCreate, ProveedorResponse, ProveedorUpdate

router = APIRouter(prefix="/proveedores", tags=["Proveedores"])


def _get_proveedor(db: Session, proveedor_id: int) -> Proveedor:
    proveedor = db.query(Proveedor).filter(Proveedor.id == proveedor_id).first()
    if not proveedor:
        raise HTTPException(status_code=404, detail="Proveedor no encontrado")
    return proveedor


@router.get("", response_model=List[ProveedorResponse])
def list_proveedores(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return db.query(Proveedor).order_by(Proveedor.nombre_empresa).all()


@router.post("", response_model=ProveedorResponse)
def create_proveedor(payload: ProveedorCreate, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    exists = db.query(Proveedor).filter(Proveedor.nombre_empresa == payload.nombre_empresa).first()
    if exists:
        raise HTTPException(status_code=409, detail="Proveedor ya existe")
    proveedor = Proveedor(**payload.model_dump())
    db.add(proveedor)
    db.commit()
    db.refresh(proveedor)
    return proveedor


@router.get("/{proveedor_id}", response_model=ProveedorResponse)
def get_proveedor(proveedor_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return _get_proveedor(db, proveedor_id)


@router.put("/{proveedor_id}", response_model=ProveedorResponse)
def update_proveedor(
    proveedor_id: int,
    payload: ProveedorUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    proveedor = _get_proveedor(db, proveedor_id)
    data = payload.model_dump(exclude_unset=True)
    nombre = data.get("nombre_empresa")
    if nombre and db.query(Proveedor).filter(Proveedor.nombre_empresa == nombre, Proveedor.id != proveedor.id).first():
        raise HTTPException(status_code=409, detail="Proveedor ya existe")
    for key, value in data.items():
        setattr(proveedor, key, value)
    db.commit()
    db.refresh(proveedor)
    return proveedor


@router.delete("/{proveedor_id}")
def delete_proveedor(proveedor_id: int, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    proveedor = _get_proveedor(db, proveedor_id)
    if db.query(Ingreso.id).filter(Ingreso.proveedor_id == proveedor.id).first():
        raise HTTPException(status_code=409, detail="El proveedor tiene ingresos registrados")
    db.delete(proveedor)
    db.commit()
    return {"ok": True}
