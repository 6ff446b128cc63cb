from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..core.deps import get_current_user, get_db, require_admin
from ..models.sales import Empleado
from ..models.user import User
from ..schemas.sales import EmpleadoCreate, EmpleadoResponse, EmpleadoUpdate

router = APIRouter(prefix="/empleados", tags=["Empleados"])


def _get_empleado(db: Session, empleado_id: int) -> Empleado:
    empleado = db.query(Empleado).filter(Empleado.id == empleado_id).first()
    if not empleado:
        raise HTTPException(status_code=404, detail="Empleado no encontrado")
    return empleado


@router.get("", response_model=List[EmpleadoResponse])
def list_empleados(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    query = db.query(Empleado)
    if not include_inactive:
        query = query.filter(Empleado.activo.is_(True))
    return query.order_by(Empleado.nombre).all()


@router.post("", response_model=EmpleadoResponse)
def create_empleado(payload: EmpleadoCreate, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    if payload.dni and db.query(Empleado).filter(Empleado.dni == payload.dni).first():
        raise HTTPException(status_code=409, detail="Ya existe un empleado con ese DNI")
    empleado = Empleado(**payload.model_dump())
    db.add(empleado)
    db.commit()
    db.refresh(empleado)
    return empleado


@router.get("/{empleado_id}", response_model=EmpleadoResponse)
def get_empleado(empleado_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return _get_empleado(db, empleado_id)


@router.put("/{empleado_id}", response_model=EmpleadoResponse)
def update_empleado(
    empleado_id: int,
    payload: EmpleadoUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    empleado = _get_empleado(db, empleado_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(empleado, key, value)
    db.commit()
    db.refresh(empleado)
    return empleado


@router.delete("/{empleado_id}", response_model=EmpleadoResponse)
def deactivate_empleado(empleado_id: int, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    empleado = _get_empleado(db, empleado_id)
    empleado.activo = False
    db.commit()
    db.refresh(empleado)
    return empleado
