from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.deps import get_current_user, get_db
from ..models.user import User
from ..schemas.sales import AbonoCreate, AbonoResponse, CreditoCreate, CreditoResponse, EstadoCuentaCliente
from ..services import creditos

router = APIRouter(prefix="/creditos", tags=["Creditos"])


@router.get("", response_model=List[CreditoResponse])
def list_creditos_activos(
    cliente_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return creditos.creditos_activos(db, cliente_id)


@router.post("", response_model=CreditoResponse)
def create_credito(payload: CreditoCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    credito = creditos.registrar_credito(db, payload, user.email)
    db.commit()
    db.refresh(credito)
    return credito


@router.get("/clientes/{cliente_id}", response_model=EstadoCuentaCliente)
def estado_cuenta(cliente_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return creditos.estado_cuenta(db, cliente_id)


@router.get("/clientes/{cliente_id}/abonos", response_model=List[AbonoResponse])
def list_abonos(cliente_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return creditos.abonos_de_cliente(db, cliente_id)


@router.post("/clientes/{cliente_id}/abonos", response_model=AbonoResponse)
def create_abono(
    cliente_id: int,
    payload: AbonoCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    abono = creditos.registrar_abono(db, cliente_id, payload, user.email)
    db.commit()
    db.refresh(abono)
    return abono


@router.get("/{credito_id}", response_model=CreditoResponse)
def get_credito(credito_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return creditos.obtener_credito(db, credito_id)
