import io
import json
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ..config import settings
from ..core.deps import get_current_user, get_db, require_admin
from ..models.user import User
from ..schemas.caja import (
    CierreCajaResponse,
    CuadreResponse,
    DetalleGananciaVenta,
    DineroInicialResponse,
    DineroInicialSet,
    ResumenEmailResponse,
    RetiroCreate,
    RetiroResponse,
)
from ..services import caja, correo, reportes

router = APIRouter(prefix="/caja", tags=["Caja"])


@router.get("/ventas/{venta_id}/ganancia", response_model=DetalleGananciaVenta)
def ganancia_venta(venta_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return caja.detalle_ganancia_venta(db, venta_id)


@router.get("/{fecha}", response_model=CuadreResponse)
def get_cuadre(fecha: date, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return caja.resumen_caja(db, fecha)


@router.put("/{fecha}/dinero-inicial", response_model=DineroInicialResponse)
def set_dinero_inicial(
    fecha: date,
    payload: DineroInicialSet,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    registro = caja.establecer_dinero_inicial(db, fecha, payload.monto, user.email)
    db.commit()
    db.refresh(registro)
    return registro


@router.get("/{fecha}/retiros", response_model=List[RetiroResponse])
def list_retiros(fecha: date, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return caja.retiros_del_dia(db, fecha)


@router.post("/{fecha}/retiros", response_model=RetiroResponse)
def create_retiro(
    fecha: date,
    payload: RetiroCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    retiro = caja.registrar_retiro(db, fecha, payload, user.email)
    db.commit()
    db.refresh(retiro)
    return retiro


@router.post("/{fecha}/cierre", response_model=CierreCajaResponse)
def cerrar(fecha: date, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    cierre = caja.cerrar_caja(db, fecha, user.email)
    db.commit()
    db.refresh(cierre)
    return cierre


@router.get("/{fecha}/cierre", response_model=CierreCajaResponse)
def get_cierre(fecha: date, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return caja.exigir_cierre(db, fecha)


@router.get("/{fecha}/cierre/pdf")
def cierre_pdf(fecha: date, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    cierre = caja.obtener_cierre(db, fecha)
    if cierre is not None and cierre.detalle:
        resumen = json.loads(cierre.detalle)["cuadre"]
        resumen["estado"] = "cerrada"
    else:
        resumen = caja.resumen_caja(db, fecha)
    content = reportes.cierre_pdf(fecha, resumen)
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename=cierre_{fecha:%Y%m%d}.pdf"},
    )


@router.post("/{fecha}/resumen-email", response_model=ResumenEmailResponse)
def enviar_resumen(
    fecha: date,
    destinatario: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    resumen = caja.resumen_caja(db, fecha)
    destino = destinatario or settings.CAJA_RESUMEN_EMAIL
    error = correo.enviar_resumen_caja(fecha, resumen, destino)
    return {"enviado": error is None, "destinatario": destino, "error": error}
