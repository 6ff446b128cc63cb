import io
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ..core.deps import get_current_user, get_db, require_admin
from ..models.user import User
from ..schemas.inventory import LoteResponse, ProductoCreate, ProductoResponse, ProductoUpdate
from ..services import inventario, reportes

router = APIRouter(prefix="/productos", tags=["Productos"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("", response_model=List[ProductoResponse])
def list_productos(
    search: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return inventario.listar_productos(db, search, include_inactive, page, limit)


@router.get("/faltantes", response_model=List[ProductoResponse])
def list_faltantes(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return inventario.productos_faltantes(db)


@router.get("/exportar")
def export_productos(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    content = reportes.exportar_productos(db)
    return StreamingResponse(
        io.BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=productos.xlsx"},
    )


@router.post("/importar")
async def import_productos(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    content = await file.read()
    result = reportes.importar_productos(db, content, user.email)
    db.commit()
    return result


@router.post("/recalcular-precios")
def recalcular_precios(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    total = inventario.recalcular_todos(db)
    db.commit()
    return {"productos": total}


@router.post("", response_model=ProductoResponse)
def create_producto(
    payload: ProductoCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    producto = inventario.crear_producto(db, payload, user.email)
    db.commit()
    db.refresh(producto)
    return producto


@router.get("/{producto_id}", response_model=ProductoResponse)
def get_producto(producto_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return inventario.obtener_producto(db, producto_id)


@router.get("/{producto_id}/lotes", response_model=List[LoteResponse])
def get_lotes(producto_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return inventario.lotes_de_producto(db, producto_id)


@router.post("/{producto_id}/recalcular-precio", response_model=ProductoResponse)
def recalcular_precio(producto_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    producto = inventario.obtener_producto(db, producto_id)
    inventario.recalcular_precio_compra(db, producto)
    db.commit()
    db.refresh(producto)
    return producto


@router.put("/{producto_id}", response_model=ProductoResponse)
def update_producto(
    producto_id: int,
    payload: ProductoUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    producto = inventario.actualizar_producto(db, producto_id, payload)
    db.commit()
    db.refresh(producto)
    return producto


@router.delete("/{producto_id}", response_model=ProductoResponse)
def delete_producto(producto_id: int, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    producto = inventario.desactivar_producto(db, producto_id)
    db.commit()
    db.refresh(producto)
    return producto
