from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ProveedorBase(BaseModel):
    nombre_empresa: str
    ruc: Optional[str] = None
    contacto: Optional[str] = None
    telefono: Optional[str] = None
    email: Optional[str] = None
    direccion: Optional[str] = None


class ProveedorCreate(ProveedorBase):
    pass


class ProveedorUpdate(BaseModel):
    nombre_empresa: Optional[str] = None
    ruc: Optional[str] = None
    contacto: Optional[str] = None
    telefono: Optional[str] = None
    email: Optional[str] = None
    direccion: Optional[str] = None


class ProveedorResponse(ProveedorBase):
    id: int

    class Config:
        from_attributes = True


class ProductoBase(BaseModel):
    codigo_tienda: str
    nombre: str
    codigo_proveedor: Optional[str] = None
    marca: Optional[str] = None
    medida: Optional[str] = None
    color: Optional[str] = None
    descripcion: Optional[str] = None
    ubicacion: Optional[str] = None
    precio_venta_default: float = Field(0, ge=0)
    precio_venta_minimo: float = Field(0, ge=0)
    precio_compra_default: float = Field(0, ge=0)
    stock_referencial: int = Field(0, ge=0)
    imagen_url: Optional[str] = None
    activo: bool = True


class ProductoCreate(ProductoBase):
    stock_inicial: int = Field(0, ge=0)


class ProductoUpdate(BaseModel):
    nombre: Optional[str] = None
    codigo_proveedor: Optional[str] = None
    marca: Optional[str] = None
    medida: Optional[str] = None
    color: Optional[str] = None
    descripcion: Optional[str] = None
    ubicacion: Optional[str] = None
    precio_venta_default: Optional[float] = Field(None, ge=0)
    precio_venta_minimo: Optional[float] = Field(None, ge=0)
    stock_referencial: Optional[int] = Field(None, ge=0)
    imagen_url: Optional[str] = None
    activo: Optional[bool] = None


class ProductoResponse(ProductoBase):
    id: int
    stock_actual: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoteResponse(BaseModel):
    id: int
    ingreso_id: Optional[int] = None
    producto_id: int
    numero_lote: str
    cantidad: int
    stock_restante: int
    precio_compra_unitario: float
    fecha_ingreso: datetime
    fecha_vencimiento: Optional[date] = None
    estado: str

    class Config:
        from_attributes = True


class IngresoItemCreate(BaseModel):
    producto_id: int
    numero_lote: str
    cantidad: int = Field(..., gt=0)
    precio_compra_unitario: float = Field(..., ge=0)
    fecha_vencimiento: Optional[date] = None


class IngresoCreate(BaseModel):
    proveedor_id: int
    numero_boleta: Optional[str] = None
    observaciones: Optional[str] = None
    items: List[IngresoItemCreate]


class IngresoResponse(BaseModel):
    id: int
    numero_boleta: Optional[str] = None
    proveedor_id: int
    observaciones: Optional[str] = None
    costo_total: float
    estado: str
    fecha_ingreso: datetime
    fecha_confirmacion: Optional[datetime] = None
    empleado: Optional[str] = None
    lotes: List[LoteResponse] = []

    class Config:
        from_attributes = True


class SalidaItemCreate(BaseModel):
    producto_id: int
    cantidad: int = Field(..., gt=0)


class SalidaCreate(BaseModel):
    motivo: str
    observaciones: Optional[str] = None
    items: List[SalidaItemCreate]


class SalidaItemResponse(BaseModel):
    id: int
    producto_id: int
    lote_id: int
    nombre_producto: str
    cantidad: int
    precio_compra_unitario: float
    subtotal: float

    class Config:
        from_attributes = True


class SalidaResponse(BaseModel):
    id: int
    numero_salida: str
    motivo: str
    observaciones: Optional[str] = None
    costo_total: float
    fecha_salida: datetime
    empleado: Optional[str] = None
    items: List[SalidaItemResponse] = []

    class Config:
        from_attributes = True


class StockProducto(BaseModel):
    producto_id: int
    codigo_tienda: str
    nombre: str
    marca: Optional[str] = None
    stock_actual: int
    stock_referencial: int
    lotes_activos: int
    valor_inventario: float
    bajo_stock: bool
