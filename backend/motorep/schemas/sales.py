from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ClienteBase(BaseModel):
    nombre: str
    apellido: Optional[str] = None
    dni: Optional[str] = None
    telefono: Optional[str] = None
    email: Optional[str] = None
    direccion: Optional[str] = None


class ClienteCreate(ClienteBase):
    pass


class ClienteUpdate(BaseModel):
    nombre: Optional[str] = None
    apellido: Optional[str] = None
    dni: Optional[str] = None
    telefono: Optional[str] = None
    email: Optional[str] = None
    direccion: Optional[str] = None


class ClienteResponse(ClienteBase):
    id: int
    tiene_credito: bool = False
    monto_credito_actual: float = 0

    class Config:
        from_attributes = True


class EmpleadoBase(BaseModel):
    nombre: str
    apellido: Optional[str] = None
    dni: Optional[str] = None
    puesto: Optional[str] = None
    telefono: Optional[str] = None
    email: Optional[str] = None
    activo: bool = True


class EmpleadoCreate(EmpleadoBase):
    pass


class EmpleadoUpdate(BaseModel):
    nombre: Optional[str] = None
    apellido: Optional[str] = None
    dni: Optional[str] = None
    puesto: Optional[str] = None
    telefono: Optional[str] = None
    email: Optional[str] = None
    activo: Optional[bool] = None


class EmpleadoResponse(EmpleadoBase):
    id: int

    class Config:
        from_attributes = True


class ItemVentaCreate(BaseModel):
    producto_id: int
    cantidad: int = Field(..., gt=0)
    precio_venta_unitario: float = Field(..., ge=0)


class PagoCreate(BaseModel):
    metodo: str
    monto: float = Field(..., ge=0)


class VentaCreate(BaseModel):
    cliente_id: int
    empleado_id: Optional[int] = None
    numero_venta: Optional[str] = None
    observaciones: Optional[str] = None
    metodo_pago: str = "efectivo"
    pagos: List[PagoCreate] = []
    items: List[ItemVentaCreate]


class ItemVentaResponse(BaseModel):
    id: int
    producto_id: Optional[int] = None
    lote_id: Optional[int] = None
    nombre_producto: str
    cantidad: int
    precio_venta_unitario: float
    precio_compra_unitario: Optional[float] = None
    subtotal: float
    ganancia_unitaria: Optional[float] = None
    ganancia_total: Optional[float] = None

    class Config:
        from_attributes = True


class PagoResponse(BaseModel):
    metodo: str
    monto: float

    class Config:
        from_attributes = True


class VentaResponse(BaseModel):
    id: int
    numero_venta: str
    cliente_id: Optional[int] = None
    empleado_id: Optional[int] = None
    usuario_registro: Optional[str] = None
    fecha_venta: datetime
    metodo_pago: str
    total_venta: float
    ganancia_total_venta: Optional[float] = None
    tipo_venta: str
    estado: str
    observaciones: Optional[str] = None
    estado_devolucion: str
    monto_devuelto: float = 0
    items: List[ItemVentaResponse] = []
    pagos: List[PagoResponse] = []

    class Config:
        from_attributes = True


class VentaAnular(BaseModel):
    motivo: Optional[str] = None


class ItemCotizacionCreate(BaseModel):
    producto_id: int
    cantidad: int = Field(..., gt=0)
    precio_venta_unitario: Optional[float] = Field(None, ge=0)


class CotizacionCreate(BaseModel):
    cliente_id: Optional[int] = None
    empleado_id: Optional[int] = None
    placa_moto: Optional[str] = None
    metodo_pago: str = "efectivo"
    observaciones: Optional[str] = None
    items: List[ItemCotizacionCreate] = []


class CotizacionUpdate(BaseModel):
    cliente_id: Optional[int] = None
    empleado_id: Optional[int] = None
    placa_moto: Optional[str] = None
    metodo_pago: Optional[str] = None
    observaciones: Optional[str] = None
    items: Optional[List[ItemCotizacionCreate]] = None


class CotizacionConfirmar(BaseModel):
    pagos: List[PagoCreate] = []


class ItemCotizacionResponse(BaseModel):
    id: int
    producto_id: int
    nombre_producto: str
    cantidad: int
    precio_venta_unitario: float
    subtotal: float

    class Config:
        from_attributes = True


class CotizacionResponse(BaseModel):
    id: int
    numero_cotizacion: str
    cliente_id: Optional[int] = None
    empleado_id: Optional[int] = None
    placa_moto: Optional[str] = None
    metodo_pago: str
    observaciones: Optional[str] = None
    total: float
    estado: str
    venta_id: Optional[int] = None
    fecha: datetime
    items: List[ItemCotizacionResponse] = []

    class Config:
        from_attributes = True


class ItemCreditoCreate(BaseModel):
    producto_id: int
    cantidad: int = Field(..., gt=0)
    precio_venta_unitario: float = Field(..., ge=0)


class CreditoCreate(BaseModel):
    cliente_id: int
    observaciones: Optional[str] = None
    fecha_vencimiento: Optional[date] = None
    items: List[ItemCreditoCreate]


class ItemCreditoResponse(BaseModel):
    id: int
    producto_id: int
    nombre_producto: str
    cantidad: int
    precio_venta_unitario: float
    subtotal: float

    class Config:
        from_attributes = True


class CreditoResponse(BaseModel):
    id: int
    numero_credito: str
    cliente_id: int
    estado: str
    total: float
    observaciones: Optional[str] = None
    fecha_credito: datetime
    fecha_vencimiento: Optional[date] = None
    fecha_pago: Optional[datetime] = None
    items: List[ItemCreditoResponse] = []

    class Config:
        from_attributes = True


class AbonoCreate(BaseModel):
    monto: float = Field(..., gt=0)
    metodo_pago: str = "efectivo"
    descripcion: Optional[str] = None


class AbonoResponse(BaseModel):
    id: int
    cliente_id: int
    venta_id: Optional[int] = None
    monto: float
    metodo_pago: str
    descripcion: Optional[str] = None
    saldo_anterior: float
    estado: str
    fecha: datetime

    class Config:
        from_attributes = True


class EstadoCuentaCliente(BaseModel):
    cliente: ClienteResponse
    creditos: List[CreditoResponse]
    abonos: List[AbonoResponse]
    total_deuda: float
    total_abonos: float
    saldo: float


class ItemDevolucionCreate(BaseModel):
    venta_item_id: int
    cantidad_a_devolver: int = Field(..., gt=0)


class DevolucionCreate(BaseModel):
    venta_id: int
    motivo: str
    descripcion_motivo: Optional[str] = None
    observaciones: Optional[str] = None
    items: List[ItemDevolucionCreate]


class DevolucionRechazar(BaseModel):
    motivo: Optional[str] = None


class ItemDevolucionResponse(BaseModel):
    id: int
    venta_item_id: Optional[int] = None
    producto_id: Optional[int] = None
    nombre_producto: str
    cantidad_original: int
    cantidad_a_devolver: int
    precio_venta_unitario: float
    monto_devolucion: float
    ganancia_unitaria: Optional[float] = None
    ganancia_devolucion: Optional[float] = None
    es_estimacion: bool = False

    class Config:
        from_attributes = True


class DevolucionResponse(BaseModel):
    id: int
    numero_devolucion: str
    venta_id: int
    numero_venta: str
    cliente_id: Optional[int] = None
    metodo_pago_original: str
    motivo: str
    descripcion_motivo: Optional[str] = None
    monto_a_devolver: float
    ganancia_real_afectada: Optional[float] = None
    estado: str
    motivo_rechazo: Optional[str] = None
    fecha_solicitud: datetime
    fecha_procesamiento: Optional[datetime] = None
    solicitado_por: Optional[str] = None
    procesado_por: Optional[str] = None
    items: List[ItemDevolucionResponse] = []

    class Config:
        from_attributes = True
