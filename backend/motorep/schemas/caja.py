from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class DineroInicialSet(BaseModel):
    monto: float = Field(..., ge=0)


class DineroInicialResponse(BaseModel):
    fecha: date
    monto: float
    establecido_por: Optional[str] = None

    class Config:
        from_attributes = True


class RetiroCreate(BaseModel):
    monto: float = Field(..., gt=0)
    tipo: str = "efectivo"
    motivo: str = Field(..., min_length=1)


class RetiroResponse(BaseModel):
    id: int
    fecha: date
    monto: float
    tipo: str
    motivo: str
    realizado_por: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class GananciaVentaResponse(BaseModel):
    numero_venta: str
    ganancia: float
    metodo_calculo: str


class DevolucionesDelDia(BaseModel):
    total_devuelto: float
    por_metodo: Dict[str, float]
    del_mismo_dia: int
    de_dias_anteriores: int
    ganancia_real_descontada: float


class CuadreResponse(BaseModel):
    fecha: date
    estado: str
    dinero_inicial: float
    por_metodo: Dict[str, float]
    total_ventas: float
    total: float
    ganancia_bruta: float
    ganancia_real: float
    devoluciones: DevolucionesDelDia
    retiros_por_metodo: Dict[str, float]
    total_retiros: float
    retiros_efectivo: float
    efectivo_fisico: float
    digital: float
    cantidad_ventas: int
    ganancias: List[GananciaVentaResponse]


class CierreCajaResponse(BaseModel):
    id: int
    fecha: date
    dinero_inicial: float
    total_efectivo: float
    total_yape: float
    total_plin: float
    total_tarjeta: float
    total_otros: float
    total: float
    ganancia_bruta: float
    ganancia_real: float
    total_devuelto: float
    total_retiros: float
    efectivo_final: float
    digital_total: float
    cantidad_ventas: int
    cantidad_devoluciones: int
    cantidad_retiros: int
    cerrado_por: Optional[str] = None
    fecha_cierre: datetime

    class Config:
        from_attributes = True


class ResumenEmailResponse(BaseModel):
    enviado: bool
    destinatario: str
    error: Optional[str] = None


class DetalleGananciaDevolucion(BaseModel):
    numero_devolucion: str
    monto_devuelto: float
    ganancia_descontada: float


class DetalleGananciaVenta(BaseModel):
    venta_id: int
    numero_venta: str
    total_venta: float
    ganancia_total: float
    metodo_calculo: str
    ganancia_afectada_por_devoluciones: float
    ganancia_neta: float
    devoluciones: List[DetalleGananciaDevolucion]
