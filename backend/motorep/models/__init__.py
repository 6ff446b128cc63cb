from .user import Role, User, user_roles
from .inventory import Ingreso, Lote, MovimientoLote, Producto, Proveedor, Salida, SalidaItem
from .sales import (
    Abono,
    CierreCaja,
    Cliente,
    Cotizacion,
    CotizacionItem,
    Credito,
    CreditoItem,
    Devolucion,
    DevolucionItem,
    DineroInicial,
    Empleado,
    Retiro,
    Venta,
    VentaItem,
    VentaPago,
)
