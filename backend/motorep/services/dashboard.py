from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.utils import day_bounds, q2
from ..models.inventory import Producto
from ..models.sales import Devolucion, Venta, VentaItem
from .creditos import total_creditos_activos


def resumen_dashboard(db: Session, hoy: date) -> dict:
    inicio, fin = day_bounds(hoy)
    inicio_mes = day_bounds(hoy.replace(day=1))[0]
    completadas = db.query(Venta).filter(Venta.estado == "completada", Venta.tipo_venta != "abono")

    ventas_hoy, total_hoy = (
        completadas.filter(Venta.fecha_venta >= inicio, Venta.fecha_venta < fin)
        .with_entities(func.count(Venta.id), func.coalesce(func.sum(Venta.total_venta), 0))
        .one()
    )
    total_mes = (
        completadas.filter(Venta.fecha_venta >= inicio_mes, Venta.fecha_venta < fin)
        .with_entities(func.coalesce(func.sum(Venta.total_venta), 0))
        .scalar()
    )
    bajo_stock = (
        db.query(func.count(Producto.id))
        .filter(Producto.activo.is_(True), Producto.stock_actual <= Producto.stock_referencial)
        .scalar()
    )
    pendientes = db.query(func.count(Devolucion.id)).filter(Devolucion.estado == "solicitada").scalar()

    top = (
        db.query(
            VentaItem.producto_id,
            VentaItem.nombre_producto,
            func.sum(VentaItem.cantidad).label("unidades"),
            func.sum(VentaItem.subtotal).label("importe"),
        )
        .join(Venta, VentaItem.venta_id == Venta.id)
        .filter(Venta.estado == "completada", Venta.fecha_venta >= inicio_mes, Venta.fecha_venta < fin)
        .group_by(VentaItem.producto_id, VentaItem.nombre_producto)
        .order_by(func.sum(VentaItem.cantidad).desc())
        .limit(5)
        .all()
    )

    return {
        "fecha": hoy,
        "ventas_hoy": ventas_hoy,
        "total_hoy": float(q2(total_hoy)),
        "total_mes": float(q2(total_mes)),
        "productos_bajo_stock": bajo_stock,
        "creditos_activos": float(total_creditos_activos(db)),
        "devoluciones_pendientes": pendientes,
        "top_productos": [
            {
                "producto_id": fila.producto_id,
                "nombre": fila.nombre_producto,
                "unidades": int(fila.unidades or 0),
                "importe": float(q2(fila.importe)),
            }
            for fila in top
        ],
    }
