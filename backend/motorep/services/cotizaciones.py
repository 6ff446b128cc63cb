import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ..core.errors import ConflictoError, NegocioError, NoEncontradoError
from ..core.utils import generar_numero, q2, to_decimal
from ..models.sales import Cotizacion, CotizacionItem
from ..schemas.sales import (
    CotizacionConfirmar,
    CotizacionCreate,
    CotizacionUpdate,
    ItemCotizacionCreate,
    ItemVentaCreate,
    VentaCreate,
)
from . import inventario
from .ventas import obtener_cliente, registrar_venta

logger = logging.getLogger(__name__)

EDITABLES = ("borrador", "pendiente")


def _armar_items(db: Session, cotizacion: Cotizacion, items: list[ItemCotizacionCreate]) -> None:
    cotizacion.items.clear()
    total = Decimal("0")
    for item in items:
        producto = inventario.obtener_producto(db, item.producto_id)
        precio = q2(
            item.precio_venta_unitario
            if item.precio_venta_unitario is not None
            else producto.precio_venta_default
        )
        subtotal = q2(precio * item.cantidad)
        total += subtotal
        cotizacion.items.append(
            CotizacionItem(
                producto_id=producto.id,
                nombre_producto=producto.nombre,
                cantidad=item.cantidad,
                precio_venta_unitario=precio,
                subtotal=subtotal,
            )
        )
    cotizacion.total = q2(total)
    cotizacion.estado = "pendiente" if cotizacion.items else "borrador"


def crear_cotizacion(db: Session, payload: CotizacionCreate, usuario: Optional[str] = None) -> Cotizacion:
    if payload.cliente_id is not None:
        obtener_cliente(db, payload.cliente_id)
    cotizacion = Cotizacion(
        numero_cotizacion=generar_numero("COT"),
        cliente_id=payload.cliente_id,
        empleado_id=payload.empleado_id,
        placa_moto=payload.placa_moto,
        metodo_pago=payload.metodo_pago,
        observaciones=payload.observaciones,
        usuario_registro=usuario,
    )
    _armar_items(db, cotizacion, payload.items)
    db.add(cotizacion)
    db.flush()
    return cotizacion


def obtener_cotizacion(db: Session, cotizacion_id: int, bloquear: bool = False) -> Cotizacion:
    query = db.query(Cotizacion).filter(Cotizacion.id == cotizacion_id)
    if bloquear:
        query = query.with_for_update()
    cotizacion = query.first()
    if not cotizacion:
        raise NoEncontradoError("Cotizacion no encontrada")
    return cotizacion


def actualizar_cotizacion(db: Session, cotizacion_id: int, payload: CotizacionUpdate) -> Cotizacion:
    cotizacion = obtener_cotizacion(db, cotizacion_id, bloquear=True)
    if cotizacion.estado not in EDITABLES:
        raise ConflictoError(f"No se puede editar una cotizacion {cotizacion.estado}")
    data = payload.model_dump(exclude_unset=True, exclude={"items"})
    if data.get("cliente_id") is not None:
        obtener_cliente(db, data["cliente_id"])
    for key, value in data.items():
        setattr(cotizacion, key, value)
    if payload.items is not None:
        _armar_items(db, cotizacion, payload.items)
    return cotizacion


def confirmar_cotizacion(
    db: Session, cotizacion_id: int, payload: CotizacionConfirmar, usuario: Optional[str] = None
) -> Cotizacion:
    """Convierte la cotizacion en una venta, descontando stock."""
    cotizacion = obtener_cotizacion(db, cotizacion_id, bloquear=True)
    if cotizacion.estado != "pendiente":
        raise ConflictoError(f"No se puede confirmar una cotizacion {cotizacion.estado}")
    if cotizacion.cliente_id is None:
        raise NegocioError("Asigne un cliente antes de confirmar la cotizacion")
    if not cotizacion.items:
        raise NegocioError("La cotizacion no tiene productos")

    venta = registrar_venta(
        db,
        VentaCreate(
            cliente_id=cotizacion.cliente_id,
            empleado_id=cotizacion.empleado_id,
            metodo_pago=cotizacion.metodo_pago,
            pagos=payload.pagos,
            observaciones=f"Cotizacion {cotizacion.numero_cotizacion}",
            items=[
                ItemVentaCreate(
                    producto_id=item.producto_id,
                    cantidad=item.cantidad,
                    precio_venta_unitario=float(to_decimal(item.precio_venta_unitario)),
                )
                for item in cotizacion.items
            ],
        ),
        usuario=usuario,
        tipo_venta="cotizacion",
    )
    cotizacion.estado = "confirmada"
    cotizacion.venta_id = venta.id
    logger.info("Cotizacion %s confirmada como venta %s", cotizacion.numero_cotizacion, venta.numero_venta)
    return cotizacion


def cancelar_cotizacion(db: Session, cotizacion_id: int) -> Cotizacion:
    cotizacion = obtener_cotizacion(db, cotizacion_id, bloquear=True)
    if cotizacion.estado not in EDITABLES:
        raise ConflictoError(f"No se puede cancelar una cotizacion {cotizacion.estado}")
    cotizacion.estado = "cancelada"
    return cotizacion


def eliminar_cotizacion(db: Session, cotizacion_id: int) -> None:
    cotizacion = obtener_cotizacion(db, cotizacion_id, bloquear=True)
    if cotizacion.estado == "confirmada":
        raise ConflictoError("Una cotizacion confirmada no se puede eliminar")
    db.delete(cotizacion)


def listar_cotizaciones(db: Session, estado: Optional[str] = None, page: int = 1, limit: int = 50) -> list[Cotizacion]:
    query = db.query(Cotizacion).options(selectinload(Cotizacion.items))
    if estado:
        query = query.filter(Cotizacion.estado == estado)
    return query.order_by(Cotizacion.fecha.desc(), Cotizacion.id.desc()).offset((page - 1) * limit).limit(limit).all()
