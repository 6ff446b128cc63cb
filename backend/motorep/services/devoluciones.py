import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ..core.errors import ConflictoError, NegocioError, NoEncontradoError
from ..core.utils import generar_numero, local_now_naive, local_today, q2, to_decimal
from ..models.inventory import Lote
from ..models.sales import Devolucion, DevolucionItem, VentaItem
from ..schemas.sales import DevolucionCreate
from . import inventario
from .cuadre import MARGEN_ESTIMADO, estado_devolucion_venta
from .ventas import dia_cerrado, obtener_venta

logger = logging.getLogger(__name__)

ESTADOS_VIGENTES = ("solicitada", "aprobada")


def cantidades_devueltas(db: Session, venta_id: int) -> dict[int, int]:
    """Unidades ya comprometidas en devoluciones solicitadas o aprobadas, por item de venta."""
    filas = (
        db.query(DevolucionItem.venta_item_id, func.coalesce(func.sum(DevolucionItem.cantidad_a_devolver), 0))
        .join(Devolucion, DevolucionItem.devolucion_id == Devolucion.id)
        .filter(Devolucion.venta_id == venta_id, Devolucion.estado.in_(ESTADOS_VIGENTES))
        .group_by(DevolucionItem.venta_item_id)
        .all()
    )
    return {venta_item_id: int(cantidad) for venta_item_id, cantidad in filas}


def ganancia_item_devuelto(item: VentaItem, cantidad: int) -> tuple[Decimal, bool]:
    """Ganancia que pierde la tienda al devolver ``cantidad`` unidades; el bool indica estimacion."""
    if item.ganancia_unitaria:
        return q2(to_decimal(item.ganancia_unitaria) * cantidad), False
    if item.ganancia_total and item.cantidad:
        return q2(to_decimal(item.ganancia_total) * cantidad / item.cantidad), False
    return q2(to_decimal(item.precio_venta_unitario) * cantidad * MARGEN_ESTIMADO), True


def solicitar_devolucion(db: Session, payload: DevolucionCreate, usuario: Optional[str] = None) -> Devolucion:
    if not payload.items:
        raise NegocioError("Seleccione al menos un producto a devolver")
    if not payload.motivo.strip():
        raise NegocioError("El motivo es obligatorio")
    venta = obtener_venta(db, payload.venta_id, bloquear=True)
    if venta.estado != "completada":
        raise ConflictoError("Solo se pueden devolver ventas completadas")
    if venta.tipo_venta == "abono":
        raise NegocioError("Un abono no admite devoluciones")

    items_venta = {item.id: item for item in venta.items}
    comprometidas = cantidades_devueltas(db, venta.id)

    devolucion = Devolucion(
        numero_devolucion=generar_numero("DEV"),
        venta_id=venta.id,
        numero_venta=venta.numero_venta,
        cliente_id=venta.cliente_id,
        metodo_pago_original=venta.metodo_pago,
        motivo=payload.motivo.strip(),
        descripcion_motivo=payload.descripcion_motivo,
        observaciones=payload.observaciones,
        estado="solicitada",
        solicitado_por=usuario,
    )
    monto_total = Decimal("0")
    ganancia_total = Decimal("0")
    vistos: set[int] = set()
    for solicitado in payload.items:
        item = items_venta.get(solicitado.venta_item_id)
        if item is None:
            raise NegocioError(f"El item {solicitado.venta_item_id} no pertenece a la venta {venta.numero_venta}")
        if item.id in vistos:
            raise NegocioError(f"El item {item.nombre_producto} esta repetido")
        vistos.add(item.id)
        disponible = item.cantidad - comprometidas.get(item.id, 0)
        if solicitado.cantidad_a_devolver > disponible:
            raise NegocioError(
                f"Solo se pueden devolver {disponible} unidades de {item.nombre_producto}"
            )
        monto = q2(to_decimal(item.precio_venta_unitario) * solicitado.cantidad_a_devolver)
        ganancia, estimada = ganancia_item_devuelto(item, solicitado.cantidad_a_devolver)
        if estimada:
            logger.warning("Item %s de la venta %s sin ganancia registrada, se estima", item.id, venta.numero_venta)
        monto_total += monto
        ganancia_total += ganancia
        devolucion.items.append(
            DevolucionItem(
                venta_item_id=item.id,
                producto_id=item.producto_id,
                nombre_producto=item.nombre_producto,
                cantidad_original=item.cantidad,
                cantidad_a_devolver=solicitado.cantidad_a_devolver,
                precio_venta_unitario=item.precio_venta_unitario,
                monto_devolucion=monto,
                ganancia_unitaria=item.ganancia_unitaria,
                ganancia_total=item.ganancia_total,
                ganancia_devolucion=ganancia,
                es_estimacion=estimada,
            )
        )
    devolucion.monto_a_devolver = q2(monto_total)
    devolucion.ganancia_real_afectada = q2(max(Decimal("0"), ganancia_total))
    db.add(devolucion)
    db.flush()
    logger.info("Devolucion %s solicitada sobre %s", devolucion.numero_devolucion, venta.numero_venta)
    return devolucion


def obtener_devolucion(db: Session, devolucion_id: int, bloquear: bool = False) -> Devolucion:
    query = db.query(Devolucion).filter(Devolucion.id == devolucion_id)
    if bloquear:
        query = query.with_for_update()
    devolucion = query.first()
    if not devolucion:
        raise NoEncontradoError("Devolucion no encontrada")
    return devolucion


def aprobar_devolucion(db: Session, devolucion_id: int, usuario: Optional[str] = None) -> Devolucion:
    devolucion = obtener_devolucion(db, devolucion_id, bloquear=True)
    if devolucion.estado != "solicitada":
        raise ConflictoError(f"La devolucion ya esta {devolucion.estado}")
    if dia_cerrado(db, local_today()):
        raise ConflictoError("La caja de hoy ya esta cerrada")
    venta = obtener_venta(db, devolucion.venta_id, bloquear=True)

    for item in devolucion.items:
        if not item.producto_id:
            continue
        venta_item = item.venta_item
        producto = inventario.obtener_producto(db, item.producto_id, bloquear=True)
        lote = None
        if venta_item is not None and venta_item.lote_id:
            lote = db.query(Lote).filter(Lote.id == venta_item.lote_id).with_for_update().first()
        inventario.devolver_a_lote(
            db,
            producto,
            lote,
            item.cantidad_a_devolver,
            "devolucion",
            usuario,
            precio_compra_unitario=venta_item.precio_compra_unitario if venta_item else None,
            venta_id=venta.id,
            devolucion_id=devolucion.id,
        )

    venta.monto_devuelto = q2(to_decimal(venta.monto_devuelto) + to_decimal(devolucion.monto_a_devolver))
    venta.estado_devolucion = estado_devolucion_venta(venta.total_venta, venta.monto_devuelto)
    devolucion.estado = "aprobada"
    devolucion.fecha_procesamiento = local_now_naive()
    devolucion.procesado_por = usuario
    logger.info(
        "Devolucion %s aprobada: S/. %s sobre %s",
        devolucion.numero_devolucion,
        devolucion.monto_a_devolver,
        venta.numero_venta,
    )
    return devolucion


def rechazar_devolucion(
    db: Session, devolucion_id: int, usuario: Optional[str] = None, motivo: Optional[str] = None
) -> Devolucion:
    devolucion = obtener_devolucion(db, devolucion_id, bloquear=True)
    if devolucion.estado != "solicitada":
        raise ConflictoError(f"La devolucion ya esta {devolucion.estado}")
    devolucion.estado = "rechazada"
    devolucion.motivo_rechazo = motivo
    devolucion.fecha_procesamiento = local_now_naive()
    devolucion.procesado_por = usuario
    return devolucion


def listar_devoluciones(
    db: Session, estado: Optional[str] = None, venta_id: Optional[int] = None, page: int = 1, limit: int = 50
) -> list[Devolucion]:
    query = db.query(Devolucion).options(selectinload(Devolucion.items))
    if estado:
        query = query.filter(Devolucion.estado == estado)
    if venta_id:
        query = query.filter(Devolucion.venta_id == venta_id)
    return query.order_by(Devolucion.fecha_solicitud.desc(), Devolucion.id.desc()).offset((page - 1) * limit).limit(limit).all()
