"""Ventas al credito y abonos.

El saldo de un cliente es la suma de los items de sus creditos activos menos
sus abonos activos, nunca negativo. Cada abono genera una venta de tipo
``abono`` para que el dinero aparezca en la caja del dia; cuando el saldo
llega a cero los creditos pasan a ``pagado`` y los abonos a ``procesado``.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ..core.errors import ConflictoError, NegocioError, NoEncontradoError
from ..core.utils import CENT, generar_numero, local_now_naive, local_today, q2, to_decimal
from ..models.sales import Abono, Cliente, Credito, CreditoItem
from ..schemas.sales import AbonoCreate, CreditoCreate
from . import inventario
from .ventas import dia_cerrado, obtener_cliente, registrar_venta_abono

logger = logging.getLogger(__name__)


def saldo_cliente(db: Session, cliente_id: int) -> tuple[Decimal, Decimal, Decimal]:
    """Devuelve (deuda, abonos, saldo) del cliente."""
    deuda = (
        db.query(func.coalesce(func.sum(CreditoItem.subtotal), 0))
        .join(Credito, CreditoItem.credito_id == Credito.id)
        .filter(Credito.cliente_id == cliente_id, Credito.estado == "activo")
        .scalar()
    )
    abonado = (
        db.query(func.coalesce(func.sum(Abono.monto), 0))
        .filter(Abono.cliente_id == cliente_id, Abono.estado == "activo")
        .scalar()
    )
    deuda = q2(deuda)
    abonado = q2(abonado)
    return deuda, abonado, max(Decimal("0"), deuda - abonado)


def ganancia_de_abono(db: Session, cliente_id: int, monto: Decimal, deuda: Decimal) -> Decimal:
    """Parte de la ganancia de los creditos activos que cobra un abono de ``monto``."""
    if deuda <= 0:
        return Decimal("0")
    ganancia = (
        db.query(func.coalesce(func.sum(Credito.ganancia_total), 0))
        .filter(Credito.cliente_id == cliente_id, Credito.estado == "activo")
        .scalar()
    )
    return q2(to_decimal(ganancia) * monto / deuda)


def registrar_credito(db: Session, payload: CreditoCreate, usuario: Optional[str] = None) -> Credito:
    if not payload.items:
        raise NegocioError("El credito debe tener al menos un producto")
    cliente = obtener_cliente(db, payload.cliente_id)

    credito = Credito(
        numero_credito=generar_numero("CR"),
        cliente_id=cliente.id,
        estado="activo",
        observaciones=payload.observaciones,
        fecha_vencimiento=payload.fecha_vencimiento,
        usuario_registro=usuario,
    )
    db.add(credito)
    db.flush()

    total = Decimal("0")
    ganancia = Decimal("0")
    for item in payload.items:
        producto = inventario.obtener_producto(db, item.producto_id, bloquear=True)
        precio = q2(item.precio_venta_unitario)
        consumos = inventario.consumir_fifo(db, producto, item.cantidad, "credito", usuario, credito_id=credito.id)
        for consumo in consumos:
            costo = q2(consumo.precio_compra_unitario)
            subtotal = q2(precio * consumo.cantidad)
            ganancia_item = q2((precio - costo) * consumo.cantidad)
            total += subtotal
            ganancia += ganancia_item
            credito.items.append(
                CreditoItem(
                    producto_id=producto.id,
                    lote_id=consumo.lote.id,
                    nombre_producto=producto.nombre,
                    cantidad=consumo.cantidad,
                    precio_venta_unitario=precio,
                    precio_compra_unitario=costo,
                    subtotal=subtotal,
                    ganancia_total=ganancia_item,
                )
            )
    credito.total = q2(total)
    credito.ganancia_total = q2(ganancia)
    db.flush()

    cliente.tiene_credito = True
    cliente.monto_credito_actual = saldo_cliente(db, cliente.id)[2]
    logger.info("Credito %s registrado para cliente %s por S/. %s", credito.numero_credito, cliente.id, credito.total)
    return credito


def creditos_activos(db: Session, cliente_id: Optional[int] = None) -> list[Credito]:
    query = db.query(Credito).options(selectinload(Credito.items)).filter(Credito.estado == "activo")
    if cliente_id:
        query = query.filter(Credito.cliente_id == cliente_id)
    return query.order_by(Credito.fecha_credito, Credito.id).all()


def obtener_credito(db: Session, credito_id: int) -> Credito:
    credito = db.query(Credito).filter(Credito.id == credito_id).first()
    if not credito:
        raise NoEncontradoError("Credito no encontrado")
    return credito


def estado_cuenta(db: Session, cliente_id: int) -> dict:
    cliente = obtener_cliente(db, cliente_id)
    deuda, abonado, saldo = saldo_cliente(db, cliente.id)
    abonos = (
        db.query(Abono)
        .filter(Abono.cliente_id == cliente.id, Abono.estado == "activo")
        .order_by(Abono.fecha, Abono.id)
        .all()
    )
    return {
        "cliente": cliente,
        "creditos": creditos_activos(db, cliente.id),
        "abonos": abonos,
        "total_deuda": float(deuda),
        "total_abonos": float(abonado),
        "saldo": float(saldo),
    }


def registrar_abono(db: Session, cliente_id: int, payload: AbonoCreate, usuario: Optional[str] = None) -> Abono:
    cliente = db.query(Cliente).filter(Cliente.id == cliente_id).with_for_update().first()
    if not cliente:
        raise NoEncontradoError("Cliente no encontrado")
    if dia_cerrado(db, local_today()):
        raise ConflictoError("La caja de hoy ya esta cerrada")

    monto = q2(payload.monto)
    if monto <= 0:
        raise NegocioError("El monto del abono debe ser mayor a cero")
    deuda, _, saldo = saldo_cliente(db, cliente.id)
    if saldo <= 0:
        raise NegocioError("El cliente no tiene deuda pendiente")
    if monto > saldo:
        raise NegocioError(f"El abono excede el saldo pendiente de S/. {saldo:.2f}")

    ganancia = ganancia_de_abono(db, cliente.id, monto, deuda)
    venta = registrar_venta_abono(db, cliente, monto, payload.metodo_pago, ganancia, usuario, payload.descripcion)
    abono = Abono(
        cliente_id=cliente.id,
        venta_id=venta.id,
        monto=monto,
        metodo_pago=venta.metodo_pago,
        descripcion=payload.descripcion,
        saldo_anterior=saldo,
        estado="activo",
        usuario_registro=usuario,
    )
    db.add(abono)
    db.flush()

    nuevo_saldo = saldo - monto
    if nuevo_saldo < CENT:
        _liquidar(db, cliente)
        nuevo_saldo = Decimal("0")
    cliente.monto_credito_actual = nuevo_saldo
    logger.info("Abono de S/. %s registrado para cliente %s, saldo %s", monto, cliente.id, nuevo_saldo)
    return abono


def _liquidar(db: Session, cliente: Cliente) -> None:
    ahora = local_now_naive()
    for credito in db.query(Credito).filter(Credito.cliente_id == cliente.id, Credito.estado == "activo").all():
        credito.estado = "pagado"
        credito.fecha_pago = ahora
    for abono in db.query(Abono).filter(Abono.cliente_id == cliente.id, Abono.estado == "activo").all():
        abono.estado = "procesado"
    cliente.tiene_credito = False
    logger.info("Cliente %s cancelo su deuda", cliente.id)


def abonos_de_cliente(db: Session, cliente_id: int) -> list[Abono]:
    obtener_cliente(db, cliente_id)
    return db.query(Abono).filter(Abono.cliente_id == cliente_id).order_by(Abono.fecha.desc(), Abono.id.desc()).all()


def total_creditos_activos(db: Session) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(CreditoItem.subtotal), 0))
        .join(Credito, CreditoItem.credito_id == Credito.id)
        .filter(Credito.estado == "activo")
        .scalar()
    )
    abonado = db.query(func.coalesce(func.sum(Abono.monto), 0)).filter(Abono.estado == "activo").scalar()
    return max(Decimal("0"), q2(to_decimal(total) - to_decimal(abonado)))
