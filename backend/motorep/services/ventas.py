import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from ..core.errors import ConflictoError, NegocioError, NoEncontradoError
from ..core.utils import CENT, day_bounds, generar_numero, local_now_naive, q2, to_decimal
from ..models.inventory import Lote
from ..models.sales import CierreCaja, Cliente, Empleado, Venta, VentaItem, VentaPago
from ..schemas.sales import ItemVentaCreate, PagoCreate, VentaCreate
from . import inventario

logger = logging.getLogger(__name__)

METODOS_PAGO = {"efectivo", "yape", "plin", "tarjeta", "tarjeta_credito", "tarjeta_debito"}


def dia_cerrado(db: Session, fecha: date) -> bool:
    return db.query(CierreCaja.id).filter(CierreCaja.fecha == fecha).first() is not None


def obtener_cliente(db: Session, cliente_id: int) -> Cliente:
    cliente = db.query(Cliente).filter(Cliente.id == cliente_id).first()
    if not cliente:
        raise NoEncontradoError("Cliente no encontrado")
    return cliente


def _validar_metodo(metodo: str) -> str:
    metodo = (metodo or "").strip().lower()
    if metodo not in METODOS_PAGO:
        raise NegocioError(f"Metodo de pago no valido: {metodo or '-'}")
    return metodo


def preparar_pagos(total: Decimal, metodo_pago: str, pagos: list[PagoCreate]) -> tuple[str, list[VentaPago]]:
    """Valida las lineas de pago y devuelve el metodo resumen de la venta."""
    if not pagos:
        metodo = _validar_metodo(metodo_pago)
        return metodo, [VentaPago(metodo=metodo, monto=total)]

    lineas = []
    suma = Decimal("0")
    for pago in pagos:
        monto = q2(pago.monto)
        if monto <= 0:
            continue
        lineas.append(VentaPago(metodo=_validar_metodo(pago.metodo), monto=monto))
        suma += monto
    if not lineas:
        raise NegocioError("Debe registrar al menos un pago")
    if abs(suma - total) > CENT:
        raise NegocioError(f"Los pagos suman S/. {suma:.2f} y el total es S/. {total:.2f}")
    metodos = {linea.metodo for linea in lineas}
    return (metodos.pop() if len(metodos) == 1 else "mixto"), lineas


def registrar_venta(
    db: Session,
    payload: VentaCreate,
    usuario: Optional[str] = None,
    tipo_venta: str = "directa",
) -> Venta:
    if not payload.items:
        raise NegocioError("La venta debe tener al menos un producto")
    cliente = obtener_cliente(db, payload.cliente_id)
    if payload.empleado_id is not None:
        if not db.query(Empleado.id).filter(Empleado.id == payload.empleado_id).first():
            raise NoEncontradoError("Empleado no encontrado")

    numero = (payload.numero_venta or "").strip() or generar_numero("V")
    if db.query(Venta.id).filter(Venta.numero_venta == numero).first():
        raise ConflictoError(f"El numero de venta {numero} ya existe")

    total = sum((q2(item.precio_venta_unitario) * item.cantidad for item in payload.items), Decimal("0"))
    total = q2(total)
    metodo_pago, pagos = preparar_pagos(total, payload.metodo_pago, payload.pagos)

    venta = Venta(
        numero_venta=numero,
        cliente_id=cliente.id,
        empleado_id=payload.empleado_id,
        usuario_registro=usuario,
        fecha_venta=local_now_naive(),
        metodo_pago=metodo_pago,
        total_venta=total,
        tipo_venta=tipo_venta,
        estado="completada",
        observaciones=payload.observaciones,
    )
    venta.pagos = pagos
    db.add(venta)
    db.flush()

    ganancia_total = Decimal("0")
    for item in payload.items:
        ganancia_total += _agregar_items(db, venta, item, usuario)
    venta.ganancia_total_venta = q2(ganancia_total)

    logger.info("Venta %s registrada por %s, total %s", venta.numero_venta, usuario, total)
    return venta


def _agregar_items(db: Session, venta: Venta, item: ItemVentaCreate, usuario: Optional[str]) -> Decimal:
    producto = inventario.obtener_producto(db, item.producto_id, bloquear=True)
    if not producto.activo:
        raise NegocioError(f"El producto {producto.nombre} esta inactivo")
    precio = q2(item.precio_venta_unitario)
    consumos = inventario.consumir_fifo(db, producto, item.cantidad, "venta", usuario, venta_id=venta.id)
    ganancia = Decimal("0")
    for consumo in consumos:
        costo = q2(consumo.precio_compra_unitario)
        ganancia_unitaria = precio - costo
        ganancia_item = ganancia_unitaria * consumo.cantidad
        ganancia += ganancia_item
        venta.items.append(
            VentaItem(
                producto_id=producto.id,
                lote_id=consumo.lote.id,
                nombre_producto=producto.nombre,
                cantidad=consumo.cantidad,
                precio_venta_unitario=precio,
                precio_compra_unitario=costo,
                subtotal=q2(precio * consumo.cantidad),
                ganancia_unitaria=ganancia_unitaria,
                ganancia_total=q2(ganancia_item),
            )
        )
    return ganancia


def registrar_venta_abono(
    db: Session,
    cliente: Cliente,
    monto: Decimal,
    metodo_pago: str,
    ganancia: Decimal,
    usuario: Optional[str] = None,
    descripcion: Optional[str] = None,
) -> Venta:
    """Venta sin items que ingresa a caja el dinero de un abono y la ganancia que cobra."""
    metodo = _validar_metodo(metodo_pago)
    monto = q2(monto)
    venta = Venta(
        numero_venta=generar_numero("AB"),
        cliente_id=cliente.id,
        usuario_registro=usuario,
        fecha_venta=local_now_naive(),
        metodo_pago=metodo,
        total_venta=monto,
        ganancia_total_venta=q2(ganancia),
        tipo_venta="abono",
        estado="completada",
        observaciones=descripcion or f"Abono de {cliente.nombre_completo}",
    )
    venta.pagos = [VentaPago(metodo=metodo, monto=monto)]
    db.add(venta)
    db.flush()
    return venta


def obtener_venta(db: Session, venta_id: int, bloquear: bool = False) -> Venta:
    query = db.query(Venta).filter(Venta.id == venta_id)
    if bloquear:
        query = query.with_for_update()
    venta = query.first()
    if not venta:
        raise NoEncontradoError("Venta no encontrada")
    return venta


def anular_venta(db: Session, venta_id: int, usuario: Optional[str] = None, motivo: Optional[str] = None) -> Venta:
    venta = obtener_venta(db, venta_id, bloquear=True)
    if venta.estado != "completada":
        raise ConflictoError("Solo se pueden anular ventas completadas")
    if venta.tipo_venta == "abono":
        raise NegocioError("Un abono no se anula desde ventas")
    if to_decimal(venta.monto_devuelto) > 0:
        raise ConflictoError("La venta tiene devoluciones aprobadas")
    if dia_cerrado(db, venta.fecha_venta.date()):
        raise ConflictoError("La caja del dia de la venta ya esta cerrada")

    for item in venta.items:
        if not item.producto_id:
            continue
        producto = inventario.obtener_producto(db, item.producto_id, bloquear=True)
        lote = db.query(Lote).filter(Lote.id == item.lote_id).with_for_update().first() if item.lote_id else None
        inventario.devolver_a_lote(
            db,
            producto,
            lote,
            item.cantidad,
            "anulacion",
            usuario,
            precio_compra_unitario=item.precio_compra_unitario,
            venta_id=venta.id,
        )

    venta.estado = "anulada"
    venta.anulada_por = usuario
    venta.anulada_at = local_now_naive()
    if motivo:
        venta.observaciones = f"{venta.observaciones or ''} | Anulada: {motivo}".strip(" |")
    logger.info("Venta %s anulada por %s", venta.numero_venta, usuario)
    return venta


def listar_ventas(
    db: Session,
    desde: Optional[date] = None,
    hasta: Optional[date] = None,
    estado: Optional[str] = None,
    cliente_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
) -> list[Venta]:
    query = db.query(Venta).options(selectinload(Venta.items), selectinload(Venta.pagos))
    if desde:
        query = query.filter(Venta.fecha_venta >= day_bounds(desde)[0])
    if hasta:
        query = query.filter(Venta.fecha_venta < day_bounds(hasta)[1])
    if estado:
        query = query.filter(Venta.estado == estado)
    if cliente_id:
        query = query.filter(Venta.cliente_id == cliente_id)
    if search:
        patron = f"%{search.strip().lower()}%"
        query = query.outerjoin(Cliente, Venta.cliente_id == Cliente.id).filter(
            or_(
                func.lower(Venta.numero_venta).like(patron),
                func.lower(Cliente.nombre).like(patron),
                func.lower(Cliente.apellido).like(patron),
                func.lower(Cliente.dni).like(patron),
            )
        )
    return query.order_by(Venta.fecha_venta.desc(), Venta.id.desc()).offset((page - 1) * limit).limit(limit).all()


def ventas_del_dia(db: Session, fecha: date) -> list[Venta]:
    inicio, fin = day_bounds(fecha)
    return (
        db.query(Venta)
        .options(selectinload(Venta.items), selectinload(Venta.pagos))
        .filter(Venta.fecha_venta >= inicio, Venta.fecha_venta < fin, Venta.estado == "completada")
        .order_by(Venta.fecha_venta, Venta.id)
        .all()
    )
