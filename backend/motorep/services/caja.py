"""Caja diaria: arma el cuadre desde la base y gestiona dinero inicial, retiros y cierre."""
import json
import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..core.errors import ConflictoError, NegocioError, NoEncontradoError
from ..core.utils import day_bounds, local_now_naive, local_today, q2, to_decimal
from ..models.sales import CierreCaja, Devolucion, DineroInicial, Retiro, Venta
from ..schemas.caja import RetiroCreate
from .cuadre import (
    METODOS_CAJA,
    CuadreCaja,
    DevolucionCuadre,
    ItemDevolucionCuadre,
    ItemVentaCuadre,
    PagoCuadre,
    RetiroCuadre,
    VentaCuadre,
    calcular_cuadre,
    clasificar_metodo,
    disponible_para_retiro,
    ganancia_a_descontar,
    ganancia_de_venta,
)
from .ventas import obtener_venta, ventas_del_dia

logger = logging.getLogger(__name__)


def _opcional(value: object) -> Optional[Decimal]:
    return None if value is None else to_decimal(value)


def venta_a_cuadre(venta: Venta) -> VentaCuadre:
    return VentaCuadre(
        id=venta.id,
        numero_venta=venta.numero_venta,
        total_venta=to_decimal(venta.total_venta),
        metodo_pago=venta.metodo_pago,
        pagos=[PagoCuadre(pago.metodo, to_decimal(pago.monto)) for pago in venta.pagos],
        items=[
            ItemVentaCuadre(
                cantidad=item.cantidad,
                precio_venta_unitario=to_decimal(item.precio_venta_unitario),
                ganancia_total=_opcional(item.ganancia_total),
                ganancia_unitaria=_opcional(item.ganancia_unitaria),
            )
            for item in venta.items
        ],
        ganancia_total_venta=_opcional(venta.ganancia_total_venta),
        tipo_venta=venta.tipo_venta,
    )


def devolucion_a_cuadre(devolucion: Devolucion) -> DevolucionCuadre:
    return DevolucionCuadre(
        numero_devolucion=devolucion.numero_devolucion,
        numero_venta=devolucion.numero_venta,
        monto_a_devolver=to_decimal(devolucion.monto_a_devolver),
        metodo_pago_original=devolucion.metodo_pago_original,
        estado=devolucion.estado,
        ganancia_real_afectada=_opcional(devolucion.ganancia_real_afectada),
        items=[
            ItemDevolucionCuadre(
                cantidad_a_devolver=item.cantidad_a_devolver,
                precio_venta_unitario=to_decimal(item.precio_venta_unitario),
                ganancia_devolucion=_opcional(item.ganancia_devolucion),
                ganancia_unitaria=_opcional(item.ganancia_unitaria),
                ganancia_total=_opcional(item.ganancia_total),
            )
            for item in devolucion.items
        ],
    )


def devoluciones_aprobadas_del_dia(db: Session, fecha: date) -> list[Devolucion]:
    inicio, fin = day_bounds(fecha)
    return (
        db.query(Devolucion)
        .options(selectinload(Devolucion.items))
        .filter(
            Devolucion.estado == "aprobada",
            Devolucion.fecha_procesamiento >= inicio,
            Devolucion.fecha_procesamiento < fin,
        )
        .order_by(Devolucion.fecha_procesamiento, Devolucion.id)
        .all()
    )


def retiros_del_dia(db: Session, fecha: date) -> list[Retiro]:
    return db.query(Retiro).filter(Retiro.fecha == fecha).order_by(Retiro.created_at, Retiro.id).all()


def dinero_inicial_del_dia(db: Session, fecha: date) -> Decimal:
    registro = db.query(DineroInicial).filter(DineroInicial.fecha == fecha).first()
    return to_decimal(registro.monto) if registro else Decimal("0")


def obtener_cierre(db: Session, fecha: date, bloquear: bool = False) -> Optional[CierreCaja]:
    query = db.query(CierreCaja).filter(CierreCaja.fecha == fecha)
    if bloquear:
        query = query.with_for_update()
    return query.first()


def _exigir_abierta(db: Session, fecha: date) -> None:
    if obtener_cierre(db, fecha, bloquear=True) is not None:
        raise ConflictoError(f"La caja del {fecha:%d/%m/%Y} ya esta cerrada")


def calcular_dia(db: Session, fecha: date) -> tuple[CuadreCaja, list[Venta], list[Devolucion], list[Retiro]]:
    ventas = ventas_del_dia(db, fecha)
    devoluciones = devoluciones_aprobadas_del_dia(db, fecha)
    retiros = retiros_del_dia(db, fecha)
    cuadre = calcular_cuadre(
        [venta_a_cuadre(v) for v in ventas],
        [devolucion_a_cuadre(d) for d in devoluciones],
        [RetiroCuadre(to_decimal(r.monto), r.tipo) for r in retiros],
        dinero_inicial_del_dia(db, fecha),
    )
    return cuadre, ventas, devoluciones, retiros


def resumen_caja(db: Session, fecha: date) -> dict:
    cuadre, _, _, _ = calcular_dia(db, fecha)
    data = cuadre.as_dict()
    data["fecha"] = fecha
    data["estado"] = "cerrada" if obtener_cierre(db, fecha) else "abierta"
    return data


def establecer_dinero_inicial(db: Session, fecha: date, monto: object, usuario: Optional[str] = None) -> DineroInicial:
    monto = q2(monto)
    if monto < 0:
        raise NegocioError("El dinero inicial no puede ser negativo")
    _exigir_abierta(db, fecha)
    registro = db.query(DineroInicial).filter(DineroInicial.fecha == fecha).with_for_update().first()
    if registro is None:
        registro = DineroInicial(fecha=fecha)
        db.add(registro)
    registro.monto = monto
    registro.establecido_por = usuario
    registro.updated_at = local_now_naive()
    db.flush()
    logger.info("Dinero inicial del %s fijado en %s por %s", fecha, monto, usuario)
    return registro


def registrar_retiro(db: Session, fecha: date, payload: RetiroCreate, usuario: Optional[str] = None) -> Retiro:
    monto = q2(payload.monto)
    if monto <= 0:
        raise NegocioError("El monto del retiro debe ser mayor a cero")
    motivo = (payload.motivo or "").strip()
    if not motivo:
        raise NegocioError("El motivo del retiro es obligatorio")
    tipo = clasificar_metodo(payload.tipo)
    if tipo not in METODOS_CAJA or tipo == "otros":
        raise NegocioError(f"Tipo de retiro no valido: {payload.tipo}")
    _exigir_abierta(db, fecha)

    cuadre, _, _, _ = calcular_dia(db, fecha)
    disponible = disponible_para_retiro(cuadre, tipo)
    if monto > disponible:
        raise NegocioError(f"Saldo insuficiente en {tipo}: disponible S/. {disponible:.2f}")

    retiro = Retiro(fecha=fecha, monto=monto, tipo=tipo, motivo=motivo, realizado_por=usuario)
    db.add(retiro)
    db.flush()
    logger.info("Retiro de %s (%s) el %s por %s: %s", monto, tipo, fecha, usuario, motivo)
    return retiro


def _detalle_json(
    cuadre: CuadreCaja, ventas: list[Venta], devoluciones: list[Devolucion], retiros: list[Retiro]
) -> str:
    detalle = {
        "cuadre": cuadre.as_dict(),
        "ventas": [
            {
                "id": v.id,
                "numero_venta": v.numero_venta,
                "metodo_pago": v.metodo_pago,
                "total_venta": v.total_venta,
                "tipo_venta": v.tipo_venta,
                "pagos": [{"metodo": p.metodo, "monto": p.monto} for p in v.pagos],
            }
            for v in ventas
        ],
        "devoluciones": [
            {
                "numero_devolucion": d.numero_devolucion,
                "numero_venta": d.numero_venta,
                "metodo_pago_original": d.metodo_pago_original,
                "monto_a_devolver": d.monto_a_devolver,
            }
            for d in devoluciones
        ],
        "retiros": [
            {"monto": r.monto, "tipo": r.tipo, "motivo": r.motivo, "realizado_por": r.realizado_por}
            for r in retiros
        ],
    }
    return json.dumps(detalle, default=str)


def cerrar_caja(db: Session, fecha: date, usuario: Optional[str] = None) -> CierreCaja:
    if fecha > local_today():
        raise NegocioError("No se puede cerrar un dia futuro")
    _exigir_abierta(db, fecha)

    cuadre, ventas, devoluciones, retiros = calcular_dia(db, fecha)
    por_metodo = cuadre.por_metodo
    cierre = CierreCaja(
        fecha=fecha,
        dinero_inicial=cuadre.dinero_inicial,
        total_efectivo=por_metodo["efectivo"],
        total_yape=por_metodo["yape"],
        total_plin=por_metodo["plin"],
        total_tarjeta=por_metodo["tarjeta"],
        total_otros=por_metodo["otros"],
        total=cuadre.total,
        ganancia_bruta=cuadre.ganancia_bruta,
        ganancia_real=cuadre.ganancia_real,
        total_devuelto=cuadre.devoluciones.total_devuelto,
        total_retiros=cuadre.total_retiros,
        efectivo_final=cuadre.efectivo_fisico,
        digital_total=cuadre.digital,
        cantidad_ventas=cuadre.cantidad_ventas,
        cantidad_devoluciones=len(devoluciones),
        cantidad_retiros=len(retiros),
        detalle=_detalle_json(cuadre, ventas, devoluciones, retiros),
        cerrado_por=usuario,
        fecha_cierre=local_now_naive(),
    )
    db.add(cierre)
    try:
        db.flush()
    except IntegrityError:
        # otro cierre del mismo dia se inserto primero
        db.rollback()
        raise ConflictoError(f"La caja del {fecha:%d/%m/%Y} ya esta cerrada")
    logger.info("Caja del %s cerrada por %s: total %s, efectivo %s", fecha, usuario, cuadre.total, cuadre.efectivo_fisico)
    return cierre


def exigir_cierre(db: Session, fecha: date) -> CierreCaja:
    cierre = obtener_cierre(db, fecha)
    if cierre is None:
        raise NoEncontradoError(f"La caja del {fecha:%d/%m/%Y} no esta cerrada")
    return cierre


def detalle_ganancia_venta(db: Session, venta_id: int) -> dict:
    venta = obtener_venta(db, venta_id)
    venta_cuadre = venta_a_cuadre(venta)
    ganancia = ganancia_de_venta(venta_cuadre)
    devoluciones = (
        db.query(Devolucion)
        .options(selectinload(Devolucion.items))
        .filter(Devolucion.venta_id == venta.id, Devolucion.estado == "aprobada")
        .order_by(Devolucion.fecha_procesamiento, Devolucion.id)
        .all()
    )
    detalle = []
    afectada = Decimal("0")
    for devolucion in devoluciones:
        descontada = q2(ganancia_a_descontar(devolucion_a_cuadre(devolucion), venta_cuadre))
        afectada += descontada
        detalle.append(
            {
                "numero_devolucion": devolucion.numero_devolucion,
                "monto_devuelto": to_decimal(devolucion.monto_a_devolver),
                "ganancia_descontada": descontada,
            }
        )
    total = q2(ganancia.ganancia)
    return {
        "venta_id": venta.id,
        "numero_venta": venta.numero_venta,
        "total_venta": to_decimal(venta.total_venta),
        "ganancia_total": total,
        "metodo_calculo": ganancia.metodo_calculo,
        "ganancia_afectada_por_devoluciones": afectada,
        "ganancia_neta": max(Decimal("0"), total - afectada),
        "devoluciones": detalle,
    }
