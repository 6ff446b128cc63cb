"""Cuadre diario de caja.

Calculo puro sobre ventas, devoluciones y retiros ya cargados: no toca la
base de datos. El servicio de caja arma las estructuras de entrada a partir
de los registros ORM y este modulo devuelve los totales por metodo de pago,
la ganancia bruta y real del dia y el efectivo fisico esperado.
"""
import logging
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Optional

from ..core.utils import q2, to_decimal

logger = logging.getLogger(__name__)

# Margen asumido cuando una venta o item no tiene ganancia registrada.
MARGEN_ESTIMADO = Decimal("0.40")

METODOS_CAJA = ("efectivo", "yape", "plin", "tarjeta", "otros")
_ALIAS_METODO = {
    "efectivo": "efectivo",
    "yape": "yape",
    "plin": "plin",
    "tarjeta": "tarjeta",
    "tarjeta_credito": "tarjeta",
    "tarjeta_debito": "tarjeta",
}

CALCULO_REGISTRADO_VENTA = "registrada_venta"
CALCULO_REGISTRADO_ITEMS = "registrada_items"
CALCULO_ESTIMADO = "estimada"


def clasificar_metodo(metodo: Optional[str]) -> str:
    return _ALIAS_METODO.get((metodo or "").strip().lower(), "otros")


@dataclass
class PagoCuadre:
    metodo: str
    monto: Decimal


@dataclass
class ItemVentaCuadre:
    cantidad: int
    precio_venta_unitario: Decimal
    ganancia_total: Optional[Decimal] = None
    ganancia_unitaria: Optional[Decimal] = None


@dataclass
class VentaCuadre:
    numero_venta: str
    total_venta: Decimal
    metodo_pago: str = "efectivo"
    pagos: list[PagoCuadre] = field(default_factory=list)
    items: list[ItemVentaCuadre] = field(default_factory=list)
    ganancia_total_venta: Optional[Decimal] = None
    tipo_venta: str = "directa"
    id: Optional[int] = None


@dataclass
class ItemDevolucionCuadre:
    cantidad_a_devolver: int
    precio_venta_unitario: Decimal
    ganancia_devolucion: Optional[Decimal] = None
    ganancia_unitaria: Optional[Decimal] = None
    ganancia_total: Optional[Decimal] = None


@dataclass
class DevolucionCuadre:
    numero_venta: str
    monto_a_devolver: Decimal
    metodo_pago_original: str = "efectivo"
    estado: str = "aprobada"
    ganancia_real_afectada: Optional[Decimal] = None
    items: list[ItemDevolucionCuadre] = field(default_factory=list)
    numero_devolucion: Optional[str] = None


@dataclass
class RetiroCuadre:
    monto: Decimal
    tipo: str = "efectivo"


@dataclass
class GananciaVenta:
    numero_venta: str
    ganancia: Decimal
    metodo_calculo: str


@dataclass
class ResumenDevoluciones:
    total_devuelto: Decimal = Decimal("0")
    por_metodo: dict[str, Decimal] = field(default_factory=lambda: {m: Decimal("0") for m in METODOS_CAJA})
    del_mismo_dia: int = 0
    de_dias_anteriores: int = 0
    ganancia_real_descontada: Decimal = Decimal("0")


@dataclass
class CuadreCaja:
    dinero_inicial: Decimal
    por_metodo: dict[str, Decimal]
    total_ventas: Decimal
    total: Decimal
    ganancia_bruta: Decimal
    ganancia_real: Decimal
    devoluciones: ResumenDevoluciones
    retiros_por_metodo: dict[str, Decimal]
    total_retiros: Decimal
    efectivo_fisico: Decimal
    digital: Decimal
    cantidad_ventas: int
    ganancias: list[GananciaVenta]

    @property
    def retiros_efectivo(self) -> Decimal:
        return self.retiros_por_metodo["efectivo"]

    def as_dict(self) -> dict:
        data = asdict(self)
        data["retiros_efectivo"] = self.retiros_efectivo
        return data


def _estimar(monto: Decimal) -> Decimal:
    return monto * MARGEN_ESTIMADO


def _registrada(valor) -> Optional[Decimal]:
    """Ganancia guardada o ``None``; un cero cuenta como no registrado."""
    if valor is None:
        return None
    valor = to_decimal(valor)
    return valor if valor else None


def ganancia_de_venta(venta: VentaCuadre) -> GananciaVenta:
    """Ganancia de una venta: la registrada en la venta, la de sus items o el 40% estimado."""
    registrada = _registrada(venta.ganancia_total_venta)
    if registrada is not None:
        return GananciaVenta(venta.numero_venta, registrada, CALCULO_REGISTRADO_VENTA)
    if venta.items:
        total = Decimal("0")
        con_registro = False
        for item in venta.items:
            ganancia_total = _registrada(item.ganancia_total)
            ganancia_unitaria = _registrada(item.ganancia_unitaria)
            if ganancia_total is not None:
                total += ganancia_total
                con_registro = True
            elif ganancia_unitaria is not None:
                total += ganancia_unitaria * item.cantidad
                con_registro = True
            else:
                total += _estimar(to_decimal(item.precio_venta_unitario) * item.cantidad)
        metodo = CALCULO_REGISTRADO_ITEMS if con_registro else CALCULO_ESTIMADO
        return GananciaVenta(venta.numero_venta, total, metodo)
    return GananciaVenta(venta.numero_venta, _estimar(to_decimal(venta.total_venta)), CALCULO_ESTIMADO)


def ganancia_a_descontar(devolucion: DevolucionCuadre, venta_original: Optional[VentaCuadre]) -> Decimal:
    """Ganancia real que revierte una devolucion del mismo dia."""
    afectada = _registrada(devolucion.ganancia_real_afectada)
    if afectada is not None:
        return max(Decimal("0"), afectada)

    monto = to_decimal(devolucion.monto_a_devolver)
    if devolucion.items:
        total = Decimal("0")
        for item in devolucion.items:
            cantidad = item.cantidad_a_devolver
            ganancia_devolucion = _registrada(item.ganancia_devolucion)
            ganancia_unitaria = _registrada(item.ganancia_unitaria)
            ganancia_total = _registrada(item.ganancia_total)
            if ganancia_devolucion is not None:
                total += ganancia_devolucion
            elif ganancia_unitaria is not None:
                total += ganancia_unitaria * cantidad
            elif ganancia_total is not None:
                total += ganancia_total
            else:
                logger.warning(
                    "Item de devolucion sin ganancia registrada (venta %s), se estima",
                    devolucion.numero_venta,
                )
                total += _estimar(to_decimal(item.precio_venta_unitario) * cantidad)
        return max(Decimal("0"), total)

    if venta_original is not None:
        ganancia_venta = ganancia_de_venta(venta_original)
        total_venta = to_decimal(venta_original.total_venta)
        if ganancia_venta.metodo_calculo != CALCULO_ESTIMADO and total_venta > 0:
            return max(Decimal("0"), ganancia_venta.ganancia * monto / total_venta)
    return max(Decimal("0"), _estimar(monto))


def _distribuir_venta(venta: VentaCuadre, por_metodo: dict[str, Decimal]) -> None:
    total = q2(venta.total_venta)
    if not venta.pagos:
        por_metodo[clasificar_metodo(venta.metodo_pago)] += total
        return
    asignado = Decimal("0")
    for pago in venta.pagos:
        monto = q2(pago.monto)
        por_metodo[clasificar_metodo(pago.metodo)] += monto
        asignado += monto
    if asignado != total:
        logger.warning(
            "Pagos de la venta %s suman %s y el total es %s; la diferencia va a 'otros'",
            venta.numero_venta,
            asignado,
            total,
        )
        por_metodo["otros"] += total - asignado


def calcular_cuadre(
    ventas: list[VentaCuadre],
    devoluciones: list[DevolucionCuadre],
    retiros: list[RetiroCuadre],
    dinero_inicial: Decimal = Decimal("0"),
) -> CuadreCaja:
    por_metodo = {metodo: Decimal("0") for metodo in METODOS_CAJA}
    total_ventas = Decimal("0")
    ganancia_bruta = Decimal("0")
    ganancias: list[GananciaVenta] = []
    ventas_del_dia: dict[str, VentaCuadre] = {}

    for venta in ventas:
        ventas_del_dia[venta.numero_venta] = venta
        total_ventas += q2(venta.total_venta)
        _distribuir_venta(venta, por_metodo)
        ganancia = ganancia_de_venta(venta)
        ganancias.append(ganancia)
        ganancia_bruta += ganancia.ganancia

    resumen = ResumenDevoluciones()
    for devolucion in devoluciones:
        if devolucion.estado != "aprobada":
            continue
        monto = q2(devolucion.monto_a_devolver)
        resumen.total_devuelto += monto
        metodo = clasificar_metodo(devolucion.metodo_pago_original)
        resumen.por_metodo[metodo] += monto
        por_metodo[metodo] -= monto

        venta_original = ventas_del_dia.get(devolucion.numero_venta)
        if venta_original is None:
            # Venta de un dia anterior: solo sale dinero de caja, la ganancia ya se reporto ese dia.
            resumen.de_dias_anteriores += 1
            continue
        resumen.del_mismo_dia += 1
        resumen.ganancia_real_descontada += ganancia_a_descontar(devolucion, venta_original)

    retiros_por_metodo = {metodo: Decimal("0") for metodo in METODOS_CAJA}
    for retiro in retiros:
        retiros_por_metodo[clasificar_metodo(retiro.tipo)] += q2(retiro.monto)
    total_retiros = sum(retiros_por_metodo.values(), Decimal("0"))

    inicial = q2(dinero_inicial)
    efectivo_fisico = max(Decimal("0"), inicial + por_metodo["efectivo"] - retiros_por_metodo["efectivo"])
    digital = por_metodo["yape"] + por_metodo["plin"] + por_metodo["tarjeta"]

    resumen.ganancia_real_descontada = q2(resumen.ganancia_real_descontada)
    ganancia_bruta = q2(ganancia_bruta)
    return CuadreCaja(
        dinero_inicial=inicial,
        por_metodo=por_metodo,
        total_ventas=total_ventas,
        total=total_ventas - resumen.total_devuelto,
        ganancia_bruta=ganancia_bruta,
        ganancia_real=max(Decimal("0"), ganancia_bruta - resumen.ganancia_real_descontada),
        devoluciones=resumen,
        retiros_por_metodo=retiros_por_metodo,
        total_retiros=total_retiros,
        efectivo_fisico=efectivo_fisico,
        digital=digital,
        cantidad_ventas=len(ventas),
        ganancias=[GananciaVenta(g.numero_venta, q2(g.ganancia), g.metodo_calculo) for g in ganancias],
    )


def disponible_para_retiro(cuadre: CuadreCaja, tipo: str) -> Decimal:
    metodo = clasificar_metodo(tipo)
    if metodo == "efectivo":
        return cuadre.efectivo_fisico
    return max(Decimal("0"), cuadre.por_metodo[metodo] - cuadre.retiros_por_metodo[metodo])


def estado_devolucion_venta(total_venta: object, total_devuelto: object) -> str:
    total = to_decimal(total_venta)
    devuelto = to_decimal(total_devuelto)
    if devuelto <= 0:
        return "sin_devolucion"
    if total <= 0 or devuelto >= total:
        return "totalmente_devuelta"
    return "parcialmente_devuelta"
