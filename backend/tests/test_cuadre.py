from decimal import Decimal

import pytest

from motorep.services.cuadre import (
    CALCULO_ESTIMADO,
    CALCULO_REGISTRADO_ITEMS,
    CALCULO_REGISTRADO_VENTA,
    DevolucionCuadre,
    ItemDevolucionCuadre,
    ItemVentaCuadre,
    PagoCuadre,
    RetiroCuadre,
    VentaCuadre,
    calcular_cuadre,
    clasificar_metodo,
    disponible_para_retiro,
    estado_devolucion_venta,
    ganancia_a_descontar,
    ganancia_de_venta,
)

D = Decimal


def venta(numero, total, metodo="efectivo", ganancia=None, items=None, pagos=None, tipo="directa"):
    return VentaCuadre(
        numero_venta=numero,
        total_venta=D(total),
        metodo_pago=metodo,
        ganancia_total_venta=None if ganancia is None else D(ganancia),
        items=items or [],
        pagos=pagos or [],
        tipo_venta=tipo,
    )


def devolucion(numero_venta, monto, metodo="efectivo", ganancia=None, items=None, estado="aprobada"):
    return DevolucionCuadre(
        numero_venta=numero_venta,
        monto_a_devolver=D(monto),
        metodo_pago_original=metodo,
        ganancia_real_afectada=None if ganancia is None else D(ganancia),
        items=items or [],
        estado=estado,
    )


def test_ejemplo_caja_con_devolucion_del_mismo_dia():
    cuadre = calcular_cuadre(
        [venta("V-1", "50", ganancia="20")],
        [devolucion("V-1", "20", ganancia="8")],
        [],
        D("100"),
    )

    assert cuadre.por_metodo["efectivo"] == D("30.00")
    assert cuadre.efectivo_fisico == D("130.00")
    assert cuadre.ganancia_bruta == D("20.00")
    assert cuadre.ganancia_real == cuadre.ganancia_bruta - D("8")
    assert cuadre.devoluciones.del_mismo_dia == 1
    assert cuadre.total == D("30.00")


def test_sin_devoluciones_ganancia_real_igual_a_bruta():
    cuadre = calcular_cuadre(
        [venta("V-1", "80", ganancia="25"), venta("V-2", "40", metodo="yape")],
        [],
        [],
    )
    assert cuadre.ganancia_real == cuadre.ganancia_bruta
    assert cuadre.ganancia_bruta == D("41.00")


def test_devolucion_de_dia_anterior_no_afecta_ganancia():
    cuadre = calcular_cuadre(
        [venta("V-2", "100", ganancia="30")],
        [devolucion("V-ANTERIOR", "45", metodo="yape", ganancia="15")],
        [],
    )
    assert cuadre.ganancia_real == D("30.00")
    assert cuadre.total == D("55.00")
    assert cuadre.por_metodo["yape"] == D("-45.00")
    assert cuadre.devoluciones.de_dias_anteriores == 1
    assert cuadre.devoluciones.ganancia_real_descontada == D("0.00")


def test_buckets_suman_total_menos_devoluciones():
    ventas = [
        venta("V-1", "10.10", metodo="efectivo"),
        venta("V-2", "20.20", metodo="tarjeta_credito"),
        venta("V-3", "30.33", metodo="mixto", pagos=[PagoCuadre("yape", D("10")), PagoCuadre("plin", D("15"))]),
        venta("V-4", "5", metodo="transferencia"),
    ]
    devoluciones = [devolucion("V-3", "7.77", metodo="mixto"), devolucion("V-X", "1.01", metodo="tarjeta_debito")]
    cuadre = calcular_cuadre(ventas, devoluciones, [])

    assert sum(cuadre.por_metodo.values()) == cuadre.total
    assert cuadre.total == cuadre.total_ventas - cuadre.devoluciones.total_devuelto
    assert cuadre.por_metodo["tarjeta"] == D("19.19")
    # 5.33 no cubierto por los pagos de V-3, mas V-4, menos la devolucion mixta
    assert cuadre.por_metodo["otros"] == D("5.33") + D("5") - D("7.77")


def test_devoluciones_no_aprobadas_se_ignoran():
    cuadre = calcular_cuadre(
        [venta("V-1", "50", ganancia="20")],
        [devolucion("V-1", "20", estado="solicitada"), devolucion("V-1", "10", estado="rechazada")],
        [],
    )
    assert cuadre.devoluciones.total_devuelto == D("0")
    assert cuadre.ganancia_real == D("20.00")


def test_ganancia_real_nunca_negativa():
    cuadre = calcular_cuadre(
        [venta("V-1", "50", ganancia="5")],
        [devolucion("V-1", "50", ganancia="30")],
        [],
    )
    assert cuadre.ganancia_real == D("0")


def test_efectivo_fisico_nunca_negativo():
    cuadre = calcular_cuadre(
        [venta("V-1", "10")],
        [devolucion("V-0", "60")],
        [RetiroCuadre(D("5"), "efectivo")],
        D("20"),
    )
    assert cuadre.efectivo_fisico == D("0")


def test_retiros_reducen_efectivo_y_disponible_digital():
    cuadre = calcular_cuadre(
        [venta("V-1", "100"), venta("V-2", "60", metodo="yape")],
        [],
        [RetiroCuadre(D("30"), "efectivo"), RetiroCuadre(D("20"), "yape")],
        D("50"),
    )
    assert cuadre.efectivo_fisico == D("120.00")
    assert cuadre.retiros_efectivo == D("30.00")
    assert cuadre.total_retiros == D("50.00")
    assert disponible_para_retiro(cuadre, "efectivo") == D("120.00")
    assert disponible_para_retiro(cuadre, "yape") == D("40.00")
    assert disponible_para_retiro(cuadre, "plin") == D("0")


def test_ganancia_estimada_y_por_items():
    sin_items = ganancia_de_venta(venta("V-1", "100"))
    assert sin_items.ganancia == D("40.00")
    assert sin_items.metodo_calculo == CALCULO_ESTIMADO

    con_items = ganancia_de_venta(
        venta(
            "V-2",
            "70",
            items=[
                ItemVentaCuadre(cantidad=2, precio_venta_unitario=D("20"), ganancia_total=D("12")),
                ItemVentaCuadre(cantidad=1, precio_venta_unitario=D("30")),
            ],
        )
    )
    assert con_items.ganancia == D("24.00")
    assert con_items.metodo_calculo == CALCULO_REGISTRADO_ITEMS

    registrada_en_cero = ganancia_de_venta(venta("V-3", "70", ganancia="0"))
    assert registrada_en_cero.ganancia == D("28.0")
    assert registrada_en_cero.metodo_calculo == CALCULO_ESTIMADO


def test_ganancia_cero_se_trata_como_no_registrada():
    item_en_cero = ItemVentaCuadre(cantidad=1, precio_venta_unitario=D("50"), ganancia_total=D("0"))
    cuadre = calcular_cuadre([venta("V-1", "50", ganancia="0", items=[item_en_cero])], [], [])
    assert cuadre.ganancia_bruta == D("20.00")
    assert cuadre.ganancias[0].metodo_calculo == CALCULO_ESTIMADO

    dev = devolucion("V-1", "20", ganancia="0", items=[ItemDevolucionCuadre(2, D("10"), ganancia_devolucion=D("0"))])
    assert ganancia_a_descontar(dev, venta("V-1", "50", ganancia="20")) == D("8.0")


def test_abono_cuenta_su_ganancia():
    cuadre = calcular_cuadre([venta("AB-1", "200", ganancia="80", tipo="abono")], [], [])
    assert cuadre.ganancia_bruta == D("80.00")
    assert cuadre.por_metodo["efectivo"] == D("200.00")


@pytest.mark.parametrize(
    "items, esperado",
    [
        ([ItemDevolucionCuadre(2, D("10"), ganancia_devolucion=D("7"))], D("7")),
        ([ItemDevolucionCuadre(2, D("10"), ganancia_unitaria=D("3"))], D("6")),
        ([ItemDevolucionCuadre(2, D("10"), ganancia_total=D("5"))], D("5")),
        ([ItemDevolucionCuadre(2, D("10"))], D("8")),
    ],
)
def test_prioridad_ganancia_por_items(items, esperado):
    dev = devolucion("V-1", "20", items=items)
    assert ganancia_a_descontar(dev, venta("V-1", "50", ganancia="20")) == esperado


def test_ganancia_afectada_registrada_tiene_prioridad():
    dev = devolucion("V-1", "20", ganancia="3", items=[ItemDevolucionCuadre(2, D("10"), ganancia_devolucion=D("7"))])
    assert ganancia_a_descontar(dev, venta("V-1", "50", ganancia="20")) == D("3")


def test_devolucion_sin_items_proporcional_o_estimada():
    dev = devolucion("V-1", "25")
    assert ganancia_a_descontar(dev, venta("V-1", "100", ganancia="30")) == D("7.5")
    assert ganancia_a_descontar(dev, venta("V-1", "100")) == D("10.0")


def test_clasificar_metodo():
    assert clasificar_metodo("Tarjeta_Debito") == "tarjeta"
    assert clasificar_metodo("mixto") == "otros"
    assert clasificar_metodo(None) == "otros"


def test_estado_devolucion_venta():
    assert estado_devolucion_venta("100", "0") == "sin_devolucion"
    assert estado_devolucion_venta("100", "40") == "parcialmente_devuelta"
    assert estado_devolucion_venta("100", "100") == "totalmente_devuelta"
