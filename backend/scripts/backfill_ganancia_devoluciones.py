#!/usr/bin/env python
from __future__ import annotations

import argparse
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from sqlalchemy import or_

from motorep.core.utils import q2, to_decimal
from motorep.database import get_session_local
from motorep.models.sales import Devolucion
from motorep.services.caja import devolucion_a_cuadre, venta_a_cuadre
from motorep.services.cuadre import MARGEN_ESTIMADO, ganancia_a_descontar
from motorep.services.devoluciones import ganancia_item_devuelto


def run(dry_run: bool) -> None:
    session_local = get_session_local()
    db = session_local()
    try:
        devoluciones = (
            db.query(Devolucion)
            .filter(or_(Devolucion.ganancia_real_afectada.is_(None), Devolucion.ganancia_real_afectada == 0))
            .order_by(Devolucion.id.asc())
            .all()
        )
        if not devoluciones:
            print("Todas las devoluciones tienen ganancia afectada registrada.")
            return

        items_actualizados = 0
        estimadas = 0
        for devolucion in devoluciones:
            for item in devolucion.items:
                if item.ganancia_devolucion:
                    continue
                if item.venta_item is not None:
                    ganancia, estimada = ganancia_item_devuelto(item.venta_item, item.cantidad_a_devolver)
                elif item.ganancia_unitaria:
                    ganancia, estimada = q2(to_decimal(item.ganancia_unitaria) * item.cantidad_a_devolver), False
                else:
                    precio = to_decimal(item.precio_venta_unitario)
                    ganancia, estimada = q2(precio * item.cantidad_a_devolver * MARGEN_ESTIMADO), True
                item.ganancia_devolucion = ganancia
                item.es_estimacion = estimada
                items_actualizados += 1
                estimadas += int(estimada)

            venta = venta_a_cuadre(devolucion.venta) if devolucion.venta is not None else None
            devolucion.ganancia_real_afectada = q2(ganancia_a_descontar(devolucion_a_cuadre(devolucion), venta))
            print(
                f"{devolucion.numero_devolucion} ({devolucion.numero_venta}): "
                f"ganancia afectada {devolucion.ganancia_real_afectada}"
            )

        if dry_run:
            db.rollback()
            print("[DRY RUN] Cambios calculados pero no aplicados.")
        else:
            db.commit()
            print("Correccion aplicada.")
        print(f"Devoluciones actualizadas: {len(devoluciones)}")
        print(f"Items actualizados: {items_actualizados} ({estimadas} estimados al 40%)")
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Calcula la ganancia afectada de devoluciones registradas sin ella.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Solo mostrar resultados, sin guardar cambios")
    args = parser.parse_args()
    run(dry_run=args.dry_run)


if __name__ == "__main__":
    main()
