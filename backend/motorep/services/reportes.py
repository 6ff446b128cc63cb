import io
import logging
from datetime import date
from typing import Optional

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font
from sqlalchemy.orm import Session

from ..core.errors import NegocioError
from ..core.utils import format_soles, to_decimal
from ..models.inventory import Producto
from ..models.sales import Venta
from ..schemas.inventory import ProductoCreate
from . import inventario

logger = logging.getLogger(__name__)

PRODUCTO_COLUMNAS = [
    ("codigo_tienda", "Codigo"),
    ("codigo_proveedor", "Codigo proveedor"),
    ("nombre", "Nombre"),
    ("marca", "Marca"),
    ("medida", "Medida"),
    ("color", "Color"),
    ("ubicacion", "Ubicacion"),
    ("precio_venta_default", "Precio venta"),
    ("precio_venta_minimo", "Precio minimo"),
    ("precio_compra_default", "Precio compra"),
    ("stock_actual", "Stock"),
    ("stock_referencial", "Stock referencial"),
]


def _bold_header(ws, headers: list[str]) -> None:
    ws.append(headers)
    header_row = ws.max_row
    for col in range(1, len(headers) + 1):
        cell = ws.cell(row=header_row, column=col)
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center")


def _workbook_bytes(wb: Workbook) -> bytes:
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def exportar_productos(db: Session) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Productos"
    _bold_header(ws, [label for _, label in PRODUCTO_COLUMNAS])
    for producto in db.query(Producto).filter(Producto.activo.is_(True)).order_by(Producto.nombre).all():
        fila = []
        for key, _ in PRODUCTO_COLUMNAS:
            value = getattr(producto, key)
            if key.startswith("precio"):
                value = float(to_decimal(value))
            fila.append(value)
        ws.append(fila)
    return _workbook_bytes(wb)


def importar_productos(db: Session, content: bytes, empleado: Optional[str] = None) -> dict:
    """Crea o actualiza productos desde un Excel con la misma cabecera que la exportacion."""
    wb = load_workbook(io.BytesIO(content), data_only=True)
    ws = wb.active
    header_row = [str(cell.value).strip().lower() if cell.value is not None else "" for cell in ws[1]]
    etiquetas = {label.lower(): key for key, label in PRODUCTO_COLUMNAS}
    header_map = {}
    for idx, name in enumerate(header_row):
        key = etiquetas.get(name, name)
        if key:
            header_map[key] = idx
    if "codigo_tienda" not in header_map or "nombre" not in header_map:
        raise NegocioError("Columnas requeridas: Codigo y Nombre")

    creados = actualizados = 0
    errores: list[str] = []
    for numero, row in enumerate(ws.iter_rows(min_row=2, values_only=True), start=2):
        def valor(key: str):
            idx = header_map.get(key)
            return row[idx] if idx is not None and idx < len(row) else None

        codigo = str(valor("codigo_tienda") or "").strip()
        nombre = str(valor("nombre") or "").strip()
        if not codigo and not nombre:
            continue
        if not codigo or not nombre:
            errores.append(f"Fila {numero}: codigo y nombre son obligatorios")
            continue

        data = {"codigo_tienda": codigo, "nombre": nombre}
        for key in ("codigo_proveedor", "marca", "medida", "color", "ubicacion"):
            if valor(key) is not None:
                data[key] = str(valor(key)).strip()
        for key in ("precio_venta_default", "precio_venta_minimo", "precio_compra_default"):
            if valor(key) is not None:
                data[key] = float(to_decimal(valor(key)))
        if valor("stock_referencial") is not None:
            data["stock_referencial"] = int(to_decimal(valor("stock_referencial")))

        producto = db.query(Producto).filter(Producto.codigo_tienda == codigo).first()
        if producto:
            data.pop("precio_compra_default", None)
            for key, value in data.items():
                setattr(producto, key, value)
            actualizados += 1
            continue
        stock = int(to_decimal(valor("stock_actual")))
        try:
            inventario.crear_producto(db, ProductoCreate(**data, stock_inicial=max(0, stock)), empleado)
        except ValueError as exc:
            errores.append(f"Fila {numero}: {exc}")
            continue
        creados += 1

    logger.info("Importacion de productos: %s creados, %s actualizados, %s errores", creados, actualizados, len(errores))
    return {"creados": creados, "actualizados": actualizados, "errores": errores}


def exportar_ventas(ventas: list[Venta], desde: date, hasta: date) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Ventas"
    ws["A1"] = "Reporte de ventas"
    ws["A2"] = f"Rango: {desde.strftime('%d/%m/%Y')} - {hasta.strftime('%d/%m/%Y')}"
    ws["A1"].font = Font(bold=True, size=13)
    ws["A2"].font = Font(size=10)
    ws.append([])
    _bold_header(
        ws,
        ["Fecha", "Numero", "Cliente", "Tipo", "Metodo", "Estado", "Total", "Ganancia", "Devuelto"],
    )
    total = ganancia = 0.0
    for venta in ventas:
        cliente = venta.cliente.nombre_completo if venta.cliente else "-"
        monto = float(to_decimal(venta.total_venta))
        utilidad = float(to_decimal(venta.ganancia_total_venta))
        if venta.estado == "completada":
            total += monto
            ganancia += utilidad
        ws.append(
            [
                venta.fecha_venta.strftime("%d/%m/%Y %H:%M"),
                venta.numero_venta,
                cliente,
                venta.tipo_venta,
                venta.metodo_pago,
                venta.estado,
                monto,
                utilidad,
                float(to_decimal(venta.monto_devuelto)),
            ]
        )
    ws.append(["TOTAL", "", "", "", "", "", total, ganancia, ""])
    return _workbook_bytes(wb)


def cierre_pdf(fecha: date, resumen: dict) -> bytes:
    from reportlab.lib.pagesizes import A4
    from reportlab.pdfgen import canvas

    buffer = io.BytesIO()
    page_w, page_h = A4
    margin = 40
    c = canvas.Canvas(buffer, pagesize=A4)
    y = page_h - margin

    c.setFont("Helvetica-Bold", 14)
    c.drawString(margin, y, f"Cierre de caja {fecha.strftime('%d/%m/%Y')}")
    y -= 16
    c.setFont("Helvetica", 9)
    c.drawString(margin, y, f"Estado: {resumen.get('estado', 'abierta')}")
    y -= 8
    c.line(margin, y, page_w - margin, y)
    y -= 20

    def fila(label: str, value: object, bold: bool = False) -> None:
        nonlocal y
        c.setFont("Helvetica-Bold" if bold else "Helvetica", 10)
        c.drawString(margin, y, label)
        c.drawRightString(page_w - margin, y, format_soles(value))
        y -= 15

    fila("Dinero inicial", resumen["dinero_inicial"])
    fila(f"Ventas ({resumen['cantidad_ventas']})", resumen["total_ventas"])
    fila("Devoluciones", resumen["devoluciones"]["total_devuelto"])
    fila("Total neto", resumen["total"], bold=True)
    y -= 6
    c.setFont("Helvetica-Bold", 11)
    c.drawString(margin, y, "Por metodo de pago")
    y -= 16
    for metodo, monto in resumen["por_metodo"].items():
        retirado = resumen["retiros_por_metodo"].get(metodo, 0)
        c.setFont("Helvetica", 10)
        c.drawString(margin + 10, y, metodo.capitalize())
        c.drawRightString(page_w - margin - 120, y, format_soles(monto))
        c.drawRightString(page_w - margin, y, f"Retiros {format_soles(retirado)}")
        y -= 15
    y -= 6
    fila("Total retiros", resumen["total_retiros"])
    fila("Efectivo en caja", resumen["efectivo_fisico"], bold=True)
    fila("Digital", resumen["digital"])
    y -= 6
    fila("Ganancia bruta", resumen["ganancia_bruta"])
    fila("Descontado por devoluciones", resumen["devoluciones"]["ganancia_real_descontada"])
    fila("Ganancia real", resumen["ganancia_real"], bold=True)

    ganancias = resumen.get("ganancias") or []
    if ganancias:
        y -= 10
        c.setFont("Helvetica-Bold", 11)
        c.drawString(margin, y, "Detalle de ganancia por venta")
        y -= 16
        for item in ganancias:
            if y < margin + 20:
                c.showPage()
                y = page_h - margin
            c.setFont("Helvetica", 9)
            c.drawString(margin + 10, y, item["numero_venta"])
            c.drawString(margin + 200, y, item["metodo_calculo"])
            c.drawRightString(page_w - margin, y, format_soles(item["ganancia"]))
            y -= 13

    c.showPage()
    c.save()
    return buffer.getvalue()
