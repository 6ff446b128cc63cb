"""Stock por lotes: consumo FIFO, reposicion, ingresos y salidas."""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.errors import ConflictoError, NegocioError, NoEncontradoError
from ..core.utils import generar_numero, local_now_naive, q2, to_decimal
from ..models.inventory import Ingreso, Lote, MovimientoLote, Producto, Proveedor, Salida, SalidaItem
from ..schemas.inventory import IngresoCreate, ProductoCreate, ProductoUpdate, SalidaCreate

logger = logging.getLogger(__name__)

LOTE_PENDIENTE = "pendiente"
LOTE_ACTIVO = "activo"
LOTE_AGOTADO = "agotado"


@dataclass
class ConsumoLote:
    lote: Lote
    cantidad: int
    precio_compra_unitario: Decimal


def obtener_producto(db: Session, producto_id: int, bloquear: bool = False) -> Producto:
    query = db.query(Producto).filter(Producto.id == producto_id)
    if bloquear:
        query = query.with_for_update()
    producto = query.first()
    if not producto:
        raise NoEncontradoError(f"Producto {producto_id} no encontrado")
    return producto


def lotes_disponibles(db: Session, producto_id: int, bloquear: bool = True) -> list[Lote]:
    query = (
        db.query(Lote)
        .filter(
            Lote.producto_id == producto_id,
            Lote.estado == LOTE_ACTIVO,
            Lote.stock_restante > 0,
        )
        .order_by(Lote.fecha_ingreso, Lote.id)
    )
    if bloquear:
        query = query.with_for_update()
    return query.all()


def recalcular_precio_compra(db: Session, producto: Producto) -> Decimal:
    """El precio de compra vigente es el del lote activo mas antiguo."""
    db.flush()
    lote = (
        db.query(Lote)
        .filter(
            Lote.producto_id == producto.id,
            Lote.estado == LOTE_ACTIVO,
            Lote.stock_restante > 0,
        )
        .order_by(Lote.fecha_ingreso, Lote.id)
        .first()
    )
    if lote is not None:
        producto.precio_compra_default = q2(lote.precio_compra_unitario)
    return to_decimal(producto.precio_compra_default)


def _movimiento(
    db: Session,
    lote: Lote,
    tipo: str,
    cantidad: int,
    empleado: Optional[str],
    referencias: dict,
) -> None:
    db.add(
        MovimientoLote(
            lote_id=lote.id,
            producto_id=lote.producto_id,
            tipo=tipo,
            cantidad=cantidad,
            stock_resultante=lote.stock_restante,
            precio_compra_unitario=lote.precio_compra_unitario,
            empleado=empleado,
            **referencias,
        )
    )


def consumir_fifo(
    db: Session,
    producto: Producto,
    cantidad: int,
    tipo: str,
    empleado: Optional[str] = None,
    **referencias,
) -> list[ConsumoLote]:
    """Descuenta ``cantidad`` del producto empezando por el lote mas antiguo.

    Lanza NegocioError sin tocar ningun lote si el stock no alcanza.
    """
    if cantidad <= 0:
        raise NegocioError("La cantidad debe ser mayor a cero")
    db.flush()
    lotes = [lote for lote in lotes_disponibles(db, producto.id) if lote.stock_restante > 0]
    disponible = sum(lote.stock_restante for lote in lotes)
    if disponible < cantidad:
        raise NegocioError(
            f"Stock insuficiente para {producto.nombre}. Disponible: {disponible}, solicitado: {cantidad}"
        )

    consumos: list[ConsumoLote] = []
    pendiente = cantidad
    for lote in lotes:
        if pendiente == 0:
            break
        tomar = min(pendiente, lote.stock_restante)
        lote.stock_restante -= tomar
        if lote.stock_restante == 0:
            lote.estado = LOTE_AGOTADO
        pendiente -= tomar
        if lote.precio_compra_unitario is None:
            logger.warning("Lote %s sin precio de compra", lote.numero_lote)
        consumos.append(ConsumoLote(lote, tomar, to_decimal(lote.precio_compra_unitario)))
        _movimiento(db, lote, tipo, -tomar, empleado, referencias)

    producto.stock_actual = max(0, (producto.stock_actual or 0) - cantidad)
    recalcular_precio_compra(db, producto)
    return consumos


def devolver_a_lote(
    db: Session,
    producto: Producto,
    lote: Optional[Lote],
    cantidad: int,
    tipo: str,
    empleado: Optional[str] = None,
    precio_compra_unitario: object = None,
    **referencias,
) -> None:
    """Repone stock en el lote de origen sin superar su cantidad original.

    Lo que el lote de origen no puede absorber va a otros lotes del producto
    con espacio (los mas recientes primero) y, si aun sobra, a un lote de ajuste.
    """
    if cantidad <= 0:
        return
    pendiente = cantidad
    candidatos: list[Lote] = []
    if lote is not None:
        candidatos.append(lote)
    otros = (
        db.query(Lote)
        .filter(
            Lote.producto_id == producto.id,
            Lote.estado.in_([LOTE_ACTIVO, LOTE_AGOTADO]),
            Lote.stock_restante < Lote.cantidad,
        )
        .order_by(Lote.fecha_ingreso.desc(), Lote.id.desc())
        .with_for_update()
        .all()
    )
    candidatos.extend(l for l in otros if lote is None or l.id != lote.id)

    for candidato in candidatos:
        if pendiente == 0:
            break
        espacio = (candidato.cantidad or 0) - (candidato.stock_restante or 0)
        if espacio <= 0:
            continue
        reponer = min(espacio, pendiente)
        candidato.stock_restante += reponer
        candidato.estado = LOTE_ACTIVO
        pendiente -= reponer
        _movimiento(db, candidato, tipo, reponer, empleado, referencias)

    if pendiente > 0:
        costo = precio_compra_unitario
        if costo is None and lote is not None:
            costo = lote.precio_compra_unitario
        ajuste = Lote(
            producto_id=producto.id,
            numero_lote=generar_numero(f"AJ{producto.id}"),
            cantidad=pendiente,
            stock_restante=pendiente,
            precio_compra_unitario=q2(costo if costo is not None else producto.precio_compra_default),
            estado=LOTE_ACTIVO,
        )
        db.add(ajuste)
        db.flush()
        logger.warning(
            "Reposicion de %s unidades de %s excede los lotes de origen; se crea lote %s",
            pendiente,
            producto.codigo_tienda,
            ajuste.numero_lote,
        )
        _movimiento(db, ajuste, tipo, pendiente, empleado, referencias)

    producto.stock_actual = (producto.stock_actual or 0) + cantidad
    recalcular_precio_compra(db, producto)


# ===========================
#         PRODUCTOS
# ===========================
def listar_productos(
    db: Session,
    search: Optional[str] = None,
    incluir_inactivos: bool = False,
    page: int = 1,
    limit: int = 50,
) -> list[Producto]:
    query = db.query(Producto)
    if not incluir_inactivos:
        query = query.filter(Producto.activo.is_(True))
    if search:
        patron = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Producto.nombre).like(patron),
                func.lower(Producto.codigo_tienda).like(patron),
                func.lower(Producto.codigo_proveedor).like(patron),
                func.lower(Producto.marca).like(patron),
            )
        )
    return query.order_by(Producto.nombre).offset((page - 1) * limit).limit(limit).all()


def productos_faltantes(db: Session) -> list[Producto]:
    return (
        db.query(Producto)
        .filter(Producto.activo.is_(True), Producto.stock_actual <= Producto.stock_referencial)
        .order_by(Producto.stock_actual, Producto.nombre)
        .all()
    )


def crear_producto(db: Session, payload: ProductoCreate, empleado: Optional[str] = None) -> Producto:
    exists = db.query(Producto).filter(Producto.codigo_tienda == payload.codigo_tienda).first()
    if exists:
        raise ConflictoError("Codigo de tienda ya existe")

    data = payload.model_dump(exclude={"stock_inicial"})
    producto = Producto(**data, stock_actual=0)
    db.add(producto)
    db.flush()

    if payload.stock_inicial > 0:
        lote = Lote(
            producto_id=producto.id,
            numero_lote=f"INI-{producto.codigo_tienda}",
            cantidad=payload.stock_inicial,
            stock_restante=payload.stock_inicial,
            precio_compra_unitario=q2(payload.precio_compra_default),
            estado=LOTE_ACTIVO,
        )
        db.add(lote)
        db.flush()
        producto.stock_actual = payload.stock_inicial
        _movimiento(db, lote, "inicial", payload.stock_inicial, empleado, {})
    logger.info("Producto %s creado", producto.codigo_tienda)
    return producto


def actualizar_producto(db: Session, producto_id: int, payload: ProductoUpdate) -> Producto:
    producto = obtener_producto(db, producto_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(producto, key, value)
    return producto


def desactivar_producto(db: Session, producto_id: int) -> Producto:
    producto = obtener_producto(db, producto_id)
    producto.activo = False
    return producto


def recalcular_todos(db: Session) -> int:
    productos = db.query(Producto).filter(Producto.activo.is_(True)).all()
    for producto in productos:
        recalcular_precio_compra(db, producto)
    return len(productos)


def lotes_de_producto(db: Session, producto_id: int) -> list[Lote]:
    obtener_producto(db, producto_id)
    return (
        db.query(Lote)
        .filter(Lote.producto_id == producto_id)
        .order_by(Lote.fecha_ingreso, Lote.id)
        .all()
    )


# ===========================
#         INGRESOS
# ===========================
def crear_ingreso(db: Session, payload: IngresoCreate, empleado: Optional[str] = None) -> Ingreso:
    if not payload.items:
        raise NegocioError("El ingreso debe tener al menos un producto")
    proveedor = db.query(Proveedor).filter(Proveedor.id == payload.proveedor_id).first()
    if not proveedor:
        raise NoEncontradoError("Proveedor no encontrado")

    numeros = [item.numero_lote.strip() for item in payload.items]
    if any(not numero for numero in numeros):
        raise NegocioError("Cada linea necesita numero de lote")
    if len(set(numeros)) != len(numeros):
        raise NegocioError("Numero de lote repetido en el ingreso")
    repetido = db.query(Lote.numero_lote).filter(Lote.numero_lote.in_(numeros)).first()
    if repetido:
        raise ConflictoError(f"El lote {repetido[0]} ya existe")

    ingreso = Ingreso(
        numero_boleta=payload.numero_boleta or generar_numero("ING"),
        proveedor_id=proveedor.id,
        observaciones=payload.observaciones,
        estado="pendiente",
        empleado=empleado,
    )
    costo_total = Decimal("0")
    for item, numero in zip(payload.items, numeros):
        obtener_producto(db, item.producto_id)
        costo = q2(item.precio_compra_unitario)
        costo_total += costo * item.cantidad
        ingreso.lotes.append(
            Lote(
                producto_id=item.producto_id,
                numero_lote=numero,
                cantidad=item.cantidad,
                stock_restante=item.cantidad,
                precio_compra_unitario=costo,
                fecha_vencimiento=item.fecha_vencimiento,
                estado=LOTE_PENDIENTE,
            )
        )
    ingreso.costo_total = q2(costo_total)
    db.add(ingreso)
    db.flush()
    return ingreso


def obtener_ingreso(db: Session, ingreso_id: int, bloquear: bool = False) -> Ingreso:
    query = db.query(Ingreso).filter(Ingreso.id == ingreso_id)
    if bloquear:
        query = query.with_for_update()
    ingreso = query.first()
    if not ingreso:
        raise NoEncontradoError("Ingreso no encontrado")
    return ingreso


def confirmar_ingreso(db: Session, ingreso_id: int, empleado: Optional[str] = None) -> Ingreso:
    ingreso = obtener_ingreso(db, ingreso_id, bloquear=True)
    if ingreso.estado == "recibido":
        raise ConflictoError("El ingreso ya fue confirmado")

    productos: dict[int, Producto] = {}
    for lote in ingreso.lotes:
        producto = productos.get(lote.producto_id) or obtener_producto(db, lote.producto_id, bloquear=True)
        productos[producto.id] = producto
        lote.estado = LOTE_ACTIVO
        lote.stock_restante = lote.cantidad
        lote.fecha_ingreso = local_now_naive()
        producto.stock_actual = (producto.stock_actual or 0) + lote.cantidad
        db.flush()
        _movimiento(db, lote, "ingreso", lote.cantidad, empleado, {})

    for producto in productos.values():
        recalcular_precio_compra(db, producto)

    ingreso.estado = "recibido"
    ingreso.fecha_confirmacion = local_now_naive()
    logger.info("Ingreso %s confirmado con %s lotes", ingreso.numero_boleta, len(ingreso.lotes))
    return ingreso


def eliminar_ingreso(db: Session, ingreso_id: int) -> None:
    ingreso = obtener_ingreso(db, ingreso_id, bloquear=True)
    if ingreso.estado != "pendiente":
        raise ConflictoError("Solo se pueden eliminar ingresos pendientes")
    db.delete(ingreso)


# ===========================
#          SALIDAS
# ===========================
def registrar_salida(db: Session, payload: SalidaCreate, empleado: Optional[str] = None) -> Salida:
    if not payload.items:
        raise NegocioError("La salida debe tener al menos un producto")
    if not payload.motivo.strip():
        raise NegocioError("El motivo es obligatorio")

    salida = Salida(
        numero_salida=generar_numero("SAL"),
        motivo=payload.motivo.strip(),
        observaciones=payload.observaciones,
        empleado=empleado,
    )
    db.add(salida)
    db.flush()

    costo_total = Decimal("0")
    for item in payload.items:
        producto = obtener_producto(db, item.producto_id, bloquear=True)
        consumos = consumir_fifo(db, producto, item.cantidad, "salida", empleado, salida_id=salida.id)
        for consumo in consumos:
            subtotal = q2(consumo.precio_compra_unitario * consumo.cantidad)
            costo_total += subtotal
            salida.items.append(
                SalidaItem(
                    producto_id=producto.id,
                    lote_id=consumo.lote.id,
                    nombre_producto=producto.nombre,
                    cantidad=consumo.cantidad,
                    precio_compra_unitario=q2(consumo.precio_compra_unitario),
                    subtotal=subtotal,
                )
            )
    salida.costo_total = q2(costo_total)
    logger.info("Salida %s registrada (%s)", salida.numero_salida, salida.motivo)
    return salida


def resumen_stock(db: Session, search: Optional[str] = None) -> list[dict]:
    productos = listar_productos(db, search=search, limit=10000)
    filas = (
        db.query(
            Lote.producto_id,
            func.count(Lote.id),
            func.coalesce(func.sum(Lote.stock_restante * Lote.precio_compra_unitario), 0),
        )
        .filter(Lote.estado == LOTE_ACTIVO, Lote.stock_restante > 0)
        .group_by(Lote.producto_id)
        .all()
    )
    por_producto = {producto_id: (cantidad, valor) for producto_id, cantidad, valor in filas}
    resumen = []
    for producto in productos:
        lotes_activos, valor = por_producto.get(producto.id, (0, 0))
        resumen.append(
            {
                "producto_id": producto.id,
                "codigo_tienda": producto.codigo_tienda,
                "nombre": producto.nombre,
                "marca": producto.marca,
                "stock_actual": producto.stock_actual or 0,
                "stock_referencial": producto.stock_referencial or 0,
                "lotes_activos": lotes_activos,
                "valor_inventario": float(q2(valor)),
                "bajo_stock": (producto.stock_actual or 0) <= (producto.stock_referencial or 0),
            }
        )
    return resumen
