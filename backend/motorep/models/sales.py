from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.utils import local_now_naive
from ..database import Base


class Cliente(Base):
    __tablename__ = "clientes"

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(120), nullable=False)
    apellido = Column(String(120), nullable=True)
    dni = Column(String(20), unique=True, nullable=True)
    telefono = Column(String(40), nullable=True)
    email = Column(String(120), nullable=True)
    direccion = Column(String(200), nullable=True)
    tiene_credito = Column(Boolean, default=False)
    monto_credito_actual = Column(Numeric(14, 2), default=0)
    created_at = Column(DateTime, server_default=func.now())

    @property
    def nombre_completo(self) -> str:
        return " ".join(part for part in (self.nombre, self.apellido) if part)


class Empleado(Base):
    __tablename__ = "empleados"

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(120), nullable=False)
    apellido = Column(String(120), nullable=True)
    dni = Column(String(20), unique=True, nullable=True)
    puesto = Column(String(80), nullable=True)
    telefono = Column(String(40), nullable=True)
    email = Column(String(120), nullable=True)
    activo = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())


class Venta(Base):
    __tablename__ = "ventas"

    id = Column(Integer, primary_key=True, index=True)
    numero_venta = Column(String(40), unique=True, nullable=False)
    cliente_id = Column(Integer, ForeignKey("clientes.id"), nullable=True)
    empleado_id = Column(Integer, ForeignKey("empleados.id"), nullable=True)
    usuario_registro = Column(String(120), nullable=True)
    fecha_venta = Column(DateTime, default=local_now_naive, nullable=False, index=True)
    metodo_pago = Column(String(30), nullable=False, default="efectivo")
    total_venta = Column(Numeric(14, 2), default=0)
    ganancia_total_venta = Column(Numeric(14, 2), nullable=True)
    tipo_venta = Column(String(20), nullable=False, default="directa")
    estado = Column(String(20), nullable=False, default="completada")
    observaciones = Column(String(400), nullable=True)
    estado_devolucion = Column(String(30), nullable=False, default="sin_devolucion")
    monto_devuelto = Column(Numeric(14, 2), default=0)
    anulada_por = Column(String(120), nullable=True)
    anulada_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    cliente = relationship("Cliente")
    empleado = relationship("Empleado")
    items = relationship("VentaItem", back_populates="venta", cascade="all, delete-orphan")
    pagos = relationship("VentaPago", back_populates="venta", cascade="all, delete-orphan")


class VentaItem(Base):
    __tablename__ = "items_venta"

    id = Column(Integer, primary_key=True, index=True)
    venta_id = Column(Integer, ForeignKey("ventas.id"), nullable=False, index=True)
    producto_id = Column(Integer, ForeignKey("productos.id"), nullable=True)
    lote_id = Column(Integer, ForeignKey("lotes.id"), nullable=True)
    nombre_producto = Column(String(200), nullable=False)
    cantidad = Column(Integer, nullable=False, default=0)
    precio_venta_unitario = Column(Numeric(12, 2), default=0)
    precio_compra_unitario = Column(Numeric(12, 2), nullable=True)
    subtotal = Column(Numeric(14, 2), default=0)
    ganancia_unitaria = Column(Numeric(12, 2), nullable=True)
    ganancia_total = Column(Numeric(14, 2), nullable=True)

    venta = relationship("Venta", back_populates="items")
    producto = relationship("Producto")
    lote = relationship("Lote")


class VentaPago(Base):
    __tablename__ = "pagos_venta"

    id = Column(Integer, primary_key=True, index=True)
    venta_id = Column(Integer, ForeignKey("ventas.id"), nullable=False, index=True)
    metodo = Column(String(30), nullable=False)
    monto = Column(Numeric(14, 2), default=0)

    venta = relationship("Venta", back_populates="pagos")


class Cotizacion(Base):
    __tablename__ = "cotizaciones"

    id = Column(Integer, primary_key=True, index=True)
    numero_cotizacion = Column(String(40), unique=True, nullable=False)
    cliente_id = Column(Integer, ForeignKey("clientes.id"), nullable=True)
    empleado_id = Column(Integer, ForeignKey("empleados.id"), nullable=True)
    placa_moto = Column(String(20), nullable=True)
    metodo_pago = Column(String(30), nullable=False, default="efectivo")
    observaciones = Column(String(400), nullable=True)
    total = Column(Numeric(14, 2), default=0)
    estado = Column(String(20), nullable=False, default="pendiente")
    venta_id = Column(Integer, ForeignKey("ventas.id"), nullable=True)
    usuario_registro = Column(String(120), nullable=True)
    fecha = Column(DateTime, default=local_now_naive, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    cliente = relationship("Cliente")
    empleado = relationship("Empleado")
    venta = relationship("Venta")
    items = relationship("CotizacionItem", back_populates="cotizacion", cascade="all, delete-orphan")


class CotizacionItem(Base):
    __tablename__ = "items_cotizacion"

    id = Column(Integer, primary_key=True, index=True)
    cotizacion_id = Column(Integer, ForeignKey("cotizaciones.id"), nullable=False, index=True)
    producto_id = Column(Integer, ForeignKey("productos.id"), nullable=False)
    nombre_producto = Column(String(200), nullable=False)
    cantidad = Column(Integer, nullable=False, default=1)
    precio_venta_unitario = Column(Numeric(12, 2), default=0)
    subtotal = Column(Numeric(14, 2), default=0)

    cotizacion = relationship("Cotizacion", back_populates="items")
    producto = relationship("Producto")


class Credito(Base):
    __tablename__ = "creditos"

    id = Column(Integer, primary_key=True, index=True)
    numero_credito = Column(String(40), unique=True, nullable=False)
    cliente_id = Column(Integer, ForeignKey("clientes.id"), nullable=False, index=True)
    estado = Column(String(20), nullable=False, default="activo")
    total = Column(Numeric(14, 2), default=0)
    ganancia_total = Column(Numeric(14, 2), default=0)
    observaciones = Column(String(400), nullable=True)
    fecha_credito = Column(DateTime, default=local_now_naive, nullable=False)
    fecha_vencimiento = Column(Date, nullable=True)
    fecha_pago = Column(DateTime, nullable=True)
    usuario_registro = Column(String(120), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    cliente = relationship("Cliente")
    items = relationship("CreditoItem", back_populates="credito", cascade="all, delete-orphan")


class CreditoItem(Base):
    __tablename__ = "items_credito"

    id = Column(Integer, primary_key=True, index=True)
    credito_id = Column(Integer, ForeignKey("creditos.id"), nullable=False, index=True)
    producto_id = Column(Integer, ForeignKey("productos.id"), nullable=False)
    lote_id = Column(Integer, ForeignKey("lotes.id"), nullable=True)
    nombre_producto = Column(String(200), nullable=False)
    cantidad = Column(Integer, nullable=False, default=1)
    precio_venta_unitario = Column(Numeric(12, 2), default=0)
    precio_compra_unitario = Column(Numeric(12, 2), default=0)
    subtotal = Column(Numeric(14, 2), default=0)
    ganancia_total = Column(Numeric(14, 2), default=0)

    credito = relationship("Credito", back_populates="items")
    producto = relationship("Producto")


class Abono(Base):
    __tablename__ = "abonos"

    id = Column(Integer, primary_key=True, index=True)
    cliente_id = Column(Integer, ForeignKey("clientes.id"), nullable=False, index=True)
    venta_id = Column(Integer, ForeignKey("ventas.id"), nullable=True)
    monto = Column(Numeric(14, 2), nullable=False)
    metodo_pago = Column(String(30), nullable=False, default="efectivo")
    descripcion = Column(String(300), nullable=True)
    saldo_anterior = Column(Numeric(14, 2), default=0)
    estado = Column(String(20), nullable=False, default="activo")
    fecha = Column(DateTime, default=local_now_naive, nullable=False)
    usuario_registro = Column(String(120), nullable=True)

    cliente = relationship("Cliente")
    venta = relationship("Venta")


class Devolucion(Base):
    __tablename__ = "devoluciones"

    id = Column(Integer, primary_key=True, index=True)
    numero_devolucion = Column(String(40), unique=True, nullable=False)
    venta_id = Column(Integer, ForeignKey("ventas.id"), nullable=False, index=True)
    numero_venta = Column(String(40), nullable=False)
    cliente_id = Column(Integer, ForeignKey("clientes.id"), nullable=True)
    metodo_pago_original = Column(String(30), nullable=False, default="efectivo")
    motivo = Column(String(60), nullable=False)
    descripcion_motivo = Column(String(400), nullable=True)
    observaciones = Column(String(400), nullable=True)
    monto_a_devolver = Column(Numeric(14, 2), default=0)
    ganancia_real_afectada = Column(Numeric(14, 2), nullable=True)
    estado = Column(String(20), nullable=False, default="solicitada")
    motivo_rechazo = Column(String(300), nullable=True)
    fecha_solicitud = Column(DateTime, default=local_now_naive, nullable=False)
    fecha_procesamiento = Column(DateTime, nullable=True, index=True)
    solicitado_por = Column(String(120), nullable=True)
    procesado_por = Column(String(120), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    venta = relationship("Venta")
    cliente = relationship("Cliente")
    items = relationship("DevolucionItem", back_populates="devolucion", cascade="all, delete-orphan")


class DevolucionItem(Base):
    __tablename__ = "items_devolucion"

    id = Column(Integer, primary_key=True, index=True)
    devolucion_id = Column(Integer, ForeignKey("devoluciones.id"), nullable=False, index=True)
    venta_item_id = Column(Integer, ForeignKey("items_venta.id"), nullable=True)
    producto_id = Column(Integer, ForeignKey("productos.id"), nullable=True)
    nombre_producto = Column(String(200), nullable=False)
    cantidad_original = Column(Integer, nullable=False, default=0)
    cantidad_a_devolver = Column(Integer, nullable=False, default=0)
    precio_venta_unitario = Column(Numeric(12, 2), default=0)
    monto_devolucion = Column(Numeric(14, 2), default=0)
    ganancia_unitaria = Column(Numeric(12, 2), nullable=True)
    ganancia_total = Column(Numeric(14, 2), nullable=True)
    ganancia_devolucion = Column(Numeric(14, 2), nullable=True)
    es_estimacion = Column(Boolean, default=False)

    devolucion = relationship("Devolucion", back_populates="items")
    venta_item = relationship("VentaItem")


class Retiro(Base):
    __tablename__ = "retiros"

    id = Column(Integer, primary_key=True, index=True)
    fecha = Column(Date, nullable=False, index=True)
    monto = Column(Numeric(14, 2), nullable=False)
    tipo = Column(String(20), nullable=False, default="efectivo")
    motivo = Column(String(300), nullable=False)
    realizado_por = Column(String(120), nullable=True)
    created_at = Column(DateTime, default=local_now_naive, nullable=False)


class DineroInicial(Base):
    __tablename__ = "dinero_inicial"

    id = Column(Integer, primary_key=True, index=True)
    fecha = Column(Date, nullable=False, unique=True)
    monto = Column(Numeric(14, 2), nullable=False, default=0)
    establecido_por = Column(String(120), nullable=True)
    updated_at = Column(DateTime, default=local_now_naive, onupdate=local_now_naive)


class CierreCaja(Base):
    __tablename__ = "cierres_caja"

    id = Column(Integer, primary_key=True, index=True)
    fecha = Column(Date, nullable=False, unique=True)
    dinero_inicial = Column(Numeric(14, 2), default=0)
    total_efectivo = Column(Numeric(14, 2), default=0)
    total_yape = Column(Numeric(14, 2), default=0)
    total_plin = Column(Numeric(14, 2), default=0)
    total_tarjeta = Column(Numeric(14, 2), default=0)
    total_otros = Column(Numeric(14, 2), default=0)
    total = Column(Numeric(14, 2), default=0)
    ganancia_bruta = Column(Numeric(14, 2), default=0)
    ganancia_real = Column(Numeric(14, 2), default=0)
    total_devuelto = Column(Numeric(14, 2), default=0)
    total_retiros = Column(Numeric(14, 2), default=0)
    efectivo_final = Column(Numeric(14, 2), default=0)
    digital_total = Column(Numeric(14, 2), default=0)
    cantidad_ventas = Column(Integer, default=0)
    cantidad_devoluciones = Column(Integer, default=0)
    cantidad_retiros = Column(Integer, default=0)
    detalle = Column(Text, nullable=True)
    cerrado_por = Column(String(120), nullable=True)
    fecha_cierre = Column(DateTime, default=local_now_naive, nullable=False)
