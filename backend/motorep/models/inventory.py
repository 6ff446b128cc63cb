from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.utils import local_now_naive
from ..database import Base


class Proveedor(Base):
    __tablename__ = "proveedores"

    id = Column(Integer, primary_key=True, index=True)
    nombre_empresa = Column(String(160), unique=True, nullable=False)
    ruc = Column(String(20), nullable=True)
    contacto = Column(String(120), nullable=True)
    telefono = Column(String(40), nullable=True)
    email = Column(String(120), nullable=True)
    direccion = Column(String(200), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    ingresos = relationship("Ingreso", back_populates="proveedor")


class Producto(Base):
    __tablename__ = "productos"

    id = Column(Integer, primary_key=True, index=True)
    codigo_tienda = Column(String(60), unique=True, nullable=False)
    codigo_proveedor = Column(String(60), nullable=True)
    nombre = Column(String(200), nullable=False, index=True)
    marca = Column(String(80), nullable=True)
    medida = Column(String(80), nullable=True)
    color = Column(String(40), nullable=True)
    descripcion = Column(Text, nullable=True)
    ubicacion = Column(String(80), nullable=True)
    precio_venta_default = Column(Numeric(12, 2), default=0)
    precio_venta_minimo = Column(Numeric(12, 2), default=0)
    precio_compra_default = Column(Numeric(12, 2), default=0)
    stock_actual = Column(Integer, default=0, nullable=False)
    stock_referencial = Column(Integer, default=0, nullable=False)
    imagen_url = Column(String(300), nullable=True)
    activo = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    lotes = relationship("Lote", back_populates="producto", order_by="Lote.fecha_ingreso")


class Ingreso(Base):
    __tablename__ = "ingresos"

    id = Column(Integer, primary_key=True, index=True)
    numero_boleta = Column(String(40), nullable=True)
    proveedor_id = Column(Integer, ForeignKey("proveedores.id"), nullable=False)
    observaciones = Column(String(400), nullable=True)
    costo_total = Column(Numeric(14, 2), default=0)
    estado = Column(String(20), nullable=False, default="pendiente")
    fecha_ingreso = Column(DateTime, default=local_now_naive, nullable=False)
    fecha_confirmacion = Column(DateTime, nullable=True)
    empleado = Column(String(120), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    proveedor = relationship("Proveedor", back_populates="ingresos")
    lotes = relationship("Lote", back_populates="ingreso", cascade="all, delete-orphan")


class Lote(Base):
    __tablename__ = "lotes"

    id = Column(Integer, primary_key=True, index=True)
    ingreso_id = Column(Integer, ForeignKey("ingresos.id"), nullable=True)
    producto_id = Column(Integer, ForeignKey("productos.id"), nullable=False, index=True)
    numero_lote = Column(String(60), unique=True, nullable=False)
    cantidad = Column(Integer, nullable=False, default=0)
    stock_restante = Column(Integer, nullable=False, default=0)
    precio_compra_unitario = Column(Numeric(12, 2), default=0)
    fecha_ingreso = Column(DateTime, default=local_now_naive, nullable=False)
    fecha_vencimiento = Column(Date, nullable=True)
    estado = Column(String(20), nullable=False, default="pendiente")
    created_at = Column(DateTime, server_default=func.now())

    ingreso = relationship("Ingreso", back_populates="lotes")
    producto = relationship("Producto", back_populates="lotes")


class MovimientoLote(Base):
    __tablename__ = "movimientos_lotes"

    id = Column(Integer, primary_key=True, index=True)
    lote_id = Column(Integer, ForeignKey("lotes.id"), nullable=False, index=True)
    producto_id = Column(Integer, ForeignKey("productos.id"), nullable=False)
    tipo = Column(String(30), nullable=False)
    cantidad = Column(Integer, nullable=False)
    stock_resultante = Column(Integer, nullable=False)
    precio_compra_unitario = Column(Numeric(12, 2), default=0)
    venta_id = Column(Integer, ForeignKey("ventas.id"), nullable=True)
    credito_id = Column(Integer, ForeignKey("creditos.id"), nullable=True)
    devolucion_id = Column(Integer, ForeignKey("devoluciones.id"), nullable=True)
    salida_id = Column(Integer, ForeignKey("salidas.id"), nullable=True)
    empleado = Column(String(120), nullable=True)
    fecha = Column(DateTime, default=local_now_naive, nullable=False)

    lote = relationship("Lote")


class Salida(Base):
    __tablename__ = "salidas"

    id = Column(Integer, primary_key=True, index=True)
    numero_salida = Column(String(40), unique=True, nullable=False)
    motivo = Column(String(60), nullable=False)
    observaciones = Column(String(400), nullable=True)
    costo_total = Column(Numeric(14, 2), default=0)
    fecha_salida = Column(DateTime, default=local_now_naive, nullable=False)
    empleado = Column(String(120), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    items = relationship("SalidaItem", back_populates="salida", cascade="all, delete-orphan")


class SalidaItem(Base):
    __tablename__ = "items_salida"

    id = Column(Integer, primary_key=True, index=True)
    salida_id = Column(Integer, ForeignKey("salidas.id"), nullable=False)
    producto_id = Column(Integer, ForeignKey("productos.id"), nullable=False)
    lote_id = Column(Integer, ForeignKey("lotes.id"), nullable=False)
    nombre_producto = Column(String(200), nullable=False)
    cantidad = Column(Integer, nullable=False)
    precio_compra_unitario = Column(Numeric(12, 2), default=0)
    subtotal = Column(Numeric(14, 2), default=0)

    salida = relationship("Salida", back_populates="items")
    producto = relationship("Producto")
    lote = relationship("Lote")
