"""initial pos tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Integer(), nullable=False)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=True)


def _money(name: str, scale: int = 14, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.Numeric(scale, 2), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "roles",
        _id(),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "users",
        _id(),
        sa.Column("full_name", sa.String(length=100), nullable=True),
        sa.Column("email", sa.String(length=120), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("ultimo_acceso", sa.DateTime(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_table(
        "user_roles",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "proveedores",
        _id(),
        sa.Column("nombre_empresa", sa.String(length=160), nullable=False),
        sa.Column("ruc", sa.String(length=20), nullable=True),
        sa.Column("contacto", sa.String(length=120), nullable=True),
        sa.Column("telefono", sa.String(length=40), nullable=True),
        sa.Column("email", sa.String(length=120), nullable=True),
        sa.Column("direccion", sa.String(length=200), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("nombre_empresa"),
    )
    op.create_table(
        "productos",
        _id(),
        sa.Column("codigo_tienda", sa.String(length=60), nullable=False),
        sa.Column("codigo_proveedor", sa.String(length=60), nullable=True),
        sa.Column("nombre", sa.String(length=200), nullable=False),
        sa.Column("marca", sa.String(length=80), nullable=True),
        sa.Column("medida", sa.String(length=80), nullable=True),
        sa.Column("color", sa.String(length=40), nullable=True),
        sa.Column("descripcion", sa.Text(), nullable=True),
        sa.Column("ubicacion", sa.String(length=80), nullable=True),
        _money("precio_venta_default", 12),
        _money("precio_venta_minimo", 12),
        _money("precio_compra_default", 12),
        sa.Column("stock_actual", sa.Integer(), nullable=False),
        sa.Column("stock_referencial", sa.Integer(), nullable=False),
        sa.Column("imagen_url", sa.String(length=300), nullable=True),
        sa.Column("activo", sa.Boolean(), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("codigo_tienda"),
    )
    op.create_index("ix_productos_nombre", "productos", ["nombre"])
    op.create_table(
        "clientes",
        _id(),
        sa.Column("nombre", sa.String(length=120), nullable=False),
        sa.Column("apellido", sa.String(length=120), nullable=True),
        sa.Column("dni", sa.String(length=20), nullable=True),
        sa.Column("telefono", sa.String(length=40), nullable=True),
        sa.Column("email", sa.String(length=120), nullable=True),
        sa.Column("direccion", sa.String(length=200), nullable=True),
        sa.Column("tiene_credito", sa.Boolean(), nullable=True),
        _money("monto_credito_actual"),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dni"),
    )
    op.create_table(
        "empleados",
        _id(),
        sa.Column("nombre", sa.String(length=120), nullable=False),
        sa.Column("apellido", sa.String(length=120), nullable=True),
        sa.Column("dni", sa.String(length=20), nullable=True),
        sa.Column("puesto", sa.String(length=80), nullable=True),
        sa.Column("telefono", sa.String(length=40), nullable=True),
        sa.Column("email", sa.String(length=120), nullable=True),
        sa.Column("activo", sa.Boolean(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dni"),
    )

    op.create_table(
        "ingresos",
        _id(),
        sa.Column("numero_boleta", sa.String(length=40), nullable=True),
        sa.Column("proveedor_id", sa.Integer(), sa.ForeignKey("proveedores.id"), nullable=False),
        sa.Column("observaciones", sa.String(length=400), nullable=True),
        _money("costo_total"),
        sa.Column("estado", sa.String(length=20), nullable=False),
        sa.Column("fecha_ingreso", sa.DateTime(), nullable=False),
        sa.Column("fecha_confirmacion", sa.DateTime(), nullable=True),
        sa.Column("empleado", sa.String(length=120), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "lotes",
        _id(),
        sa.Column("ingreso_id", sa.Integer(), sa.ForeignKey("ingresos.id"), nullable=True),
        sa.Column("producto_id", sa.Integer(), sa.ForeignKey("productos.id"), nullable=False),
        sa.Column("numero_lote", sa.String(length=60), nullable=False),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        sa.Column("stock_restante", sa.Integer(), nullable=False),
        _money("precio_compra_unitario", 12),
        sa.Column("fecha_ingreso", sa.DateTime(), nullable=False),
        sa.Column("fecha_vencimiento", sa.Date(), nullable=True),
        sa.Column("estado", sa.String(length=20), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("numero_lote"),
    )
    op.create_index("ix_lotes_producto_id", "lotes", ["producto_id"])
    op.create_table(
        "salidas",
        _id(),
        sa.Column("numero_salida", sa.String(length=40), nullable=False),
        sa.Column("motivo", sa.String(length=60), nullable=False),
        sa.Column("observaciones", sa.String(length=400), nullable=True),
        _money("costo_total"),
        sa.Column("fecha_salida", sa.DateTime(), nullable=False),
        sa.Column("empleado", sa.String(length=120), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("numero_salida"),
    )
    op.create_table(
        "items_salida",
        _id(),
        sa.Column("salida_id", sa.Integer(), sa.ForeignKey("salidas.id"), nullable=False),
        sa.Column("producto_id", sa.Integer(), sa.ForeignKey("productos.id"), nullable=False),
        sa.Column("lote_id", sa.Integer(), sa.ForeignKey("lotes.id"), nullable=False),
        sa.Column("nombre_producto", sa.String(length=200), nullable=False),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        _money("precio_compra_unitario", 12),
        _money("subtotal"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "ventas",
        _id(),
        sa.Column("numero_venta", sa.String(length=40), nullable=False),
        sa.Column("cliente_id", sa.Integer(), sa.ForeignKey("clientes.id"), nullable=True),
        sa.Column("empleado_id", sa.Integer(), sa.ForeignKey("empleados.id"), nullable=True),
        sa.Column("usuario_registro", sa.String(length=120), nullable=True),
        sa.Column("fecha_venta", sa.DateTime(), nullable=False),
        sa.Column("metodo_pago", sa.String(length=30), nullable=False),
        _money("total_venta"),
        _money("ganancia_total_venta"),
        sa.Column("tipo_venta", sa.String(length=20), nullable=False),
        sa.Column("estado", sa.String(length=20), nullable=False),
        sa.Column("observaciones", sa.String(length=400), nullable=True),
        sa.Column("estado_devolucion", sa.String(length=30), nullable=False),
        _money("monto_devuelto"),
        sa.Column("anulada_por", sa.String(length=120), nullable=True),
        sa.Column("anulada_at", sa.DateTime(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("numero_venta"),
    )
    op.create_index("ix_ventas_fecha_venta", "ventas", ["fecha_venta"])
    op.create_table(
        "items_venta",
        _id(),
        sa.Column("venta_id", sa.Integer(), sa.ForeignKey("ventas.id"), nullable=False),
        sa.Column("producto_id", sa.Integer(), sa.ForeignKey("productos.id"), nullable=True),
        sa.Column("lote_id", sa.Integer(), sa.ForeignKey("lotes.id"), nullable=True),
        sa.Column("nombre_producto", sa.String(length=200), nullable=False),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        _money("precio_venta_unitario", 12),
        _money("precio_compra_unitario", 12),
        _money("subtotal"),
        _money("ganancia_unitaria", 12),
        _money("ganancia_total"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_items_venta_venta_id", "items_venta", ["venta_id"])
    op.create_table(
        "pagos_venta",
        _id(),
        sa.Column("venta_id", sa.Integer(), sa.ForeignKey("ventas.id"), nullable=False),
        sa.Column("metodo", sa.String(length=30), nullable=False),
        _money("monto"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pagos_venta_venta_id", "pagos_venta", ["venta_id"])

    op.create_table(
        "cotizaciones",
        _id(),
        sa.Column("numero_cotizacion", sa.String(length=40), nullable=False),
        sa.Column("cliente_id", sa.Integer(), sa.ForeignKey("clientes.id"), nullable=True),
        sa.Column("empleado_id", sa.Integer(), sa.ForeignKey("empleados.id"), nullable=True),
        sa.Column("placa_moto", sa.String(length=20), nullable=True),
        sa.Column("metodo_pago", sa.String(length=30), nullable=False),
        sa.Column("observaciones", sa.String(length=400), nullable=True),
        _money("total"),
        sa.Column("estado", sa.String(length=20), nullable=False),
        sa.Column("venta_id", sa.Integer(), sa.ForeignKey("ventas.id"), nullable=True),
        sa.Column("usuario_registro", sa.String(length=120), nullable=True),
        sa.Column("fecha", sa.DateTime(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("numero_cotizacion"),
    )
    op.create_table(
        "items_cotizacion",
        _id(),
        sa.Column("cotizacion_id", sa.Integer(), sa.ForeignKey("cotizaciones.id"), nullable=False),
        sa.Column("producto_id", sa.Integer(), sa.ForeignKey("productos.id"), nullable=False),
        sa.Column("nombre_producto", sa.String(length=200), nullable=False),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        _money("precio_venta_unitario", 12),
        _money("subtotal"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_items_cotizacion_cotizacion_id", "items_cotizacion", ["cotizacion_id"])

    op.create_table(
        "creditos",
        _id(),
        sa.Column("numero_credito", sa.String(length=40), nullable=False),
        sa.Column("cliente_id", sa.Integer(), sa.ForeignKey("clientes.id"), nullable=False),
        sa.Column("estado", sa.String(length=20), nullable=False),
        _money("total"),
        _money("ganancia_total"),
        sa.Column("observaciones", sa.String(length=400), nullable=True),
        sa.Column("fecha_credito", sa.DateTime(), nullable=False),
        sa.Column("fecha_vencimiento", sa.Date(), nullable=True),
        sa.Column("fecha_pago", sa.DateTime(), nullable=True),
        sa.Column("usuario_registro", sa.String(length=120), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("numero_credito"),
    )
    op.create_index("ix_creditos_cliente_id", "creditos", ["cliente_id"])
    op.create_table(
        "items_credito",
        _id(),
        sa.Column("credito_id", sa.Integer(), sa.ForeignKey("creditos.id"), nullable=False),
        sa.Column("producto_id", sa.Integer(), sa.ForeignKey("productos.id"), nullable=False),
        sa.Column("lote_id", sa.Integer(), sa.ForeignKey("lotes.id"), nullable=True),
        sa.Column("nombre_producto", sa.String(length=200), nullable=False),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        _money("precio_venta_unitario", 12),
        _money("precio_compra_unitario", 12),
        _money("subtotal"),
        _money("ganancia_total"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_items_credito_credito_id", "items_credito", ["credito_id"])
    op.create_table(
        "abonos",
        _id(),
        sa.Column("cliente_id", sa.Integer(), sa.ForeignKey("clientes.id"), nullable=False),
        sa.Column("venta_id", sa.Integer(), sa.ForeignKey("ventas.id"), nullable=True),
        _money("monto", nullable=False),
        sa.Column("metodo_pago", sa.String(length=30), nullable=False),
        sa.Column("descripcion", sa.String(length=300), nullable=True),
        _money("saldo_anterior"),
        sa.Column("estado", sa.String(length=20), nullable=False),
        sa.Column("fecha", sa.DateTime(), nullable=False),
        sa.Column("usuario_registro", sa.String(length=120), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_abonos_cliente_id", "abonos", ["cliente_id"])

    op.create_table(
        "devoluciones",
        _id(),
        sa.Column("numero_devolucion", sa.String(length=40), nullable=False),
        sa.Column("venta_id", sa.Integer(), sa.ForeignKey("ventas.id"), nullable=False),
        sa.Column("numero_venta", sa.String(length=40), nullable=False),
        sa.Column("cliente_id", sa.Integer(), sa.ForeignKey("clientes.id"), nullable=True),
        sa.Column("metodo_pago_original", sa.String(length=30), nullable=False),
        sa.Column("motivo", sa.String(length=60), nullable=False),
        sa.Column("descripcion_motivo", sa.String(length=400), nullable=True),
        sa.Column("observaciones", sa.String(length=400), nullable=True),
        _money("monto_a_devolver"),
        _money("ganancia_real_afectada"),
        sa.Column("estado", sa.String(length=20), nullable=False),
        sa.Column("motivo_rechazo", sa.String(length=300), nullable=True),
        sa.Column("fecha_solicitud", sa.DateTime(), nullable=False),
        sa.Column("fecha_procesamiento", sa.DateTime(), nullable=True),
        sa.Column("solicitado_por", sa.String(length=120), nullable=True),
        sa.Column("procesado_por", sa.String(length=120), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("numero_devolucion"),
    )
    op.create_index("ix_devoluciones_venta_id", "devoluciones", ["venta_id"])
    op.create_index("ix_devoluciones_fecha_procesamiento", "devoluciones", ["fecha_procesamiento"])
    op.create_table(
        "items_devolucion",
        _id(),
        sa.Column("devolucion_id", sa.Integer(), sa.ForeignKey("devoluciones.id"), nullable=False),
        sa.Column("venta_item_id", sa.Integer(), sa.ForeignKey("items_venta.id"), nullable=True),
        sa.Column("producto_id", sa.Integer(), sa.ForeignKey("productos.id"), nullable=True),
        sa.Column("nombre_producto", sa.String(length=200), nullable=False),
        sa.Column("cantidad_original", sa.Integer(), nullable=False),
        sa.Column("cantidad_a_devolver", sa.Integer(), nullable=False),
        _money("precio_venta_unitario", 12),
        _money("monto_devolucion"),
        _money("ganancia_unitaria", 12),
        _money("ganancia_total"),
        _money("ganancia_devolucion"),
        sa.Column("es_estimacion", sa.Boolean(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_items_devolucion_devolucion_id", "items_devolucion", ["devolucion_id"])

    op.create_table(
        "movimientos_lotes",
        _id(),
        sa.Column("lote_id", sa.Integer(), sa.ForeignKey("lotes.id"), nullable=False),
        sa.Column("producto_id", sa.Integer(), sa.ForeignKey("productos.id"), nullable=False),
        sa.Column("tipo", sa.String(length=30), nullable=False),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        sa.Column("stock_resultante", sa.Integer(), nullable=False),
        _money("precio_compra_unitario", 12),
        sa.Column("venta_id", sa.Integer(), sa.ForeignKey("ventas.id"), nullable=True),
        sa.Column("credito_id", sa.Integer(), sa.ForeignKey("creditos.id"), nullable=True),
        sa.Column("devolucion_id", sa.Integer(), sa.ForeignKey("devoluciones.id"), nullable=True),
        sa.Column("salida_id", sa.Integer(), sa.ForeignKey("salidas.id"), nullable=True),
        sa.Column("empleado", sa.String(length=120), nullable=True),
        sa.Column("fecha", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_movimientos_lotes_lote_id", "movimientos_lotes", ["lote_id"])

    op.create_table(
        "retiros",
        _id(),
        sa.Column("fecha", sa.Date(), nullable=False),
        _money("monto", nullable=False),
        sa.Column("tipo", sa.String(length=20), nullable=False),
        sa.Column("motivo", sa.String(length=300), nullable=False),
        sa.Column("realizado_por", sa.String(length=120), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_retiros_fecha", "retiros", ["fecha"])
    op.create_table(
        "dinero_inicial",
        _id(),
        sa.Column("fecha", sa.Date(), nullable=False),
        _money("monto", nullable=False),
        sa.Column("establecido_por", sa.String(length=120), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("fecha"),
    )
    op.create_table(
        "cierres_caja",
        _id(),
        sa.Column("fecha", sa.Date(), nullable=False),
        _money("dinero_inicial"),
        _money("total_efectivo"),
        _money("total_yape"),
        _money("total_plin"),
        _money("total_tarjeta"),
        _money("total_otros"),
        _money("total"),
        _money("ganancia_bruta"),
        _money("ganancia_real"),
        _money("total_devuelto"),
        _money("total_retiros"),
        _money("efectivo_final"),
        _money("digital_total"),
        sa.Column("cantidad_ventas", sa.Integer(), nullable=True),
        sa.Column("cantidad_devoluciones", sa.Integer(), nullable=True),
        sa.Column("cantidad_retiros", sa.Integer(), nullable=True),
        sa.Column("detalle", sa.Text(), nullable=True),
        sa.Column("cerrado_por", sa.String(length=120), nullable=True),
        sa.Column("fecha_cierre", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("fecha"),
    )


def downgrade() -> None:
    for table in (
        "cierres_caja",
        "dinero_inicial",
        "retiros",
        "movimientos_lotes",
        "items_devolucion",
        "devoluciones",
        "abonos",
        "items_credito",
        "creditos",
        "items_cotizacion",
        "cotizaciones",
        "pagos_venta",
        "items_venta",
        "ventas",
        "items_salida",
        "salidas",
        "lotes",
        "ingresos",
        "empleados",
        "clientes",
        "productos",
        "proveedores",
        "user_roles",
        "users",
        "roles",
    ):
        op.drop_table(table)
