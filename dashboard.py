"""Estadísticas del dashboard a partir de las cuatro colecciones.

Las colecciones se reciben ya cargadas (pueden venir de momentos distintos,
no hay una foto transaccional). Los límites de día y mes usan la fecha local
del reloj de pared.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from formato import a_fecha_local

UMBRAL_INSUMOS = 10  # Insumo con stock bajo: cantidad < 10
UMBRAL_PRODUCTOS = 5  # Producto con stock bajo: cantidad < 5
CANTIDAD_VENTAS_RECIENTES = 5


@dataclass
class VentaReciente:
    venta: object
    nombre_producto: str


@dataclass
class ResumenDashboard:
    total_insumos: int = 0
    total_productos: int = 0
    total_producciones: int = 0
    total_ventas: int = 0
    insumos_bajo_stock: List = field(default_factory=list)
    productos_bajo_stock: List = field(default_factory=list)
    ventas_recientes: List[VentaReciente] = field(default_factory=list)
    ventas_del_mes: List = field(default_factory=list)
    total_ventas_del_mes: float = 0
    ventas_del_dia: List = field(default_factory=list)
    total_ventas_del_dia: float = 0

    @property
    def hay_alertas(self):
        return bool(self.insumos_bajo_stock or self.productos_bajo_stock)


def bajo_stock(items, umbral):
    return [item for item in items if item.cantidad < umbral]


def ventas_recientes(ventas, productos, cantidad=CANTIDAD_VENTAS_RECIENTES):
    nombres = {p.id: p.nombre for p in productos}

    def clave(venta):
        fecha = a_fecha_local(venta.fecha)
        # Fechas inválidas al final
        return (fecha is not None, fecha or datetime.min)

    ordenadas = sorted(ventas, key=clave, reverse=True)[:cantidad]
    return [
        VentaReciente(v, nombres.get(v.producto_id) or f'Producto ID: {v.producto_id}')
        for v in ordenadas
    ]


def total_vendido(ventas):
    return sum(v.cantidad * v.precio_unitario for v in ventas)


def calcular_resumen(insumos, productos, producciones, ventas, ahora=None):
    ahora = ahora or datetime.now()
    hoy = ahora.date()

    ventas_del_mes = []
    ventas_del_dia = []
    for venta in ventas:
        fecha = a_fecha_local(venta.fecha)
        if fecha is None:
            continue
        if fecha.year == ahora.year and fecha.month == ahora.month:
            ventas_del_mes.append(venta)
        if fecha.date() == hoy:
            ventas_del_dia.append(venta)

    return ResumenDashboard(
        total_insumos=len(insumos),
        total_productos=len(productos),
        total_producciones=len(producciones),
        total_ventas=len(ventas),
        insumos_bajo_stock=bajo_stock(insumos, UMBRAL_INSUMOS),
        productos_bajo_stock=bajo_stock(productos, UMBRAL_PRODUCTOS),
        ventas_recientes=ventas_recientes(ventas, productos),
        ventas_del_mes=ventas_del_mes,
        total_ventas_del_mes=total_vendido(ventas_del_mes),
        ventas_del_dia=ventas_del_dia,
        total_ventas_del_dia=total_vendido(ventas_del_dia),
    )
