"""Modelo Produccion: una corrida de producción que consume insumos.

Si `producto_id` es None la API crea un producto nuevo con el nombre, la
unidad y el precio de venta enviados; si no, suma la cantidad producida al
stock del producto existente.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from . import a_entero_opcional, a_numero
from .insumo import Insumo
from .producto import Producto


@dataclass
class ProduccionInsumo:
    insumo_id: int  # Insumo consumido
    cantidad_utilizada: float  # Cantidad descontada del stock del insumo
    id: Optional[int] = None
    insumo: Optional[Insumo] = None  # Insumo anidado por la API (solo lectura)

    @classmethod
    def desde_api(cls, datos):
        insumo = datos.get('insumo') or datos.get('Insumo')
        return cls(
            id=a_entero_opcional(datos.get('id')),
            insumo_id=int(datos.get('insumo_id') or 0),
            cantidad_utilizada=a_numero(datos.get('cantidad_utilizada')),
            insumo=Insumo.desde_api(insumo) if insumo else None,
        )


@dataclass
class Produccion:
    nombre_producto: str
    cantidad_producida: float
    unidad_producto: str
    fecha: str  # ISO-8601 tal como la envía la API
    producto_id: Optional[int] = None
    producto: Optional[Producto] = None
    insumos_utilizados: List[ProduccionInsumo] = field(default_factory=list)
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def desde_api(cls, datos):
        producto = datos.get('producto') or datos.get('Producto')
        return cls(
            id=a_entero_opcional(datos.get('id')),
            nombre_producto=datos.get('nombre_producto') or '',
            cantidad_producida=a_numero(datos.get('cantidad_producida')),
            unidad_producto=datos.get('unidad_producto') or '',
            fecha=datos.get('fecha') or '',
            producto_id=a_entero_opcional(datos.get('producto_id')),
            producto=Producto.desde_api(producto) if producto else None,
            insumos_utilizados=[
                ProduccionInsumo.desde_api(item) for item in datos.get('insumos_utilizados') or []
            ],
            created_at=datos.get('createdAt'),
            updated_at=datos.get('updatedAt'),
        )
