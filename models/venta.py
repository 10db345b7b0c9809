# Modelo Venta: salida de stock de un producto
from dataclasses import dataclass
from typing import Optional

from . import a_entero_opcional, a_numero
from .producto import Producto


@dataclass
class Venta:
    producto_id: int  # Producto vendido
    cantidad: float  # Cantidad vendida
    precio_unitario: float  # Precio de venta por unidad
    fecha: str  # ISO-8601 tal como la envía la API
    producto: Optional[Producto] = None  # La API lo anida bajo la clave "Producto"
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def total(self):
        return self.cantidad * self.precio_unitario

    @classmethod
    def desde_api(cls, datos):
        producto = datos.get('Producto') or datos.get('producto')
        return cls(
            id=a_entero_opcional(datos.get('id')),
            producto_id=int(datos.get('producto_id') or 0),
            cantidad=a_numero(datos.get('cantidad')),
            precio_unitario=a_numero(datos.get('precio_unitario')),
            fecha=datos.get('fecha') or '',
            producto=Producto.desde_api(producto) if producto else None,
            created_at=datos.get('createdAt'),
            updated_at=datos.get('updatedAt'),
        )

    def a_payload(self):
        return {
            'producto_id': self.producto_id,
            'cantidad': self.cantidad,
            'precio_unitario': self.precio_unitario,
            'fecha': self.fecha,
        }
