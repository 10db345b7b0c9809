# Modelo Producto: producto terminado con stock propio
from dataclasses import dataclass, field
from typing import List, Optional

from . import a_entero_opcional, a_numero, a_numero_opcional


@dataclass
class Producto:
    nombre: str  # Nombre del producto
    cantidad: float  # Stock disponible
    unidad: str  # Unidad de medida
    precio_venta: Optional[float] = None  # Precio sugerido de venta
    insumos_ids: List[int] = field(default_factory=list)  # Insumos que lo componen (informativo)
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def desde_api(cls, datos):
        return cls(
            id=a_entero_opcional(datos.get('id')),
            nombre=datos.get('nombre') or '',
            cantidad=a_numero(datos.get('cantidad')),
            unidad=datos.get('unidad') or '',
            precio_venta=a_numero_opcional(datos.get('precio_venta')),
            insumos_ids=[int(i) for i in datos.get('insumos_ids') or []],
            created_at=datos.get('createdAt'),
            updated_at=datos.get('updatedAt'),
        )

    def a_payload(self):
        payload = {
            'nombre': self.nombre,
            'cantidad': self.cantidad,
            'unidad': self.unidad,
            'insumos_ids': list(self.insumos_ids),
        }
        if self.precio_venta is not None:
            payload['precio_venta'] = self.precio_venta
        return payload
