# Modelo Insumo: materia prima consumida por las producciones
from dataclasses import dataclass
from typing import Optional

from . import a_entero_opcional, a_numero, a_numero_opcional


@dataclass
class Insumo:
    nombre: str  # Nombre del insumo
    cantidad: float  # Stock disponible
    unidad: str  # Unidad de medida (kg, litros, unidades...)
    precio_unitario: Optional[float] = None  # Precio de compra por unidad
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
            precio_unitario=a_numero_opcional(datos.get('precio_unitario')),
            created_at=datos.get('createdAt'),
            updated_at=datos.get('updatedAt'),
        )

    def a_payload(self):
        payload = {'nombre': self.nombre, 'cantidad': self.cantidad, 'unidad': self.unidad}
        if self.precio_unitario is not None:
            payload['precio_unitario'] = self.precio_unitario
        return payload
