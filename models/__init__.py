# Conversión de los valores recibidos de la API y exportación de los modelos del sistema


def a_numero(valor, defecto=0.0):
    """Número recibido de la API (la API puede enviar decimales como texto)."""
    if valor is None or valor == '':
        return defecto
    return float(valor)


def a_numero_opcional(valor):
    return a_numero(valor, None)


def a_entero_opcional(valor):
    if valor is None or valor == '':
        return None
    return int(valor)


# Importación de los modelos
from .insumo import Insumo
from .producto import Producto
from .produccion import Produccion, ProduccionInsumo
from .venta import Venta
