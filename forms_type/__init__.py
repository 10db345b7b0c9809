# Formularios de cada entidad del sistema
from .insumo_form import InsumoForm
from .producto_form import ProductoForm
from .produccion_form import InsumoUtilizadoForm, ProduccionForm
from .venta_form import VentaForm
