# Campos y conversiones compartidos por los formularios
import decimal

from wtforms import DecimalField
from wtforms.widgets import NumberInput


def entero_opcional(valor):
    """coerce de los select: '' / None / 0 significan "sin seleccionar"."""
    if valor in (None, '', 'None'):
        return None
    return int(valor)


def a_float(valor):
    return float(valor) if valor is not None else None


class CampoDecimal(DecimalField):
    """DecimalField que deja vacío como None y reporta errores en español."""

    widget = NumberInput(step='any')

    def __init__(self, label=None, validators=None, places=None, **kwargs):
        # Sin redondeo al mostrar: 2.5 se muestra "2.5", no "2.50"
        super().__init__(label, validators, places=places, **kwargs)

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        texto = (valuelist[0] or '').strip()
        if not texto:
            self.data = None
            return
        try:
            self.data = decimal.Decimal(texto.replace(',', '.'))
        except (decimal.InvalidOperation, ValueError) as exc:
            self.data = None
            raise ValueError('Debe ingresar un número válido') from exc
        if not self.data.is_finite():
            self.data = None
            raise ValueError('Debe ingresar un número válido')
