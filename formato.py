"""Utilidades de formateo (moneda en Guaraníes, números y fechas en formato es-PY).

Funciones puras: nunca lanzan excepciones, los valores inválidos se
representan con un texto por defecto.
"""
import math
import re
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, localcontext

SIMBOLO_MONEDA = 'Gs'
SEPARADOR_MILES = '.'
SEPARADOR_DECIMAL = ','
FECHA_INVALIDA = 'Fecha inválida'

# Prefijo numérico de un texto, igual que parseFloat: "12abc" -> 12
_PREFIJO_NUMERICO = re.compile(r'^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')
# Fracción de segundos de cualquier largo: ".12" -> ".120000"
_FRACCION_SEGUNDOS = re.compile(r'(\d{2}:\d{2}:\d{2})\.(\d+)')


def _a_numero(valor):
    """Convierte un monto (número o texto) a Decimal; None si no es válido."""
    if valor is None or isinstance(valor, bool):
        return None
    if isinstance(valor, str):
        coincidencia = _PREFIJO_NUMERICO.match(valor)
        if not coincidencia:
            return None
        valor = coincidencia.group(0).strip()
        # Como parseFloat: "1e500" es Infinity, que no es un monto válido
        if not math.isfinite(float(valor)):
            return None
        return Decimal(valor)
    try:
        if isinstance(valor, float) and not math.isfinite(valor):
            return None
        numero = Decimal(str(valor))
    except (ArithmeticError, ValueError):
        return None
    if not numero.is_finite():
        return None
    return numero


def _agrupar(numero, decimales):
    with localcontext() as contexto:
        # Precisión suficiente para todos los dígitos enteros del monto
        contexto.prec = max(28, numero.adjusted() + decimales + 2)
        cuantizado = numero.quantize(Decimal(1).scaleb(-decimales), rounding=ROUND_HALF_UP)
    if cuantizado == 0:
        cuantizado = abs(cuantizado)  # sin "-0"
    texto = f'{cuantizado:,.{decimales}f}'
    return texto.replace(',', '_').replace('.', SEPARADOR_DECIMAL).replace('_', SEPARADOR_MILES)


# Formatea un monto con separadores de miles (punto) y decimales (coma)
# Parámetros:
#   amount: número o texto numérico
#   show_decimals: si se muestran dos decimales
# Retorna: "5.000" / "5.000,50"; "0" si el monto no es válido

def format_amount(amount, show_decimals=False):
    numero = _a_numero(amount)
    if numero is None:
        return '0'
    return _agrupar(numero, 2 if show_decimals else 0)


def format_currency(amount, show_decimals=False):
    """Formatea un monto como moneda: format_currency(5000) -> "Gs 5.000"."""
    numero = _a_numero(amount)
    if numero is None:
        return f'{SIMBOLO_MONEDA} 0'
    return f'{SIMBOLO_MONEDA} {_agrupar(numero, 2 if show_decimals else 0)}'


def format_number(number):
    return format_amount(number, False)


def format_total(quantity, unit_price):
    """Total de una línea (cantidad x precio unitario) formateado como moneda."""
    cantidad = _a_numero(quantity) or Decimal(0)
    precio = _a_numero(unit_price) or Decimal(0)
    return format_currency(cantidad * precio)


def a_fecha_local(valor):
    """Interpreta una fecha (datetime, date o texto ISO-8601) en hora local.

    Retorna un datetime ingenuo en la zona local, o None si no se puede
    interpretar. Las fechas con zona horaria se convierten a la zona local.
    """
    if isinstance(valor, datetime):
        fecha = valor
    elif isinstance(valor, date):
        return datetime(valor.year, valor.month, valor.day)
    elif isinstance(valor, str):
        texto = valor.strip()
        if texto.endswith(('Z', 'z')):
            texto = texto[:-1] + '+00:00'
        texto = _FRACCION_SEGUNDOS.sub(lambda m: f'{m.group(1)}.{(m.group(2) + "000000")[:6]}', texto)
        try:
            fecha = datetime.fromisoformat(texto)
        except ValueError:
            return None
    else:
        return None
    if fecha.tzinfo is not None:
        fecha = fecha.astimezone().replace(tzinfo=None)
    return fecha


def format_date(value):
    """Formato "31/12/2023"; "Fecha inválida" si no es una fecha."""
    fecha = a_fecha_local(value)
    if fecha is None:
        return FECHA_INVALIDA
    return fecha.strftime('%d/%m/%Y')


def format_datetime(value):
    """Formato "31/12/2023, 14:30"; "Fecha inválida" si no es una fecha."""
    fecha = a_fecha_local(value)
    if fecha is None:
        return FECHA_INVALIDA
    return fecha.strftime('%d/%m/%Y, %H:%M')


def fecha_iso_utc(valor):
    """Fecha local (o texto ISO) a ISO-8601 en UTC con milisegundos: "2024-01-05T13:30:00.000Z".

    Retorna None si la fecha no es válida.
    """
    fecha = a_fecha_local(valor)
    if fecha is None:
        return None
    utc = fecha.astimezone(timezone.utc)
    return utc.strftime('%Y-%m-%dT%H:%M:%S.') + f'{utc.microsecond // 1000:03d}Z'
