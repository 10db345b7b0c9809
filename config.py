# Configuración de la aplicación: valores leídos del entorno (archivo .env opcional)
import os

from dotenv import load_dotenv

load_dotenv()


def _float_opcional(nombre):
    valor = os.environ.get(nombre)
    return float(valor) if valor else None


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-sistema-stock')  # Clave de sesión / CSRF
    STOCK_API_URL = os.environ.get('STOCK_API_URL', 'http://localhost:3001/api')  # API externa
    STOCK_API_TIMEOUT = _float_opcional('STOCK_API_TIMEOUT')  # None = valor por defecto del transporte
    STOCK_API_REINTENTOS = int(os.environ.get('STOCK_API_REINTENTOS', 1))  # Reintentos por petición fallida
    CACHE_FRESCURA_SEGUNDOS = int(os.environ.get('CACHE_FRESCURA_SEGUNDOS', 300))  # 5 minutos
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
