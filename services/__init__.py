# Acceso a la API externa de stock: cliente HTTP, caché y un recurso por entidad
from models import Insumo, Produccion, Producto, Venta

from .api import ApiError, ClienteApi
from .cache import QueryCache
from .recursos import crear_recurso


class StockApi:
    """Extensión Flask: se configura con init_app(app) a partir de app.config."""

    def __init__(self, app=None):
        self.cliente = None
        self.cache = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.cliente = ClienteApi(
            app.config['STOCK_API_URL'],
            timeout=app.config.get('STOCK_API_TIMEOUT'),
            reintentos=app.config.get('STOCK_API_REINTENTOS', 1),
        )
        self.cache = QueryCache(frescura=app.config.get('CACHE_FRESCURA_SEGUNDOS', 300))
        self.insumos = crear_recurso(self.cliente, self.cache, 'insumos', Insumo)
        self.productos = crear_recurso(self.cliente, self.cache, 'productos', Producto)
        # Una producción descuenta insumos y suma stock de productos en el servidor
        self.producciones = crear_recurso(self.cliente, self.cache, 'producciones', Produccion,
                                          invalida=('insumos', 'productos'))
        # Una venta descuenta stock del producto
        self.ventas = crear_recurso(self.cliente, self.cache, 'ventas', Venta, invalida=('productos',))
        app.extensions['stock_api'] = self


api = StockApi()  # Instancia global, inicializada en app.py

__all__ = ['api', 'ApiError', 'ClienteApi', 'QueryCache', 'StockApi']
