"""Cliente HTTP de la API REST de stock.

Todas las respuestas llegan en el sobre
``{"success": bool, "data": ..., "message": ..., "error": ...}``;
el cliente devuelve solo ``data`` y convierte cualquier falla en ApiError.
"""
import logging

import requests

logger = logging.getLogger(__name__)

MENSAJE_GENERICO = 'No se pudo comunicar con el servidor'


class ApiError(Exception):
    """Falla de red o respuesta de error de la API."""

    def __init__(self, mensaje, status_code=None):
        super().__init__(mensaje)
        self.mensaje = mensaje
        self.status_code = status_code

    @property
    def reintentable(self):
        # Errores de transporte (sin status) y errores 5xx del servidor
        return self.status_code is None or self.status_code >= 500


class ClienteApi:
    def __init__(self, base_url, timeout=None, reintentos=1, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.reintentos = reintentos
        self.session = session or requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})

    def request(self, method, path, json=None):
        intentos = 1 + max(self.reintentos, 0)
        for intento in range(1, intentos + 1):
            try:
                return self._enviar(method, path, json)
            except ApiError as e:
                if not e.reintentable or intento == intentos:
                    logger.warning('API %s %s falló: %s', method, path, e.mensaje)
                    raise
                logger.info('API %s %s falló (intento %d de %d), reintentando: %s',
                            method, path, intento, intentos, e.mensaje)

    def _enviar(self, method, path, json):
        url = f'{self.base_url}{path}'
        try:
            respuesta = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ApiError(f'{MENSAJE_GENERICO}: {e}') from e

        try:
            sobre = respuesta.json()
        except ValueError:
            sobre = None
        if not isinstance(sobre, dict):
            if respuesta.status_code >= 400:
                raise ApiError(f'{MENSAJE_GENERICO} (HTTP {respuesta.status_code})', respuesta.status_code)
            if respuesta.status_code == 204 or not respuesta.content:
                return None
            raise ApiError('Respuesta inválida del servidor', respuesta.status_code)

        if respuesta.status_code >= 400 or sobre.get('success') is False:
            mensaje = sobre.get('error') or sobre.get('message') or f'{MENSAJE_GENERICO} (HTTP {respuesta.status_code})'
            # success: false con HTTP 2xx es un rechazo de la API, no se reintenta
            status = respuesta.status_code if respuesta.status_code >= 400 else 400
            raise ApiError(mensaje, status)
        return sobre.get('data')


class ServicioRest:
    """Operaciones REST de una colección (`/insumos`, `/productos`, ...)."""

    def __init__(self, cliente, ruta):
        self.cliente = cliente
        self.ruta = ruta

    def get_all(self):
        return self.cliente.request('GET', self.ruta)

    def get_by_id(self, id):
        return self.cliente.request('GET', f'{self.ruta}/{id}')

    def create(self, datos):
        return self.cliente.request('POST', self.ruta, json=datos)

    def update(self, id, datos):
        return self.cliente.request('PUT', f'{self.ruta}/{id}', json=datos)

    def delete(self, id):
        return self.cliente.request('DELETE', f'{self.ruta}/{id}')
