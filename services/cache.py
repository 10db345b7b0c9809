"""Caché de lecturas con ventana de frescura e invalidación por prefijo.

Las claves son tuplas: ``("insumos",)`` para la colección y
``("insumos", 7)`` para un registro. Una entrada fresca se sirve sin
consultar la API; una vencida se sirve igual y se refresca en segundo plano.
Las lecturas concurrentes de una clave ausente comparten una sola petición.
"""
import logging
import threading
import time

logger = logging.getLogger(__name__)


def _en_hilo(funcion):
    threading.Thread(target=funcion, daemon=True).start()


class _Entrada:
    __slots__ = ('valor', 'guardado_en')

    def __init__(self, valor, guardado_en):
        self.valor = valor
        self.guardado_en = guardado_en


class QueryCache:
    def __init__(self, frescura=300, reloj=time.monotonic, ejecutor=_en_hilo):
        self.frescura = frescura
        self.reloj = reloj
        self.ejecutor = ejecutor  # Ejecuta los refrescos en segundo plano
        self._entradas = {}
        self._candados = {}
        self._refrescando = set()
        self._version = 0  # Se incrementa en cada invalidación
        self._lock = threading.Lock()

    def obtener(self, clave, cargar):
        """Valor de `clave`, llamando a `cargar()` solo cuando hace falta."""
        with self._lock:
            entrada = self._entradas.get(clave)
        if entrada is not None:
            if self._vencida(entrada):
                self._refrescar(clave, cargar)
            return entrada.valor

        with self._candado(clave):
            with self._lock:
                entrada = self._entradas.get(clave)
                version = self._version
            if entrada is not None:
                return entrada.valor  # Cargada por otra petición mientras esperábamos
            valor = cargar()
            self._guardar(clave, valor, version)
            return valor

    def invalidar(self, *prefijo):
        """Descarta todas las claves que empiezan con `prefijo`."""
        with self._lock:
            self._version += 1
            for clave in [c for c in self._entradas if c[:len(prefijo)] == prefijo]:
                del self._entradas[clave]
            self._soltar_candados(lambda c: c[:len(prefijo)] == prefijo)

    def limpiar(self):
        with self._lock:
            self._version += 1
            self._entradas.clear()
            self._soltar_candados(lambda c: True)

    def _vencida(self, entrada):
        return self.reloj() - entrada.guardado_en >= self.frescura

    def _candado(self, clave):
        with self._lock:
            return self._candados.setdefault(clave, threading.Lock())

    def _soltar_candados(self, coincide):
        # Llamar con self._lock tomado; los candados en uso se conservan
        for clave in [c for c, candado in self._candados.items() if coincide(c) and not candado.locked()]:
            del self._candados[clave]

    def _guardar(self, clave, valor, version):
        with self._lock:
            if version == self._version:
                self._entradas[clave] = _Entrada(valor, self.reloj())

    def _refrescar(self, clave, cargar):
        with self._lock:
            if clave in self._refrescando:
                return
            self._refrescando.add(clave)
            version = self._version

        def tarea():
            try:
                self._guardar(clave, cargar(), version)
            except Exception:
                logger.warning('No se pudo refrescar %s en segundo plano', clave, exc_info=True)
            finally:
                with self._lock:
                    self._refrescando.discard(clave)

        self.ejecutor(tarea)
