# Lecturas y escrituras por entidad, con caché e invalidación al escribir
from .api import ServicioRest


class Recurso:
    def __init__(self, nombre, modelo, servicio, cache, invalida=()):
        self.nombre = nombre  # Prefijo de las claves de caché ("insumos")
        self.modelo = modelo  # Dataclass con desde_api()
        self.servicio = servicio  # ServicioRest de la colección
        self.cache = cache
        self.invalida = (nombre,) + tuple(invalida)  # Colecciones afectadas por una escritura

    def listar(self):
        return self.cache.obtener((self.nombre,), self._cargar_todos)

    def obtener(self, id):
        return self.cache.obtener((self.nombre, id), lambda: self._cargar_uno(id))

    def buscar(self, id):
        """Registro `id` tomado de la colección en caché (None si no está)."""
        return next((item for item in self.listar() if item.id == id), None)

    def crear(self, datos):
        creado = self.servicio.create(_payload(datos))
        self._invalidar()
        return self.modelo.desde_api(creado) if creado else None

    def actualizar(self, id, datos):
        actualizado = self.servicio.update(id, _payload(datos))
        self._invalidar()
        return self.modelo.desde_api(actualizado) if actualizado else None

    def eliminar(self, id):
        self.servicio.delete(id)
        self._invalidar()

    def _cargar_todos(self):
        return [self.modelo.desde_api(item) for item in self.servicio.get_all() or []]

    def _cargar_uno(self, id):
        datos = self.servicio.get_by_id(id)
        return self.modelo.desde_api(datos) if datos else None

    def _invalidar(self):
        for nombre in self.invalida:
            self.cache.invalidar(nombre)


def _payload(datos):
    return datos.a_payload() if hasattr(datos, 'a_payload') else datos


def crear_recurso(cliente, cache, nombre, modelo, invalida=()):
    return Recurso(nombre, modelo, ServicioRest(cliente, f'/{nombre}'), cache, invalida)
