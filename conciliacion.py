"""Reglas de una producción: producto existente o nuevo, insumos por fila y
armado del cuerpo que se envía a la API.

Todas las funciones reciben las colecciones ya cargadas (insumos y productos
tal como se conocían al mostrar el formulario). Los controles de stock son
orientativos: el servidor sigue siendo quien descuenta el stock real.
"""
import math

from formato import fecha_iso_utc

MODO_EXISTENTE = 'existente'  # Suma stock a un producto ya registrado
MODO_NUEVO = 'nuevo'  # La API crea el producto con nombre, unidad y precio
UNIDAD_POR_DEFECTO = 'unidades'

MENSAJE_PRODUCTO = 'Debe seleccionar un producto'
MENSAJE_PRECIO = 'Debe ingresar un precio de venta válido para el nuevo producto'
MENSAJE_FECHA = 'La fecha es requerida'


class ProduccionInvalida(ValueError):
    """Datos de producción rechazados antes de llamar a la API."""

    def __init__(self, campo, mensaje):
        super().__init__(mensaje)
        self.campo = campo
        self.mensaje = mensaje


def producto_seleccionado(productos, producto_id):
    if not producto_id:
        return None
    return next((p for p in productos if p.id == int(producto_id)), None)


def autocompletar(datos, productos, cambio_de_modo=False, editando=False):
    """Aplica la selección de modo/producto a los datos del formulario.

    En modo existente copia nombre, unidad y precio del producto elegido
    (campos de solo lectura). Al pasar a modo nuevo se descarta el producto
    y, salvo al editar, se limpian nombre y precio.
    """
    datos = dict(datos)
    if datos.get('modo') == MODO_EXISTENTE:
        producto = producto_seleccionado(productos, datos.get('producto_id'))
        if producto is not None:
            datos['nombre_producto'] = producto.nombre
            datos['unidad_producto'] = producto.unidad
            datos['precio_venta'] = producto.precio_venta
    else:
        datos['producto_id'] = None
        if cambio_de_modo and not editando:
            datos['nombre_producto'] = ''
            datos['unidad_producto'] = UNIDAD_POR_DEFECTO
            datos['precio_venta'] = None
    return datos


def ids_seleccionados(filas, excepto=None):
    return {
        int(fila['insumo_id'])
        for indice, fila in enumerate(filas)
        if indice != excepto and fila.get('insumo_id')
    }


def insumos_disponibles(insumos, filas, indice):
    """Insumos que puede elegir la fila `indice`: los que no usa otra fila."""
    usados = ids_seleccionados(filas, excepto=indice)
    return [insumo for insumo in insumos if insumo.id not in usados]


def _cantidad(valor):
    return f'{float(valor):g}'


def validar_insumos(filas, insumos):
    """Errores por fila: {indice: {campo: mensaje}}; vacío si todo es válido."""
    por_id = {insumo.id: insumo for insumo in insumos}
    vistos = set()
    errores = {}
    for indice, fila in enumerate(filas):
        errores_fila = {}
        insumo_id = fila.get('insumo_id')
        cantidad = fila.get('cantidad_utilizada')
        insumo = None
        if not insumo_id:
            errores_fila['insumo_id'] = 'Debe seleccionar un insumo'
        elif int(insumo_id) in vistos:
            errores_fila['insumo_id'] = 'El insumo ya fue seleccionado en otra fila'
        elif int(insumo_id) not in por_id:
            errores_fila['insumo_id'] = 'El insumo seleccionado no existe'
        else:
            insumo = por_id[int(insumo_id)]
        if insumo_id:
            vistos.add(int(insumo_id))

        if cantidad is None:
            errores_fila['cantidad_utilizada'] = 'La cantidad es requerida'
        elif cantidad <= 0:
            errores_fila['cantidad_utilizada'] = 'La cantidad debe ser mayor a 0'
        elif insumo is not None and float(cantidad) > insumo.cantidad:
            errores_fila['cantidad_utilizada'] = (
                f'No puede usar más de {_cantidad(insumo.cantidad)} {insumo.unidad}'
            )
        if errores_fila:
            errores[indice] = errores_fila
    return errores


def precio_valido(valor):
    """Precio de venta como float positivo, o None si falta o no es válido."""
    if valor is None or isinstance(valor, bool):
        return None
    try:
        precio = float(valor)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(precio) or precio <= 0:
        return None
    return precio


def construir_payload(datos, productos=()):
    """Cuerpo de POST/PUT /producciones.

    Lleva `producto_id` en modo existente o `precio_venta` en modo nuevo,
    nunca ambos. Lanza ProduccionInvalida si falta el producto o el precio.
    """
    fecha = fecha_iso_utc(datos.get('fecha'))
    if fecha is None:
        raise ProduccionInvalida('fecha', MENSAJE_FECHA)

    payload = {
        'nombre_producto': (datos.get('nombre_producto') or '').strip(),
        'cantidad_producida': float(datos.get('cantidad_producida') or 0),
        'unidad_producto': (datos.get('unidad_producto') or '').strip(),
        'fecha': fecha,
        'insumos': [
            {
                'insumo_id': int(fila['insumo_id']),
                'cantidad_utilizada': float(fila['cantidad_utilizada']),
            }
            for fila in datos.get('insumos') or []
        ],
    }

    if datos.get('modo') == MODO_EXISTENTE:
        producto_id = datos.get('producto_id')
        if not producto_id:
            raise ProduccionInvalida('producto_id', MENSAJE_PRODUCTO)
        payload['producto_id'] = int(producto_id)
        producto = producto_seleccionado(productos, producto_id)
        if producto is not None:
            payload['nombre_producto'] = producto.nombre
            payload['unidad_producto'] = producto.unidad
    else:
        precio = precio_valido(datos.get('precio_venta'))
        if precio is None:
            raise ProduccionInvalida('precio_venta', MENSAJE_PRECIO)
        payload['precio_venta'] = precio
    return payload
