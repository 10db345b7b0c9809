"""Formulario de producción.

Se re-envía a sí mismo con un campo `accion` para agregar/quitar filas de
insumos, cambiar entre producto existente y nuevo, y crear un insumo desde
el modal sin perder lo cargado. Las reglas viven en conciliacion.py.
"""
from flask_wtf import FlaskForm
from wtforms import (DateTimeLocalField, FieldList, Form, FormField, RadioField,
                     SelectField, StringField)
from wtforms.validators import DataRequired, InputRequired, NumberRange, ValidationError

from conciliacion import (MENSAJE_PRECIO, MENSAJE_PRODUCTO, MODO_EXISTENTE, MODO_NUEVO,
                          UNIDAD_POR_DEFECTO, insumos_disponibles, precio_valido,
                          producto_seleccionado, validar_insumos)
from formato import a_fecha_local

from .campos import CampoDecimal, entero_opcional


class InsumoUtilizadoForm(Form):
    insumo_id = SelectField('Insumo', coerce=entero_opcional, validate_choice=False)  # Insumo consumido
    cantidad_utilizada = CampoDecimal('Cantidad Utilizada')  # Cantidad descontada del insumo


class ProduccionForm(FlaskForm):
    modo = RadioField(choices=[(MODO_EXISTENTE, 'Usar producto existente'), (MODO_NUEVO, 'Crear producto nuevo')], default=MODO_NUEVO)
    producto_id = SelectField('Producto *', coerce=entero_opcional, validate_choice=False)  # Solo en modo existente
    nombre_producto = StringField('Nombre del Producto *', validators=[DataRequired(message='El nombre del producto es requerido')])
    cantidad_producida = CampoDecimal('Cantidad Producida *', validators=[InputRequired(message='La cantidad producida es requerida'), NumberRange(min=0.01, message='La cantidad debe ser mayor a 0')])
    unidad_producto = StringField('Unidad del Producto *', default=UNIDAD_POR_DEFECTO, validators=[DataRequired(message='La unidad es requerida')])
    precio_venta = CampoDecimal('Precio de Venta *', render_kw={'placeholder': '0.00'})  # Solo en modo nuevo
    fecha = DateTimeLocalField('Fecha y Hora *', format='%Y-%m-%dT%H:%M', validators=[InputRequired(message='La fecha es requerida')])
    insumos = FieldList(FormField(InsumoUtilizadoForm))

    catalogo_insumos = ()  # Insumos conocidos al mostrar el formulario
    catalogo_productos = ()

    @property
    def usar_existente(self):
        return self.modo.data == MODO_EXISTENTE

    @property
    def producto(self):
        if not self.usar_existente:
            return None
        return producto_seleccionado(self.catalogo_productos, self.producto_id.data)

    @classmethod
    def datos_de(cls, produccion):
        """Valores iniciales para editar una producción registrada."""
        return {
            'modo': MODO_EXISTENTE if produccion.producto_id else MODO_NUEVO,
            'producto_id': produccion.producto_id,
            'nombre_producto': produccion.nombre_producto,
            'cantidad_producida': produccion.cantidad_producida,
            'unidad_producto': produccion.unidad_producto or UNIDAD_POR_DEFECTO,
            'precio_venta': produccion.producto.precio_venta if produccion.producto else None,
            'fecha': a_fecha_local(produccion.fecha),
            'insumos': [
                {'insumo_id': item.insumo_id, 'cantidad_utilizada': item.cantidad_utilizada}
                for item in produccion.insumos_utilizados
            ],
        }

    def datos(self):
        return {
            'modo': self.modo.data,
            'producto_id': self.producto_id.data,
            'nombre_producto': self.nombre_producto.data,
            'cantidad_producida': self.cantidad_producida.data,
            'unidad_producto': self.unidad_producto.data,
            'precio_venta': self.precio_venta.data,
            'fecha': self.fecha.data,
            'insumos': self.filas(),
        }

    def filas(self):
        return [
            {'insumo_id': fila.insumo_id.data, 'cantidad_utilizada': fila.cantidad_utilizada.data}
            for fila in self.insumos
        ]

    def aplicar(self, datos):
        """Vuelca al formulario el resultado de conciliacion.autocompletar()."""
        self.producto_id.data = datos['producto_id']
        self.nombre_producto.data = datos['nombre_producto']
        self.unidad_producto.data = datos['unidad_producto']
        self.precio_venta.data = datos['precio_venta']
        # Los valores enviados tienen prioridad al renderizar; se descartan
        for campo in (self.producto_id, self.nombre_producto, self.unidad_producto, self.precio_venta):
            campo.raw_data = None

    def agregar_fila(self):
        self.insumos.append_entry({'insumo_id': None, 'cantidad_utilizada': None})

    def quitar_fila(self, indice):
        filas = [fila for i, fila in enumerate(self.filas()) if i != indice]
        while len(self.insumos):
            self.insumos.pop_entry()
        for fila in filas:
            self.insumos.append_entry(fila)

    def preparar_opciones(self):
        """Opciones de producto y de insumo por fila, y límites de stock."""
        self.producto_id.choices = [(0, 'Seleccionar producto')] + [
            (p.id, p.nombre) for p in self.catalogo_productos
        ]
        solo_lectura = self.producto is not None
        for campo in (self.nombre_producto, self.unidad_producto):
            campo.render_kw = {'readonly': True} if solo_lectura else None

        filas = self.filas()
        por_id = {insumo.id: insumo for insumo in self.catalogo_insumos}
        for indice, fila in enumerate(self.insumos):
            fila.insumo_id.choices = [(0, 'Seleccionar insumo')] + [
                (i.id, f'{i.nombre} (Stock: {i.cantidad:g} {i.unidad})')
                for i in insumos_disponibles(self.catalogo_insumos, filas, indice)
            ]
            seleccionado = por_id.get(fila.insumo_id.data)
            fila.cantidad_utilizada.render_kw = {'min': '0.01', 'step': 'any'}
            if seleccionado is not None:
                fila.cantidad_utilizada.render_kw['max'] = f'{seleccionado.cantidad:g}'
            fila.seleccionado = seleccionado

    def validate_producto_id(self, field):
        if self.usar_existente and not field.data:
            raise ValidationError(MENSAJE_PRODUCTO)

    def validate_precio_venta(self, field):
        # El precio pertenece al producto existente; solo se valida para uno nuevo
        field.errors[:] = []
        if not self.usar_existente and precio_valido(field.data) is None:
            raise ValidationError(MENSAJE_PRECIO)

    def validate(self, extra_validators=None):
        valido = super().validate(extra_validators)
        errores = validar_insumos(self.filas(), self.catalogo_insumos)
        for indice, campos in errores.items():
            for nombre, mensaje in campos.items():
                self.insumos[indice][nombre].errors.append(mensaje)
        return valido and not errores
