# Formulario para registrar o editar ventas
from flask_wtf import FlaskForm
from wtforms import DateTimeLocalField, SelectField, SubmitField
from wtforms.validators import InputRequired, NumberRange, ValidationError

from formato import fecha_iso_utc
from models import Venta

from .campos import CampoDecimal, a_float, entero_opcional


class VentaForm(FlaskForm):
    producto_id = SelectField('Producto *', coerce=entero_opcional, validate_choice=False)  # Producto vendido
    cantidad = CampoDecimal('Cantidad *', validators=[InputRequired(message='La cantidad es requerida'), NumberRange(min=0.01, message='La cantidad debe ser mayor a 0')])  # Cantidad vendida
    precio_unitario = CampoDecimal('Precio Unitario *', validators=[InputRequired(message='El precio unitario es requerido'), NumberRange(min=0.01, message='El precio debe ser mayor a 0')])  # Precio por unidad
    fecha = DateTimeLocalField('Fecha y Hora *', format='%Y-%m-%dT%H:%M', validators=[InputRequired(message='La fecha es requerida')])  # Fecha de la venta
    submit = SubmitField('Guardar')  # Botón de guardado

    productos = ()  # Productos conocidos al mostrar el formulario

    def producto(self):
        return next((p for p in self.productos if p.id == self.producto_id.data), None)

    def total(self):
        if self.cantidad.data is None or self.precio_unitario.data is None:
            return 0
        return float(self.cantidad.data * self.precio_unitario.data)

    def validate_producto_id(self, field):
        if not field.data:
            raise ValidationError('Debe seleccionar un producto')
        if self.producto() is None:
            raise ValidationError('El producto seleccionado no existe')

    def validate_cantidad(self, field):
        producto = self.producto()
        if producto is not None and field.data is not None and field.data > producto.cantidad:
            raise ValidationError(f'No puede vender más de {producto.cantidad:g} unidades disponibles')

    def a_modelo(self):
        return Venta(
            producto_id=self.producto_id.data,
            cantidad=a_float(self.cantidad.data),
            precio_unitario=a_float(self.precio_unitario.data),
            fecha=fecha_iso_utc(self.fecha.data),
        )
