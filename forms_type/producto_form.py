# Formulario para registrar o editar productos
from flask_wtf import FlaskForm
from wtforms import SelectMultipleField, StringField, SubmitField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional

from models import Producto

from .campos import CampoDecimal, a_float


class ProductoForm(FlaskForm):
    nombre = StringField('Nombre *', validators=[DataRequired(message='El nombre es requerido')])  # Nombre del producto
    cantidad = CampoDecimal('Cantidad *', validators=[InputRequired(message='La cantidad es requerida'), NumberRange(min=0, message='La cantidad debe ser mayor o igual a 0')])  # Stock disponible
    unidad = StringField('Unidad *', validators=[DataRequired(message='La unidad es requerida')], render_kw={'placeholder': 'ej: kg, litros, unidades'})  # Unidad de medida
    precio_venta = CampoDecimal('Precio de Venta', validators=[Optional(), NumberRange(min=0, message='El precio debe ser mayor o igual a 0')])  # Precio sugerido
    insumos_ids = SelectMultipleField('Insumos', coerce=int, validate_choice=False)  # Insumos que lo componen
    submit = SubmitField('Guardar')  # Botón de guardado

    def a_modelo(self):
        return Producto(
            nombre=self.nombre.data.strip(),
            cantidad=a_float(self.cantidad.data),
            unidad=self.unidad.data.strip(),
            # Un precio 0 se envía como "sin precio"
            precio_venta=a_float(self.precio_venta.data) or None,
            insumos_ids=list(dict.fromkeys(self.insumos_ids.data or [])),
        )
