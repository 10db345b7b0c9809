# Formulario para registrar o editar insumos
from flask_wtf import FlaskForm
from wtforms import StringField, SubmitField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional

from models import Insumo

from .campos import CampoDecimal, a_float


class InsumoForm(FlaskForm):
    nombre = StringField('Nombre *', validators=[DataRequired(message='El nombre es requerido')])  # Nombre del insumo
    cantidad = CampoDecimal('Cantidad *', validators=[InputRequired(message='La cantidad es requerida'), NumberRange(min=0, message='La cantidad debe ser mayor o igual a 0')])  # Stock inicial
    unidad = StringField('Unidad *', validators=[DataRequired(message='La unidad es requerida')], render_kw={'placeholder': 'ej: kg, litros, unidades'})  # Unidad de medida
    precio_unitario = CampoDecimal('Precio Unitario', validators=[Optional(), NumberRange(min=0, message='El precio debe ser mayor o igual a 0')])  # Precio de compra
    submit = SubmitField('Guardar')  # Botón de guardado

    def a_modelo(self):
        return Insumo(
            nombre=self.nombre.data.strip(),
            cantidad=a_float(self.cantidad.data),
            unidad=self.unidad.data.strip(),
            precio_unitario=a_float(self.precio_unitario.data),
        )
