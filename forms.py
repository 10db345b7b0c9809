# Formularios principales del sistema (confirmación de eliminación, etc)
from flask_wtf import FlaskForm
from wtforms import SubmitField

# Importar formularios específicos de insumos, productos, producciones y ventas
from forms_type import InsumoForm, ProductoForm, ProduccionForm, VentaForm


class ConfirmarEliminacionForm(FlaskForm):
    """Confirmación previa a cualquier eliminación.

    Solo `confirmar` dispara la llamada DELETE; `cancelar` vuelve al listado.
    """
    confirmar = SubmitField('Eliminar')  # Confirma la eliminación
    cancelar = SubmitField('Cancelar')  # Vuelve sin eliminar


__all__ = ['ConfirmarEliminacionForm', 'InsumoForm', 'ProductoForm', 'ProduccionForm', 'VentaForm']
