import logging
from datetime import datetime

from flask import Flask, render_template, redirect, url_for, flash, request, abort

import formato
from config import Config
from conciliacion import ProduccionInvalida, autocompletar, construir_payload
from dashboard import UMBRAL_INSUMOS, UMBRAL_PRODUCTOS, calcular_resumen
from forms import ConfirmarEliminacionForm, InsumoForm, ProductoForm, ProduccionForm, VentaForm
from services import ApiError, api

app = Flask(__name__)
app.config.from_object(Config)

logging.basicConfig(
    level=app.config['LOG_LEVEL'],
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

api.init_app(app)

# Filtros de formateo disponibles en todas las plantillas
app.add_template_filter(formato.format_currency, 'moneda')
app.add_template_filter(formato.format_amount, 'monto')
app.add_template_filter(formato.format_number, 'numero')
app.add_template_filter(formato.format_date, 'fecha')
app.add_template_filter(formato.format_datetime, 'fecha_hora')

NAVEGACION = [
    ('Dashboard', 'dashboard'),
    ('Insumos', 'listar_insumos'),
    ('Productos', 'listar_productos'),
    ('Producciones', 'listar_producciones'),
    ('Ventas', 'listar_ventas'),
]

# Textos por entidad para confirmaciones y alertas
TEXTOS = {
    'insumos': {'nombre': 'Insumo', 'el': 'el insumo', 'este': 'este insumo', 'guardado': 'Insumo guardado', 'eliminado': 'Insumo eliminado'},
    'productos': {'nombre': 'Producto', 'el': 'el producto', 'este': 'este producto', 'guardado': 'Producto guardado', 'eliminado': 'Producto eliminado'},
    'producciones': {'nombre': 'Producción', 'el': 'la producción', 'este': 'esta producción', 'guardado': 'Producción guardada', 'eliminado': 'Producción eliminada'},
    'ventas': {'nombre': 'Venta', 'el': 'la venta', 'este': 'esta venta', 'guardado': 'Venta guardada', 'eliminado': 'Venta eliminada'},
}


@app.context_processor
def inject_navegacion():
    return {'navegacion': NAVEGACION}


@app.errorhandler(ApiError)
def error_de_lectura(e):
    """Error al cargar datos: la página muestra el error y permite reintentar."""
    app.logger.warning('Error al cargar %s: %s', request.path, e.mensaje)
    status = 404 if e.status_code == 404 else 502
    return render_template('error.html', mensaje=e.mensaje, reintentar=request.url), status


@app.errorhandler(404)
def no_encontrado(e):
    return redirect(url_for('dashboard'))


def _ahora():
    return datetime.now().replace(second=0, microsecond=0)


def _registro_o_404(recurso, registro_id):
    if registro_id is None:
        return None
    registro = recurso.obtener(registro_id)
    if registro is None:
        abort(404)
    return registro


def _guardar(recurso, registro_id, datos):
    """Crea o actualiza; en caso de error deja el formulario abierto con una alerta."""
    textos = TEXTOS[recurso.nombre]
    try:
        if registro_id is None:
            recurso.crear(datos)
        else:
            recurso.actualizar(registro_id, datos)
    except ApiError as e:
        app.logger.exception('Error al guardar %s', textos['el'])
        flash(f"Error al guardar {textos['el']}: {e.mensaje}", 'danger')
        return False
    flash(f"{textos['guardado']} correctamente.", 'success')
    return True


def _confirmar_eliminacion(recurso, registro_id, destino, nombre=None):
    """GET muestra la confirmación; POST con `confirmar` elimina una sola vez."""
    textos = TEXTOS[recurso.nombre]
    form = ConfirmarEliminacionForm()
    if form.validate_on_submit():
        if form.confirmar.data:
            try:
                recurso.eliminar(registro_id)
                flash(f"{textos['eliminado']} correctamente.", 'success')
            except ApiError as e:
                app.logger.exception('Error al eliminar %s %s', textos['el'], registro_id)
                flash(f"Error al eliminar {textos['el']}: {e.mensaje}", 'danger')
        return redirect(url_for(destino))
    return render_template('confirmar_eliminacion.html', form=form, textos=textos,
                           nombre=nombre, volver=url_for(destino))


def _nombre_de(recurso, registro_id, atributo='nombre'):
    registro = recurso.buscar(registro_id)
    return getattr(registro, atributo, None) if registro else None


@app.route('/')
def index():
    return redirect(url_for('dashboard'))


@app.route('/dashboard')
def dashboard():
    resumen = calcular_resumen(
        api.insumos.listar(),
        api.productos.listar(),
        api.producciones.listar(),
        api.ventas.listar(),
    )
    return render_template('dashboard.html', resumen=resumen,
                           umbral_insumos=UMBRAL_INSUMOS, umbral_productos=UMBRAL_PRODUCTOS)


# ------------------------------------------------------------------
# Insumos
# ------------------------------------------------------------------
@app.route('/insumos')
def listar_insumos():
    return render_template('insumos/lista.html', insumos=api.insumos.listar())


@app.route('/insumos/nuevo', methods=['GET', 'POST'])
@app.route('/insumos/<int:insumo_id>/editar', methods=['GET', 'POST'])
def editar_insumo(insumo_id=None):
    insumo = _registro_o_404(api.insumos, insumo_id)
    form = InsumoForm(obj=insumo)
    if form.validate_on_submit() and _guardar(api.insumos, insumo_id, form.a_modelo()):
        return redirect(url_for('listar_insumos'))
    return render_template('insumos/form.html', form=form, insumo=insumo)


@app.route('/insumos/<int:insumo_id>/eliminar', methods=['GET', 'POST'])
def eliminar_insumo(insumo_id):
    return _confirmar_eliminacion(api.insumos, insumo_id, 'listar_insumos',
                                  _nombre_de(api.insumos, insumo_id))


# ------------------------------------------------------------------
# Productos
# ------------------------------------------------------------------
@app.route('/productos')
def listar_productos():
    return render_template('productos/lista.html', productos=api.productos.listar())


@app.route('/productos/nuevo', methods=['GET', 'POST'])
@app.route('/productos/<int:producto_id>/editar', methods=['GET', 'POST'])
def editar_producto(producto_id=None):
    producto = _registro_o_404(api.productos, producto_id)
    insumos = api.insumos.listar()
    form = ProductoForm(obj=producto)
    form.insumos_ids.choices = [(i.id, i.nombre) for i in insumos]
    if form.validate_on_submit() and _guardar(api.productos, producto_id, form.a_modelo()):
        return redirect(url_for('listar_productos'))
    return render_template('productos/form.html', form=form, producto=producto, insumos=insumos)


@app.route('/productos/<int:producto_id>/eliminar', methods=['GET', 'POST'])
def eliminar_producto(producto_id):
    return _confirmar_eliminacion(api.productos, producto_id, 'listar_productos',
                                  _nombre_de(api.productos, producto_id))


# ------------------------------------------------------------------
# Ventas
# ------------------------------------------------------------------
@app.route('/ventas')
def listar_ventas():
    productos = {p.id: p for p in api.productos.listar()}
    return render_template('ventas/lista.html', ventas=api.ventas.listar(), productos=productos)


@app.route('/ventas/nueva', methods=['GET', 'POST'])
@app.route('/ventas/<int:venta_id>/editar', methods=['GET', 'POST'])
def editar_venta(venta_id=None):
    venta = _registro_o_404(api.ventas, venta_id)
    if venta is not None:
        form = VentaForm(data={
            'producto_id': venta.producto_id,
            'cantidad': venta.cantidad,
            'precio_unitario': venta.precio_unitario,
            'fecha': formato.a_fecha_local(venta.fecha),
        })
    else:
        form = VentaForm(data={'fecha': _ahora()})
    form.productos = api.productos.listar()
    form.producto_id.choices = [(0, 'Seleccionar producto')] + [
        (p.id, f'{p.nombre} (Stock: {p.cantidad:g} {p.unidad})') for p in form.productos
    ]
    # El cambio de producto solo actualiza la información mostrada
    if not request.form.get('refrescar') and form.validate_on_submit():
        if _guardar(api.ventas, venta_id, form.a_modelo()):
            return redirect(url_for('listar_ventas'))
    return render_template('ventas/form.html', form=form, venta=venta, producto=form.producto())


@app.route('/ventas/<int:venta_id>/eliminar', methods=['GET', 'POST'])
def eliminar_venta(venta_id):
    venta = api.ventas.buscar(venta_id)
    nombre = f'Venta #{venta_id} ({formato.format_date(venta.fecha)})' if venta else None
    return _confirmar_eliminacion(api.ventas, venta_id, 'listar_ventas', nombre)


# ------------------------------------------------------------------
# Producciones
# ------------------------------------------------------------------
@app.route('/producciones')
def listar_producciones():
    return render_template('producciones/lista.html', producciones=api.producciones.listar())


@app.route('/producciones/nueva', methods=['GET', 'POST'])
@app.route('/producciones/<int:produccion_id>/editar', methods=['GET', 'POST'])
def editar_produccion(produccion_id=None):
    produccion = _registro_o_404(api.producciones, produccion_id)
    if request.method == 'GET':
        datos = ProduccionForm.datos_de(produccion) if produccion else {'fecha': _ahora()}
        form = ProduccionForm(data=datos)
    else:
        form = ProduccionForm()
    form_insumo = InsumoForm(prefix='nuevo_insumo')
    form.catalogo_productos = api.productos.listar()
    form.catalogo_insumos = api.insumos.listar()
    mostrar_modal = False

    if request.method == 'POST':
        accion = request.form.get('refrescar') or request.form.get('accion') or ''
        form.aplicar(autocompletar(form.datos(), form.catalogo_productos,
                                   cambio_de_modo=accion == 'cambiar_modo',
                                   editando=produccion is not None))
        if accion == 'agregar_insumo':
            form.agregar_fila()
        elif accion.startswith('quitar_insumo-') and accion.partition('-')[2].isdigit():
            form.quitar_fila(int(accion.partition('-')[2]))
        elif accion == 'abrir_insumo':
            mostrar_modal = True
        elif accion == 'crear_insumo':
            if _crear_insumo(form_insumo):
                form.catalogo_insumos = api.insumos.listar()  # El nuevo insumo ya es seleccionable
                form_insumo = InsumoForm(prefix='nuevo_insumo', formdata=None)
            else:
                mostrar_modal = True
        elif accion == 'guardar':
            form.preparar_opciones()
            if form.validate() and _guardar_produccion(form, produccion_id):
                return redirect(url_for('listar_producciones'))

    form.preparar_opciones()
    return render_template('producciones/form.html', form=form, form_insumo=form_insumo,
                           produccion=produccion, mostrar_modal=mostrar_modal)


def _crear_insumo(form_insumo):
    if not form_insumo.validate():
        return False
    return _guardar(api.insumos, None, form_insumo.a_modelo())


def _guardar_produccion(form, produccion_id):
    try:
        payload = construir_payload(form.datos(), form.catalogo_productos)
    except ProduccionInvalida as e:
        form[e.campo].errors.append(e.mensaje)
        return False
    return _guardar(api.producciones, produccion_id, payload)


@app.route('/producciones/<int:produccion_id>/eliminar', methods=['GET', 'POST'])
def eliminar_produccion(produccion_id):
    return _confirmar_eliminacion(api.producciones, produccion_id, 'listar_producciones',
                                  _nombre_de(api.producciones, produccion_id, 'nombre_producto'))


if __name__ == '__main__':
    app.run(debug=True)
