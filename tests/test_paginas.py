"""
Tests de las páginas: listados, formularios, confirmación de eliminación,
errores de lectura y escritura y el formulario de producción
"""
import re
import unittest

from app import app
from conciliacion import MENSAJE_PRECIO
from services import api
from tests.utilidades import FabricaDatos, ServidorFalso, falla, ok

FECHA_FORM = '2024-01-05T10:30'


def etiqueta_input(html, nombre):
    return re.search(r'<input[^>]*name="%s"[^>]*>' % re.escape(nombre), html).group(0)


def etiqueta_select(html, nombre):
    return re.search(r'<select[^>]*name="%s"[^>]*>.*?</select>' % re.escape(nombre), html, re.S).group(0)


class PaginasTestCase(unittest.TestCase):
    """Base: cliente de pruebas de Flask y API simulada en memoria"""

    def setUp(self):
        app.config.update(TESTING=True, WTF_CSRF_ENABLED=False)
        self.client = app.test_client()
        self.servidor = ServidorFalso()
        api.cliente.session = self.servidor
        api.cache.limpiar()

    def html(self, respuesta):
        return respuesta.get_data(as_text=True)


class NavegacionTests(PaginasTestCase):

    def test_raiz_redirige_al_dashboard(self):
        """Test / lleva al dashboard"""
        respuesta = self.client.get('/')
        self.assertEqual(respuesta.status_code, 302)
        self.assertTrue(respuesta.headers['Location'].endswith('/dashboard'))

    def test_ruta_desconocida_redirige_al_dashboard(self):
        """Test una URL inexistente vuelve al dashboard"""
        respuesta = self.client.get('/no-existe')
        self.assertEqual(respuesta.status_code, 302)
        self.assertTrue(respuesta.headers['Location'].endswith('/dashboard'))

    def test_dashboard(self):
        """Test totales, alertas de stock bajo y ventas recientes"""
        self.servidor.responder('GET', '/insumos', ok([FabricaDatos.insumo(nombre='Levadura', cantidad=5),
                                                       FabricaDatos.insumo(id=2, cantidad=50)]))
        self.servidor.responder('GET', '/productos', ok([FabricaDatos.producto(nombre='Torta', cantidad=2)]))
        self.servidor.responder('GET', '/producciones', ok([]))
        self.servidor.responder('GET', '/ventas', ok([FabricaDatos.venta(cantidad=3, precio_unitario=2500)]))
        respuesta = self.client.get('/dashboard')
        html = self.html(respuesta)
        self.assertEqual(respuesta.status_code, 200)
        self.assertIn('Insumos con stock bajo', html)
        self.assertIn('Levadura', html)
        self.assertIn('Productos con stock bajo', html)
        self.assertIn('Torta', html)
        self.assertIn('Gs 7.500', html)


    def test_dashboard_con_montos_muy_grandes(self):
        """Test una venta de monto enorme no rompe el dashboard"""
        self.servidor.responder('GET', '/insumos', ok([]))
        self.servidor.responder('GET', '/productos', ok([]))
        self.servidor.responder('GET', '/producciones', ok([]))
        self.servidor.responder('GET', '/ventas', ok([FabricaDatos.venta(cantidad=1e15, precio_unitario=1e15)]))
        respuesta = self.client.get('/dashboard')
        self.assertEqual(respuesta.status_code, 200)
        self.assertIn('Gs 1.' + '.'.join(['000'] * 10), self.html(respuesta))


class InsumosPaginasTests(PaginasTestCase):

    def test_lista_vacia(self):
        """Test estado vacío con acceso a crear el primero"""
        self.servidor.responder('GET', '/insumos', ok([]))
        html = self.html(self.client.get('/insumos'))
        self.assertIn('No hay insumos registrados', html)
        self.assertIn('Agregar primer insumo', html)

    def test_lista(self):
        """Test tabla con los insumos y sus precios"""
        self.servidor.responder('GET', '/insumos', ok([FabricaDatos.insumo(precio_unitario=5000)]))
        html = self.html(self.client.get('/insumos'))
        self.assertIn('Harina', html)
        self.assertIn('Gs 5.000', html)

    def test_error_de_lectura(self):
        """Test error al cargar: página de error con Reintentar tras un reintento"""
        self.servidor.responder('GET', '/insumos', falla(500, error='Base de datos caída'))
        respuesta = self.client.get('/insumos')
        self.assertEqual(respuesta.status_code, 502)
        self.assertIn('Reintentar', self.html(respuesta))
        self.assertIn('Base de datos caída', self.html(respuesta))
        self.assertEqual(len(self.servidor.llamadas_a('GET', '/insumos')), 2)

    def test_registro_inexistente(self):
        """Test editar un insumo que la API no encuentra"""
        self.servidor.responder('GET', '/insumos/99', falla(404, error='Insumo no encontrado'))
        respuesta = self.client.get('/insumos/99/editar')
        self.assertEqual(respuesta.status_code, 404)
        self.assertIn('Insumo no encontrado', self.html(respuesta))

    def test_crear(self):
        """Test crear un insumo válido y volver al listado"""
        self.servidor.responder('POST', '/insumos', ok(FabricaDatos.insumo(id=5)))
        respuesta = self.client.post('/insumos/nuevo', data={
            'nombre': 'Sal', 'cantidad': '3,5', 'unidad': 'kg', 'precio_unitario': '',
        })
        self.assertEqual(respuesta.status_code, 302)
        self.assertTrue(respuesta.headers['Location'].endswith('/insumos'))
        self.assertEqual(self.servidor.llamadas_a('POST', '/insumos'),
                         [('POST', '/insumos', {'nombre': 'Sal', 'cantidad': 3.5, 'unidad': 'kg'})])

    def test_validacion_no_llama_a_la_api(self):
        """Test datos inválidos se muestran junto al campo sin llamar a la API"""
        respuesta = self.client.post('/insumos/nuevo', data={'nombre': '', 'cantidad': '-1', 'unidad': 'kg'})
        html = self.html(respuesta)
        self.assertEqual(respuesta.status_code, 200)
        self.assertIn('El nombre es requerido', html)
        self.assertIn('La cantidad debe ser mayor o igual a 0', html)
        self.assertEqual(self.servidor.llamadas, [])

    def test_error_al_guardar(self):
        """Test un rechazo de la API deja el formulario abierto con la alerta"""
        self.servidor.responder('POST', '/insumos', falla(400, error='Nombre duplicado'))
        respuesta = self.client.post('/insumos/nuevo', data={'nombre': 'Sal', 'cantidad': '1', 'unidad': 'kg'})
        html = self.html(respuesta)
        self.assertEqual(respuesta.status_code, 200)
        self.assertIn('Error al guardar el insumo: Nombre duplicado', html)
        self.assertIn('value="Sal"', html)
        self.assertEqual(len(self.servidor.llamadas_a('POST', '/insumos')), 1)

    def test_editar(self):
        """Test el formulario de edición se completa y guarda con PUT"""
        self.servidor.responder('GET', '/insumos/1', ok(FabricaDatos.insumo()))
        self.servidor.responder('PUT', '/insumos/1', ok(FabricaDatos.insumo(cantidad=30)))
        self.assertIn('value="Harina"', self.html(self.client.get('/insumos/1/editar')))
        respuesta = self.client.post('/insumos/1/editar', data={'nombre': 'Harina', 'cantidad': '30', 'unidad': 'kg'})
        self.assertEqual(respuesta.status_code, 302)
        self.assertEqual(len(self.servidor.llamadas_a('PUT', '/insumos/1')), 1)


class EliminacionTests(PaginasTestCase):

    def setUp(self):
        super().setUp()
        self.servidor.responder('GET', '/insumos', ok([FabricaDatos.insumo()]))

    def test_confirmacion(self):
        """Test se pide confirmación antes de eliminar"""
        html = self.html(self.client.get('/insumos/1/eliminar'))
        self.assertIn('¿Está seguro de que desea eliminar este insumo?', html)
        self.assertIn('Harina', html)
        self.assertEqual(self.servidor.llamadas_a('DELETE'), [])

    def test_cancelar_no_elimina(self):
        """Test cancelar no envía ningún DELETE"""
        respuesta = self.client.post('/insumos/1/eliminar', data={'cancelar': 'Cancelar'})
        self.assertEqual(respuesta.status_code, 302)
        self.assertEqual(self.servidor.llamadas_a('DELETE'), [])

    def test_confirmar_elimina_una_vez(self):
        """Test confirmar envía exactamente un DELETE"""
        self.servidor.responder('DELETE', '/insumos/1', ok())
        respuesta = self.client.post('/insumos/1/eliminar', data={'confirmar': 'Eliminar'})
        self.assertEqual(respuesta.status_code, 302)
        self.assertTrue(respuesta.headers['Location'].endswith('/insumos'))
        self.assertEqual(len(self.servidor.llamadas_a('DELETE', '/insumos/1')), 1)

    def test_error_al_eliminar(self):
        """Test un rechazo al eliminar se informa con una alerta"""
        self.servidor.responder('DELETE', '/insumos/1', falla(409, error='El insumo está en uso'))
        respuesta = self.client.post('/insumos/1/eliminar', data={'confirmar': 'Eliminar'}, follow_redirects=True)
        self.assertIn('Error al eliminar el insumo: El insumo está en uso', self.html(respuesta))
        self.assertEqual(len(self.servidor.llamadas_a('DELETE', '/insumos/1')), 1)


class VentasPaginasTests(PaginasTestCase):

    def setUp(self):
        super().setUp()
        self.servidor.responder('GET', '/productos', ok([FabricaDatos.producto(cantidad=10)]))

    def datos(self, **cambios):
        datos = {'producto_id': '1', 'cantidad': '2', 'precio_unitario': '5000', 'fecha': FECHA_FORM}
        datos.update(cambios)
        return datos

    def test_lista_con_nombre_de_producto(self):
        """Test el listado muestra producto y total de cada venta"""
        self.servidor.responder('GET', '/ventas', ok([FabricaDatos.venta(cantidad=2, precio_unitario=5000)]))
        html = self.html(self.client.get('/ventas'))
        self.assertIn('Pan', html)
        self.assertIn('Gs 10.000', html)

    def test_no_vende_mas_que_el_stock(self):
        """Test la cantidad no puede superar el stock del producto"""
        html = self.html(self.client.post('/ventas/nueva', data=self.datos(cantidad='11')))
        self.assertIn('No puede vender más de 10 unidades disponibles', html)
        self.assertEqual(self.servidor.llamadas_a('POST'), [])

    def test_producto_requerido(self):
        """Test sin producto seleccionado no se envía la venta"""
        html = self.html(self.client.post('/ventas/nueva', data=self.datos(producto_id='0')))
        self.assertIn('Debe seleccionar un producto', html)
        self.assertEqual(self.servidor.llamadas_a('POST'), [])

    def test_cambio_de_producto_solo_refresca(self):
        """Test elegir un producto muestra su stock sin guardar"""
        html = self.html(self.client.post('/ventas/nueva', data=self.datos(refrescar='refrescar')))
        self.assertIn('Stock disponible', html)
        self.assertIn('Gs 10.000', html)
        self.assertEqual(self.servidor.llamadas_a('POST'), [])

    def test_crear(self):
        """Test venta válida enviada con fecha en UTC"""
        self.servidor.responder('POST', '/ventas', ok(FabricaDatos.venta(id=3)))
        respuesta = self.client.post('/ventas/nueva', data=self.datos())
        self.assertEqual(respuesta.status_code, 302)
        (_, _, payload), = self.servidor.llamadas_a('POST', '/ventas')
        self.assertEqual(payload['producto_id'], 1)
        self.assertEqual(payload['cantidad'], 2.0)
        self.assertEqual(payload['precio_unitario'], 5000.0)
        self.assertTrue(payload['fecha'].endswith('Z'))


class ProduccionPaginasTests(PaginasTestCase):

    def setUp(self):
        super().setUp()
        self.servidor.responder('GET', '/productos', ok([FabricaDatos.producto(id=3, nombre='Pan', unidad='docenas')]))
        self.servidor.responder('GET', '/insumos', ok([FabricaDatos.insumo(id=1, nombre='Harina', cantidad=20),
                                                       FabricaDatos.insumo(id=2, nombre='Azúcar', cantidad=8)]))

    def datos(self, **cambios):
        datos = {
            'modo': 'nuevo',
            'nombre_producto': 'Galletas',
            'cantidad_producida': '12',
            'unidad_producto': 'paquetes',
            'fecha': FECHA_FORM,
            'insumos-0-insumo_id': '1',
            'insumos-0-cantidad_utilizada': '2',
            'accion': 'guardar',
        }
        datos.update(cambios)
        return datos

    def test_lista(self):
        """Test el listado indica cuando no hay insumos registrados"""
        self.servidor.responder('GET', '/producciones', ok([FabricaDatos.produccion()]))
        html = self.html(self.client.get('/producciones'))
        self.assertIn('Sin insumos registrados', html)

    def test_producto_nuevo_sin_precio(self):
        """Test un producto nuevo sin precio de venta no se envía"""
        respuesta = self.client.post('/producciones/nueva', data=self.datos())
        self.assertEqual(respuesta.status_code, 200)
        self.assertIn(MENSAJE_PRECIO, self.html(respuesta))
        self.assertEqual(self.servidor.llamadas_a('POST'), [])

    def test_producto_nuevo(self):
        """Test producto nuevo envía precio_venta y no producto_id"""
        self.servidor.responder('POST', '/producciones', ok(FabricaDatos.produccion(id=8)))
        respuesta = self.client.post('/producciones/nueva', data=self.datos(precio_venta='4500'))
        self.assertEqual(respuesta.status_code, 302)
        (_, _, payload), = self.servidor.llamadas_a('POST', '/producciones')
        self.assertEqual(payload['precio_venta'], 4500.0)
        self.assertNotIn('producto_id', payload)
        self.assertEqual(payload['insumos'], [{'insumo_id': 1, 'cantidad_utilizada': 2.0}])

    def test_producto_existente(self):
        """Test producto existente envía producto_id y nunca precio_venta"""
        self.servidor.responder('POST', '/producciones', ok(FabricaDatos.produccion(id=8)))
        respuesta = self.client.post('/producciones/nueva', data=self.datos(
            modo='existente', producto_id='3', precio_venta='999'))
        self.assertEqual(respuesta.status_code, 302)
        (_, _, payload), = self.servidor.llamadas_a('POST', '/producciones')
        self.assertEqual(payload['producto_id'], 3)
        self.assertNotIn('precio_venta', payload)
        self.assertEqual(payload['nombre_producto'], 'Pan')
        self.assertEqual(payload['unidad_producto'], 'docenas')

    def test_stock_insuficiente(self):
        """Test no se puede usar más insumo que el stock conocido"""
        html = self.html(self.client.post('/producciones/nueva', data=self.datos(
            precio_venta='4500', **{'insumos-0-insumo_id': '2', 'insumos-0-cantidad_utilizada': '9'})))
        self.assertIn('No puede usar más de 8 kg', html)
        self.assertEqual(self.servidor.llamadas_a('POST'), [])

    def test_agregar_y_quitar_filas(self):
        """Test agregar una fila y quitar otra conserva lo cargado"""
        html = self.html(self.client.post('/producciones/nueva', data=self.datos(accion='agregar_insumo')))
        self.assertIn('name="insumos-1-insumo_id"', html)
        self.assertIn('value="Galletas"', html)

        html = self.html(self.client.post('/producciones/nueva', data=self.datos(**{
            'accion': 'quitar_insumo-0',
            'insumos-1-insumo_id': '2',
            'insumos-1-cantidad_utilizada': '1',
        })))
        self.assertIn('name="insumos-0-insumo_id"', html)
        self.assertNotIn('name="insumos-1-insumo_id"', html)
        self.assertIn('<option selected value="2">', html)
        self.assertEqual(self.servidor.llamadas_a('POST'), [])

    def test_producto_existente_muestra_campos_de_solo_lectura(self):
        """Test elegir un producto completa nombre y unidad como solo lectura"""
        html = self.html(self.client.post('/producciones/nueva', data=self.datos(**{
            'modo': 'existente',
            'producto_id': '3',
            'refrescar': 'refrescar',
            'insumos-1-insumo_id': '',
            'insumos-1-cantidad_utilizada': '',
        })))
        nombre = etiqueta_input(html, 'nombre_producto')
        unidad = etiqueta_input(html, 'unidad_producto')
        self.assertIn('readonly', nombre)
        self.assertIn('value="Pan"', nombre)
        self.assertIn('readonly', unidad)
        self.assertIn('value="docenas"', unidad)
        self.assertEqual(self.servidor.llamadas_a('POST'), [])

    def test_insumo_elegido_no_se_ofrece_en_otra_fila(self):
        """Test el insumo de la fila 0 no aparece entre las opciones de la fila 1"""
        html = self.html(self.client.post('/producciones/nueva', data=self.datos(**{
            'accion': 'agregar_insumo',
        })))
        fila_0 = etiqueta_select(html, 'insumos-0-insumo_id')
        fila_1 = etiqueta_select(html, 'insumos-1-insumo_id')
        self.assertIn('value="1"', fila_0)
        self.assertNotIn('value="1"', fila_1)
        self.assertIn('value="2"', fila_1)

    def test_cambiar_a_modo_nuevo_limpia_campos(self):
        """Test pasar de producto existente a nuevo limpia nombre y unidad"""
        html = self.html(self.client.post('/producciones/nueva', data=self.datos(
            modo='nuevo', producto_id='3', nombre_producto='Pan', refrescar='cambiar_modo')))
        self.assertNotIn('value="Pan"', html)
        self.assertIn('value="unidades"', html)

    def test_crear_insumo_desde_el_modal(self):
        """Test el insumo nuevo se crea y el formulario conserva sus datos"""
        self.servidor.responder('POST', '/insumos', ok(FabricaDatos.insumo(id=9, nombre='Cacao')))
        respuesta = self.client.post('/producciones/nueva', data=self.datos(**{
            'accion': 'crear_insumo',
            'nuevo_insumo-nombre': 'Cacao',
            'nuevo_insumo-cantidad': '4',
            'nuevo_insumo-unidad': 'kg',
        }))
        html = self.html(respuesta)
        self.assertEqual(respuesta.status_code, 200)
        self.assertEqual(self.servidor.llamadas_a('POST', '/insumos'),
                         [('POST', '/insumos', {'nombre': 'Cacao', 'cantidad': 4.0, 'unidad': 'kg'})])
        self.assertEqual(len(self.servidor.llamadas_a('GET', '/insumos')), 2)
        self.assertIn('value="Galletas"', html)
        self.assertIn('Insumo guardado correctamente.', html)
        self.assertEqual(self.servidor.llamadas_a('POST', '/producciones'), [])

    def test_editar_completa_el_formulario(self):
        """Test editar muestra el producto y los insumos registrados"""
        self.servidor.responder('GET', '/producciones/4', ok(FabricaDatos.produccion(
            id=4, producto_id=3, insumos_utilizados=[{'insumo_id': 1, 'cantidad_utilizada': '3'}])))
        html = self.html(self.client.get('/producciones/4/editar'))
        self.assertIn('value="Pan"', html)
        self.assertIn('name="insumos-0-cantidad_utilizada"', html)
        self.assertIn('value="3.0"', html)
