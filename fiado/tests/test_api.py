# -*- coding: utf-8 -*-
"""
API JSON: sesión, carrito, confirmación y códigos de estado.
"""
import importlib
import threading

from fiado.app_container import AppContainer
from fiado.repositories.base import PersistenceError


def _crear_cliente(client, nombre='Juan Pérez', telefono='11 5555-1234'):
    r = client.post('/api/clientes', json={'nombre': nombre, 'telefono': telefono})
    assert r.status_code == 201
    return r.get_json()['cliente']


def test_sin_sesion_responde_401(client):
    r = client.get('/api/carrito')
    assert r.status_code == 401
    assert r.get_json() == {'ok': False, 'error': 'Sesión no iniciada'}


def test_sesion_requiere_comercio(client):
    assert client.post('/api/sesion', json={}).status_code == 400


def test_flujo_completo_de_fiado(sesion):
    cliente = _crear_cliente(sesion)

    r = sesion.post('/api/carrito/agregar', json={'descripcion': 'Queso', 'cantidad': '1', 'peso': '300', 'precio': '20'})
    assert r.status_code == 200
    assert r.get_json()['producto']['detalle'] == '1 × (300g × $20.00/kg)'
    sesion.post('/api/carrito/agregar', json={'descripcion': 'Pan', 'cantidad': '2', 'precio': '1.5'})

    r = sesion.get(f"/api/carrito?cliente_id={cliente['id']}")
    data = r.get_json()
    assert data['carrito']['total_monto'] == '9.00'
    assert data['proyeccion']['nuevo_saldo'] == '9.00'

    r = sesion.post('/api/carrito/confirmar', json={'cliente_id': cliente['id']})
    assert r.status_code == 200
    assert r.get_json()['nuevo_saldo'] == '9.00'
    assert sesion.get('/api/carrito').get_json()['carrito']['items_count'] == 0

    r = sesion.get(f"/api/clientes/{cliente['id']}/transacciones")
    assert len(r.get_json()['transacciones']) == 2

    r = sesion.get('/api/clientes')
    assert r.get_json()['resumen']['total_deuda'] == '9.00'


def test_pago_deja_saldo_a_favor(sesion):
    cliente = _crear_cliente(sesion)
    sesion.post('/api/carrito/tipo', json={'tipo': 'pago'})
    sesion.post('/api/carrito/agregar', json={'descripcion': 'Pago efectivo', 'precio': '50'})

    r = sesion.get(f"/api/carrito?cliente_id={cliente['id']}")
    assert r.get_json()['proyeccion']['saldo_a_favor'] is True

    r = sesion.post('/api/carrito/confirmar', json={'cliente_id': cliente['id']})
    assert r.get_json()['nuevo_saldo'] == '-50.00'


def test_validacion_responde_400_y_no_agrega(sesion):
    r = sesion.post('/api/carrito/agregar', json={'descripcion': '   ', 'cantidad': '1', 'precio': '10'})
    assert r.status_code == 400
    assert r.get_json()['code'] == 'EMPTY_DESCRIPTION'

    r = sesion.post('/api/carrito/agregar', json={'descripcion': 'Pan', 'cantidad': '1', 'precio': '0'})
    assert r.get_json()['code'] == 'INVALID_PRICE'
    assert sesion.get('/api/carrito').get_json()['carrito']['items_count'] == 0


def test_eliminar_linea(sesion):
    sesion.post('/api/carrito/agregar', json={'descripcion': 'Pan', 'precio': '10'})
    sesion.post('/api/carrito/agregar', json={'descripcion': 'Leche', 'precio': '5'})

    assert sesion.post('/api/carrito/eliminar', json={'index': 5}).status_code == 400
    r = sesion.post('/api/carrito/eliminar', json={'index': 0})
    items = r.get_json()['carrito']['items']
    assert [i['description'] for i in items] == ['Leche']


def test_confirmar_carrito_vacio(sesion):
    cliente = _crear_cliente(sesion)
    r = sesion.post('/api/carrito/confirmar', json={'cliente_id': cliente['id']})
    assert r.status_code == 400


def test_confirmar_cliente_inexistente(sesion):
    sesion.post('/api/carrito/agregar', json={'descripcion': 'Pan', 'precio': '10'})
    r = sesion.post('/api/carrito/confirmar', json={'cliente_id': 'no-existe'})
    assert r.status_code == 404
    assert sesion.get('/api/carrito').get_json()['carrito']['items_count'] == 1


def test_error_de_almacenamiento_responde_500_y_conserva_carrito(sesion, container, monkeypatch):
    cliente = _crear_cliente(sesion)

    def failing_insert(rows, client_repo):
        raise PersistenceError('No se pudo guardar transacciones.json')

    monkeypatch.setattr(container.transaction_repo, 'insert_many', failing_insert)
    sesion.post('/api/carrito/agregar', json={'descripcion': 'Pan', 'precio': '10'})

    r = sesion.post('/api/carrito/confirmar', json={'cliente_id': cliente['id']})
    assert r.status_code == 500
    assert r.get_json()['error'] == 'No se pudo guardar transacciones.json'
    assert sesion.get('/api/carrito').get_json()['carrito']['items_count'] == 1


def test_envio_en_curso_responde_409(app, sesion, container, monkeypatch):
    cliente = _crear_cliente(sesion)
    repo = container.transaction_repo
    original = repo.insert_many
    guardando = threading.Event()
    liberar = threading.Event()

    def slow_insert(rows, client_repo):
        guardando.set()
        liberar.wait(5)
        return original(rows, client_repo)

    monkeypatch.setattr(repo, 'insert_many', slow_insert)

    # Otra caja del mismo comercio confirma al mismo cliente
    otra_caja = app.test_client()
    otra_caja.post('/api/sesion', json={'comercio_id': 'c1', 'user': 'caja2'})
    otra_caja.post('/api/carrito/agregar', json={'descripcion': 'Leche', 'precio': '5'})
    sesion.post('/api/carrito/agregar', json={'descripcion': 'Pan', 'precio': '10'})

    primera = {}
    worker = threading.Thread(target=lambda: primera.update(
        r=otra_caja.post('/api/carrito/confirmar', json={'cliente_id': cliente['id']})
    ))
    worker.start()
    assert guardando.wait(5)

    r = sesion.post('/api/carrito/confirmar', json={'cliente_id': cliente['id']})
    liberar.set()
    worker.join(5)

    assert r.status_code == 409
    assert r.get_json()['en_curso'] is True
    assert primera['r'].status_code == 200
    assert sesion.get('/api/carrito').get_json()['carrito']['items_count'] == 1

    r = sesion.post('/api/carrito/confirmar', json={'cliente_id': cliente['id']})
    assert r.status_code == 200
    assert r.get_json()['nuevo_saldo'] == '15.00'


def test_sugerencias(sesion):
    r = sesion.get('/api/productos/sugerencias?q=lec&limit=3')
    assert r.status_code == 200
    assert r.get_json()['sugerencias'] == ['Leche', 'Lechuga']


def test_clientes_de_otro_comercio_no_se_ven(sesion, client):
    cliente = _crear_cliente(sesion)
    client.post('/api/sesion', json={'comercio_id': 'c2'})

    assert client.get('/api/clientes').get_json()['clientes'] == []
    assert client.get(f"/api/clientes/{cliente['id']}/transacciones").status_code == 404
    assert client.get(f"/api/carrito?cliente_id={cliente['id']}").status_code == 404


def test_compartir_cuenta_por_whatsapp(sesion):
    cliente = _crear_cliente(sesion)
    r = sesion.get(f"/api/clientes/{cliente['id']}/cuenta/whatsapp")
    assert r.status_code == 200
    assert r.get_json()['url'].startswith('https://wa.me/1155551234?text=')


def test_eliminar_transaccion_y_cliente(sesion):
    cliente = _crear_cliente(sesion)
    sesion.post('/api/carrito/agregar', json={'descripcion': 'Pan', 'precio': '10'})
    tx = sesion.post('/api/carrito/confirmar', json={'cliente_id': cliente['id']}).get_json()['transacciones'][0]

    r = sesion.delete(f"/api/transacciones/{tx['id']}")
    assert r.get_json()['nuevo_saldo'] == '0.00'
    assert sesion.delete(f"/api/transacciones/{tx['id']}").status_code == 404

    assert sesion.delete(f"/api/clientes/{cliente['id']}").status_code == 200
    assert sesion.delete(f"/api/clientes/{cliente['id']}").status_code == 404


def test_portal_sin_sesion(client, sesion):
    cliente = _crear_cliente(sesion)
    sesion.post('/api/sesion/salir')

    r = client.get(f"/api/portal/{cliente['access_code']}")
    assert r.status_code == 200
    assert r.get_json()['cliente']['nombre'] == 'Juan Pérez'
    assert client.get('/api/portal/codigo-falso').status_code == 404


def test_actividad(sesion):
    _crear_cliente(sesion)
    logs = sesion.get('/api/actividad?tipo=CLIENTE').get_json()['actividad']
    assert logs[0]['message'] == 'Cliente Juan Pérez creado'


def test_precio_enorme_no_rompe_el_carrito(sesion):
    r = sesion.post('/api/carrito/agregar', json={'descripcion': 'Auto', 'precio': '1e27'})
    assert r.status_code == 400
    assert r.get_json()['code'] == 'INVALID_PRICE'

    assert sesion.get('/api/carrito').status_code == 200
    r = sesion.post('/api/carrito/agregar', json={'descripcion': 'Pan', 'precio': '10'})
    assert r.status_code == 200
    assert r.get_json()['carrito']['total_monto'] == '10.00'


# ==============================================================================
# ACTIVIDAD QUE FALLA DESPUÉS DE GUARDAR
# ==============================================================================

def _romper_actividad(container, monkeypatch):
    def failing_log(*args, **kwargs):
        raise PersistenceError('No se pudo guardar audit.json')

    monkeypatch.setattr(container.audit_repo, 'log', failing_log)


def test_fallo_de_actividad_no_convierte_bajas_en_error(sesion, container, monkeypatch, capsys):
    cliente = _crear_cliente(sesion)
    sesion.post('/api/carrito/agregar', json={'descripcion': 'Pan', 'precio': '10'})
    sesion.post('/api/carrito/agregar', json={'descripcion': 'Leche', 'precio': '5'})
    tx = sesion.post('/api/carrito/confirmar', json={'cliente_id': cliente['id']}).get_json()['transacciones'][0]
    _romper_actividad(container, monkeypatch)

    r = sesion.delete(f"/api/transacciones/{tx['id']}")
    assert r.status_code == 200
    assert r.get_json()['nuevo_saldo'] == '5.00'

    r = sesion.delete(f"/api/clientes/{cliente['id']}/transacciones")
    assert r.status_code == 200
    assert r.get_json()['nuevo_saldo'] == '0.00'

    assert sesion.delete(f"/api/clientes/{cliente['id']}").status_code == 200
    assert container.client_repo.get_client(cliente['id']) is None
    assert '[ADVERTENCIA] No se pudo registrar la actividad' in capsys.readouterr().out


def test_fallo_de_actividad_no_convierte_altas_en_error(sesion, container, monkeypatch):
    _romper_actividad(container, monkeypatch)

    r = sesion.post('/api/clientes', json={'nombre': 'Ana'})
    assert r.status_code == 201
    assert container.client_repo.get_client(r.get_json()['cliente']['id'])

    r = sesion.post('/api/comercio/perfil', json={'nombre_comercio': 'Kiosco Luna'})
    assert r.status_code == 200
    assert r.get_json()['comercio']['nombre_comercio'] == 'Kiosco Luna'


# ==============================================================================
# PERFIL DEL COMERCIO Y RECORDATORIO
# ==============================================================================

def test_perfil_del_comercio(sesion):
    r = sesion.get('/api/comercio/perfil')
    assert r.get_json()['comercio']['nombre_comercio'] == 'Almacén Don José'

    r = sesion.post('/api/comercio/perfil', json={'nombre_comercio': '  ', 'alias': 'Luna'})
    assert r.status_code == 400

    r = sesion.post('/api/comercio/perfil', json={
        'nombre_comercio': 'Kiosco Luna', 'telefono': '11 4444-5555', 'alias': '',
    })
    comercio = r.get_json()['comercio']
    assert comercio['telefono'] == '11 4444-5555'
    assert comercio['alias'] is None


def test_el_encabezado_usa_el_nombre_guardado(sesion, client):
    cliente = _crear_cliente(sesion)
    sesion.post('/api/comercio/perfil', json={'nombre_comercio': 'Kiosco Luna'})

    # Volver a elegir el comercio no pisa el nombre del perfil
    client.post('/api/sesion', json={'comercio_id': 'c1', 'nombre_comercio': 'Otro nombre'})

    mensaje = client.get(f"/api/clientes/{cliente['id']}/cuenta/whatsapp").get_json()['mensaje']
    assert mensaje.startswith('*Kiosco Luna - Juan Pérez*')


def test_recordatorio_por_whatsapp(sesion):
    cliente = _crear_cliente(sesion)
    sesion.post('/api/carrito/agregar', json={'descripcion': 'Pan', 'precio': '10'})
    sesion.post('/api/carrito/confirmar', json={'cliente_id': cliente['id']})

    r = sesion.get(f"/api/clientes/{cliente['id']}/recordatorio/whatsapp")
    data = r.get_json()
    assert r.status_code == 200
    assert data['mensaje'] == 'Hola Juan Pérez, te paso el resumen de tu cuenta al día de hoy: $10.00. ¡Saludos!'
    assert data['url'].startswith('https://wa.me/1155551234?text=')
    assert sesion.get('/api/clientes/no-existe/recordatorio/whatsapp').status_code == 404


# ==============================================================================
# PUNTO DE ENTRADA
# ==============================================================================

def test_importar_main_no_crea_la_aplicacion():
    import fiado.main
    assert not hasattr(fiado.main, 'app')


def test_wsgi_usa_el_directorio_de_datos_del_entorno(tmp_path, monkeypatch):
    monkeypatch.setenv('FIADO_DATA_DIR', str(tmp_path))
    monkeypatch.setenv('FIADO_LOGS_DIR', str(tmp_path / 'logs'))
    AppContainer.reset_instance()
    try:
        wsgi = importlib.reload(importlib.import_module('wsgi'))
        assert wsgi.app.config['DATA_DIR'] == str(tmp_path)
    finally:
        AppContainer.reset_instance()
